"""
Food item service
Owns the lifecycle of a posted food item.

Main features:
- Food item creation with input validation and restaurant snapshot
- Available feed (not allocated, not expired, soonest expiry first)
- Shelter feed that hides items the shelter has already requested
- Restaurant listings, with requests joined for the dashboard
- Deletion cascading to every request against the item

Business rules:
- isAvailable starts True and is only ever flipped by the allocation service
- Restaurant display fields are a snapshot, never re-synced
- The store does not expire documents; expired items are filtered on read
"""

import logging
import math
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from ..config.settings import settings
from ..core.audit import write_log
from ..core.database import DocumentStore, document_store, new_document_id, server_timestamp
from ..core.exceptions import NotFoundError, ValidationError
from ..models.food_item import (
    FOOD_ITEMS_COLLECTION,
    FoodItem,
    FoodItemInput,
    FoodItemWithRequests,
    RestaurantSnapshot,
)
from ..models.food_request import REQUESTS_COLLECTION, WINNING_STATUSES, FoodItemRequest, RequestStatus
from .request_service import sort_newest_first

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")

UNKNOWN_RESTAURANT = "Unknown Restaurant"
ADDRESS_NOT_PROVIDED = "Address not provided"


def _profile_value(profile: Dict[str, Any], key: str) -> Any:
    value = profile.get(key)
    if value in (None, "") and isinstance(profile.get("location"), dict):
        value = profile["location"].get(key)
    return value


def build_restaurant_snapshot(restaurant_id: str, profile: Dict[str, Any]) -> RestaurantSnapshot:
    """Copy the restaurant's display fields for a new listing"""
    parts = []
    for key in ("address", "city", "state"):
        value = _profile_value(profile, key)
        if value and str(value).strip():
            parts.append(str(value).strip())

    name = profile.get("restaurantName") or profile.get("name") or UNKNOWN_RESTAURANT
    cuisine = profile.get("cuisineType")
    if isinstance(cuisine, str):
        cuisine = [cuisine]

    return RestaurantSnapshot(
        restaurant_id=restaurant_id or "",
        restaurant_name=name,
        restaurant_address=", ".join(parts) if parts else ADDRESS_NOT_PROVIDED,
        restaurant_phone=profile.get("phone") or None,
        cuisine_type=list(cuisine) if cuisine else None,
    )


class FoodItemService:
    """Food item registry"""

    def __init__(self, store: Optional[DocumentStore] = None,
                 clock: Callable[[], datetime] = server_timestamp,
                 default_expiry_hours: Optional[float] = None):
        self.db = store or document_store
        self.clock = clock
        self.default_expiry_hours = default_expiry_hours or settings.default_expiry_hours

    def create_food_item(self, restaurant_id: str, restaurant_profile: Dict[str, Any],
                         food_data: FoodItemInput) -> str:
        """
        Post a new food item

        Args:
            restaurant_id: owning restaurant
            restaurant_profile: profile fields supplied by the profile directory
            food_data: restaurant supplied fields

        Returns:
            str: the new food item id

        Raises:
            ValidationError: empty title/description/quantity, zero quantity,
                or a non-positive or out of range expiry
        """
        title, description, quantity = self._validate_text_fields(food_data)
        expiry_hours = self._resolve_expiry_hours(food_data.expiry_hours)
        snapshot = build_restaurant_snapshot(restaurant_id, restaurant_profile or {})

        now = self.clock()
        expiry_time = self._expiry_time(now, expiry_hours)
        food_item = FoodItem(
            id=new_document_id(),
            **snapshot.model_dump(),
            title=title,
            description=description,
            quantity=quantity,
            expiry_time=expiry_time,
            pickup_instructions=(food_data.pickup_instructions or "").strip() or None,
            is_available=True,
            is_vegetarian=bool(food_data.is_vegetarian or food_data.is_vegan),
            is_vegan=bool(food_data.is_vegan),
            allergens=self._clean_allergens(food_data.allergens),
            image_url=food_data.image_url or None,
            created_at=now,
            updated_at=now,
        )

        with self.db.transaction() as txn:
            txn.set(FOOD_ITEMS_COLLECTION, food_item.id, food_item.to_document())
            write_log(txn, "food_item_create", restaurant_id, {
                "food_item_id": food_item.id,
                "title": title,
                "quantity": quantity,
                "expiry_time": food_item.expiry_time.isoformat(),
            }, now=now)

        logger.info("Food item %s posted by restaurant %s", food_item.id, restaurant_id)
        return food_item.id

    def get_food_item(self, food_item_id: str) -> FoodItem:
        doc = self.db.get(FOOD_ITEMS_COLLECTION, food_item_id)
        if doc is None:
            raise NotFoundError("Food item not found", details={"food_item_id": food_item_id})
        return FoodItem.from_document(doc)

    def list_available(self, location: Optional[Dict[str, float]] = None) -> List[FoodItem]:
        """
        Items still open for requests, soonest expiry first.

        `location` is accepted for API compatibility; proximity filtering is
        done by the geolocation service, not here.
        """
        now = self.clock()
        docs = self.db.query(FOOD_ITEMS_COLLECTION, [("isAvailable", "==", True)])
        items = [FoodItem.from_document(doc) for doc in docs]
        items = [item for item in items if not item.is_expired(now)]
        items.sort(key=lambda item: item.expiry_time)
        return items

    def list_available_for_shelter(self, shelter_id: str,
                                   location: Optional[Dict[str, float]] = None) -> List[FoodItem]:
        """Available items minus every item the shelter has ever requested"""
        requested_ids = {
            doc["foodItemId"]
            for doc in self.db.query(REQUESTS_COLLECTION, [("shelterId", "==", shelter_id)])
        }
        return [item for item in self.list_available(location) if item.id not in requested_ids]

    def list_for_restaurant(self, restaurant_id: str) -> List[FoodItem]:
        """All of a restaurant's items, newest first"""
        docs = self.db.query(FOOD_ITEMS_COLLECTION, [("restaurantId", "==", restaurant_id)])
        items = [FoodItem.from_document(doc) for doc in docs]
        items.sort(key=lambda item: item.created_at, reverse=True)
        return items

    def list_for_restaurant_with_requests(self, restaurant_id: str) -> List[FoodItemWithRequests]:
        items = self.list_for_restaurant(restaurant_id)
        if not items:
            return []

        by_item: Dict[str, List[FoodItemRequest]] = {item.id: [] for item in items}
        docs = self.db.query(REQUESTS_COLLECTION, [("foodItemId", "in", list(by_item))])
        for doc in docs:
            by_item[doc["foodItemId"]].append(FoodItemRequest.from_document(doc))

        results = []
        for item in items:
            requests = sort_newest_first(by_item[item.id])
            approved = next((r for r in requests if r.status in WINNING_STATUSES), None)
            if approved is not None:
                status = approved.status
            elif requests:
                status = RequestStatus.REQUESTED
            else:
                status = None
            results.append(FoodItemWithRequests(
                **item.model_dump(),
                requests=requests,
                approved_request=approved,
                status=status,
            ))
        return results

    def delete_food_item(self, food_item_id: str, actor_id: Optional[str] = None) -> int:
        """
        Delete a food item together with all of its requests

        Returns:
            int: number of requests removed

        Raises:
            NotFoundError: the item does not exist
        """
        with self.db.transaction() as txn:
            if txn.get(FOOD_ITEMS_COLLECTION, food_item_id) is None:
                raise NotFoundError("Food item not found", details={"food_item_id": food_item_id})

            requests = txn.query(REQUESTS_COLLECTION, [("foodItemId", "==", food_item_id)])
            for doc in requests:
                txn.delete(REQUESTS_COLLECTION, doc["id"])
            txn.delete(FOOD_ITEMS_COLLECTION, food_item_id)
            write_log(txn, "food_item_delete", actor_id, {
                "food_item_id": food_item_id,
                "deleted_requests": len(requests),
            }, now=self.clock())

        logger.info("Food item %s deleted with %d request(s)", food_item_id, len(requests))
        return len(requests)

    def _validate_text_fields(self, food_data: FoodItemInput):
        title = (food_data.title or "").strip()
        description = (food_data.description or "").strip()
        quantity = (food_data.quantity or "").strip()

        if not title or not description or not quantity:
            raise ValidationError(
                "Please fill in all required fields (title, description, and quantity)",
                details={"title": bool(title), "description": bool(description), "quantity": bool(quantity)},
            )

        # Free-form quantities are allowed; a leading number must be positive
        match = _LEADING_NUMBER.match(quantity)
        if match and float(match.group(1)) <= 0:
            raise ValidationError("Quantity must be greater than 0", details={"quantity": quantity})

        # quantity is stored as given
        return title, description, food_data.quantity

    def _resolve_expiry_hours(self, value: Any) -> float:
        if value is None or isinstance(value, bool):
            return self.default_expiry_hours
        try:
            hours = float(value)
        except (TypeError, ValueError):
            return self.default_expiry_hours
        if not math.isfinite(hours):
            return self.default_expiry_hours
        if hours <= 0:
            raise ValidationError("Expiry hours must be positive", details={"expiry_hours": value})
        return hours

    @staticmethod
    def _expiry_time(now: datetime, expiry_hours: float) -> datetime:
        try:
            return now + timedelta(hours=expiry_hours)
        except OverflowError:
            raise ValidationError("Expiry hours out of range", details={"expiry_hours": expiry_hours})

    @staticmethod
    def _clean_allergens(allergens: Optional[List[str]]) -> List[str]:
        cleaned: List[str] = []
        for allergen in allergens or []:
            value = str(allergen).strip()
            if value and value not in cleaned:
                cleaned.append(value)
        return cleaned
