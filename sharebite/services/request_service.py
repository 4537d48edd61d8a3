"""
Request service
Owns a shelter's request against a food item.

Main features:
- Request creation (existence, availability and duplicate checks)
- Review, delegating to the allocation service
- Pickup confirmation
- Per food item / per shelter listings, plus a joined shelter view

Business rules:
- A shelter holds at most one active (requested/approved) request per item
- Checks and insert run in one transaction, so two shelters cannot race
  past the duplicate check
- picked_up is only reachable from approved and is terminal
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Union

from ..core.audit import write_log
from ..core.database import DocumentStore, document_store, new_document_id, server_timestamp
from ..core.exceptions import (
    DuplicateRequestError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailed,
    UnavailableError,
    ValidationError,
)
from ..models.food_item import FOOD_ITEMS_COLLECTION, FoodItem, RequestWithFoodItem
from ..models.food_request import (
    ACTIVE_STATUSES,
    REQUESTS_COLLECTION,
    FoodItemRequest,
    RequestStatus,
    ReviewDecision,
)
from .allocation_service import AllocationService

logger = logging.getLogger(__name__)


def sort_newest_first(requests: Iterable[FoodItemRequest]) -> List[FoodItemRequest]:
    return sorted(requests, key=lambda r: r.requested_at, reverse=True)


class RequestService:
    """Request ledger"""

    def __init__(self, store: Optional[DocumentStore] = None,
                 clock: Callable[[], datetime] = server_timestamp,
                 allocation: Optional[AllocationService] = None):
        self.db = store or document_store
        self.clock = clock
        self.allocation = allocation or AllocationService(self.db, clock=clock)

    def request_food_item(self, food_item_id: str, shelter_id: str, shelter_name: str) -> str:
        """
        Create a request for a food item

        Args:
            food_item_id: target food item
            shelter_id: requesting shelter
            shelter_name: shelter display name, snapshotted onto the request

        Returns:
            str: the new request id

        Raises:
            NotFoundError: the food item does not exist
            UnavailableError: the food item has already been allocated
            DuplicateRequestError: the shelter already has an active request for it
        """
        with self.db.transaction() as txn:
            item = txn.get(FOOD_ITEMS_COLLECTION, food_item_id)
            if item is None:
                raise NotFoundError("Food item not found", details={"food_item_id": food_item_id})

            if not item.get("isAvailable"):
                raise UnavailableError(
                    "Food item is no longer available", details={"food_item_id": food_item_id}
                )

            existing = txn.query(REQUESTS_COLLECTION, [
                ("foodItemId", "==", food_item_id),
                ("shelterId", "==", shelter_id),
                ("status", "in", list(ACTIVE_STATUSES)),
            ])
            if existing:
                raise DuplicateRequestError(
                    "You already have a pending request for this item",
                    details={"request_id": existing[0]["id"]},
                )

            now = self.clock()
            request = FoodItemRequest(
                id=new_document_id(),
                food_item_id=food_item_id,
                shelter_id=shelter_id,
                shelter_name=shelter_name or "",
                status=RequestStatus.REQUESTED,
                requested_at=now,
            )
            txn.set(REQUESTS_COLLECTION, request.id, request.to_document())
            write_log(txn, "request_create", shelter_id, {
                "request_id": request.id,
                "food_item_id": food_item_id,
                "title": item.get("title"),
            }, now=now)

        logger.info("Shelter %s requested food item %s (%s)", shelter_id, food_item_id, request.id)
        return request.id

    def review_request(self, request_id: str, decision: Union[ReviewDecision, str],
                       actor_id: Optional[str] = None):
        """Approve (allocating the item) or decline a request"""
        try:
            decision = ReviewDecision(decision)
        except ValueError:
            raise ValidationError(
                "Decision must be 'approved' or 'declined'", details={"decision": str(decision)}
            )

        if decision == ReviewDecision.APPROVED:
            self.allocation.approve(request_id, actor_id=actor_id)
        else:
            self.allocation.decline(request_id, actor_id=actor_id)

    def mark_picked_up(self, request_id: str, actor_id: Optional[str] = None):
        """
        Confirm pickup of an approved request

        Raises:
            NotFoundError: the request does not exist
            InvalidTransitionError: the request is not approved
        """
        with self.db.transaction() as txn:
            doc = txn.get(REQUESTS_COLLECTION, request_id)
            if doc is None:
                raise NotFoundError("Request not found", details={"request_id": request_id})

            current = doc.get("status")
            if current != RequestStatus.APPROVED.value:
                logger.warning("Rejected pickup of request %s in status %s", request_id, current)
                raise InvalidTransitionError(current, RequestStatus.PICKED_UP.value)

            now = self.clock()
            try:
                txn.update(REQUESTS_COLLECTION, request_id, {
                    "status": RequestStatus.PICKED_UP.value,
                    "pickedUpAt": now.isoformat(),
                }, precondition={"status": RequestStatus.APPROVED.value})
            except PreconditionFailed as e:
                raise InvalidTransitionError(e.details.get("actual"), RequestStatus.PICKED_UP.value)

            write_log(txn, "request_pickup", actor_id, {
                "request_id": request_id,
                "food_item_id": doc.get("foodItemId"),
                "shelter_id": doc.get("shelterId"),
            }, now=now)

        logger.info("Request %s picked up", request_id)

    def get_request(self, request_id: str) -> FoodItemRequest:
        doc = self.db.get(REQUESTS_COLLECTION, request_id)
        if doc is None:
            raise NotFoundError("Request not found", details={"request_id": request_id})
        return FoodItemRequest.from_document(doc)

    def list_for_food_item(self, food_item_id: str) -> List[FoodItemRequest]:
        docs = self.db.query(REQUESTS_COLLECTION, [("foodItemId", "==", food_item_id)])
        return sort_newest_first(FoodItemRequest.from_document(doc) for doc in docs)

    def list_for_shelter(self, shelter_id: str) -> List[FoodItemRequest]:
        docs = self.db.query(REQUESTS_COLLECTION, [("shelterId", "==", shelter_id)])
        return sort_newest_first(FoodItemRequest.from_document(doc) for doc in docs)

    def list_for_shelter_with_food_item_details(self, shelter_id: str) -> List[RequestWithFoodItem]:
        """Shelter requests with the referenced food item attached when it still exists"""
        results = []
        for request in self.list_for_shelter(shelter_id):
            doc = self.db.get(FOOD_ITEMS_COLLECTION, request.food_item_id)
            results.append(RequestWithFoodItem(
                **request.model_dump(),
                food_item=FoodItem.from_document(doc) if doc else None,
            ))
        return results
