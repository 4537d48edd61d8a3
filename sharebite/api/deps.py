"""
Service dependencies
Services are built per request around the application's document store.
"""

from fastapi import Depends, Request

from ..core.database import DocumentStore
from ..core.exceptions import PermissionDeniedError
from ..models.food_item import FoodItem
from ..models.user import CurrentUser
from ..services import FoodItemService, ProfileDirectory, RequestService


def get_app_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_food_item_service(store: DocumentStore = Depends(get_app_store)) -> FoodItemService:
    return FoodItemService(store)


def get_request_service(store: DocumentStore = Depends(get_app_store)) -> RequestService:
    return RequestService(store)


def get_profile_directory(store: DocumentStore = Depends(get_app_store)) -> ProfileDirectory:
    return ProfileDirectory(store)


def ensure_owner(item: FoodItem, user: CurrentUser):
    """Only the posting restaurant may manage a food item"""
    if item.restaurant_id != user.id:
        raise PermissionDeniedError(
            "Only the restaurant that posted this item can manage it",
            details={"food_item_id": item.id},
        )
