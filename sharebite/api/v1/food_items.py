"""
Food item routes
Restaurants post and manage items; shelters browse and request them.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...core.error_handler import create_success_response
from ...core.security import get_current_user, require_role
from ...models.food_item import FoodItem, FoodItemWithRequests
from ...models.food_request import FoodItemRequest
from ...models.user import CurrentUser, UserRole
from ...schemas.common import ApiResponse, CreatedResponse
from ...schemas.food_item import FoodItemCreateRequest
from ...services import FoodItemService, ProfileDirectory, RequestService
from ..deps import ensure_owner, get_food_item_service, get_profile_directory, get_request_service

router = APIRouter()


@router.post("", response_model=ApiResponse[CreatedResponse])
def create_food_item(
    req: FoodItemCreateRequest,
    user: CurrentUser = Depends(require_role(UserRole.RESTAURANT)),
    service: FoodItemService = Depends(get_food_item_service),
    profiles: ProfileDirectory = Depends(get_profile_directory),
):
    """Post a food item; restaurant display fields are snapshotted from the profile"""
    profile = profiles.get_restaurant_profile(user.id)
    food_item_id = service.create_food_item(user.id, profile, req.to_input())
    return create_success_response({"id": food_item_id}, "Food item posted")


@router.get("/available", response_model=List[FoodItem])
def list_available(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
    user: CurrentUser = Depends(get_current_user),
    service: FoodItemService = Depends(get_food_item_service),
):
    """Open food items; shelters do not see items they already requested"""
    location = None
    if lat is not None and lng is not None:
        location = {"lat": lat, "lng": lng, "radiusKm": radius_km}
    if user.role == UserRole.SHELTER:
        return service.list_available_for_shelter(user.id, location)
    return service.list_available(location)


@router.get("/mine", response_model=List[FoodItemWithRequests])
def list_my_food_items(
    user: CurrentUser = Depends(require_role(UserRole.RESTAURANT)),
    service: FoodItemService = Depends(get_food_item_service),
):
    return service.list_for_restaurant_with_requests(user.id)


@router.get("/{food_item_id}", response_model=FoodItem)
def get_food_item(
    food_item_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: FoodItemService = Depends(get_food_item_service),
):
    return service.get_food_item(food_item_id)


@router.delete("/{food_item_id}")
def delete_food_item(
    food_item_id: str,
    user: CurrentUser = Depends(require_role(UserRole.RESTAURANT)),
    service: FoodItemService = Depends(get_food_item_service),
):
    """Delete an item and every request against it"""
    ensure_owner(service.get_food_item(food_item_id), user)
    deleted_requests = service.delete_food_item(food_item_id, actor_id=user.id)
    return create_success_response(
        {"id": food_item_id, "deleted_requests": deleted_requests}, "Food item deleted"
    )


@router.get("/{food_item_id}/requests", response_model=List[FoodItemRequest])
def list_food_item_requests(
    food_item_id: str,
    user: CurrentUser = Depends(require_role(UserRole.RESTAURANT)),
    service: FoodItemService = Depends(get_food_item_service),
    requests: RequestService = Depends(get_request_service),
):
    ensure_owner(service.get_food_item(food_item_id), user)
    return requests.list_for_food_item(food_item_id)


@router.post("/{food_item_id}/requests", response_model=ApiResponse[CreatedResponse])
def request_food_item(
    food_item_id: str,
    user: CurrentUser = Depends(require_role(UserRole.SHELTER)),
    requests: RequestService = Depends(get_request_service),
):
    """Shelter requests a food item"""
    request_id = requests.request_food_item(food_item_id, user.id, user.name)
    return create_success_response({"id": request_id}, "Request sent")
