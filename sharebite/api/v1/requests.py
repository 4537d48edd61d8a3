"""
Request routes
Shelters follow their requests; restaurants review them and confirm pickup.
"""

from typing import List

from fastapi import APIRouter, Depends

from ...core.error_handler import create_success_response
from ...core.security import require_role
from ...models.food_item import RequestWithFoodItem
from ...models.user import CurrentUser, UserRole
from ...schemas.food_request import ReviewRequest
from ...services import FoodItemService, RequestService
from ..deps import ensure_owner, get_food_item_service, get_request_service

router = APIRouter()


@router.get("/mine", response_model=List[RequestWithFoodItem])
def list_my_requests(
    user: CurrentUser = Depends(require_role(UserRole.SHELTER)),
    requests: RequestService = Depends(get_request_service),
):
    return requests.list_for_shelter_with_food_item_details(user.id)


@router.post("/{request_id}/review")
def review_request(
    request_id: str,
    req: ReviewRequest,
    user: CurrentUser = Depends(require_role(UserRole.RESTAURANT)),
    requests: RequestService = Depends(get_request_service),
    food_items: FoodItemService = Depends(get_food_item_service),
):
    """Approve or decline; approving declines every competing request"""
    request = requests.get_request(request_id)
    ensure_owner(food_items.get_food_item(request.food_item_id), user)
    requests.review_request(request_id, req.decision, actor_id=user.id)
    return create_success_response(
        {"id": request_id, "status": req.decision}, f"Request {req.decision}"
    )


@router.post("/{request_id}/pickup")
def mark_picked_up(
    request_id: str,
    user: CurrentUser = Depends(require_role(UserRole.RESTAURANT)),
    requests: RequestService = Depends(get_request_service),
    food_items: FoodItemService = Depends(get_food_item_service),
):
    request = requests.get_request(request_id)
    ensure_owner(food_items.get_food_item(request.food_item_id), user)
    requests.mark_picked_up(request_id, actor_id=user.id)
    return create_success_response({"id": request_id, "status": "picked_up"}, "Pickup confirmed")
