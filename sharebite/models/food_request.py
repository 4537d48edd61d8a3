"""
Food item request models
"""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import Field

from .base import BaseEntity

REQUESTS_COLLECTION = "foodItemRequests"


class RequestStatus(str, Enum):
    """Request status"""
    REQUESTED = "requested"    # waiting for the restaurant
    APPROVED = "approved"      # allocated to this shelter
    DECLINED = "declined"      # terminal
    PICKED_UP = "picked_up"    # terminal


class ReviewDecision(str, Enum):
    """Restaurant review outcome"""
    APPROVED = "approved"
    DECLINED = "declined"


ACTIVE_STATUSES: FrozenSet[str] = frozenset({RequestStatus.REQUESTED.value, RequestStatus.APPROVED.value})
WINNING_STATUSES: FrozenSet[str] = frozenset({RequestStatus.APPROVED.value, RequestStatus.PICKED_UP.value})

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    RequestStatus.REQUESTED.value: frozenset({RequestStatus.APPROVED.value, RequestStatus.DECLINED.value}),
    RequestStatus.APPROVED.value: frozenset({RequestStatus.PICKED_UP.value}),
    RequestStatus.DECLINED.value: frozenset(),
    RequestStatus.PICKED_UP.value: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class FoodItemRequest(BaseEntity):
    """A shelter's request against a food item"""
    id: str = Field(..., description="Request id")
    food_item_id: str = Field(..., description="Target food item id")
    shelter_id: str = Field(..., description="Requesting shelter id")
    shelter_name: str = Field("", description="Shelter display name at request time")
    status: RequestStatus = Field(RequestStatus.REQUESTED, description="Lifecycle status")
    requested_at: datetime = Field(..., description="Request time")
    reviewed_at: Optional[datetime] = Field(None, description="Set on approve/decline")
    picked_up_at: Optional[datetime] = Field(None, description="Set on pickup confirmation")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]
