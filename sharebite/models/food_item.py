"""
Food item models
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .base import BaseEntity, TimestampMixin
from .food_request import FoodItemRequest, RequestStatus

FOOD_ITEMS_COLLECTION = "foodItems"


class RestaurantSnapshot(BaseEntity):
    """
    Restaurant display fields copied onto a food item at creation time.
    Later profile edits do not touch items that were already posted.
    """
    restaurant_id: str = Field(..., description="Owning restaurant id")
    restaurant_name: str = Field(..., description="Restaurant name")
    restaurant_address: str = Field(..., description="Formatted address")
    restaurant_phone: Optional[str] = Field(None, description="Contact phone")
    cuisine_type: Optional[List[str]] = Field(None, description="Cuisine tags")


class FoodItemInput(BaseModel):
    """Restaurant supplied fields for a new food item; validated by the registry"""
    title: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[str] = None
    expiry_hours: Optional[Any] = None
    pickup_instructions: Optional[str] = None
    is_vegetarian: bool = False
    is_vegan: bool = False
    allergens: Optional[List[str]] = None
    image_url: Optional[str] = None


class FoodItem(RestaurantSnapshot, TimestampMixin):
    """A postable unit of surplus food"""
    id: str = Field(..., description="Food item id")
    title: str = Field(..., description="Title")
    description: str = Field(..., description="Description")
    quantity: str = Field(..., description="Free-form quantity, e.g. '20 servings'")
    expiry_time: datetime = Field(..., description="Expiry instant")
    pickup_instructions: Optional[str] = Field(None, description="Pickup instructions")
    is_available: bool = Field(True, description="False once a request has been approved")
    is_vegetarian: bool = Field(False, description="Vegetarian")
    is_vegan: bool = Field(False, description="Vegan (implies vegetarian)")
    allergens: List[str] = Field(default_factory=list, description="Allergens")
    image_url: Optional[str] = Field(None, description="Image URL")

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_time <= now


class FoodItemWithRequests(FoodItem):
    """Restaurant dashboard view of a food item"""
    requests: List[FoodItemRequest] = Field(default_factory=list)
    approved_request: Optional[FoodItemRequest] = None
    status: Optional[RequestStatus] = None


class RequestWithFoodItem(FoodItemRequest):
    """Shelter view of a request joined with its food item"""
    food_item: Optional[FoodItem] = None
