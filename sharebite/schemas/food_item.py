"""
Food item request/response schemas
"""

from typing import Any, List, Optional

from pydantic import Field

from ..models.base import BaseEntity
from ..models.food_item import FoodItemInput


class FoodItemCreateRequest(BaseEntity):
    """Post a food item"""
    title: str = Field(..., max_length=200, description="Title")
    description: str = Field(..., max_length=2000, description="Description")
    quantity: str = Field("1", max_length=100, description="Free-form quantity")
    expiry_hours: Optional[Any] = Field(None, description="Hours until expiry; absent or not a number means 24")
    pickup_instructions: Optional[str] = Field(None, max_length=1000, description="Pickup instructions")
    is_vegetarian: bool = Field(False, description="Vegetarian")
    is_vegan: bool = Field(False, description="Vegan")
    allergens: List[str] = Field(default_factory=list, description="Allergens")
    image_url: Optional[str] = Field(None, description="Image URL")

    def to_input(self) -> FoodItemInput:
        return FoodItemInput(**self.model_dump())
