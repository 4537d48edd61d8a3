"""
Business logic services.
Food item registry, request ledger and allocation coordinator.
"""

from .allocation_service import AllocationService
from .food_item_service import FoodItemService
from .profile_service import ProfileDirectory
from .request_service import RequestService

__all__ = [
    "AllocationService",
    "FoodItemService",
    "ProfileDirectory",
    "RequestService",
]
