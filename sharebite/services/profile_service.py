"""
Profile directory
Read-only access to restaurant profiles; profile CRUD lives elsewhere.
"""

from typing import Any, Dict, Optional

from ..core.database import DocumentStore, document_store
from ..core.exceptions import NotFoundError

RESTAURANTS_COLLECTION = "restaurants"


class ProfileDirectory:
    """Supplies restaurant display fields for food item snapshots"""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.db = store or document_store

    def get_restaurant_profile(self, restaurant_id: str) -> Dict[str, Any]:
        profile = self.db.get(RESTAURANTS_COLLECTION, restaurant_id)
        if profile is None:
            raise NotFoundError(
                "Restaurant profile not found. Please update your profile first.",
                details={"restaurant_id": restaurant_id},
            )
        return profile
