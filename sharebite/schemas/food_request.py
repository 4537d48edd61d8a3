"""
Food item request schemas
"""

from pydantic import Field

from ..models.base import BaseEntity
from ..models.food_request import ReviewDecision


class ReviewRequest(BaseEntity):
    """Restaurant review of a shelter request"""
    decision: ReviewDecision = Field(..., description="approved or declined")
