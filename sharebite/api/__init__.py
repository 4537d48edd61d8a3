"""
API routes and endpoints.
"""

from fastapi import APIRouter

from ..schemas.common import ErrorResponse
from .v1 import food_items, requests

api_router = APIRouter(responses={
    401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    403: {"model": ErrorResponse, "description": "Wrong role or not the owner"},
    404: {"model": ErrorResponse, "description": "Not found"},
    409: {"model": ErrorResponse, "description": "Lifecycle conflict"},
})

api_router.include_router(food_items.router, prefix="/food-items", tags=["food items"])
api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
