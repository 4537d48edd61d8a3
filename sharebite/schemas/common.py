from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """Generic API response"""
    success: bool = Field(description="Whether the request succeeded")
    data: Optional[T] = Field(None, description="Payload")
    message: Optional[str] = Field(None, description="Message")
    error_code: Optional[str] = Field(None, description="Error code")


class CreatedResponse(BaseModel):
    """Id of a newly created document"""
    id: str = Field(description="Document id")


class ErrorResponse(BaseModel):
    """Error response"""
    success: bool = Field(False, description="Request failed")
    message: str = Field(description="Error message")
    error_code: str = Field(description="Error code")
    details: dict = Field(default_factory=dict, description="Error details")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "This food item has already been allocated",
                "error_code": "ALREADY_ALLOCATED",
                "details": {"food_item_id": "3f2b9c", "request_id": "a81d07"}
            }
        }
    }
