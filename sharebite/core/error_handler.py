"""
Unified error handling
Standard error response format and FastAPI exception handlers

Main features:
- One error response shape for every failure
- Error code to HTTP status mapping
- Unknown errors are logged and recorded in the audit trail
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .audit import write_log
from .database import DocumentStore, get_store
from .exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


class ErrorResponse:
    """Standard error response"""

    def __init__(self, error_code: str, message: str,
                 details: Optional[Dict[str, Any]] = None,
                 http_status: int = 400):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def to_json_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )


class ErrorHandler:
    """Global error handler"""

    ERROR_CODE_STATUS_MAP = {
        "VALIDATION_ERROR": 400,
        "AUTHENTICATION_REQUIRED": 401,
        "PERMISSION_DENIED": 403,
        "NOT_FOUND": 404,
        "BUSINESS_RULE_VIOLATION": 422,
        "INTERNAL_ERROR": 500,

        # Lifecycle
        "FOOD_ITEM_UNAVAILABLE": 409,
        "DUPLICATE_REQUEST": 409,
        "ALREADY_ALLOCATED": 409,
        "INVALID_TRANSITION": 409,
        "PRECONDITION_FAILED": 409,

        # Store
        "COMMIT_FAILED": 503,
        "DATABASE_ERROR": 500,
    }

    @classmethod
    def handle_application_error(cls, error: BaseApplicationError) -> ErrorResponse:
        http_status = cls.ERROR_CODE_STATUS_MAP.get(error.error_code, 400)
        return ErrorResponse(
            error_code=error.error_code,
            message=error.message,
            details=error.details,
            http_status=http_status
        )

    @classmethod
    def handle_http_exception(cls, error: HTTPException) -> ErrorResponse:
        return ErrorResponse(
            error_code="HTTP_ERROR",
            message=str(error.detail),
            details={"status_code": error.status_code},
            http_status=error.status_code
        )

    @classmethod
    def handle_validation_error(cls, error: Exception) -> ErrorResponse:
        errors = jsonable_encoder(error.errors()) if hasattr(error, "errors") else str(error)
        return ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"validation_errors": errors},
            http_status=422
        )

    @classmethod
    def handle_unknown_error(cls, error: Exception, store: Optional[DocumentStore] = None) -> ErrorResponse:
        error_details = {
            "type": type(error).__name__,
            "message": str(error),
            "traceback": traceback.format_exc()
        }
        logger.error("Unhandled %s: %s", error_details["type"], error_details["message"])
        cls._log_system_error(error_details, store or get_store())

        return ErrorResponse(
            error_code="INTERNAL_ERROR",
            message=str(error) or "Internal server error",
            details={"error_type": type(error).__name__},
            http_status=500
        )

    @classmethod
    def _log_system_error(cls, error_details: Dict[str, Any], store: DocumentStore):
        """Record a system error in the audit trail"""
        try:
            with store.transaction() as txn:
                write_log(txn, "system_error", None, error_details)
        except Exception:
            # The store itself may be what failed
            logger.exception("Failed to record system error in the audit trail")


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    return ErrorHandler.handle_application_error(exc).to_json_response()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return ErrorHandler.handle_http_exception(exc).to_json_response()


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return ErrorHandler.handle_validation_error(exc).to_json_response()


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    store = getattr(request.app.state, "store", None)
    return ErrorHandler.handle_unknown_error(exc, store).to_json_response()


def create_success_response(data: Any = None, message: str = "OK") -> Dict[str, Any]:
    response = {
        "success": True,
        "message": message
    }
    if data is not None:
        response["data"] = data
    return response
