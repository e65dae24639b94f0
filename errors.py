"""
Error taxonomy for the API.

Every error is an HTTPException so FastAPI treats it the usual way; the
handlers in main.py render them as `{"message": ...}`.
"""
from typing import Dict, List, Optional

from fastapi import HTTPException


class ApiError(HTTPException):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=message or self.default_message)


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)
        self.headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 400
    default_message = "Already exists"


class CapacityExceeded(ApiError):
    status_code = 400
    default_message = "Event is at full capacity"


class OutOfStock(ApiError):
    status_code = 400
    default_message = "Product is out of stock"


class ServerError(ApiError):
    status_code = 500
