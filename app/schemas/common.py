"""
Error envelope documented on every router.

Every 4xx/5xx body is `{code, message, details?}`; request validation
failures carry `details.errors` as a list of FieldError.
"""
from typing import Any, Optional
from pydantic import BaseModel, Field


class FieldError(BaseModel):
    field: str = Field(description='Dotted location, e.g. "dates.1".')
    message: str
    type: str


class ErrorResponse(BaseModel):
    code: str = Field(examples=["METRICS_NOT_FOUND"])
    message: str
    details: Optional[dict[str, Any]] = None


class ValidationDetails(BaseModel):
    errors: list[FieldError]


class ValidationErrorResponse(BaseModel):
    code: str = Field(default="VALIDATION_ERROR")
    message: str
    details: ValidationDetails
