from bson import ObjectId
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Any


class BaseResponse(BaseModel):
    """Envelope for successful responses."""

    success: bool = True
    data: Optional[Any] = None


class ErrorDetail(BaseModel):
    """Error payload inside the failure envelope."""

    message: str


class ErrorResponse(BaseModel):
    """Envelope for failed responses."""

    success: bool = False
    error: ErrorDetail


class Pagination(BaseModel):
    """Page metadata for list endpoints."""

    page: int
    limit: int
    total: int
    pages: int


class AddReviewRequest(BaseModel):
    """
    Request schema for reviewing a doctor or hospital.

    The rating range is checked by the router so the error message stays
    "Rating must be between 1 and 5".
    """

    rating: Optional[float] = None
    comment: Optional[str] = Field(None, max_length=2000)
    department: Optional[str] = None
    visit_date: Optional[datetime] = None
    patient_id: Optional[str] = None

    @field_validator("patient_id")
    @classmethod
    def check_patient_id(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not ObjectId.is_valid(value):
            raise ValueError("Invalid patient ID format")
        return value


def paginate(page: int, limit: int) -> int:
    """Translate page/limit query parameters into a skip count."""
    return (page - 1) * limit


def page_count(total: int, limit: int) -> int:
    """Number of pages needed for `total` items."""
    return -(-total // limit) if limit else 0
