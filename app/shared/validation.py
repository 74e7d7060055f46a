"""Request validation helpers shared by the feature routers."""

from typing import Optional

from bson import ObjectId
from fastapi import Request

from app.shared.exceptions import BadRequestException


def validate_object_id(param: str, entity: str):
    """
    Build a dependency that rejects a malformed record id before any query runs.

    Args:
        param: Name of the path parameter holding the id
        entity: Entity label used in the error message (e.g. "patient")

    Returns:
        An async dependency returning the validated id string
    """

    async def dependency(request: Request) -> str:
        value = request.path_params.get(param)
        if not value or not ObjectId.is_valid(value):
            raise BadRequestException(f"Invalid {entity} ID format")
        return value

    return dependency


validate_patient_id = validate_object_id("patient_id", "patient")
validate_doctor_id = validate_object_id("doctor_id", "doctor")
validate_hospital_id = validate_object_id("hospital_id", "hospital")


def ensure_valid_rating(rating: Optional[float]) -> float:
    """Reject review ratings outside 1-5."""
    if rating is None or rating < 1 or rating > 5:
        raise BadRequestException("Rating must be between 1 and 5")
    return rating
