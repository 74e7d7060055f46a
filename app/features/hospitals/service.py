# Hospital Directory Feature - Service

import re
from typing import Optional, List, Tuple
from beanie import PydanticObjectId
from app.features.hospitals.models import Hospital, HospitalReview
from app.shared.schemas import AddReviewRequest, paginate
from app.core.logging import logger
from app.shared.exceptions import NotFoundException


def build_hospital_filter(
    hospital_type: Optional[str] = None,
    specialty: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    zip_code: Optional[str] = None,
    rating: Optional[float] = None,
    emergency: bool = False,
    insurance: Optional[str] = None,
) -> dict:
    """Mongo filter for the hospital directory listing."""
    query = {"is_active": True}
    if hospital_type:
        query["type"] = hospital_type
    if specialty:
        query["specialty_services"] = {"$in": [specialty]}
    if city:
        query["address.city"] = {"$regex": f"^{re.escape(city)}$", "$options": "i"}
    if state:
        query["address.state"] = state.upper()
    if zip_code:
        query["address.zip_code"] = zip_code
    if rating:
        query["quality_ratings.overall"] = {"$gte": rating}
    if emergency:
        query["operating_hours.emergency.is_24_hours"] = True
    if insurance:
        query["accepted_insurance.provider"] = {"$regex": re.escape(insurance), "$options": "i"}
    return query


class HospitalService:
    """Service class for hospital directory operations."""

    @staticmethod
    def hospital_to_response(hospital: Hospital) -> dict:
        """Serialize a hospital with its derived values."""
        data = hospital.model_dump(mode="json", exclude={"revision_id"})
        data.pop("_id", None)
        data["id"] = str(hospital.id) if hospital.id else None
        data["full_address"] = hospital.full_address
        data["occupancy_rate"] = hospital.occupancy_rate
        data["average_rating"] = hospital.average_rating
        data["total_reviews"] = hospital.total_reviews
        return data

    @staticmethod
    async def get_hospital(hospital_id: str) -> Hospital:
        hospital = await Hospital.get(PydanticObjectId(hospital_id))
        if not hospital:
            raise NotFoundException("Hospital not found")
        return hospital

    @staticmethod
    async def list_hospitals(query: dict, page: int = 1, limit: int = 20) -> Tuple[List[dict], int]:
        """
        Page through hospitals matching `query`, best quality rating first.

        Returns:
            Tuple of (hospital list, total count)
        """
        cursor = Hospital.find(query).sort([("quality_ratings.overall", -1), ("name", 1)])
        total = await cursor.count()
        hospitals = await cursor.skip(paginate(page, limit)).limit(limit).to_list()
        return [HospitalService.hospital_to_response(h) for h in hospitals], total

    @staticmethod
    async def get_departments(hospital_id: str) -> List[dict]:
        hospital = await HospitalService.get_hospital(hospital_id)
        return [d.model_dump(mode="json") for d in hospital.departments if d.is_active]

    @staticmethod
    async def get_reviews(hospital_id: str, page: int = 1, limit: int = 10) -> Tuple[List[dict], int]:
        """Public reviews, newest first."""
        hospital = await HospitalService.get_hospital(hospital_id)
        public = sorted(
            (r for r in hospital.reviews if r.is_public),
            key=lambda r: r.created_at,
            reverse=True,
        )
        skip = paginate(page, limit)
        return [r.model_dump(mode="json") for r in public[skip:skip + limit]], len(public)

    @staticmethod
    async def add_review(hospital_id: str, request: AddReviewRequest) -> dict:
        """Append a review; the caller has already checked the rating range."""
        hospital = await HospitalService.get_hospital(hospital_id)

        review = HospitalReview(
            patient=PydanticObjectId(request.patient_id) if request.patient_id else None,
            rating=request.rating,
            comment=request.comment,
            department=request.department,
            visit_date=request.visit_date,
        )
        hospital.reviews.append(review)
        await hospital.save()

        logger.info(f"Added {review.rating}-star review to hospital {hospital_id}")
        return {
            "review": review.model_dump(mode="json"),
            "average_rating": hospital.average_rating,
            "total_reviews": hospital.total_reviews,
        }

    @staticmethod
    async def distinct_values(field: str) -> List[str]:
        """Sorted distinct values of `field` across active hospitals."""
        values = await Hospital.distinct(field, {"is_active": True})
        return sorted(v for v in values if v)
