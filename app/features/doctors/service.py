# Doctor Directory Feature - Service

import re
from datetime import date
from typing import Optional, List, Tuple
from beanie import PydanticObjectId
from app.features.doctors.models import Doctor, DoctorReview
from app.shared.schemas import AddReviewRequest, paginate
from app.core.logging import logger
from app.shared.exceptions import BadRequestException, NotFoundException


def build_doctor_directory_filter(
    specialty: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    zip_code: Optional[str] = None,
    rating: Optional[float] = None,
    accepting_new_patients: Optional[bool] = None,
    insurance: Optional[str] = None,
    language: Optional[str] = None,
    gender: Optional[str] = None,
    hospital: Optional[str] = None,
) -> dict:
    """Mongo filter for the doctor directory listing."""
    query = {"is_active": True, "is_verified": True}
    if specialty:
        query["specializations"] = {"$in": [specialty]}
    if city:
        query["office_address.city"] = {"$regex": f"^{re.escape(city)}$", "$options": "i"}
    if state:
        query["office_address.state"] = state.upper()
    if zip_code:
        query["office_address.zip_code"] = zip_code
    if rating:
        query["average_rating"] = {"$gte": rating}
    if accepting_new_patients is not None:
        query["accepting_new_patients"] = accepting_new_patients
    if insurance:
        query["accepted_insurance"] = {"$in": [insurance]}
    if language:
        query["languages_spoken"] = {"$in": [language]}
    if gender:
        query["gender"] = gender
    if hospital:
        if not PydanticObjectId.is_valid(hospital):
            raise BadRequestException("Invalid hospital ID format")
        query["hospital"] = PydanticObjectId(hospital)
    return query


class DoctorService:
    """Service class for doctor directory operations."""

    @staticmethod
    def doctor_to_response(doctor: Doctor) -> dict:
        """Serialize a doctor without credentials."""
        data = doctor.model_dump(mode="json", exclude={"revision_id", "password_hash"})
        data.pop("_id", None)
        data["id"] = str(doctor.id) if doctor.id else None
        data["full_name"] = doctor.full_name
        return data

    @staticmethod
    def build_specialist_query(
        hospital_id: PydanticObjectId,
        specialty: str,
        insurance: Optional[str] = None,
        language: Optional[str] = None,
        rating: Optional[float] = None,
    ) -> dict:
        """Doctors at one hospital who can take a new patient for `specialty`."""
        query = {
            "hospital": hospital_id,
            "specializations": {"$in": [specialty]},
            "is_active": True,
            "is_verified": True,
            "accepting_new_patients": True,
        }
        if insurance:
            query["accepted_insurance"] = {"$in": [insurance]}
        if language:
            query["languages_spoken"] = {"$in": [language]}
        if rating:
            query["average_rating"] = {"$gte": rating}
        return query

    @staticmethod
    async def get_doctor(doctor_id: str) -> Doctor:
        doctor = await Doctor.get(PydanticObjectId(doctor_id))
        if not doctor:
            raise NotFoundException("Doctor not found")
        return doctor

    @staticmethod
    async def list_doctors(query: dict, page: int = 1, limit: int = 20) -> Tuple[List[dict], int]:
        """
        Page through doctors matching `query`, highest rated first.

        Returns:
            Tuple of (doctor list, total count)
        """
        cursor = Doctor.find(query).sort([("average_rating", -1), ("total_reviews", -1)])
        total = await cursor.count()
        doctors = await cursor.skip(paginate(page, limit)).limit(limit).to_list()
        return [DoctorService.doctor_to_response(d) for d in doctors], total

    @staticmethod
    async def get_availability(doctor_id: str, on_date: date) -> dict:
        doctor = await DoctorService.get_doctor(doctor_id)
        return {
            "date": on_date.isoformat(),
            "available_slots": doctor.available_slots(on_date),
            "time_zone": doctor.time_zone,
            "accepting_new_patients": doctor.accepting_new_patients,
        }

    @staticmethod
    async def get_reviews(doctor_id: str, page: int = 1, limit: int = 10) -> Tuple[List[dict], int]:
        """Public reviews, newest first."""
        doctor = await DoctorService.get_doctor(doctor_id)
        public = sorted(
            (r for r in doctor.reviews if r.is_public),
            key=lambda r: r.created_at,
            reverse=True,
        )
        skip = paginate(page, limit)
        return [r.model_dump(mode="json") for r in public[skip:skip + limit]], len(public)

    @staticmethod
    async def add_review(doctor_id: str, request: AddReviewRequest) -> dict:
        """Append a review; rating stats are refreshed by the save hook."""
        doctor = await DoctorService.get_doctor(doctor_id)

        review = DoctorReview(
            patient=PydanticObjectId(request.patient_id) if request.patient_id else None,
            rating=request.rating,
            comment=request.comment,
        )
        doctor.reviews.append(review)
        await doctor.save()

        logger.info(f"Added {review.rating}-star review to doctor {doctor_id} (avg now {doctor.average_rating})")
        return {
            "review": review.model_dump(mode="json"),
            "average_rating": doctor.average_rating,
            "total_reviews": doctor.total_reviews,
        }

    @staticmethod
    async def distinct_values(field: str) -> List[str]:
        values = await Doctor.distinct(field, {"is_active": True, "is_verified": True})
        return sorted(v for v in values if v)
