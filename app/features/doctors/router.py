# Doctor Directory Feature - Router

from datetime import date
from typing import Optional, Literal
from fastapi import APIRouter, Depends, Query, status
from app.features.doctors.service import DoctorService, build_doctor_directory_filter
from app.shared.schemas import AddReviewRequest, BaseResponse, Pagination, page_count
from app.shared.validation import ensure_valid_rating, validate_doctor_id


router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get("", response_model=BaseResponse)
async def list_doctors(
    specialty: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    zip_code: Optional[str] = None,
    rating: Optional[float] = Query(None, ge=0, le=5),
    accepting_new_patients: Optional[bool] = None,
    insurance: Optional[str] = None,
    language: Optional[str] = None,
    gender: Optional[Literal["male", "female", "other", "prefer-not-to-say"]] = None,
    hospital: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """
    List verified, active doctors, highest rated first.

    - **specialty**: Specialization
    - **insurance**: Accepted insurance provider
    - **language**: Spoken language
    - **hospital**: Hospital ID
    """
    query = build_doctor_directory_filter(
        specialty=specialty,
        city=city,
        state=state,
        zip_code=zip_code,
        rating=rating,
        accepting_new_patients=accepting_new_patients,
        insurance=insurance,
        language=language,
        gender=gender,
        hospital=hospital,
    )
    doctors, total = await DoctorService.list_doctors(query, page=page, limit=limit)

    return BaseResponse(data={
        "doctors": doctors,
        "pagination": Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)).model_dump(),
    })


@router.get("/meta/specialties", response_model=BaseResponse)
async def doctor_specialties():
    return BaseResponse(data=await DoctorService.distinct_values("specializations"))


@router.get("/meta/languages", response_model=BaseResponse)
async def doctor_languages():
    return BaseResponse(data=await DoctorService.distinct_values("languages_spoken"))


@router.get("/{doctor_id}", response_model=BaseResponse, dependencies=[Depends(validate_doctor_id)])
async def get_doctor(doctor_id: str):
    doctor = await DoctorService.get_doctor(doctor_id)
    return BaseResponse(data=DoctorService.doctor_to_response(doctor))


@router.get("/{doctor_id}/availability", response_model=BaseResponse, dependencies=[Depends(validate_doctor_id)])
async def doctor_availability(doctor_id: str, on_date: date = Query(..., alias="date")):
    """
    Open 30-minute slots on a given day.

    - **date**: YYYY-MM-DD
    """
    return BaseResponse(data=await DoctorService.get_availability(doctor_id, on_date))


@router.get("/{doctor_id}/reviews", response_model=BaseResponse, dependencies=[Depends(validate_doctor_id)])
async def doctor_reviews(
    doctor_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    reviews, total = await DoctorService.get_reviews(doctor_id, page=page, limit=limit)
    return BaseResponse(data={
        "reviews": reviews,
        "pagination": Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)).model_dump(),
    })


@router.post(
    "/{doctor_id}/reviews",
    response_model=BaseResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(validate_doctor_id)],
)
async def add_doctor_review(doctor_id: str, request: AddReviewRequest):
    """
    Add a review to a doctor. Average rating and review count are recomputed on save.

    - **rating**: 1 to 5
    """
    ensure_valid_rating(request.rating)
    return BaseResponse(data=await DoctorService.add_review(doctor_id, request))
