# Hospital Directory Feature - Router

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from app.dependencies import get_locator_service
from app.features.hospitals.locator import LocatorService
from app.features.hospitals.schemas import (
    DirectionsRequest,
    EmergencyPlacesRequest,
    EmergencySearchRequest,
    HospitalDirectionsRequest,
    LocateHospitalsRequest,
    LocationQuery,
    NearbyPlacesRequest,
)
from app.features.hospitals.service import HospitalService, build_hospital_filter
from app.shared.schemas import AddReviewRequest, BaseResponse, Pagination, page_count
from app.shared.validation import ensure_valid_rating, validate_hospital_id


router = APIRouter(prefix="/hospitals", tags=["Hospitals"])


def optional_location(
    address: Optional[str] = None,
    zip_code: Optional[str] = None,
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
) -> Optional[LocationQuery]:
    """Location descriptor from query parameters, or None when none given."""
    if address is None and zip_code is None and (latitude is None or longitude is None):
        return None
    return LocationQuery(address=address, zip_code=zip_code, latitude=latitude, longitude=longitude)


# ============== Directory ==============

@router.get("", response_model=BaseResponse)
async def list_hospitals(
    type: Optional[str] = None,
    specialty: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    zip_code: Optional[str] = None,
    rating: Optional[float] = Query(None, ge=0, le=5),
    emergency: bool = False,
    insurance: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """
    List active hospitals, best quality rating first.

    - **type**: Hospital type (general, teaching, ...)
    - **specialty**: Specialty service offered
    - **emergency**: Only hospitals with a 24-hour emergency department
    - **insurance**: Accepted insurance provider (substring, case-insensitive)
    """
    query = build_hospital_filter(
        hospital_type=type,
        specialty=specialty,
        city=city,
        state=state,
        zip_code=zip_code,
        rating=rating,
        emergency=emergency,
        insurance=insurance,
    )
    hospitals, total = await HospitalService.list_hospitals(query, page=page, limit=limit)

    return BaseResponse(data={
        "hospitals": hospitals,
        "pagination": Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)).model_dump(),
    })


# ============== Locator ==============

@router.post("/nearby", response_model=BaseResponse)
async def nearby_hospitals(
    request: NearbyPlacesRequest,
    locator: LocatorService = Depends(get_locator_service),
):
    """
    Hospitals near a point. Demo data is returned when no maps key is configured.

    - **radius**: Search radius in kilometers (default 25)
    """
    result = await locator.find_nearby_places(request.latitude, request.longitude, request.radius)
    return BaseResponse(data=result)


@router.post("/locate", response_model=BaseResponse)
async def locate_hospitals(
    request: LocateHospitalsRequest,
    locator: LocatorService = Depends(get_locator_service),
):
    """Directory hospitals within a radius of an address, zip code or coordinates."""
    location = LocationQuery(**request.model_dump(include=set(LocationQuery.model_fields)))
    result = await locator.find_nearby_hospitals(
        location,
        radius=request.radius,
        limit=request.limit,
        specialty=request.specialty,
        emergency=request.emergency,
        insurance=request.insurance,
        hospital_type=request.type,
        rating=request.rating,
        available_beds=request.available_beds,
    )
    return BaseResponse(data=result)


@router.post("/emergency", response_model=BaseResponse)
async def emergency_hospitals(
    request: EmergencySearchRequest,
    locator: LocatorService = Depends(get_locator_service),
):
    """
    Emergency departments within 50 km, shortest wait first.

    - **urgency_level**: standard, urgent or critical
    """
    location = LocationQuery(**request.model_dump(include=set(LocationQuery.model_fields)))
    result = await locator.find_emergency_hospitals(location, urgency_level=request.urgency_level)
    return BaseResponse(data=result)


@router.post("/emergency/nearby", response_model=BaseResponse)
async def nearby_emergency_rooms(
    request: EmergencyPlacesRequest,
    locator: LocatorService = Depends(get_locator_service),
):
    """
    Emergency rooms near a point, highest priority first. Demo data is
    returned when no maps key is configured.

    - **radius**: Search radius in kilometers (default 50)
    """
    result = await locator.find_emergency_places(request.latitude, request.longitude, request.radius)
    return BaseResponse(data=result)


@router.get("/specialists", response_model=BaseResponse)
async def find_specialists(
    specialty: str = Query(..., min_length=1),
    radius: float = Query(50, gt=0),
    limit: int = Query(15, ge=1, le=100),
    insurance: Optional[str] = None,
    language: Optional[str] = None,
    rating: float = Query(4.0, ge=0, le=5),
    location: Optional[LocationQuery] = Depends(optional_location),
    locator: LocatorService = Depends(get_locator_service),
):
    """Doctors with a specialty at hospitals near a location."""
    result = await locator.find_specialists(
        location,
        specialty,
        radius=radius,
        limit=limit,
        insurance=insurance,
        language=language,
        rating=rating,
    )
    return BaseResponse(data=result)


@router.post("/directions", response_model=BaseResponse)
async def directions(
    request: DirectionsRequest,
    locator: LocatorService = Depends(get_locator_service),
):
    """Route between two points."""
    result = await locator.get_route(request.origin.as_lonlat(), request.destination.as_lonlat(), request.mode)
    return BaseResponse(data=result)


@router.get("/details/{place_id}", response_model=BaseResponse)
async def place_details(
    place_id: str,
    locator: LocatorService = Depends(get_locator_service),
):
    """Provider details for a place returned by the nearby lookup."""
    return BaseResponse(data=await locator.get_place_details(place_id))


@router.get("/search/{query}", response_model=BaseResponse)
async def search_hospitals(
    query: str,
    radius: float = Query(100, gt=0),
    location: Optional[LocationQuery] = Depends(optional_location),
    locator: LocatorService = Depends(get_locator_service),
):
    """Search hospitals by name or short name."""
    result = await locator.search_hospitals_by_name(query, location=location, radius=radius)
    return BaseResponse(data=result)


# ============== Metadata ==============
# Static paths must be registered before /{hospital_id}

@router.get("/meta/types", response_model=BaseResponse)
async def hospital_types():
    return BaseResponse(data=await HospitalService.distinct_values("type"))


@router.get("/meta/specialties", response_model=BaseResponse)
async def hospital_specialties():
    return BaseResponse(data=await HospitalService.distinct_values("specialty_services"))


@router.get("/meta/cities", response_model=BaseResponse)
async def hospital_cities():
    return BaseResponse(data=await HospitalService.distinct_values("address.city"))


@router.get("/meta/insurance-providers", response_model=BaseResponse)
async def insurance_providers():
    return BaseResponse(data=await HospitalService.distinct_values("accepted_insurance.provider"))


# ============== Single hospital ==============

@router.get("/{hospital_id}", response_model=BaseResponse, dependencies=[Depends(validate_hospital_id)])
async def get_hospital(hospital_id: str):
    hospital = await HospitalService.get_hospital(hospital_id)
    return BaseResponse(data=HospitalService.hospital_to_response(hospital))


@router.get("/{hospital_id}/capacity", response_model=BaseResponse, dependencies=[Depends(validate_hospital_id)])
async def hospital_capacity(
    hospital_id: str,
    locator: LocatorService = Depends(get_locator_service),
):
    """Approximate bed occupancy and emergency wait time."""
    return BaseResponse(data=await locator.get_hospital_capacity(hospital_id))


@router.post("/{hospital_id}/directions", response_model=BaseResponse, dependencies=[Depends(validate_hospital_id)])
async def hospital_directions(
    hospital_id: str,
    request: HospitalDirectionsRequest,
    locator: LocatorService = Depends(get_locator_service),
):
    """Route from an origin to the hospital."""
    result = await locator.get_directions(request.origin, hospital_id, request.mode)
    return BaseResponse(data=result)


@router.get("/{hospital_id}/departments", response_model=BaseResponse, dependencies=[Depends(validate_hospital_id)])
async def hospital_departments(hospital_id: str):
    return BaseResponse(data=await HospitalService.get_departments(hospital_id))


@router.get("/{hospital_id}/reviews", response_model=BaseResponse, dependencies=[Depends(validate_hospital_id)])
async def hospital_reviews(
    hospital_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    reviews, total = await HospitalService.get_reviews(hospital_id, page=page, limit=limit)
    return BaseResponse(data={
        "reviews": reviews,
        "pagination": Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)).model_dump(),
    })


@router.post(
    "/{hospital_id}/reviews",
    response_model=BaseResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(validate_hospital_id)],
)
async def add_hospital_review(hospital_id: str, request: AddReviewRequest):
    """
    Add a review to a hospital.

    - **rating**: 1 to 5
    """
    ensure_valid_rating(request.rating)
    return BaseResponse(data=await HospitalService.add_review(hospital_id, request))
