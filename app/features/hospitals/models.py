# Hospital Directory Feature - Models

from typing import Optional, List, Literal
from datetime import datetime
import pymongo
from beanie import Indexed, PydanticObjectId
from pydantic import BaseModel, Field
from app.shared.models import BaseDocument, Address, GeoPoint


class OpeningWindow(BaseModel):
    open: Optional[str] = None
    close: Optional[str] = None


class DepartmentHours(BaseModel):
    weekdays: OpeningWindow = Field(default_factory=OpeningWindow)
    weekends: OpeningWindow = Field(default_factory=OpeningWindow)
    is_24_hours: bool = False


class Department(BaseModel):
    name: str
    head: Optional[PydanticObjectId] = None
    services: List[str] = Field(default_factory=list)
    is_active: bool = True
    emergency_services: bool = False
    operating_hours: DepartmentHours = Field(default_factory=DepartmentHours)


class Facility(BaseModel):
    name: str
    description: Optional[str] = None
    capacity: Optional[int] = None
    is_available: bool = True
    equipment: List[str] = Field(default_factory=list)


class InsurancePlan(BaseModel):
    provider: str
    plans: List[str] = Field(default_factory=list)
    is_in_network: bool = True
    copay_amount: Optional[float] = None
    deductible_amount: Optional[float] = None


class EmergencyService(BaseModel):
    service: str
    is_available: bool = True
    average_wait_time: Optional[float] = None  # minutes
    capacity: Optional[int] = None
    current_load: int = 0


class BedCount(BaseModel):
    total: Optional[int] = None
    available: Optional[int] = None
    icu: Optional[int] = None
    emergency: Optional[int] = None
    general: Optional[int] = None


class QualityRatings(BaseModel):
    overall: float = Field(0, ge=0, le=5)
    cleanliness: float = Field(0, ge=0, le=5)
    staff_rating: float = Field(0, ge=0, le=5)
    wait_time: float = Field(0, ge=0, le=5)


class EmergencyHours(BaseModel):
    is_24_hours: bool = True


class HospitalHours(BaseModel):
    emergency: EmergencyHours = Field(default_factory=EmergencyHours)
    outpatient: DepartmentHours = Field(default_factory=DepartmentHours)


class HospitalReview(BaseModel):
    patient: Optional[PydanticObjectId] = None
    rating: float = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    department: Optional[str] = None
    visit_date: Optional[datetime] = None
    is_verified: bool = False
    is_public: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)


def full_address(address: Address) -> str:
    return f"{address.street}, {address.city}, {address.state} {address.zip_code}"


def occupancy_rate(beds: BedCount) -> Optional[int]:
    """Percentage of occupied beds, or None when totals are missing or zero."""
    if not beds.total or not beds.available:
        return None
    return round((beds.total - beds.available) / beds.total * 100)


def average_public_rating(reviews: List[HospitalReview]) -> float:
    public = [review.rating for review in reviews if review.is_public]
    if not public:
        return 0
    return round(sum(public) / len(public), 1)


def current_wait_time(services: List[EmergencyService], department: Optional[str] = None) -> Optional[float]:
    """
    Current emergency wait in minutes.

    With a department, returns the wait of the first service whose name contains
    it; otherwise the rounded mean across all emergency services.
    """
    if department:
        match = next(
            (s for s in services if department.lower() in s.service.lower()),
            None,
        )
        return match.average_wait_time if match else None

    if not services:
        return None
    total = sum(s.average_wait_time or 0 for s in services)
    return round(total / len(services))


class Hospital(BaseDocument):
    """Hospital document model with geolocation for the locator."""

    # Basic information
    name: str
    short_name: Optional[str] = None
    hospital_id: Indexed(str, unique=True)
    type: Literal["general", "specialty", "teaching", "research", "rehabilitation", "psychiatric", "children"]

    # Contact information
    phone: str
    email: Optional[str] = None
    website: Optional[str] = None
    emergency_phone: Optional[str] = None

    # Address and location
    address: Address
    location: GeoPoint

    description: Optional[str] = None
    established: Optional[datetime] = None
    bed_count: BedCount = Field(default_factory=BedCount)

    # Departments and services
    departments: List[Department] = Field(default_factory=list)
    specialty_services: List[str] = Field(default_factory=list)
    emergency_services: List[EmergencyService] = Field(default_factory=list)
    facilities: List[Facility] = Field(default_factory=list)

    # Denormalized doctor ids, refreshed by the seeding step
    doctors: List[PydanticObjectId] = Field(default_factory=list)

    quality_ratings: QualityRatings = Field(default_factory=QualityRatings)
    accepted_insurance: List[InsurancePlan] = Field(default_factory=list)
    operating_hours: HospitalHours = Field(default_factory=HospitalHours)

    # Digital services
    online_appointments: bool = False
    telemedicine: bool = False
    patient_portal: bool = False

    reviews: List[HospitalReview] = Field(default_factory=list)
    network_affiliations: List[str] = Field(default_factory=list)

    # Status
    is_active: bool = True
    is_verified: bool = False
    is_featured: bool = False

    @property
    def full_address(self) -> str:
        return full_address(self.address)

    @property
    def occupancy_rate(self) -> Optional[int]:
        return occupancy_rate(self.bed_count)

    @property
    def average_rating(self) -> float:
        return average_public_rating(self.reviews)

    @property
    def total_reviews(self) -> int:
        return sum(1 for review in self.reviews if review.is_public)

    def current_wait_time(self, department: Optional[str] = None) -> Optional[float]:
        return current_wait_time(self.emergency_services, department)

    def available_beds(self, kind: str = "general") -> int:
        if kind == "all":
            return self.bed_count.available or 0
        return getattr(self.bed_count, kind, None) or 0

    def accepts_insurance(self, provider: str) -> bool:
        """In-network plan whose provider name contains `provider`, ignoring case."""
        return any(
            provider.lower() in (plan.provider or "").lower() and plan.is_in_network
            for plan in self.accepted_insurance
        )

    class Settings:
        name = "hospitals"
        use_state_management = True
        indexes = [
            [("location", pymongo.GEOSPHERE)],
            "type",
            "address.city",
            "address.state",
            "address.zip_code",
            "specialty_services",
            [("is_active", 1), ("is_verified", 1), ("quality_ratings.overall", -1)],
        ]
