# Doctor Directory Feature - Models

from typing import Optional, List, Tuple, Dict, Literal
from datetime import date, datetime, timedelta
from beanie import Indexed, PydanticObjectId, Insert, Replace, Save, before_event
from pydantic import BaseModel, EmailStr, Field
from app.shared.models import BaseDocument, Address


class Education(BaseModel):
    degree: str
    institution: str
    graduation_year: int
    specialization: Optional[str] = None


class Certification(BaseModel):
    name: str
    issuing_body: str
    issue_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    certificate_number: Optional[str] = None
    is_active: bool = True


class ScheduleEntry(BaseModel):
    """Weekly availability block. day_of_week: 0 = Sunday ... 6 = Saturday."""
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str  # "HH:MM"
    end_time: str
    is_available: bool = True


class DoctorReview(BaseModel):
    patient: Optional[PydanticObjectId] = None
    rating: float = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    is_verified: bool = False
    is_public: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)


# Condition keywords per specialty for the basic match heuristic.
SPECIALTY_KEYWORDS: Dict[str, List[str]] = {
    "cardiology": ["heart", "cardiac", "cardiovascular", "chest pain", "hypertension"],
    "dermatology": ["skin", "rash", "acne", "mole", "dermatitis"],
    "endocrinology": ["diabetes", "thyroid", "hormone", "metabolic"],
    "gastroenterology": ["stomach", "digestive", "gastric", "intestinal", "liver"],
    "neurology": ["brain", "neurological", "headache", "seizure", "stroke"],
    "orthopedics": ["bone", "joint", "muscle", "fracture", "arthritis"],
    "pediatrics": ["child", "infant", "pediatric"],
    "psychiatry": ["mental health", "depression", "anxiety", "psychiatric"],
    "pulmonology": ["lung", "respiratory", "breathing", "asthma", "copd"],
}

SLOT_MINUTES = 30


def review_stats(reviews) -> Tuple[float, int]:
    """
    Average rating and count over public reviews.

    The average is rounded to one decimal place; both values are 0 when
    there are no public reviews.
    """
    public = [review for review in reviews if review.is_public]
    if not public:
        return 0, 0
    average = sum(review.rating for review in public) / len(public)
    return round(average, 1), len(public)


def specialization_match(specializations: List[str], conditions: List[str]) -> int:
    """Count keyword hits between a doctor's specialties and patient conditions."""
    score = 0
    for specialty in specializations:
        keywords = SPECIALTY_KEYWORDS.get(specialty.lower(), [])
        for condition in conditions:
            condition_text = condition.lower()
            score += sum(1 for keyword in keywords if keyword in condition_text)
    return score


def schedule_slots(schedule: List[ScheduleEntry], on_date: date) -> List[str]:
    """30-minute appointment start times for the schedule block on `on_date`."""
    # date.weekday() is Monday=0; schedule uses Sunday=0
    day_of_week = (on_date.weekday() + 1) % 7
    entry = next(
        (s for s in schedule if s.day_of_week == day_of_week and s.is_available),
        None,
    )
    if entry is None:
        return []

    start = datetime.strptime(entry.start_time, "%H:%M")
    end = datetime.strptime(entry.end_time, "%H:%M")

    slots = []
    current = start
    while current < end:
        slots.append(current.strftime("%H:%M"))
        current += timedelta(minutes=SLOT_MINUTES)
    return slots


class Doctor(BaseDocument):
    """Doctor document model for the provider directory."""

    # Personal information
    first_name: str
    last_name: str
    email: Indexed(EmailStr, unique=True)
    phone: str
    date_of_birth: Optional[date] = None
    gender: Optional[Literal["male", "female", "other", "prefer-not-to-say"]] = None

    # Professional information
    license_number: Indexed(str, unique=True)
    npi_number: Optional[str] = None
    specializations: List[str] = Field(default_factory=list)
    sub_specializations: List[str] = Field(default_factory=list)
    years_of_experience: int = Field(0, ge=0)

    education: List[Education] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)

    # Practice (weak reference to a Hospital)
    hospital: Optional[PydanticObjectId] = None
    department: Optional[str] = None
    title: Optional[str] = None
    office_address: Address = Field(default_factory=Address)
    office_phone: Optional[str] = None

    languages_spoken: List[str] = Field(default_factory=list)
    accepting_new_patients: bool = True
    consultation_fee: Optional[float] = Field(None, ge=0)

    schedule: List[ScheduleEntry] = Field(default_factory=list)
    time_zone: str = "America/New_York"

    # Ratings, recomputed from public reviews on every write
    reviews: List[DoctorReview] = Field(default_factory=list)
    average_rating: float = Field(0, ge=0, le=5)
    total_reviews: int = 0

    affiliations: List[str] = Field(default_factory=list)
    accepted_insurance: List[str] = Field(default_factory=list)
    biography: Optional[str] = None
    expertise_areas: List[str] = Field(default_factory=list)

    # Authentication
    password_hash: Optional[str] = None

    # Status
    is_active: bool = True
    is_verified: bool = False
    last_login_date: Optional[datetime] = None

    @before_event(Insert, Replace, Save)
    def refresh_review_stats(self):
        self.average_rating, self.total_reviews = review_stats(self.reviews)

    @property
    def full_name(self) -> str:
        return f"Dr. {self.first_name} {self.last_name}"

    @property
    def primary_specialization(self) -> Optional[str]:
        return self.specializations[0] if self.specializations else None

    def available_slots(self, on_date: date) -> List[str]:
        return schedule_slots(self.schedule, on_date)

    class Settings:
        name = "doctors"
        use_state_management = True
        indexes = [
            "specializations",
            "office_address.zip_code",
            "hospital",
            [("average_rating", -1)],
            [("accepting_new_patients", 1), ("is_active", 1), ("is_verified", 1)],
        ]
