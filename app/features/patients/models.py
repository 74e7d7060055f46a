# Patient Records Feature - Models

from typing import Optional, List, Literal
from datetime import date, datetime
from beanie import Indexed, PydanticObjectId, Insert, Replace, Save, before_event
from pydantic import BaseModel, EmailStr, Field
from app.shared.models import BaseDocument, Address


Gender = Literal["male", "female", "other", "prefer-not-to-say"]


class MedicalCondition(BaseModel):
    """Entry in a patient's medical history."""
    condition: str
    diagnosed_date: Optional[datetime] = None
    status: Literal["active", "resolved", "chronic", "managed"] = "active"
    severity: Literal["mild", "moderate", "severe"] = "mild"
    notes: Optional[str] = None


class Medication(BaseModel):
    """Medication currently or previously prescribed."""
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    prescribed_by: Optional[PydanticObjectId] = None
    status: Literal["active", "completed", "discontinued"] = "active"
    notes: Optional[str] = None


class Allergy(BaseModel):
    allergen: str
    reaction: Optional[str] = None
    severity: Literal["mild", "moderate", "severe", "life-threatening"] = "mild"
    notes: Optional[str] = None


class BloodPressure(BaseModel):
    systolic: Optional[float] = None
    diastolic: Optional[float] = None


class VitalSigns(BaseModel):
    """A single vital-sign snapshot."""
    blood_pressure: Optional[BloodPressure] = None
    heart_rate: Optional[float] = None
    temperature: Optional[float] = None
    respiratory_rate: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    weight: Optional[float] = None  # kg
    height: Optional[float] = None  # cm
    bmi: Optional[float] = None
    recorded_date: datetime = Field(default_factory=datetime.utcnow)
    recorded_by: Optional[PydanticObjectId] = None


class Insurance(BaseModel):
    provider: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None
    policy_holder_name: Optional[str] = None
    relationship: Optional[str] = None


class EmergencyContact(BaseModel):
    name: str
    relationship: Optional[str] = None
    phone: str
    email: Optional[str] = None
    is_primary: bool = False


class HealthSummary(BaseModel):
    """AI-derived insights, replaced wholesale on each summary run."""
    risk_factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    last_analyzed: Optional[datetime] = None
    overall_risk_score: Optional[float] = Field(None, ge=0, le=100)


def normalize_primary_contacts(contacts: List[EmergencyContact]) -> List[EmergencyContact]:
    """Keep the first primary emergency contact and demote any others."""
    seen_primary = False
    for contact in contacts:
        if contact.is_primary:
            if seen_primary:
                contact.is_primary = False
            seen_primary = True
    return contacts


def calculate_age(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Age in whole years, or None when the birth date is unknown."""
    if not birth_date:
        return None
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


class Patient(BaseDocument):
    """Patient document model for storing patient health records."""

    # Personal information
    first_name: str
    last_name: str
    email: Indexed(EmailStr, unique=True)
    phone: str
    date_of_birth: date
    gender: Gender
    address: Address = Field(default_factory=Address)

    # Medical information
    blood_type: Optional[Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-", "unknown"]] = None
    medical_history: List[MedicalCondition] = Field(default_factory=list)
    current_medications: List[Medication] = Field(default_factory=list)
    allergies: List[Allergy] = Field(default_factory=list)
    vital_signs: List[VitalSigns] = Field(default_factory=list)

    insurance: Insurance = Field(default_factory=Insurance)
    emergency_contacts: List[EmergencyContact] = Field(default_factory=list)

    # Primary care provider (weak reference to a Doctor)
    primary_doctor: Optional[PydanticObjectId] = None

    health_summary: HealthSummary = Field(default_factory=HealthSummary)

    # Authentication
    password_hash: Optional[str] = None

    # Status
    is_active: bool = True
    last_login_date: Optional[datetime] = None

    @before_event(Insert, Replace, Save)
    def enforce_single_primary_contact(self):
        normalize_primary_contacts(self.emergency_contacts)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def age(self) -> Optional[int]:
        return calculate_age(self.date_of_birth)

    @property
    def current_bmi(self) -> Optional[float]:
        """BMI from the most recent vitals that carry weight and height."""
        if not self.vital_signs:
            return None
        latest = self.vital_signs[-1]
        if latest.weight and latest.height:
            height_m = latest.height / 100
            return round(latest.weight / (height_m * height_m), 1)
        return None

    def active_conditions(self) -> List[MedicalCondition]:
        return [c for c in self.medical_history if c.status in ("active", "chronic")]

    def active_medications(self) -> List[Medication]:
        return [m for m in self.current_medications if m.status == "active"]

    def high_severity_allergies(self) -> List[Allergy]:
        return [a for a in self.allergies if a.severity in ("severe", "life-threatening")]

    class Settings:
        name = "patients"
        use_state_management = True
        indexes = [
            "phone",
            "address.zip_code",
            "primary_doctor",
            [("created_at", -1)],
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "first_name": "Sarah",
                "last_name": "Johnson",
                "email": "sarah.johnson@email.com",
                "phone": "+1234567890",
                "date_of_birth": "1985-05-15",
                "gender": "female",
                "medical_history": [
                    {"condition": "Hypertension", "status": "chronic", "severity": "moderate"}
                ],
                "allergies": [{"allergen": "Penicillin", "severity": "severe"}],
            }
        }
