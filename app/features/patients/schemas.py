# Patient Records Feature - Schemas

from typing import Optional, List, Literal
from datetime import date
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.features.patients.models import (
    Allergy,
    EmergencyContact,
    Gender,
    Insurance,
    MedicalCondition,
    Medication,
    VitalSigns,
)
from app.shared.models import Address


# ============== Register Patient ==============

class RegisterPatientRequest(BaseModel):
    """Request schema for patient self-registration."""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., min_length=1, max_length=20)
    date_of_birth: date
    gender: Gender
    address: Optional[Address] = None


# ============== Update Patient ==============

class UpdatePatientRequest(BaseModel):
    """
    Request schema for updating a patient record.

    Each supplied field replaces the stored value wholesale, lists included.
    """
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[Address] = None
    blood_type: Optional[Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-", "unknown"]] = None
    medical_history: Optional[List[MedicalCondition]] = None
    current_medications: Optional[List[Medication]] = None
    allergies: Optional[List[Allergy]] = None
    vital_signs: Optional[List[VitalSigns]] = None
    insurance: Optional[Insurance] = None
    emergency_contacts: Optional[List[EmergencyContact]] = None
    primary_doctor: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator(
        "first_name",
        "last_name",
        "email",
        "phone",
        "date_of_birth",
        "gender",
        "address",
        "medical_history",
        "current_medications",
        "allergies",
        "vital_signs",
        "insurance",
        "emergency_contacts",
        "is_active",
    )
    @classmethod
    def reject_null(cls, v):
        # Omit a field to keep it; only blood_type and primary_doctor can be cleared
        if v is None:
            raise ValueError("cannot be null")
        return v
