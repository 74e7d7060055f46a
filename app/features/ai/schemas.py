# AI Assistant Feature - Schemas

from typing import Optional, List
from pydantic import BaseModel, Field


class SuggestDoctorsRequest(BaseModel):
    """Options for doctor suggestions."""
    specialty: Optional[str] = None
    coordinates: Optional[List[float]] = Field(
        None, min_length=2, max_length=2, description="[longitude, latitude]"
    )
    radius: float = Field(25, gt=0, description="Search radius in kilometers")
    max_results: int = Field(10, ge=1, le=50)
    preferred_language: Optional[str] = None
    insurance_provider: Optional[str] = None


class AnalyzeSymptomsRequest(BaseModel):
    symptoms: List[str] = Field(default_factory=list)
    patient_age: Optional[int] = Field(None, ge=0, le=150)
    patient_gender: Optional[str] = None


class ChatTurn(BaseModel):
    user: str
    assistant: str


class MedicalChatRequest(BaseModel):
    message: Optional[str] = None
    conversation_history: List[ChatTurn] = Field(default_factory=list)


class MedicationItem(BaseModel):
    name: str
    dosage: Optional[str] = None


class AllergyItem(BaseModel):
    allergen: str
    severity: Optional[str] = None


class MedicationInteractionsRequest(BaseModel):
    medications: List[MedicationItem] = Field(default_factory=list)
    allergies: List[AllergyItem] = Field(default_factory=list)
