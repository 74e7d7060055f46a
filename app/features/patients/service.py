# Patient Records Feature - Service

from typing import Optional
from beanie import PydanticObjectId
from app.features.patients.models import Patient
from app.features.patients.schemas import RegisterPatientRequest, UpdatePatientRequest
from app.core.security import get_password_hash
from app.core.logging import logger
from app.shared.exceptions import NotFoundException, ConflictException, BadRequestException


class PatientService:
    """Service class for patient record operations."""

    @staticmethod
    def patient_to_response(patient: Patient) -> dict:
        """Serialize a patient with derived values and without credentials."""
        data = patient.model_dump(mode="json", exclude={"revision_id", "password_hash"})
        data.pop("_id", None)
        data["id"] = str(patient.id) if patient.id else None
        data["full_name"] = patient.full_name
        data["age"] = patient.age
        data["current_bmi"] = patient.current_bmi
        return data

    @staticmethod
    async def get_patient(patient_id: str) -> Patient:
        patient = await Patient.get(PydanticObjectId(patient_id))
        if not patient:
            raise NotFoundException("Patient not found")
        return patient

    @staticmethod
    async def get_patient_by_email(email: str) -> Optional[Patient]:
        return await Patient.find_one(Patient.email == email)

    @staticmethod
    async def create_patient(request: RegisterPatientRequest) -> Patient:
        """Create a patient account with a hashed password."""
        existing_patient = await PatientService.get_patient_by_email(request.email)
        if existing_patient:
            raise ConflictException("A patient with this email already exists")

        patient = Patient(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            password_hash=get_password_hash(request.password),
            phone=request.phone,
            date_of_birth=request.date_of_birth,
            gender=request.gender,
        )
        if request.address:
            patient.address = request.address

        await patient.insert()
        logger.info(f"Registered patient {patient.id} ({patient.email})")
        return patient

    @staticmethod
    async def update_patient(patient_id: str, request: UpdatePatientRequest) -> Patient:
        """Replace the supplied fields; concurrent writers resolve last-writer-wins."""
        patient = await PatientService.get_patient(patient_id)

        update_dict = request.model_dump(exclude_unset=True)

        if "primary_doctor" in update_dict:
            doctor_id = update_dict.pop("primary_doctor")
            if doctor_id and not PydanticObjectId.is_valid(doctor_id):
                raise BadRequestException("Invalid doctor ID format")
            patient.primary_doctor = PydanticObjectId(doctor_id) if doctor_id else None

        # Take values from the request so embedded records stay models, not dicts
        for field in update_dict:
            setattr(patient, field, getattr(request, field))

        await patient.save()

        logger.info(f"Updated patient {patient_id}: {sorted(update_dict)}")
        return patient
