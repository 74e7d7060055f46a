# Patient Records Feature - Router

from fastapi import APIRouter, Depends
from app.features.patients.schemas import UpdatePatientRequest
from app.features.patients.service import PatientService
from app.shared.schemas import BaseResponse
from app.shared.validation import validate_patient_id


router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/{patient_id}", response_model=BaseResponse, dependencies=[Depends(validate_patient_id)])
async def get_patient(patient_id: str):
    """Get a patient record by ID."""
    patient = await PatientService.get_patient(patient_id)
    return BaseResponse(data=PatientService.patient_to_response(patient))


@router.put("/{patient_id}", response_model=BaseResponse, dependencies=[Depends(validate_patient_id)])
async def update_patient(patient_id: str, request: UpdatePatientRequest):
    """
    Update a patient record.

    Supplied fields replace the stored ones. Only the first primary
    emergency contact keeps its primary flag.
    """
    patient = await PatientService.update_patient(patient_id, request)
    return BaseResponse(data=PatientService.patient_to_response(patient))
