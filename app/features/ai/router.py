# AI Assistant Feature - Router

import uuid
from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile

from app.core.logging import logger
from app.dependencies import get_ai_service
from app.features.ai.schemas import (
    AnalyzeSymptomsRequest,
    MedicalChatRequest,
    MedicationInteractionsRequest,
    SuggestDoctorsRequest,
)
from app.features.ai.service import AIService
from app.shared.exceptions import BadRequestException
from app.shared.schemas import BaseResponse
from app.shared.validation import validate_patient_id


router = APIRouter(prefix="/ai", tags=["AI Assistant"])

HISTORY_PREVIEW_CHARS = 500
UPLOAD_CHUNK_BYTES = 64 * 1024


def save_upload(upload: UploadFile, destination: Path, max_bytes: int) -> None:
    """Copy an upload to disk, stopping as soon as it exceeds `max_bytes`."""
    written = 0
    with open(destination, "wb") as f:
        while True:
            chunk = upload.file.read(UPLOAD_CHUNK_BYTES)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise BadRequestException("History file is too large")
            f.write(chunk)


@router.post("/patient-summary/{patient_id}", response_model=BaseResponse, dependencies=[Depends(validate_patient_id)])
async def patient_summary(patient_id: str, ai: AIService = Depends(get_ai_service)):
    """Generate a health summary for a patient and store its risk factors."""
    return BaseResponse(data=await ai.generate_patient_summary(patient_id))


@router.post("/suggest-doctors/{patient_id}", response_model=BaseResponse, dependencies=[Depends(validate_patient_id)])
async def suggest_doctors(
    patient_id: str,
    options: SuggestDoctorsRequest = SuggestDoctorsRequest(),
    ai: AIService = Depends(get_ai_service),
):
    """
    Suggest doctors for a patient's active conditions.

    - **coordinates**: [longitude, latitude]; otherwise the patient's zip code is used
    - **max_results**: Number of ranked doctors to return (default 10)
    """
    return BaseResponse(data=await ai.suggest_doctors(patient_id, options))


@router.post("/analyze-symptoms", response_model=BaseResponse)
async def analyze_symptoms(request: AnalyzeSymptomsRequest, ai: AIService = Depends(get_ai_service)):
    """Suggest specialties and an urgency level for a list of symptoms."""
    symptoms = [s for s in request.symptoms if s.strip()]
    if not symptoms:
        raise BadRequestException("Symptoms array is required")
    if request.patient_age is None or not request.patient_gender:
        raise BadRequestException("Patient age and gender are required")

    analysis = await ai.analyze_symptoms(symptoms, request.patient_age, request.patient_gender)

    return BaseResponse(data={
        "analysis": analysis,
        "symptoms": symptoms,
        "patient_info": {"age": request.patient_age, "gender": request.patient_gender},
        "generated_at": datetime.utcnow(),
    })


@router.get("/health-insights/{patient_id}", response_model=BaseResponse, dependencies=[Depends(validate_patient_id)])
async def health_insights(patient_id: str, ai: AIService = Depends(get_ai_service)):
    """Vital-sign trends with a short narrative."""
    return BaseResponse(data=await ai.generate_health_insights(patient_id))


@router.post("/medical-chat", response_model=BaseResponse)
@router.post("/chat", response_model=BaseResponse, include_in_schema=False)
async def medical_chat(request: MedicalChatRequest, ai: AIService = Depends(get_ai_service)):
    """General health chat with MedAssist."""
    if not request.message or not request.message.strip():
        raise BadRequestException("Message is required")

    response = await ai.chat_with_medical_ai(request.message, request.conversation_history)

    return BaseResponse(data={
        "response": response,
        "conversation_id": uuid.uuid4().hex,
        "generated_at": datetime.utcnow(),
    })


@router.post("/risk-assessment/{patient_id}", response_model=BaseResponse, dependencies=[Depends(validate_patient_id)])
async def risk_assessment(patient_id: str, ai: AIService = Depends(get_ai_service)):
    """Rule-based risk score from age, chronic conditions, medications and allergies."""
    return BaseResponse(data=await ai.assess_patient_risk(patient_id))


@router.post("/medication-interactions", response_model=BaseResponse)
async def medication_interactions(request: MedicationInteractionsRequest, ai: AIService = Depends(get_ai_service)):
    """Check a medication list against known interactions and allergies."""
    if not request.medications:
        raise BadRequestException("Medications array is required")
    return BaseResponse(data=ai.check_medication_interactions(request.medications, request.allergies))


@router.post("/patient-history-summary", response_model=BaseResponse)
async def patient_history_summary(
    history_file: UploadFile = File(None, alias="historyFile"),
    ai: AIService = Depends(get_ai_service),
):
    """
    Summarize an uploaded plain-text medical history.

    Only text/plain files up to MAX_UPLOAD_BYTES are accepted. The file is
    removed once it has been read.
    """
    if history_file is None:
        raise BadRequestException("No history file uploaded")
    media_type = (history_file.content_type or "").split(";")[0].strip().lower()
    if media_type != "text/plain":
        raise BadRequestException("Only .txt files are allowed")

    upload_dir = Path(ai.settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    file_path = upload_dir / f"patient-history-{uuid.uuid4().hex}.txt"

    try:
        save_upload(history_file, file_path, ai.settings.MAX_UPLOAD_BYTES)

        content = file_path.read_text(encoding="utf-8", errors="replace")
        logger.info(f"Summarizing uploaded history file ({len(content)} characters)")

        summary = await ai.generate_history_summary_from_text(content)
    finally:
        if file_path.exists():
            file_path.unlink()

    preview = content[:HISTORY_PREVIEW_CHARS]
    if len(content) > HISTORY_PREVIEW_CHARS:
        preview += "..."

    return BaseResponse(data={
        "original_content": preview,
        "summary": summary["summary"],
        "key_findings": summary["key_findings"],
        "recommendations": summary["recommendations"],
        "risk_factors": summary["risk_factors"],
        "generated_at": summary["generated_at"],
    })
