# AI Assistant Feature - Service

import json
from datetime import datetime
from typing import Optional, List, Dict

from app.config import Settings
from app.core.logging import logger
from app.features.ai.demo import (
    CHAT_FALLBACK_MESSAGE,
    DEFAULT_SUGGESTIONS,
    DEMO_CHAT_GREETING,
    demo_health_insights,
    demo_symptom_analysis,
    generate_demo_summary,
    generate_medical_suggestions,
)
from app.features.ai.schemas import (
    AllergyItem,
    ChatTurn,
    MedicationItem,
    SuggestDoctorsRequest,
)
from app.features.doctors.models import Doctor, specialization_match
from app.features.doctors.service import DoctorService
from app.features.hospitals.locator import near_clause
from app.features.hospitals.models import Hospital
from app.features.patients.models import HealthSummary, Patient, VitalSigns
from app.features.patients.service import PatientService
from app.services.llm_gateway import LLMGateway, extract_json_from_text
from app.shared.exceptions import BadRequestException, UpstreamProviderException


SUMMARY_SYSTEM_PROMPT = (
    "You are a medical AI assistant that provides comprehensive patient health summaries. "
    "Always prioritize patient safety and recommend consulting healthcare providers for medical decisions."
)

HISTORY_SYSTEM_PROMPT = (
    "You are a medical AI assistant that analyzes patient histories and provides comprehensive summaries. "
    "Always prioritize patient safety and recommend professional medical evaluation when appropriate."
)

TRIAGE_SYSTEM_PROMPT = (
    "You are a medical AI that helps triage symptoms to appropriate specialists. "
    "Always err on the side of caution and recommend professional medical evaluation."
)

INSIGHTS_SYSTEM_PROMPT = (
    "You are a medical AI that analyzes health trends and provides actionable insights for patients."
)

CHAT_SYSTEM_PROMPT = """You are MedAssist, a helpful medical AI assistant. You provide general health information and guidance, but you always emphasize that you are not a replacement for professional medical advice.

Key guidelines:
- Provide helpful, accurate medical information
- Always recommend consulting healthcare providers for specific medical concerns
- Be empathetic and supportive
- If symptoms suggest urgency, recommend immediate medical attention
- Keep responses concise but informative
- Do not provide specific diagnoses or treatment plans"""

RISK_RECOMMENDATIONS = [
    "Regular health checkups are recommended",
    "Maintain updated medical history",
    "Keep emergency contacts current",
    "Follow prescribed medication regimens",
]

# Known interacting pairs, looked up in both directions
COMMON_INTERACTIONS = {
    "warfarin": ["aspirin", "ibuprofen"],
    "metformin": ["alcohol"],
    "atorvastatin": ["grapefruit"],
    "lisinopril": ["potassium supplements"],
}

TREND_METRICS = ["blood_pressure", "heart_rate", "weight", "bmi"]


# ============== Pure helpers ==============

def prepare_medical_data(patient: Patient) -> Dict:
    """The subset of a patient record sent to the language model."""
    latest_vitals = patient.vital_signs[-1] if patient.vital_signs else None
    return {
        "demographics": {
            "age": patient.age,
            "gender": patient.gender,
            "blood_type": patient.blood_type,
        },
        "conditions": [
            {
                "condition": c.condition,
                "status": c.status,
                "severity": c.severity,
                "diagnosed_date": c.diagnosed_date.isoformat() if c.diagnosed_date else None,
            }
            for c in patient.medical_history
        ],
        "medications": [
            {"name": m.name, "dosage": m.dosage, "frequency": m.frequency}
            for m in patient.active_medications()
        ],
        "allergies": [
            {"allergen": a.allergen, "severity": a.severity, "reaction": a.reaction}
            for a in patient.allergies
        ],
        "vitals": latest_vitals.model_dump(mode="json", exclude_none=True) if latest_vitals else None,
    }


def normalize_structured_insights(data: Optional[Dict]) -> Dict:
    """Coerce extracted JSON into risk factors, recommendations and a 0-100 score."""
    if not isinstance(data, dict):
        return {"risk_factors": [], "recommendations": [], "risk_score": 0}

    try:
        risk_score = float(data.get("risk_score", data.get("riskScore", 0)) or 0)
    except (TypeError, ValueError):
        risk_score = 0
    return {
        "risk_factors": [str(r) for r in data.get("risk_factors", data.get("riskFactors")) or []],
        "recommendations": [str(r) for r in data.get("recommendations") or []],
        "risk_score": min(max(risk_score, 0), 100),
    }


def build_doctor_filter(
    options: SuggestDoctorsRequest,
    patient: Patient,
    hospital_ids: Optional[List] = None,
) -> Dict:
    """
    Doctor query for suggestions.

    When nearby hospital ids are given, doctors are limited to those
    hospitals; otherwise to the patient's zip code when one is on file.
    """
    query = {
        "is_active": True,
        "is_verified": True,
        "accepting_new_patients": True,
    }
    if options.specialty:
        query["specializations"] = {"$in": [options.specialty]}
    if options.preferred_language:
        query["languages_spoken"] = {"$in": [options.preferred_language]}
    if options.insurance_provider:
        query["accepted_insurance"] = {"$in": [options.insurance_provider]}

    if hospital_ids is not None:
        query["hospital"] = {"$in": hospital_ids}
    elif patient.address and patient.address.zip_code:
        query["office_address.zip_code"] = patient.address.zip_code
    return query


def rank_doctors(doctors: List[Doctor], conditions: List[str]) -> List[Dict]:
    """Score doctors against the patient's conditions, best match first."""
    ranked = []
    for doctor in doctors:
        score = 0
        reasons = []

        match = specialization_match(doctor.specializations, conditions)
        score += match * 20
        if match > 0:
            reasons.append(f"Specializes in conditions related to: {', '.join(conditions)}")

        rating = doctor.average_rating or 0
        score += rating * 5
        if rating > 4:
            reasons.append(f"Highly rated ({rating}/5)")

        if doctor.years_of_experience > 10:
            score += 10
            reasons.append(f"Experienced ({doctor.years_of_experience} years)")

        if doctor.hospital:
            score += 5
            reasons.append("Affiliated with reputable hospital")

        ranked.append({"doctor": doctor, "match_score": score, "reasons": reasons})

    return sorted(ranked, key=lambda r: r["match_score"], reverse=True)


def fallback_recommendation(doctor: Doctor) -> str:
    specialty = doctor.primary_specialization or "physician"
    return (
        f"{doctor.full_name} is a qualified {specialty} with "
        f"{doctor.years_of_experience} years of experience."
    )


def metric_value(vitals: VitalSigns, metric: str) -> Optional[float]:
    if metric == "blood_pressure":
        return vitals.blood_pressure.systolic if vitals.blood_pressure else None
    return getattr(vitals, metric)


def analyze_vitals_trends(vital_signs: List[VitalSigns]) -> Dict:
    """
    Latest-versus-previous change for each tracked metric.

    Metrics with fewer than two readings are left out.
    """
    trends = {}
    for metric in TREND_METRICS:
        readings = sorted(
            ((v.recorded_date, metric_value(v, metric)) for v in vital_signs if metric_value(v, metric) is not None),
            key=lambda r: r[0],
        )
        if len(readings) < 2:
            continue

        previous = readings[-2][1]
        current = readings[-1][1]
        change = current - previous
        trends[metric] = {
            "current": current,
            "previous": previous,
            "change": round(change, 2),
            "percent_change": round(change / previous * 100, 1) if previous else None,
            "trend": "increasing" if change > 0 else "decreasing" if change < 0 else "stable",
        }
    return trends


def assess_risk(patient: Patient) -> Dict:
    """Rule-based risk score capped at 100, with the reasons that contributed."""
    score = 0
    risks = []

    age = patient.age
    if age is not None and age > 65:
        score += 20
        risks.append("Advanced age increases health risks")

    chronic = [c for c in patient.medical_history if c.status == "chronic"]
    score += len(chronic) * 15
    if chronic:
        risks.append(f"Has {len(chronic)} chronic condition(s)")

    if len(patient.active_medications()) > 5:
        score += 10
        risks.append("Multiple medications may increase interaction risks")

    if patient.high_severity_allergies():
        score += 15
        risks.append("Has severe allergies requiring careful monitoring")

    score = min(score, 100)
    level = "Low" if score < 30 else "Moderate" if score < 60 else "High"

    return {
        "risk_score": score,
        "risk_level": level,
        "assessed_risks": risks,
        "recommendations": list(RISK_RECOMMENDATIONS),
    }


def check_medication_interactions(
    medications: List[MedicationItem],
    allergies: List[AllergyItem],
) -> Dict:
    """
    Look up known interacting pairs and allergen name matches.

    Only a small fixed table is consulted; it is no substitute for a drug
    interaction database.
    """
    interactions = []
    warnings = []

    for index, first in enumerate(medications):
        first_name = first.name.lower()
        for second in medications[index + 1:]:
            second_name = second.name.lower()
            if (second_name in COMMON_INTERACTIONS.get(first_name, [])
                    or first_name in COMMON_INTERACTIONS.get(second_name, [])):
                interactions.append({
                    "medication1": first.name,
                    "medication2": second.name,
                    "severity": "moderate",
                    "description": "Potential interaction detected - consult your doctor",
                })

        for allergy in allergies:
            if allergy.allergen.lower() in first_name:
                warnings.append({
                    "medication": first.name,
                    "allergen": allergy.allergen,
                    "severity": allergy.severity,
                    "warning": "ALLERGY ALERT: This medication may contain allergens",
                })

    if interactions or warnings:
        recommendation = "Please consult with your healthcare provider about these potential interactions"
    else:
        recommendation = "No major interactions detected, but always consult your healthcare provider"

    return {
        "interactions": interactions,
        "warnings": warnings,
        "total_medications": len(medications),
        "interaction_count": len(interactions),
        "warning_count": len(warnings),
        "recommendation": recommendation,
    }


# ============== Service ==============

class AIService:
    """
    Health summaries, triage and chat backed by the language model.

    Every operation has a deterministic demo answer used when no OpenAI
    credential is configured.
    """

    def __init__(self, settings: Settings, llm: Optional[LLMGateway] = None):
        self.settings = settings
        self.llm = llm

    @property
    def demo_mode(self) -> bool:
        return not self.settings.has_openai_credential or self.llm is None

    async def _get_patient(self, patient_id: str) -> Patient:
        return await PatientService.get_patient(patient_id)

    async def _extract(self, prompt: str) -> Optional[Dict]:
        """Run an extraction prompt on the cheaper model; None when unusable."""
        try:
            raw = await self.llm.complete(
                [{"role": "user", "content": prompt}],
                max_tokens=500,
                temperature=0.1,
                model=self.settings.OPENAI_EXTRACTION_MODEL,
            )
        except UpstreamProviderException:
            return None

        data = extract_json_from_text(raw)
        if data is None:
            logger.warning("Extraction response was not valid JSON, using empty result")
        return data

    # ============== Patient summary ==============

    async def generate_patient_summary(self, patient_id: str) -> Dict:
        """Summarize a patient record and store the derived health summary."""
        patient = await self._get_patient(patient_id)

        if self.demo_mode:
            logger.warning("OpenAI credential not configured - generating demo patient summary")
            conditions = " ".join(c.condition for c in patient.medical_history)
            demo = generate_demo_summary(conditions)
            summary = demo["summary"]
            structured = {
                "risk_factors": demo["risk_factors"],
                "recommendations": demo["recommendations"],
                "risk_score": assess_risk(patient)["risk_score"],
            }
        else:
            medical_data = prepare_medical_data(patient)
            prompt = f"""
As a medical AI assistant, analyze the following patient data and provide a comprehensive health summary.

Patient Information:
{json.dumps(medical_data, indent=2)}

Please provide:
1. Current Health Status Overview
2. Key Risk Factors
3. Medication Summary and Interactions
4. Recommended Preventive Care
5. Lifestyle Recommendations
6. Priority Health Concerns
7. Follow-up Care Suggestions

Format the response in a clear, structured manner that a patient can understand while maintaining medical accuracy.
"""
            summary = await self.llm.complete(
                [
                    {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=2000,
                temperature=0.3,
                model=self.settings.OPENAI_MODEL,
            )
            structured = normalize_structured_insights(await self._extract(f"""
Extract structured data from this medical summary:

{summary}

Return only JSON with:
- risk_factors: array of key risk factors
- recommendations: array of actionable recommendations
- risk_score: overall risk score (0-100)
"""))

        patient.health_summary = HealthSummary(
            risk_factors=structured["risk_factors"],
            recommendations=structured["recommendations"],
            last_analyzed=datetime.utcnow(),
            overall_risk_score=structured["risk_score"],
        )
        await patient.save()

        logger.info(f"Generated health summary for patient {patient_id} (risk score {structured['risk_score']})")
        return {
            "patient_id": patient_id,
            "summary": summary,
            "structured_data": structured,
            "generated_at": datetime.utcnow(),
        }

    # ============== Doctor suggestions ==============

    async def _doctor_recommendation(self, doctor: Doctor, patient: Patient, conditions: List[str]) -> str:
        if self.demo_mode:
            return fallback_recommendation(doctor)

        prompt = f"""
Generate a brief, personalized recommendation for why this doctor would be good for this patient:

Doctor: {doctor.full_name}
Specializations: {', '.join(doctor.specializations)}
Experience: {doctor.years_of_experience} years
Rating: {doctor.average_rating}/5

Patient Conditions: {', '.join(conditions)}
Patient Age: {patient.age}

Write a 2-3 sentence recommendation explaining why this doctor is a good match.
"""
        try:
            return await self.llm.complete(
                [{"role": "user", "content": prompt}],
                max_tokens=150,
                temperature=0.7,
                model=self.settings.OPENAI_EXTRACTION_MODEL,
            )
        except UpstreamProviderException:
            return fallback_recommendation(doctor)

    async def suggest_doctors(self, patient_id: str, options: SuggestDoctorsRequest) -> Dict:
        """Rank doctors for a patient's active conditions."""
        patient = await self._get_patient(patient_id)
        conditions = [c.condition for c in patient.active_conditions()]

        hospital_ids = None
        if options.coordinates:
            hospitals = await Hospital.find(
                {"location": near_clause(list(options.coordinates), options.radius), "is_active": True}
            ).to_list()
            hospital_ids = [h.id for h in hospitals]

        query = build_doctor_filter(options, patient, hospital_ids)
        doctors = await Doctor.find(query).limit(options.max_results * 2).to_list()

        recommendations = []
        for ranked in rank_doctors(doctors, conditions)[:options.max_results]:
            doctor = ranked["doctor"]
            recommendations.append({
                "doctor": DoctorService.doctor_to_response(doctor),
                "recommendation": await self._doctor_recommendation(doctor, patient, conditions),
                "match_score": ranked["match_score"],
                "reasons": ranked["reasons"],
            })

        return {
            "patient_id": patient_id,
            "recommendations": recommendations,
            "search_criteria": json.loads(json.dumps(query, default=str)),
            "total_found": len(doctors),
            "generated_at": datetime.utcnow(),
        }

    # ============== Symptoms ==============

    async def analyze_symptoms(self, symptoms: List[str], age: int, gender: str) -> Dict:
        """Suggest specialties and an urgency level for a set of symptoms."""
        if self.demo_mode:
            return demo_symptom_analysis(symptoms)

        prompt = f"""
As a medical AI, analyze these symptoms and suggest appropriate medical specialties for consultation:

Patient: {age} year old {gender}
Symptoms: {', '.join(symptoms)}

Respond only with JSON containing:
- specialties: most likely specialties to consult, in order of priority
- urgency: one of routine, urgent, emergency
- recommendations: general recommendations
- red_flags: red flag symptoms to watch for
"""
        raw = await self.llm.complete(
            [
                {"role": "system", "content": TRIAGE_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=1000,
            temperature=0.2,
            model=self.settings.OPENAI_MODEL,
        )

        analysis = extract_json_from_text(raw)
        if analysis is None:
            logger.error("Symptom analysis response was not valid JSON")
            raise UpstreamProviderException("Failed to analyze symptoms")
        return analysis

    # ============== Health insights ==============

    async def generate_health_insights(self, patient_id: str) -> Dict:
        """Trend analysis of recorded vital signs with a narrative."""
        patient = await self._get_patient(patient_id)
        if len(patient.vital_signs) < 2:
            raise BadRequestException("Insufficient data for trend analysis")

        trends = analyze_vitals_trends(patient.vital_signs)

        if self.demo_mode:
            insights = demo_health_insights(trends)
        else:
            prompt = f"""
Analyze these health trends and provide insights:

Patient: {patient.age} year old {patient.gender}
Current Conditions: {', '.join(c.condition for c in patient.medical_history)}

Vital Signs Trends:
{json.dumps(trends, indent=2)}

Provide actionable health insights and recommendations based on these trends.
"""
            insights = await self.llm.complete(
                [
                    {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=800,
                temperature=0.3,
                model=self.settings.OPENAI_MODEL,
            )

        return {
            "patient_id": patient_id,
            "insights": insights,
            "trends": trends,
            "generated_at": datetime.utcnow(),
        }

    # ============== Chat ==============

    async def chat_with_medical_ai(self, message: str, conversation_history: List[ChatTurn]) -> Dict:
        """Answer a chat message, replaying earlier turns for context."""
        if self.demo_mode:
            return {
                "message": DEMO_CHAT_GREETING,
                "suggestions": generate_medical_suggestions(message),
                "timestamp": datetime.utcnow(),
            }

        messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        for turn in conversation_history:
            messages.append({"role": "user", "content": turn.user})
            messages.append({"role": "assistant", "content": turn.assistant})
        messages.append({"role": "user", "content": message})

        try:
            reply = await self.llm.complete(
                messages,
                max_tokens=800,
                temperature=0.7,
                model=self.settings.OPENAI_MODEL,
            )
        except UpstreamProviderException:
            return {
                "message": CHAT_FALLBACK_MESSAGE,
                "suggestions": list(DEFAULT_SUGGESTIONS),
                "timestamp": datetime.utcnow(),
            }

        return {
            "message": reply,
            "suggestions": generate_medical_suggestions(message),
            "timestamp": datetime.utcnow(),
        }

    # ============== History upload ==============

    async def generate_history_summary_from_text(self, text: str) -> Dict:
        """Summarize a free-text medical history."""
        if self.demo_mode:
            logger.warning("OpenAI credential not configured - generating demo history summary")
            result = generate_demo_summary(text)
            result["generated_at"] = datetime.utcnow()
            return result

        prompt = f"""
As a medical AI assistant, analyze the following patient history text and provide a comprehensive summary:

Patient History Text:
{text}

Please provide:
1. Executive Summary of the patient's medical history
2. Key Medical Findings and Diagnoses
3. Current Health Status Assessment
4. Risk Factors Identified
5. Recommended Follow-up Actions
6. Preventive Care Recommendations

Format the response in a clear, structured manner suitable for healthcare providers.
"""
        summary = await self.llm.complete(
            [
                {"role": "system", "content": HISTORY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=2500,
            temperature=0.3,
            model=self.settings.OPENAI_MODEL,
        )

        data = await self._extract(f"""
Extract structured data from this medical summary:

{summary}

Return only JSON with:
- key_findings: array of key medical findings and diagnoses
- recommendations: array of actionable recommendations
- risk_factors: array of identified risk factors
""") or {}

        return {
            "summary": summary,
            "key_findings": data.get("key_findings") or [],
            "recommendations": data.get("recommendations") or [],
            "risk_factors": data.get("risk_factors") or [],
            "generated_at": datetime.utcnow(),
        }

    # ============== Rule-based checks ==============

    async def assess_patient_risk(self, patient_id: str) -> Dict:
        patient = await self._get_patient(patient_id)
        result = assess_risk(patient)
        result["patient_id"] = patient_id
        result["generated_at"] = datetime.utcnow()
        return result

    def check_medication_interactions(
        self,
        medications: List[MedicationItem],
        allergies: List[AllergyItem],
    ) -> Dict:
        result = check_medication_interactions(medications, allergies)
        result["generated_at"] = datetime.utcnow()
        return result
