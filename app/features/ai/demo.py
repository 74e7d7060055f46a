# AI Assistant Feature - Demo responses
#
# Canned output used when no OpenAI credential is configured.

from typing import Dict, List


DEMO_CHAT_GREETING = "Hello! I'm MedAssist, your personal healthcare assistant. How can I help you today?"

CHAT_FALLBACK_MESSAGE = (
    "I understand you need assistance. Could you provide more details about what you're looking for? "
    "I can help with health records, finding doctors, medication reminders, or scheduling appointments."
)

DEFAULT_SUGGESTIONS = [
    "What's in my health record?",
    "Find a doctor near me",
    "Remind me about my medications",
    "I need an appointment",
]


def generate_medical_suggestions(message: str) -> List[str]:
    """Follow-up prompts matched to the topic of a chat message."""
    text = (message or "").lower()

    if "pain" in text or "hurt" in text:
        return [
            "Consider scheduling an appointment with your primary care physician",
            "If pain is severe or sudden, seek immediate medical attention",
            "Track your pain levels and what triggers them",
        ]
    if "medication" in text or "prescription" in text:
        return [
            "Check your current medications in your health record",
            "Consult your pharmacist about medication interactions",
            "Never stop prescribed medications without consulting your doctor",
        ]
    if "doctor" in text or "appointment" in text:
        return [
            "Find a doctor near me",
            "Check available appointment slots",
            "Prepare questions for your doctor visit",
        ]
    return list(DEFAULT_SUGGESTIONS)


# (keywords, summary lines, key finding, risk factor, recommendation)
HISTORY_CONDITIONS = [
    (
        ("asthma",),
        [
            "Chronic asthma with a history of respiratory symptoms",
            "Current management with bronchodilators and inhaled corticosteroids",
        ],
        "Chronic asthma requiring ongoing management",
        "Respiratory complications from poorly controlled asthma",
        "Continue asthma action plan and avoid known triggers",
    ),
    (
        ("diabetes",),
        [
            "Type 2 diabetes mellitus requiring metabolic monitoring",
            "Medication management with ongoing glucose control assessment",
        ],
        "Type 2 diabetes mellitus",
        "Cardiovascular complications from diabetes",
        "Regular HbA1c monitoring and diabetic foot care",
    ),
    (
        ("hypertension", "blood pressure"),
        [
            "Hypertension requiring antihypertensive therapy",
            "Blood pressure monitoring and cardiovascular risk assessment",
        ],
        "Hypertension",
        "Cardiovascular disease risk",
        "Regular blood pressure monitoring and lifestyle modifications",
    ),
    (
        ("kawasaki",),
        [
            "History of Kawasaki disease with cardiac monitoring requirements",
            "Ongoing cardiology follow-up for coronary artery assessment",
        ],
        "History of Kawasaki disease",
        "Potential cardiac complications",
        "Regular echocardiograms and cardiology follow-up",
    ),
    (
        ("osteoporosis",),
        [
            "Osteoporosis with fracture risk requiring bone health management",
            "Current treatment with calcium, vitamin D, and bisphosphonates",
        ],
        "Osteoporosis",
        "Increased fracture risk",
        "Fall prevention strategies and bone density monitoring",
    ),
]

SUMMARY_HEADER = """**AI-Generated Patient Summary (Demo Mode)**

**Executive Summary:**
This patient presents with a complex medical history requiring ongoing multidisciplinary care and monitoring. The uploaded medical history indicates multiple active conditions that require coordinated management.

**Key Medical Findings:**"""

SUMMARY_FOOTER = """

**Current Health Status:**
The patient requires ongoing monitoring and coordinated care for multiple chronic conditions. Current medications appear to be managing symptoms effectively, but regular follow-up is essential.

**Risk Assessment:**
Moderate to high risk profile due to multiple comorbidities requiring proactive management and preventive care strategies.

**Recommended Follow-up Actions:**
- Regular primary care visits for chronic disease management
- Specialist consultations as indicated
- Medication adherence monitoring
- Laboratory monitoring as appropriate for current medications

**Preventive Care Recommendations:**
- Age-appropriate screening examinations
- Vaccination updates
- Lifestyle counseling for diet, exercise, and risk factor modification
- Regular monitoring of chronic conditions

*Note: This summary is generated in demo mode. For actual clinical use, please ensure proper API configuration and professional medical review.*"""


def generate_demo_summary(text: str) -> Dict:
    """Keyword-driven history summary with findings, risks and recommendations."""
    content = (text or "").lower()

    summary = SUMMARY_HEADER
    key_findings, risk_factors, recommendations = [], [], []

    for keywords, lines, finding, risk, recommendation in HISTORY_CONDITIONS:
        if not any(keyword in content for keyword in keywords):
            continue
        summary += "".join(f"\n- {line}" for line in lines)
        key_findings.append(finding)
        risk_factors.append(risk)
        recommendations.append(recommendation)

    summary += SUMMARY_FOOTER

    return {
        "summary": summary,
        "key_findings": key_findings or ["Multiple chronic conditions requiring ongoing care"],
        "recommendations": recommendations or [
            "Regular medical follow-up",
            "Medication adherence",
            "Lifestyle modifications",
            "Preventive care measures",
        ],
        "risk_factors": risk_factors or ["Multiple chronic conditions"],
    }


# Ordered: earlier entries rank first in the suggested specialties
SYMPTOM_SPECIALTIES = [
    (("chest pain", "palpitation", "heart"), "Cardiology"),
    (("shortness of breath", "breath", "cough", "wheez"), "Pulmonology"),
    (("headache", "dizz", "numb", "seizure", "migraine"), "Neurology"),
    (("abdominal", "stomach", "nausea", "vomit", "diarrh"), "Gastroenterology"),
    (("joint", "back pain", "bone", "fracture", "swelling"), "Orthopedics"),
    (("rash", "itch", "skin", "mole"), "Dermatology"),
    (("thirst", "urination", "weight loss", "thyroid"), "Endocrinology"),
    (("anxiety", "depress", "insomnia", "panic"), "Psychiatry"),
]

RED_FLAG_KEYWORDS = [
    "chest pain",
    "shortness of breath",
    "difficulty breathing",
    "severe bleeding",
    "loss of consciousness",
    "unconscious",
    "slurred speech",
    "seizure",
    "suicidal",
]

GENERAL_RED_FLAGS = [
    "Sudden or severe chest pain",
    "Difficulty breathing",
    "Confusion or loss of consciousness",
    "Uncontrolled bleeding",
]


def demo_symptom_analysis(symptoms: List[str]) -> Dict:
    """Keyword triage of symptoms into specialties and an urgency level."""
    lowered = [s.lower() for s in symptoms]
    text = " ".join(lowered)

    specialties = [
        specialty for keywords, specialty in SYMPTOM_SPECIALTIES
        if any(keyword in text for keyword in keywords)
    ]
    if not specialties:
        specialties = ["Primary Care"]

    red_flags = [s for s in symptoms if any(flag in s.lower() for flag in RED_FLAG_KEYWORDS)]

    if red_flags:
        urgency = "emergency"
    elif "pain" in text or "fever" in text:
        urgency = "urgent"
    else:
        urgency = "routine"

    recommendations = ["Schedule an evaluation with a healthcare provider"]
    if urgency == "emergency":
        recommendations.insert(0, "Seek emergency care immediately or call 911")
    elif urgency == "urgent":
        recommendations.insert(0, "Arrange to be seen within 24-48 hours")

    return {
        "specialties": specialties,
        "urgency": urgency,
        "recommendations": recommendations,
        "red_flags": red_flags or GENERAL_RED_FLAGS,
        "demo_mode": True,
    }


METRIC_LABELS = {
    "blood_pressure": "systolic blood pressure",
    "heart_rate": "heart rate",
    "weight": "weight",
    "bmi": "BMI",
}


def demo_health_insights(trends: Dict) -> str:
    """One sentence per tracked metric plus a closing reminder."""
    if not trends:
        return "Not enough repeated measurements to describe a trend yet. Keep recording your vital signs."

    sentences = []
    for metric, trend in trends.items():
        label = METRIC_LABELS.get(metric, metric)
        if trend["trend"] == "stable":
            sentences.append(f"Your {label} is stable at {trend['current']}.")
        else:
            change = f" ({trend['percent_change']}%)" if trend["percent_change"] is not None else ""
            sentences.append(
                f"Your {label} is {trend['trend']}, from {trend['previous']} to {trend['current']}{change}."
            )
    sentences.append("Review these trends with your healthcare provider at your next visit.")
    return " ".join(sentences)
