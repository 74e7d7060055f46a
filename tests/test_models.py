from datetime import date

from app.features.doctors.models import (
    DoctorReview,
    ScheduleEntry,
    review_stats,
    schedule_slots,
    specialization_match,
)
from app.features.hospitals.models import (
    BedCount,
    EmergencyService,
    current_wait_time,
    occupancy_rate,
)
from app.features.patients.models import (
    EmergencyContact,
    VitalSigns,
    calculate_age,
    normalize_primary_contacts,
)


def test_only_first_primary_contact_is_kept():
    contacts = [
        EmergencyContact(name="A", phone="1", is_primary=False),
        EmergencyContact(name="B", phone="2", is_primary=True),
        EmergencyContact(name="C", phone="3", is_primary=True),
    ]
    normalize_primary_contacts(contacts)
    assert [c.is_primary for c in contacts] == [False, True, False]


def test_age_before_and_after_birthday():
    born = date(1985, 5, 15)
    assert calculate_age(born, today=date(2024, 5, 14)) == 38
    assert calculate_age(born, today=date(2024, 5, 15)) == 39
    assert calculate_age(None) is None


def test_current_bmi_from_latest_vitals(make_patient):
    patient = make_patient(vital_signs=[
        VitalSigns(weight=90, height=180),
        VitalSigns(weight=81, height=180),
    ])
    assert patient.current_bmi == 25.0


def test_current_bmi_missing_height(make_patient):
    patient = make_patient(vital_signs=[VitalSigns(weight=81)])
    assert patient.current_bmi is None


def test_review_stats_ignores_private_reviews():
    reviews = [
        DoctorReview(rating=5),
        DoctorReview(rating=4),
        DoctorReview(rating=4),
        DoctorReview(rating=1, is_public=False),
    ]
    assert review_stats(reviews) == (4.3, 3)


def test_review_stats_empty():
    assert review_stats([]) == (0, 0)


def test_specialization_match_counts_keyword_hits():
    assert specialization_match(["Cardiology"], ["Hypertension", "Chest pain episodes"]) == 2
    assert specialization_match(["Dermatology"], ["Hypertension"]) == 0


def test_schedule_slots_every_thirty_minutes():
    # 2024-05-13 is a Monday, day_of_week 1
    schedule = [ScheduleEntry(day_of_week=1, start_time="09:00", end_time="11:00")]
    assert schedule_slots(schedule, date(2024, 5, 13)) == ["09:00", "09:30", "10:00", "10:30"]


def test_schedule_slots_day_off():
    schedule = [
        ScheduleEntry(day_of_week=1, start_time="09:00", end_time="11:00"),
        ScheduleEntry(day_of_week=2, start_time="09:00", end_time="11:00", is_available=False),
    ]
    assert schedule_slots(schedule, date(2024, 5, 14)) == []
    assert schedule_slots(schedule, date(2024, 5, 12)) == []


def test_occupancy_rate():
    assert occupancy_rate(BedCount(total=200, available=50)) == 75
    assert occupancy_rate(BedCount(total=0, available=0)) is None
    assert occupancy_rate(BedCount(available=10)) is None


def test_wait_time_mean_across_services():
    services = [
        EmergencyService(service="General Emergency", average_wait_time=30),
        EmergencyService(service="Trauma Center", average_wait_time=15),
    ]
    assert current_wait_time(services) == 22
    assert current_wait_time(services, "trauma") == 15
    assert current_wait_time(services, "pediatric") is None
    assert current_wait_time([]) is None
