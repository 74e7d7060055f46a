import asyncio
from datetime import datetime

from beanie import PydanticObjectId

from app.features.doctors.models import ScheduleEntry
from app.features.doctors.service import DoctorService, build_doctor_directory_filter
from app.features.hospitals.models import BedCount, Hospital, HospitalReview
from app.features.hospitals.service import HospitalService, build_hospital_filter
from app.shared.schemas import AddReviewRequest, page_count, paginate


VALID_ID = "64b7f0c2a1b2c3d4e5f60718"


def test_hospital_filter_defaults_to_active():
    assert build_hospital_filter() == {"is_active": True}


def test_hospital_filter_city_is_exact_and_case_insensitive():
    query = build_hospital_filter(city="Boston", state="ma", rating=4, emergency=True)
    assert query["address.city"] == {"$regex": "^Boston$", "$options": "i"}
    assert query["address.state"] == "MA"
    assert query["quality_ratings.overall"] == {"$gte": 4}
    assert query["operating_hours.emergency.is_24_hours"] is True


def test_doctor_filter_only_lists_verified_doctors():
    query = build_doctor_directory_filter(
        specialty="Cardiology",
        accepting_new_patients=False,
        hospital=VALID_ID,
    )
    assert query["is_active"] is True
    assert query["is_verified"] is True
    assert query["specializations"] == {"$in": ["Cardiology"]}
    assert query["accepting_new_patients"] is False
    assert query["hospital"] == PydanticObjectId(VALID_ID)


def test_specialist_query_requires_open_panel():
    hospital_id = PydanticObjectId(VALID_ID)
    query = DoctorService.build_specialist_query(hospital_id, "Neurology", rating=4.0)
    assert query["hospital"] == hospital_id
    assert query["accepting_new_patients"] is True
    assert query["average_rating"] == {"$gte": 4.0}
    assert "languages_spoken" not in query


def test_pagination_helpers():
    assert paginate(3, 20) == 40
    assert page_count(41, 20) == 3
    assert page_count(0, 20) == 0


def test_hospital_response_has_derived_fields(make_hospital):
    hospital = make_hospital(
        bed_count=BedCount(total=100, available=25),
        reviews=[HospitalReview(rating=4), HospitalReview(rating=2, is_public=False)],
    )
    data = HospitalService.hospital_to_response(hospital)
    assert data["full_address"] == "1 Main St, New York, NY 10001"
    assert data["occupancy_rate"] == 75
    assert data["average_rating"] == 4
    assert data["total_reviews"] == 1
    assert "revision_id" not in data


def test_doctor_response_hides_password(make_doctor):
    data = DoctorService.doctor_to_response(make_doctor(password_hash="secret"))
    assert "password_hash" not in data
    assert data["full_name"] == "Dr. Emily Chen"


def test_add_review_updates_rating(make_hospital, monkeypatch):
    hospital = make_hospital(reviews=[HospitalReview(rating=5)])

    async def fake_get_hospital(hospital_id):
        return hospital

    async def fake_save(self, *args, **kwargs):
        return self

    monkeypatch.setattr(HospitalService, "get_hospital", fake_get_hospital)
    monkeypatch.setattr(Hospital, "save", fake_save)

    result = asyncio.run(HospitalService.add_review(
        VALID_ID,
        AddReviewRequest(rating=2, comment="Long wait", patient_id=VALID_ID),
    ))

    assert result["average_rating"] == 3.5
    assert result["total_reviews"] == 2
    assert result["review"]["patient"] == VALID_ID
    assert len(hospital.reviews) == 2


def test_reviews_are_public_and_newest_first(make_hospital, monkeypatch):
    hospital = make_hospital(reviews=[
        HospitalReview(rating=3, comment="old", created_at=datetime(2024, 1, 1)),
        HospitalReview(rating=5, comment="new", created_at=datetime(2024, 3, 1)),
        HospitalReview(rating=1, comment="hidden", is_public=False, created_at=datetime(2024, 4, 1)),
    ])

    async def fake_get_hospital(hospital_id):
        return hospital

    monkeypatch.setattr(HospitalService, "get_hospital", fake_get_hospital)

    reviews, total = asyncio.run(HospitalService.get_reviews(VALID_ID, page=1, limit=10))
    assert total == 2
    assert [r["comment"] for r in reviews] == ["new", "old"]


def test_availability_endpoint(client, make_doctor, monkeypatch):
    doctor = make_doctor(schedule=[ScheduleEntry(day_of_week=1, start_time="14:00", end_time="15:00")])

    async def fake_get_doctor(doctor_id):
        return doctor

    monkeypatch.setattr(DoctorService, "get_doctor", fake_get_doctor)

    response = client.get(f"/api/doctors/{VALID_ID}/availability", params={"date": "2024-05-13"})
    assert response.status_code == 200
    assert response.json()["data"] == {
        "date": "2024-05-13",
        "available_slots": ["14:00", "14:30"],
        "time_zone": "America/New_York",
        "accepting_new_patients": True,
    }
