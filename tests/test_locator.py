import asyncio
import re

import pytest
from beanie import PydanticObjectId

from app.features.hospitals.locator import (
    CRITICAL_EMERGENCY_SERVICES,
    DEMO_MODE_MESSAGE,
    EMERGENCY_PLACES_KEYWORD,
    build_emergency_query,
    build_nearby_query,
    demo_emergency_hospitals,
    demo_nearby_hospitals,
    emergency_priority,
    meets_emergency_criteria,
    order_by_wait_time,
    place_to_result,
    sort_specialists,
    strip_html,
)
from app.features.doctors.models import Doctor
from app.features.hospitals.models import BedCount, EmergencyService, Hospital, InsurancePlan
from app.features.hospitals.schemas import LocationQuery
from app.features.hospitals.service import HospitalService
from app.shared.models import GeoPoint
from app.shared.exceptions import (
    LocationUnresolvedException,
    NotFoundException,
    UpstreamProviderException,
)


NYC_LAT, NYC_LON = 40.7128, -74.0060


# ============== Demo data ==============

def test_demo_hospitals_sorted_by_distance():
    hospitals = demo_nearby_hospitals(NYC_LAT, NYC_LON, 10)
    assert [h["distance"] for h in hospitals] == [1.2, 2.1, 2.8, 3.4]
    assert hospitals[0]["name"] == "General Medical Center"
    assert "offset" not in hospitals[0]


def test_demo_hospitals_offset_from_search_point():
    first = demo_nearby_hospitals(NYC_LAT, NYC_LON, 10)[0]
    assert first["location"]["latitude"] == pytest.approx(NYC_LAT + 0.01)
    assert first["location"]["longitude"] == pytest.approx(NYC_LON + 0.01)


def test_demo_hospitals_respect_radius():
    assert [h["distance"] for h in demo_nearby_hospitals(NYC_LAT, NYC_LON, 2.5)] == [1.2, 2.1]
    assert demo_nearby_hospitals(NYC_LAT, NYC_LON, 1) == []


def test_nearby_places_in_demo_mode(demo_locator):
    result = asyncio.run(demo_locator.find_nearby_places(NYC_LAT, NYC_LON, 25))
    assert result["demo_mode"] is True
    assert result["message"] == DEMO_MODE_MESSAGE
    assert result["total_found"] == 4
    assert result["search_location"] == {"latitude": NYC_LAT, "longitude": NYC_LON}


# ============== Query builders ==============

def test_nearby_query_radius_in_meters():
    query = build_nearby_query([NYC_LON, NYC_LAT], 10)
    near = query["location"]["$near"]
    assert near["$geometry"] == {"type": "Point", "coordinates": [NYC_LON, NYC_LAT]}
    assert near["$maxDistance"] == 10000
    assert query["is_active"] is True
    assert query["is_verified"] is True
    assert "specialty_services" not in query


def test_nearby_query_optional_filters():
    query = build_nearby_query(
        [NYC_LON, NYC_LAT],
        25,
        specialty="Cardiology",
        emergency=True,
        insurance="Aetna",
        hospital_type="teaching",
        rating=4,
        available_beds=True,
    )
    assert query["specialty_services"] == {"$in": ["Cardiology"]}
    assert query["operating_hours.emergency.is_24_hours"] is True
    assert query["accepted_insurance.provider"] == {"$regex": "Aetna", "$options": "i"}
    assert query["type"] == "teaching"
    assert query["quality_ratings.overall"] == {"$gte": 4}
    assert query["bed_count.available"] == {"$gt": 0}


def test_emergency_query_critical_requires_icu():
    query = build_emergency_query([NYC_LON, NYC_LAT], "critical")
    assert query["location"]["$near"]["$maxDistance"] == 50000
    assert query["emergency_services.service"] == {"$in": CRITICAL_EMERGENCY_SERVICES}
    assert query["bed_count.icu"] == {"$gt": 0}

    standard = build_emergency_query([NYC_LON, NYC_LAT])
    assert "bed_count.icu" not in standard


def test_critical_emergency_needs_icu_beds(make_hospital):
    services = [EmergencyService(service="Trauma Center", average_wait_time=20)]
    with_icu = make_hospital(emergency_services=services, bed_count=BedCount(icu=4))
    without_icu = make_hospital(emergency_services=services, bed_count=BedCount(icu=0))

    assert meets_emergency_criteria(with_icu, "critical")
    assert not meets_emergency_criteria(without_icu, "critical")
    assert meets_emergency_criteria(without_icu, "standard")


def test_inactive_hospitals_are_never_emergency_results(make_hospital):
    hospital = make_hospital(
        is_active=False,
        emergency_services=[EmergencyService(service="Trauma Center")],
        bed_count=BedCount(icu=5),
    )
    assert not meets_emergency_criteria(hospital)
    assert not meets_emergency_criteria(hospital, "critical")


def test_emergency_needs_an_available_service(make_hospital):
    closed = make_hospital(emergency_services=[
        EmergencyService(service="General Emergency", is_available=False),
    ])
    assert not meets_emergency_criteria(closed)


# ============== Ordering ==============

def test_wait_time_order_puts_unknown_last():
    results = [
        {"name": "a", "current_wait_time": None},
        {"name": "b", "current_wait_time": 45},
        {"name": "c", "current_wait_time": 10},
    ]
    assert [r["name"] for r in order_by_wait_time(results)] == ["c", "b", "a"]


def test_wait_time_order_capped_at_ten():
    results = [{"current_wait_time": minutes} for minutes in range(15, 0, -1)]
    ordered = order_by_wait_time(results)
    assert len(ordered) == 10
    assert ordered[0]["current_wait_time"] == 1


def test_specialists_by_rating_then_distance():
    specialists = [
        {"id": "far", "average_rating": 4.8, "distance": 20},
        {"id": "near", "average_rating": 4.8, "distance": 3},
        {"id": "low", "average_rating": 4.1, "distance": 1},
    ]
    assert [s["id"] for s in sort_specialists(specialists)] == ["near", "far", "low"]


# ============== Coordinates ==============

def test_coordinates_take_precedence(demo_locator):
    location = LocationQuery(coordinates=[-87.6, 41.8], latitude=1, longitude=2, address="Houston")
    assert asyncio.run(demo_locator.resolve_coordinates(location)) == [-87.6, 41.8]


def test_latitude_longitude_pair(demo_locator):
    assert asyncio.run(demo_locator.resolve_coordinates({"latitude": 41.8, "longitude": -87.6})) == [-87.6, 41.8]


def test_demo_geocoding_matches_city(demo_locator):
    assert asyncio.run(demo_locator.resolve_coordinates("Downtown Chicago, IL")) == [-87.6298, 41.8781]


def test_demo_geocoding_defaults_to_new_york(demo_locator):
    assert asyncio.run(demo_locator.resolve_coordinates(LocationQuery(zip_code="99999"))) == [-74.0060, 40.7128]


def test_missing_location_is_rejected(demo_locator):
    with pytest.raises(LocationUnresolvedException) as exc:
        asyncio.run(demo_locator.resolve_coordinates(LocationQuery()))
    assert exc.value.status_code == 400
    assert exc.value.detail == "Unable to resolve coordinates from location"


def test_live_geocoding_miss(live_locator, fake_maps):
    fake_maps.geocode_result = None
    with pytest.raises(LocationUnresolvedException) as exc:
        asyncio.run(live_locator.resolve_coordinates("Nowhere Lane"))
    assert exc.value.detail == "Address not found: Nowhere Lane"
    assert fake_maps.calls == [("geocode", "Nowhere Lane")]


# ============== Routes ==============

def test_route_without_maps_key(demo_locator):
    route = asyncio.run(demo_locator.get_route([-74.0060, 40.7128], [-73.9352, 40.7306], "walking"))
    assert route["route"] == "Maps API not configured"
    assert route["distance"] == pytest.approx(6.3, abs=0.2)
    assert route["estimated_time"] == round(route["distance"] / 5 * 60)


def test_live_route_is_reshaped(live_locator, fake_maps):
    fake_maps.route = {
        "legs": [{
            "distance": {"text": "5 km", "value": 5000},
            "duration": {"text": "12 mins", "value": 720},
            "start_address": "A",
            "end_address": "B",
            "steps": [{"html_instructions": "Turn <b>left</b>", "distance": {"value": 100}}],
        }],
        "overview_polyline": {"points": "abc"},
    }
    route = asyncio.run(live_locator.get_route([0, 0], [1, 1]))
    assert route["duration"]["value"] == 720
    assert route["steps"][0]["instruction"] == "Turn left"
    assert route["overview_polyline"] == "abc"


def test_live_route_not_found(live_locator, fake_maps):
    fake_maps.route = None
    with pytest.raises(NotFoundException):
        asyncio.run(live_locator.get_route([0, 0], [1, 1]))


def test_live_travel_time_from_provider(live_locator, fake_maps):
    fake_maps.route = {"legs": [{"duration": {"value": 600}}]}
    assert asyncio.run(live_locator.estimated_travel_time([0, 0], [1, 1])) == 10


def test_place_details_need_maps_key(demo_locator):
    with pytest.raises(UpstreamProviderException):
        asyncio.run(demo_locator.get_place_details("abc"))


def test_place_result_distance_from_search_point():
    place = {
        "place_id": "p1",
        "name": "Mercy",
        "vicinity": "1 Main St",
        "geometry": {"location": {"lat": NYC_LAT, "lng": NYC_LON}},
        "opening_hours": {"open_now": True},
    }
    result = place_to_result(place, NYC_LAT, NYC_LON)
    assert result["distance"] == 0
    assert result["open_now"] is True
    assert result["rating"] == 0
    assert result["photos"] == []


def test_strip_html():
    assert strip_html("Head <b>north</b> on <div>Main</div>") == "Head north on Main"
    assert strip_html(None) == ""


# ============== Capacity ==============

def test_capacity_is_derived_from_bed_counts(demo_locator, make_hospital, monkeypatch):
    hospital = make_hospital(bed_count=BedCount(total=200, available=50, icu=10, emergency=30, general=100))

    async def fake_get_hospital(hospital_id):
        return hospital

    monkeypatch.setattr(HospitalService, "get_hospital", fake_get_hospital)

    capacity = asyncio.run(demo_locator.get_hospital_capacity("64b7f0c2a1b2c3d4e5f60718"))
    assert capacity["emergency"] == {"current": 21, "total": 30, "wait_time": 30}
    assert capacity["icu"]["current"] == 8
    assert capacity["general"]["current"] == 60
    assert capacity["total_available"] == 50
    assert capacity["occupancy_rate"] == 75


def test_capacity_of_inactive_hospital_is_not_found(demo_locator, make_hospital, monkeypatch):
    async def fake_get_hospital(hospital_id):
        return make_hospital(is_active=False)

    monkeypatch.setattr(HospitalService, "get_hospital", fake_get_hospital)

    with pytest.raises(NotFoundException):
        asyncio.run(demo_locator.get_hospital_capacity("64b7f0c2a1b2c3d4e5f60718"))
    with pytest.raises(NotFoundException):
        asyncio.run(demo_locator.get_directions("Chicago", "64b7f0c2a1b2c3d4e5f60718"))


# ============== Emergency rooms from the places provider ==============

def test_demo_emergency_rooms_by_priority():
    hospitals = demo_emergency_hospitals(NYC_LAT, NYC_LON, 50)
    assert [h["priority"] for h in hospitals] == [95.3, 93.2, 89.5]
    assert hospitals[0]["location"]["latitude"] == pytest.approx(NYC_LAT + 0.008)
    assert all(h["emergency_services"] for h in hospitals)
    assert "offset" not in hospitals[0]


def test_demo_emergency_rooms_respect_radius():
    assert [h["id"] for h in demo_emergency_hospitals(NYC_LAT, NYC_LON, 2)] == [
        "demo_emergency_1",
        "demo_emergency_2",
    ]
    assert demo_emergency_hospitals(NYC_LAT, NYC_LON, 1) == []


def test_emergency_rooms_in_demo_mode(demo_locator):
    result = asyncio.run(demo_locator.find_emergency_places(NYC_LAT, NYC_LON))
    assert result["demo_mode"] is True
    assert result["message"] == DEMO_MODE_MESSAGE
    assert result["emergency_message"] == "For life-threatening emergencies, call 911 immediately"
    assert len(result["hospitals"]) == 3


def place_at(latitude, longitude, name="ER", rating=None, open_now=None):
    place = {
        "place_id": name,
        "name": name,
        "vicinity": "1 Main St",
        "geometry": {"location": {"lat": latitude, "lng": longitude}},
    }
    if rating is not None:
        place["rating"] = rating
    if open_now is not None:
        place["opening_hours"] = {"open_now": open_now}
    return place


def test_emergency_priority():
    # 100 - 0 km + 4 * 5 + 20 for being open
    assert emergency_priority(place_at(NYC_LAT, NYC_LON, rating=4, open_now=True), NYC_LAT, NYC_LON) == 140
    # missing rating counts as 3, no open bonus
    assert emergency_priority(place_at(NYC_LAT, NYC_LON), NYC_LAT, NYC_LON) == 115

    farther = emergency_priority(place_at(NYC_LAT + 0.1, NYC_LON, rating=4, open_now=True), NYC_LAT, NYC_LON)
    assert farther == pytest.approx(140 - 11.12, abs=0.01)


def test_live_emergency_rooms_ranked_and_capped(live_locator, fake_maps):
    fake_maps.places = [
        place_at(NYC_LAT, NYC_LON, name=f"ER {i}", rating=1 + i * 0.25)
        for i in range(12)
    ]

    result = asyncio.run(live_locator.find_emergency_places(NYC_LAT, NYC_LON, 50))

    assert fake_maps.calls == [("nearby_places", NYC_LAT, NYC_LON, 50000, EMERGENCY_PLACES_KEYWORD)]
    assert len(result["hospitals"]) == 10
    assert result["hospitals"][0]["name"] == "ER 11"
    assert result["hospitals"][0]["emergency_services"] is True
    assert [h["priority"] for h in result["hospitals"]] == sorted(
        (h["priority"] for h in result["hospitals"]), reverse=True
    )
    assert "demo_mode" not in result


# ============== Service searches ==============

NYC = {"latitude": NYC_LAT, "longitude": NYC_LON}
BROOKLYN = GeoPoint(coordinates=[-73.9442, 40.6782])


def test_nearby_search_skips_inactive_and_out_of_network(demo_locator, make_hospital, stub_find):
    near = make_hospital(name="Near", accepted_insurance=[InsurancePlan(provider="Aetna Health")])
    farther = make_hospital(
        name="Farther",
        location=BROOKLYN,
        accepted_insurance=[InsurancePlan(provider="AETNA")],
    )
    closed = make_hospital(name="Closed", is_active=False, accepted_insurance=[InsurancePlan(provider="Aetna")])
    out_of_network = make_hospital(
        name="Out of network",
        accepted_insurance=[InsurancePlan(provider="Aetna", is_in_network=False)],
    )
    queries = stub_find(Hospital, [farther, closed, near, out_of_network])

    result = asyncio.run(demo_locator.find_nearby_hospitals(NYC, radius=25, insurance="aetna"))

    assert [h["name"] for h in result["hospitals"]] == ["Near", "Farther"]
    assert result["total_found"] == 2
    assert result["hospitals"][0]["distance"] == 0
    assert result["hospitals"][1]["estimated_travel_time"] > 0
    assert queries[0]["location"]["$near"]["$maxDistance"] == 25000
    assert queries[0]["accepted_insurance.provider"] == {"$regex": "aetna", "$options": "i"}


def emergency_ready(make_hospital, name, wait, icu=2, service="Trauma Center", **overrides):
    return make_hospital(
        name=name,
        emergency_services=[EmergencyService(service=service, average_wait_time=wait)],
        bed_count=BedCount(icu=icu),
        **overrides,
    )


def test_critical_emergency_search_needs_icu_beds(demo_locator, make_hospital, stub_find):
    queries = stub_find(Hospital, [
        emergency_ready(make_hospital, "No ICU", wait=5, icu=0),
        emergency_ready(make_hospital, "Closed", wait=1, icu=5, is_active=False),
        emergency_ready(make_hospital, "Ready", wait=25, icu=3),
    ])

    result = asyncio.run(demo_locator.find_emergency_hospitals(NYC, urgency_level="critical"))

    assert [h["name"] for h in result["hospitals"]] == ["Ready"]
    assert result["recommended_hospital"]["name"] == "Ready"
    assert result["recommended_hospital"]["current_wait_time"] == 25
    assert result["recommended_hospital"]["emergency_capacity"] == 1
    assert result["urgency_level"] == "critical"
    assert queries[0]["bed_count.icu"] == {"$gt": 0}


def test_emergency_search_shortest_wait_first_capped(demo_locator, make_hospital, stub_find):
    stub_find(Hospital, [
        emergency_ready(make_hospital, f"ER {wait}", wait=wait, service="General Emergency")
        for wait in range(12, 0, -1)
    ])

    result = asyncio.run(demo_locator.find_emergency_hospitals(NYC))

    assert len(result["hospitals"]) == 10
    assert [h["current_wait_time"] for h in result["hospitals"]] == list(range(1, 11))
    assert result["recommended_hospital"]["name"] == "ER 1"


def test_emergency_search_with_no_results(demo_locator, stub_find):
    stub_find(Hospital, [])
    result = asyncio.run(demo_locator.find_emergency_hospitals(NYC))
    assert result["hospitals"] == []
    assert result["recommended_hospital"] is None
    assert result["emergency_message"] == "For life-threatening emergencies, call 911 immediately"


def test_specialists_merged_with_hospital_and_sorted(demo_locator, make_hospital, make_doctor, stub_find):
    near = make_hospital(name="Near")
    near.id = PydanticObjectId("64b7f0c2a1b2c3d4e5f60701")
    farther = make_hospital(name="Farther", location=BROOKLYN)
    farther.id = PydanticObjectId("64b7f0c2a1b2c3d4e5f60702")
    remote = make_hospital(name="Remote", location=GeoPoint(coordinates=[-87.6298, 41.8781]))
    remote.id = PydanticObjectId("64b7f0c2a1b2c3d4e5f60703")
    closed = make_hospital(name="Closed", is_active=False)
    closed.id = PydanticObjectId("64b7f0c2a1b2c3d4e5f60704")

    doctors_by_hospital = {
        near.id: [make_doctor(first_name="Ann", average_rating=4.5)],
        farther.id: [
            make_doctor(first_name="Bea", average_rating=4.8),
            make_doctor(first_name="Cal", average_rating=4.5),
        ],
    }
    stub_find(Hospital, [near, farther, remote, closed])
    doctor_queries = stub_find(Doctor, lambda query: doctors_by_hospital[query["hospital"]])

    result = asyncio.run(demo_locator.find_specialists(NYC, "Cardiology", radius=50, limit=2))

    assert [s["full_name"] for s in result["specialists"]] == ["Dr. Bea Chen", "Dr. Ann Chen"]
    assert result["specialists"][0]["hospital"]["name"] == "Farther"
    assert result["specialists"][1]["distance"] == 0
    # counted before the limit is applied
    assert result["total_found"] == 3
    assert [q["hospital"] for q in doctor_queries] == [near.id, farther.id]
    assert all(q["accepting_new_patients"] is True for q in doctor_queries)


def test_name_search_is_escaped_and_active_only(demo_locator, make_hospital, stub_find):
    queries = stub_find(Hospital, [
        make_hospital(name="St.Mary"),
        make_hospital(name="Old St.Mary", is_active=False),
    ])

    result = asyncio.run(demo_locator.search_hospitals_by_name("St.Mary"))

    assert [h["name"] for h in result["hospitals"]] == ["St.Mary"]
    assert result["total_found"] == 1
    assert queries[0]["$or"][0]["name"] == {"$regex": re.escape("St.Mary"), "$options": "i"}
    assert "location" not in queries[0]


def test_name_search_near_a_location(demo_locator, stub_find):
    queries = stub_find(Hospital, [])
    asyncio.run(demo_locator.search_hospitals_by_name("Mercy", location="Chicago", radius=10))
    near = queries[0]["location"]["$near"]
    assert near["$geometry"]["coordinates"] == [-87.6298, 41.8781]
    assert near["$maxDistance"] == 10000
