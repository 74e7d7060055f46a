# Hospital Directory Feature - Locator Service

import re
from datetime import datetime
from typing import Optional, List, Union

from beanie import PydanticObjectId

from app.config import Settings
from app.core.geo import distance_km, estimate_travel_minutes, haversine_km
from app.core.logging import logger
from app.features.doctors.models import Doctor
from app.features.doctors.service import DoctorService
from app.features.hospitals.models import Hospital
from app.features.hospitals.schemas import LocationQuery
from app.features.hospitals.service import HospitalService
from app.services.maps_gateway import MapsGateway
from app.shared.exceptions import (
    LocationUnresolvedException,
    NotFoundException,
    UpstreamProviderException,
)


EMERGENCY_RADIUS_KM = 50
EMERGENCY_RESULT_LIMIT = 10
EMERGENCY_PLACES_KEYWORD = "emergency room ER trauma center"
CRITICAL_EMERGENCY_SERVICES = ["Trauma Center", "Critical Care", "Cardiac Emergency"]
EMERGENCY_MESSAGE = "For life-threatening emergencies, call 911 immediately"
DEMO_MODE_MESSAGE = "Demo mode: set GOOGLE_MAPS_API_KEY for live data"

# Fallback geocoding table used when no maps key is configured, [lon, lat]
DEMO_CITY_COORDINATES = {
    "new york": [-74.0060, 40.7128],
    "los angeles": [-118.2437, 34.0522],
    "chicago": [-87.6298, 41.8781],
    "houston": [-95.3698, 29.7604],
    "philadelphia": [-75.1652, 39.9526],
}
DEFAULT_COORDINATES = DEMO_CITY_COORDINATES["new york"]

# Demo nearby hospitals; location offsets are relative to the search point
DEMO_HOSPITALS = [
    {
        "id": "demo_hospital_1",
        "name": "General Medical Center",
        "address": "123 Healthcare Ave, Medical District",
        "rating": 4.2,
        "user_ratings_total": 234,
        "offset": (0.01, 0.01),
        "open_now": True,
        "distance": 1.2,
    },
    {
        "id": "demo_hospital_2",
        "name": "Regional Hospital",
        "address": "456 Wellness Blvd, Health Center",
        "rating": 3.9,
        "user_ratings_total": 189,
        "offset": (-0.02, 0.015),
        "open_now": True,
        "distance": 2.1,
    },
    {
        "id": "demo_hospital_3",
        "name": "Community Health Center",
        "address": "789 Care Street, Community Area",
        "rating": 4.5,
        "user_ratings_total": 156,
        "offset": (0.025, -0.01),
        "open_now": False,
        "distance": 3.4,
    },
    {
        "id": "demo_hospital_4",
        "name": "Metro Medical Complex",
        "address": "321 Doctor Drive, Metro Center",
        "rating": 4.0,
        "user_ratings_total": 298,
        "offset": (-0.015, -0.02),
        "open_now": True,
        "distance": 2.8,
    },
]

# Demo emergency departments, already in priority order
DEMO_EMERGENCY_HOSPITALS = [
    {
        "id": "demo_emergency_1",
        "name": "Emergency Medical Center",
        "address": "100 Emergency Way, Medical District",
        "rating": 4.3,
        "offset": (0.008, 0.012),
        "open_now": True,
        "distance": 1.1,
        "emergency_services": True,
        "priority": 95.3,
    },
    {
        "id": "demo_emergency_2",
        "name": "Trauma Center Regional",
        "address": "200 Urgent Care Lane, Health District",
        "rating": 4.6,
        "offset": (-0.01, 0.018),
        "open_now": True,
        "distance": 1.8,
        "emergency_services": True,
        "priority": 93.2,
    },
    {
        "id": "demo_emergency_3",
        "name": "24/7 Emergency Hospital",
        "address": "300 Critical Care Ave, Emergency Zone",
        "rating": 4.1,
        "offset": (0.02, -0.015),
        "open_now": True,
        "distance": 2.5,
        "emergency_services": True,
        "priority": 89.5,
    },
]


def near_clause(coordinates: List[float], radius_km: float) -> dict:
    """$near on the GeoJSON location; the store takes meters."""
    return {
        "$near": {
            "$geometry": {"type": "Point", "coordinates": coordinates},
            "$maxDistance": radius_km * 1000,
        }
    }


def contains_ignore_case(text: str) -> dict:
    return {"$regex": re.escape(text), "$options": "i"}


def build_nearby_query(
    coordinates: List[float],
    radius_km: float,
    specialty: Optional[str] = None,
    emergency: bool = False,
    insurance: Optional[str] = None,
    hospital_type: Optional[str] = None,
    rating: Optional[float] = None,
    available_beds: bool = False,
) -> dict:
    """Mongo filter for the directory geospatial search."""
    query = {
        "location": near_clause(coordinates, radius_km),
        "is_active": True,
        "is_verified": True,
    }
    if specialty:
        query["specialty_services"] = {"$in": [specialty]}
    if emergency:
        query["operating_hours.emergency.is_24_hours"] = True
    if insurance:
        query["accepted_insurance.provider"] = contains_ignore_case(insurance)
        query["accepted_insurance.is_in_network"] = True
    if hospital_type:
        query["type"] = hospital_type
    if rating:
        query["quality_ratings.overall"] = {"$gte": rating}
    if available_beds:
        query["bed_count.available"] = {"$gt": 0}
    return query


def build_emergency_query(coordinates: List[float], urgency_level: str = "standard") -> dict:
    query = {
        "location": near_clause(coordinates, EMERGENCY_RADIUS_KM),
        "is_active": True,
        "operating_hours.emergency.is_24_hours": True,
        "emergency_services.is_available": True,
    }
    if urgency_level == "critical":
        query["emergency_services.service"] = {"$in": CRITICAL_EMERGENCY_SERVICES}
        query["bed_count.icu"] = {"$gt": 0}
    return query


def meets_emergency_criteria(hospital: Hospital, urgency_level: str = "standard") -> bool:
    """Re-check the emergency filter on a loaded hospital."""
    if not hospital.is_active or not hospital.operating_hours.emergency.is_24_hours:
        return False
    if not any(s.is_available for s in hospital.emergency_services):
        return False
    if urgency_level == "critical":
        if not hospital.bed_count.icu:
            return False
        return any(s.service in CRITICAL_EMERGENCY_SERVICES for s in hospital.emergency_services)
    return True


def order_by_wait_time(results: List[dict], limit: int = EMERGENCY_RESULT_LIMIT) -> List[dict]:
    """Shortest current wait first, unknown waits last, capped at `limit`."""
    ranked = sorted(
        results,
        key=lambda r: (r.get("current_wait_time") is None, r.get("current_wait_time") or 0),
    )
    return ranked[:limit]


def sort_specialists(specialists: List[dict]) -> List[dict]:
    """Highest rating first; ties broken by the nearest hospital."""
    return sorted(
        specialists,
        key=lambda s: (-(s.get("average_rating") or 0), s.get("distance") or 0),
    )


def _demo_within(entries: List[dict], latitude: float, longitude: float, radius_km: float) -> List[dict]:
    """Demo entries within `radius_km`, located relative to the search point."""
    hospitals = []
    for demo in entries:
        if demo["distance"] > radius_km:
            continue
        lat_offset, lon_offset = demo["offset"]
        hospital = {key: value for key, value in demo.items() if key != "offset"}
        hospital["location"] = {
            "latitude": latitude + lat_offset,
            "longitude": longitude + lon_offset,
        }
        hospitals.append(hospital)
    return hospitals


def demo_nearby_hospitals(latitude: float, longitude: float, radius_km: float) -> List[dict]:
    """Fixed demo list within `radius_km`, nearest first."""
    hospitals = _demo_within(DEMO_HOSPITALS, latitude, longitude, radius_km)
    return sorted(hospitals, key=lambda h: h["distance"])


def demo_emergency_hospitals(latitude: float, longitude: float, radius_km: float) -> List[dict]:
    """Fixed demo emergency departments within `radius_km`, highest priority first."""
    hospitals = _demo_within(DEMO_EMERGENCY_HOSPITALS, latitude, longitude, radius_km)
    return sorted(hospitals, key=lambda h: h["priority"], reverse=True)


def emergency_priority(place: dict, latitude: float, longitude: float) -> float:
    """
    Emergency ranking for a Places result: 100 minus the distance in km,
    plus 5 per rating point, plus 20 when open now. A missing rating counts as 3.
    """
    location = place["geometry"]["location"]
    distance = round(haversine_km(latitude, longitude, location["lat"], location["lng"]), 2)
    rating = place.get("rating") or 3
    is_open = bool((place.get("opening_hours") or {}).get("open_now"))

    priority = 100 - distance + rating * 5
    if is_open:
        priority += 20
    return round(priority, 2)


def strip_html(text: str) -> str:
    return re.sub(r"<[^>]*>", "", text or "")


def place_to_result(place: dict, latitude: float, longitude: float) -> dict:
    """Reshape a Places search result for the API."""
    location = place["geometry"]["location"]
    return {
        "id": place.get("place_id"),
        "name": place.get("name"),
        "address": place.get("vicinity"),
        "rating": place.get("rating") or 0,
        "user_ratings_total": place.get("user_ratings_total") or 0,
        "location": {"latitude": location["lat"], "longitude": location["lng"]},
        "open_now": (place.get("opening_hours") or {}).get("open_now"),
        "types": place.get("types", []),
        "photos": [
            {"reference": p.get("photo_reference"), "width": p.get("width"), "height": p.get("height")}
            for p in place.get("photos", [])
        ],
        "distance": distance_km([longitude, latitude], [location["lng"], location["lat"]]),
    }


class LocatorService:
    """Answers "what is near X" questions over hospitals and doctors."""

    def __init__(self, settings: Settings, maps: Optional[MapsGateway] = None):
        self.settings = settings
        self.maps = maps

    @property
    def live_maps(self) -> bool:
        return self.settings.has_maps_credential and self.maps is not None

    # ============== Coordinates ==============

    async def resolve_coordinates(self, location: Union[LocationQuery, dict, str, None]) -> List[float]:
        """Turn a location descriptor into [longitude, latitude]."""
        if isinstance(location, str):
            return await self.geocode_address(location)
        if isinstance(location, dict):
            location = LocationQuery(**location)
        if location is None:
            raise LocationUnresolvedException()

        if location.coordinates:
            return list(location.coordinates)
        if location.latitude is not None and location.longitude is not None:
            return [location.longitude, location.latitude]
        if location.address:
            return await self.geocode_address(location.address)
        if location.zip_code:
            return await self.geocode_address(location.zip_code)

        raise LocationUnresolvedException()

    async def geocode_address(self, address: str) -> List[float]:
        if not address or not address.strip():
            raise LocationUnresolvedException()

        if not self.live_maps:
            normalized = address.lower()
            for city, coordinates in DEMO_CITY_COORDINATES.items():
                if city in normalized:
                    return list(coordinates)
            return list(DEFAULT_COORDINATES)

        coordinates = await self.maps.geocode(address)
        if coordinates is None:
            raise LocationUnresolvedException(f"Address not found: {address}")
        return coordinates

    # ============== Travel estimates ==============

    async def estimated_travel_time(
        self,
        origin: List[float],
        destination: List[float],
        mode: str = "driving",
    ) -> Optional[float]:
        """Minutes between two points; provider figure when available."""
        if not self.live_maps:
            return estimate_travel_minutes(distance_km(origin, destination), mode)

        try:
            route = await self.maps.directions(origin, destination, mode)
        except UpstreamProviderException:
            return None
        if not route:
            return None
        return route["legs"][0]["duration"]["value"] / 60

    async def _with_distance(self, hospital: Hospital, origin: List[float], mode: str = "driving") -> dict:
        result = HospitalService.hospital_to_response(hospital)
        result["distance"] = distance_km(origin, hospital.location.coordinates)
        result["estimated_travel_time"] = await self.estimated_travel_time(
            origin, hospital.location.coordinates, mode
        )
        result["current_wait_time"] = hospital.current_wait_time()
        result["available_beds"] = hospital.available_beds("all")
        return result

    # ============== Searches ==============

    async def find_nearby_hospitals(
        self,
        location: Union[LocationQuery, dict, str],
        radius: float = 25,
        limit: int = 20,
        specialty: Optional[str] = None,
        emergency: bool = False,
        insurance: Optional[str] = None,
        hospital_type: Optional[str] = None,
        rating: Optional[float] = None,
        available_beds: bool = False,
    ) -> dict:
        """Directory hospitals within `radius` km of the location, nearest first."""
        coordinates = await self.resolve_coordinates(location)
        query = build_nearby_query(
            coordinates,
            radius,
            specialty=specialty,
            emergency=emergency,
            insurance=insurance,
            hospital_type=hospital_type,
            rating=rating,
            available_beds=available_beds,
        )

        hospitals = await Hospital.find(query).limit(limit).to_list()

        results = []
        for hospital in hospitals:
            if not hospital.is_active:
                continue
            if insurance and not hospital.accepts_insurance(insurance):
                continue
            results.append(await self._with_distance(hospital, coordinates))
        results.sort(key=lambda h: h["distance"])

        logger.info(f"Found {len(results)} hospitals within {radius} km of {coordinates}")
        return {
            "hospitals": results,
            "search_location": {"coordinates": coordinates, "radius": radius},
            "total_found": len(results),
        }

    async def find_nearby_places(self, latitude: float, longitude: float, radius_km: float = 25) -> dict:
        """Nearby hospitals from the places provider, or demo data without a key."""
        search_location = {"latitude": latitude, "longitude": longitude}

        if not self.live_maps:
            logger.warning("Maps key not configured - serving demo nearby hospitals")
            hospitals = demo_nearby_hospitals(latitude, longitude, radius_km)
            return {
                "hospitals": hospitals,
                "search_location": search_location,
                "radius": radius_km,
                "total_found": len(hospitals),
                "demo_mode": True,
                "message": DEMO_MODE_MESSAGE,
                "generated_at": datetime.utcnow(),
            }

        places = await self.maps.nearby_places(
            latitude,
            longitude,
            int(radius_km * 1000),
            keyword="hospital medical center emergency",
        )
        hospitals = sorted(
            (place_to_result(place, latitude, longitude) for place in places),
            key=lambda h: h["distance"],
        )
        return {
            "hospitals": hospitals,
            "search_location": search_location,
            "radius": radius_km,
            "total_found": len(hospitals),
            "generated_at": datetime.utcnow(),
        }

    async def find_emergency_places(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = EMERGENCY_RADIUS_KM,
    ) -> dict:
        """Emergency rooms from the places provider by priority, or demo data without a key."""
        search_location = {"latitude": latitude, "longitude": longitude}

        if not self.live_maps:
            logger.warning("Maps key not configured - serving demo emergency hospitals")
            return {
                "hospitals": demo_emergency_hospitals(latitude, longitude, radius_km),
                "search_location": search_location,
                "emergency_message": EMERGENCY_MESSAGE,
                "demo_mode": True,
                "message": DEMO_MODE_MESSAGE,
                "generated_at": datetime.utcnow(),
            }

        places = await self.maps.nearby_places(
            latitude,
            longitude,
            int(radius_km * 1000),
            keyword=EMERGENCY_PLACES_KEYWORD,
        )
        hospitals = []
        for place in places:
            result = place_to_result(place, latitude, longitude)
            result["emergency_services"] = True
            result["priority"] = emergency_priority(place, latitude, longitude)
            hospitals.append(result)
        hospitals.sort(key=lambda h: h["priority"], reverse=True)

        return {
            "hospitals": hospitals[:EMERGENCY_RESULT_LIMIT],
            "search_location": search_location,
            "emergency_message": EMERGENCY_MESSAGE,
            "generated_at": datetime.utcnow(),
        }

    async def find_emergency_hospitals(
        self,
        location: Union[LocationQuery, dict, str],
        urgency_level: str = "standard",
    ) -> dict:
        """Round-the-clock emergency departments within 50 km, shortest wait first."""
        coordinates = await self.resolve_coordinates(location)
        query = build_emergency_query(coordinates, urgency_level)

        hospitals = await Hospital.find(query).to_list()

        results = []
        for hospital in hospitals:
            if not meets_emergency_criteria(hospital, urgency_level):
                continue
            result = await self._with_distance(hospital, coordinates, mode="driving")
            result["emergency_capacity"] = sum(
                1 for service in hospital.emergency_services if service.is_available
            )
            results.append(result)

        results = order_by_wait_time(results)

        logger.info(f"Emergency search ({urgency_level}) found {len(results)} hospitals near {coordinates}")
        return {
            "hospitals": results,
            "urgency_level": urgency_level,
            "recommended_hospital": results[0] if results else None,
            "emergency_message": EMERGENCY_MESSAGE,
        }

    async def find_specialists(
        self,
        location: Union[LocationQuery, dict, str],
        specialty: str,
        radius: float = 50,
        limit: int = 15,
        insurance: Optional[str] = None,
        language: Optional[str] = None,
        rating: Optional[float] = 4.0,
    ) -> dict:
        """Doctors with `specialty` at hospitals within `radius` km."""
        coordinates = await self.resolve_coordinates(location)

        candidates = await Hospital.find({
            "specialty_services": {"$in": [specialty]},
            "is_active": True,
            "is_verified": True,
        }).to_list()

        specialists = []
        for hospital in candidates:
            if not hospital.is_active:
                continue
            distance = distance_km(coordinates, hospital.location.coordinates)
            if distance > radius:
                continue

            query = DoctorService.build_specialist_query(
                hospital.id, specialty, insurance=insurance, language=language, rating=rating
            )
            doctors = await Doctor.find(query).to_list()
            for doctor in doctors:
                result = DoctorService.doctor_to_response(doctor)
                result["hospital"] = {
                    "id": str(hospital.id),
                    "name": hospital.name,
                    "address": hospital.address.model_dump(),
                    "phone": hospital.phone,
                }
                result["distance"] = distance
                specialists.append(result)

        specialists = sort_specialists(specialists)

        return {
            "specialists": specialists[:limit],
            "specialty": specialty,
            "search_location": coordinates,
            "total_found": len(specialists),
        }

    async def search_hospitals_by_name(
        self,
        query: str,
        location: Union[LocationQuery, dict, str, None] = None,
        radius: float = 100,
    ) -> dict:
        criteria = {
            "$or": [
                {"name": contains_ignore_case(query)},
                {"short_name": contains_ignore_case(query)},
            ],
            "is_active": True,
        }
        if location:
            coordinates = await self.resolve_coordinates(location)
            criteria["location"] = near_clause(coordinates, radius)

        hospitals = [h for h in await Hospital.find(criteria).limit(20).to_list() if h.is_active]

        return {
            "hospitals": [HospitalService.hospital_to_response(h) for h in hospitals],
            "query": query,
            "total_found": len(hospitals),
        }

    # ============== Single hospital ==============

    async def _active_hospital(self, hospital_id: str) -> Hospital:
        hospital = await HospitalService.get_hospital(hospital_id)
        if not hospital.is_active:
            raise NotFoundException("Hospital not found")
        return hospital

    async def get_hospital_capacity(self, hospital_id: str) -> dict:
        """Approximate occupancy from bed counts; no live feed exists yet."""
        hospital = await self._active_hospital(hospital_id)
        beds = hospital.bed_count
        wait_time = hospital.current_wait_time()

        return {
            "emergency": {
                "current": int((beds.emergency or 0) * 0.7),
                "total": beds.emergency or 0,
                "wait_time": wait_time if wait_time is not None else 30,
            },
            "icu": {
                "current": int((beds.icu or 0) * 0.8),
                "total": beds.icu or 0,
                "wait_time": None,
            },
            "general": {
                "current": int((beds.general or 0) * 0.6),
                "total": beds.general or 0,
                "wait_time": None,
            },
            "total_available": beds.available or 0,
            "occupancy_rate": hospital.occupancy_rate,
            "last_updated": datetime.utcnow(),
        }

    async def get_route(self, origin: List[float], destination: List[float], mode: str = "driving") -> dict:
        """Turn-by-turn route, or a straight-line estimate without a maps key."""
        if not self.live_maps:
            distance = distance_km(origin, destination)
            return {
                "distance": distance,
                "estimated_time": estimate_travel_minutes(distance, mode),
                "route": "Maps API not configured",
            }

        route = await self.maps.directions(origin, destination, mode)
        if not route:
            raise NotFoundException("No route found")

        leg = route["legs"][0]
        return {
            "distance": leg["distance"],
            "duration": leg["duration"],
            "start_address": leg.get("start_address"),
            "end_address": leg.get("end_address"),
            "steps": [
                {
                    "instruction": strip_html(step.get("html_instructions")),
                    "distance": step.get("distance"),
                    "duration": step.get("duration"),
                    "start_location": step.get("start_location"),
                    "end_location": step.get("end_location"),
                }
                for step in leg.get("steps", [])
            ],
            "overview_polyline": (route.get("overview_polyline") or {}).get("points"),
        }

    async def get_directions(
        self,
        origin: Union[LocationQuery, dict, str],
        hospital_id: str,
        mode: str = "driving",
    ) -> dict:
        hospital = await self._active_hospital(hospital_id)
        origin_coordinates = await self.resolve_coordinates(origin)
        return await self.get_route(origin_coordinates, hospital.location.coordinates, mode)

    async def get_place_details(self, place_id: str) -> dict:
        if not self.live_maps:
            raise UpstreamProviderException("Maps provider is not configured")

        place = await self.maps.place_details(place_id)
        if not place:
            raise NotFoundException("Place not found")

        location = place["geometry"]["location"]
        opening_hours = place.get("opening_hours")
        return {
            "id": place_id,
            "name": place.get("name"),
            "address": place.get("formatted_address"),
            "phone": place.get("formatted_phone_number"),
            "website": place.get("website"),
            "rating": place.get("rating") or 0,
            "user_ratings_total": place.get("user_ratings_total") or 0,
            "location": {"latitude": location["lat"], "longitude": location["lng"]},
            "opening_hours": {
                "open_now": opening_hours.get("open_now"),
                "weekday_text": opening_hours.get("weekday_text"),
            } if opening_hours else None,
            "reviews": [
                {
                    "author": review.get("author_name"),
                    "rating": review.get("rating"),
                    "text": review.get("text"),
                    "time": review.get("time"),
                }
                for review in (place.get("reviews") or [])[:5]
            ],
            "photos": [
                {"reference": p.get("photo_reference"), "width": p.get("width"), "height": p.get("height")}
                for p in (place.get("photos") or [])[:5]
            ],
        }
