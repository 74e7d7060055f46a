# Hospital Directory Feature - Schemas

from typing import Optional, List, Literal
from pydantic import BaseModel, Field


# ============== Location ==============

class LocationQuery(BaseModel):
    """
    Where to search from. Tried in order: coordinates, latitude/longitude,
    address, zip code.
    """
    coordinates: Optional[List[float]] = Field(
        None, min_length=2, max_length=2, description="[longitude, latitude]"
    )
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = None
    zip_code: Optional[str] = None


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def as_lonlat(self) -> List[float]:
        return [self.longitude, self.latitude]


TravelMode = Literal["driving", "walking", "bicycling", "transit"]


# ============== Searches ==============

class NearbyPlacesRequest(Coordinates):
    """Request schema for the nearby-hospital lookup."""
    radius: float = Field(25, gt=0, description="Search radius in kilometers")


class LocateHospitalsRequest(LocationQuery):
    """Request schema for the directory geospatial search."""
    radius: float = Field(25, gt=0, description="Search radius in kilometers")
    limit: int = Field(20, ge=1, le=100)
    specialty: Optional[str] = None
    emergency: bool = False
    insurance: Optional[str] = None
    type: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    available_beds: bool = False


class EmergencySearchRequest(LocationQuery):
    urgency_level: Literal["standard", "urgent", "critical"] = "standard"


class EmergencyPlacesRequest(Coordinates):
    """Request schema for the emergency-room lookup."""
    radius: float = Field(50, gt=0, description="Search radius in kilometers")


# ============== Directions ==============

class DirectionsRequest(BaseModel):
    origin: Coordinates
    destination: Coordinates
    mode: TravelMode = "driving"


class HospitalDirectionsRequest(BaseModel):
    origin: LocationQuery
    mode: TravelMode = "driving"

