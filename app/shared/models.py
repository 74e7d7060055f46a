from beanie import Document, Insert, Replace, Save, before_event
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List


class TimestampMixin:
    """Mixin for adding timestamp fields to documents."""

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def update_timestamp(self):
        """Update the updated_at timestamp."""
        self.updated_at = datetime.utcnow()


class BaseDocument(Document, TimestampMixin):
    """Base document class with timestamps refreshed on every write."""

    @before_event(Insert, Replace, Save)
    def touch(self):
        self.update_timestamp()

    class Settings:
        use_state_management = True


class Address(BaseModel):
    """Postal address embedded in patients, doctors and hospitals."""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "US"


class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are [longitude, latitude]."""
    type: str = "Point"
    coordinates: List[float]

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]
