"""
Shared fixtures. Nothing here talks to MongoDB or a real provider: the app
is driven without its lifespan and services are swapped through
dependency overrides.
"""

from datetime import date
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.dependencies import get_ai_service, get_locator_service
from app.features.ai.service import AIService
from app.features.doctors.models import Doctor
from app.features.hospitals.locator import LocatorService
from app.features.hospitals.models import Hospital
from app.features.patients.models import Patient
from app.main import app
from app.shared.exceptions import UpstreamProviderException
from app.shared.models import Address, GeoPoint


class FakeLLM:
    """Stands in for LLMGateway; replays canned replies in order."""

    def __init__(self, replies: Optional[List[str]] = None, fail: bool = False):
        self.replies = list(replies or [])
        self.fail = fail
        self.calls = []

    async def complete(self, messages, max_tokens=800, temperature=0.3, model=None):
        self.calls.append({
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "model": model,
        })
        if self.fail or not self.replies:
            raise UpstreamProviderException("Language model request failed")
        return self.replies.pop(0)


class FakeMaps:
    """Stands in for MapsGateway."""

    def __init__(self, geocode_result=None, route=None, places=None):
        self.geocode_result = geocode_result
        self.route = route
        self.places = list(places or [])
        self.calls = []

    async def geocode(self, address):
        self.calls.append(("geocode", address))
        return self.geocode_result

    async def directions(self, origin, destination, mode="driving"):
        self.calls.append(("directions", origin, destination, mode))
        return self.route

    async def nearby_places(self, latitude, longitude, radius_m, keyword, place_type="hospital"):
        self.calls.append(("nearby_places", latitude, longitude, radius_m, keyword))
        return list(self.places)

    async def place_details(self, place_id):
        self.calls.append(("place_details", place_id))
        return None


class FakeCursor:
    """Stands in for a query cursor; only the chained calls the services use."""

    def __init__(self, items):
        self.items = list(items)

    def sort(self, *args, **kwargs):
        return self

    def skip(self, n):
        self.items = self.items[n:]
        return self

    def limit(self, n):
        self.items = self.items[:n]
        return self

    async def count(self):
        return len(self.items)

    async def to_list(self):
        return list(self.items)


@pytest.fixture
def demo_settings():
    """Settings without any provider credentials."""
    return Settings(_env_file=None, OPENAI_API_KEY=None, GOOGLE_MAPS_API_KEY=None)


@pytest.fixture
def live_settings():
    """Settings whose credentials pass the demo-mode checks."""
    return Settings(_env_file=None, OPENAI_API_KEY="sk-test-key", GOOGLE_MAPS_API_KEY="AIza-test-key")


@pytest.fixture
def demo_locator(demo_settings):
    return LocatorService(demo_settings, FakeMaps())


@pytest.fixture
def demo_ai(demo_settings):
    return AIService(demo_settings, FakeLLM())


@pytest.fixture
def client(demo_settings, demo_locator, demo_ai):
    """
    TestClient over the real app, built without the context manager so the
    lifespan (and the database connection) never runs.
    """
    app.dependency_overrides[get_locator_service] = lambda: demo_locator
    app.dependency_overrides[get_ai_service] = lambda: demo_ai
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============== Record builders ==============

def _build_patient(**overrides) -> Patient:
    """Unsaved patient; model_construct skips the ODM's collection lookup."""
    fields = dict(
        first_name="Sarah",
        last_name="Johnson",
        email="sarah.johnson@example.com",
        phone="+15550100",
        date_of_birth=date(1985, 5, 15),
        gender="female",
        address=Address(city="New York", state="NY", zip_code="10001"),
    )
    fields.update(overrides)
    return Patient.model_construct(**fields)


def _build_doctor(**overrides) -> Doctor:
    fields = dict(
        first_name="Emily",
        last_name="Chen",
        email="emily.chen@example.com",
        phone="+15550200",
        license_number="LIC-001",
        specializations=["Cardiology"],
        years_of_experience=5,
        average_rating=0,
        is_active=True,
        is_verified=True,
    )
    fields.update(overrides)
    return Doctor.model_construct(**fields)


def _build_hospital(**overrides) -> Hospital:
    fields = dict(
        name="General Hospital",
        hospital_id="H-001",
        type="general",
        phone="+15550300",
        address=Address(street="1 Main St", city="New York", state="NY", zip_code="10001"),
        location=GeoPoint(coordinates=[-74.0060, 40.7128]),
        is_active=True,
        is_verified=True,
    )
    fields.update(overrides)
    return Hospital.model_construct(**fields)


@pytest.fixture
def make_patient():
    return _build_patient


@pytest.fixture
def make_doctor():
    return _build_doctor


@pytest.fixture
def make_hospital():
    return _build_hospital


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_maps():
    return FakeMaps()


@pytest.fixture
def live_ai(live_settings, fake_llm):
    """AIService that believes it has a real key; replies come from fake_llm."""
    return AIService(live_settings, fake_llm)


@pytest.fixture
def live_locator(live_settings, fake_maps):
    return LocatorService(live_settings, fake_maps)


@pytest.fixture
def stub_find(monkeypatch):
    """
    Replace Model.find with a canned cursor. `results` is a list, or a
    callable taking the query and returning one. `install` returns the
    list of queries that model saw.
    """
    def install(model, results):
        queries = []

        def fake_find(*args, **kwargs):
            query = args[0] if args else {}
            queries.append(query)
            return FakeCursor(results(query) if callable(results) else results)

        monkeypatch.setattr(model, "find", fake_find)
        return queries

    return install
