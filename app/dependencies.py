"""
Shared dependencies across the application.

Provider clients are built once per process from the module-level settings
and handed to the services; tests replace these providers through
`app.dependency_overrides`.
"""

from functools import lru_cache
from fastapi import Depends
from app.config import Settings, settings
from app.features.ai.service import AIService
from app.features.hospitals.locator import LocatorService
from app.services.llm_gateway import LLMGateway
from app.services.maps_gateway import MapsGateway


def get_settings() -> Settings:
    return settings


@lru_cache
def get_llm_gateway() -> LLMGateway:
    return LLMGateway(
        settings.OPENAI_API_KEY if settings.has_openai_credential else None,
        model=settings.OPENAI_MODEL,
        extraction_model=settings.OPENAI_EXTRACTION_MODEL,
    )


@lru_cache
def get_maps_gateway() -> MapsGateway:
    return MapsGateway(settings.GOOGLE_MAPS_API_KEY)


def get_locator_service(
    config: Settings = Depends(get_settings),
    maps: MapsGateway = Depends(get_maps_gateway),
) -> LocatorService:
    return LocatorService(config, maps)


def get_ai_service(
    config: Settings = Depends(get_settings),
    llm: LLMGateway = Depends(get_llm_gateway),
) -> AIService:
    return AIService(config, llm)
