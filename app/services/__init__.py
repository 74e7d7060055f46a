"""Gateways to external providers."""

from app.services.llm_gateway import LLMGateway, extract_json_from_text
from app.services.maps_gateway import MapsGateway

__all__ = ["LLMGateway", "MapsGateway", "extract_json_from_text"]
