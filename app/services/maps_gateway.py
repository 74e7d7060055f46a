"""Google Maps geocoding, directions and places gateway."""

from typing import List, Optional
import httpx

from app.core.logging import get_logger
from app.shared.exceptions import UpstreamProviderException

logger = get_logger("maps")


MAPS_BASE_URL = "https://maps.googleapis.com/maps/api"


class MapsGateway:
    """
    Stateless request/response client for the Google Maps JSON APIs.

    Coordinates handed to and returned from this class are [longitude, latitude],
    matching the GeoJSON layout stored on hospitals.
    """

    def __init__(self, api_key: Optional[str], client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(base_url=MAPS_BASE_URL, timeout=10.0)

    async def _get(self, path: str, params: dict) -> dict:
        """Issue a GET and return the decoded body, checking the vendor status."""
        try:
            response = await self.client.get(path, params={**params, "key": self.api_key})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Maps request to {path} failed: {e}")
            raise UpstreamProviderException("Maps provider request failed")

        status = payload.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.error(f"Maps request to {path} returned status {status}: {payload.get('error_message')}")
            raise UpstreamProviderException("Maps provider request failed")
        return payload

    async def geocode(self, address: str) -> Optional[List[float]]:
        """Geocode an address; None when the provider finds nothing."""
        payload = await self._get("/geocode/json", {"address": address})
        results = payload.get("results") or []
        if not results:
            return None
        location = results[0]["geometry"]["location"]
        return [location["lng"], location["lat"]]

    async def directions(self, origin: List[float], destination: List[float], mode: str = "driving") -> Optional[dict]:
        """First route between two points, or None when no route exists."""
        payload = await self._get("/directions/json", {
            "origin": f"{origin[1]},{origin[0]}",
            "destination": f"{destination[1]},{destination[0]}",
            "mode": mode,
        })
        routes = payload.get("routes") or []
        return routes[0] if routes else None

    async def nearby_places(
        self,
        latitude: float,
        longitude: float,
        radius_m: int,
        keyword: str,
        place_type: str = "hospital",
    ) -> List[dict]:
        payload = await self._get("/place/nearbysearch/json", {
            "location": f"{latitude},{longitude}",
            "radius": radius_m,
            "type": place_type,
            "keyword": keyword,
        })
        return payload.get("results") or []

    async def place_details(self, place_id: str) -> Optional[dict]:
        payload = await self._get("/place/details/json", {
            "place_id": place_id,
            "fields": "name,formatted_address,formatted_phone_number,website,opening_hours,"
                      "rating,user_ratings_total,reviews,photos,geometry",
        })
        return payload.get("result")

    async def aclose(self):
        await self.client.aclose()
