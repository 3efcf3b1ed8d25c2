import logging
from typing import Dict, List, Optional

import requests

from app.config import settings

logger = logging.getLogger(__name__)

AUTOCOMPLETE_URL = "https://maps.googleapis.com/maps/api/place/autocomplete/json"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
PLACES_NEARBY_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

REQUEST_TIMEOUT = 10  # secondes
OK_STATUSES = {"OK", "ZERO_RESULTS"}


class GeoProviderError(Exception):
    """Erreur renvoyée par le fournisseur de cartes (ou injoignable)."""


class MissingApiKeyError(GeoProviderError):
    pass


class GoogleMapsClient:
    """Client minimal des web services Google Maps (autocomplete, geocode, nearby)."""

    def __init__(self, api_key: Optional[str], session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.session = session or requests.Session()

    def _get(self, url: str, params: Dict) -> Dict:
        if not self.api_key:
            logger.error("GOOGLE_MAPS_API_KEY not set!")
            raise MissingApiKeyError("Server missing API key")

        try:
            response = self.session.get(url, params={**params, "key": self.api_key}, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Google Maps request failed: {e}")
            raise GeoProviderError(str(e))

        status = data.get("status")
        if status not in OK_STATUSES:
            logger.error(f"Google API error: {status} {data.get('error_message')}")
            raise GeoProviderError(data.get("error_message") or status or "API error")
        return data

    def autocomplete(self, text: str) -> List[Dict]:
        data = self._get(AUTOCOMPLETE_URL, {"input": text, "types": "address"})
        suggestions = []
        for prediction in data.get("predictions", []):
            formatting = prediction.get("structured_formatting") or {}
            suggestions.append({
                "place_id": prediction.get("place_id"),
                "description": prediction.get("description"),
                "main_text": formatting.get("main_text") or prediction.get("description"),
                "secondary_text": formatting.get("secondary_text") or "",
            })
        return suggestions

    def geocode(self, address: str) -> Optional[Dict]:
        """Retourne {lat, lng, address} pour le premier résultat, ou None."""
        data = self._get(GEOCODE_URL, {"address": address})
        results = data.get("results") or []
        if not results:
            return None
        first = results[0]
        location = first["geometry"]["location"]
        return {"lat": location["lat"], "lng": location["lng"], "address": first.get("formatted_address", address)}

    def places_nearby(self, lat: float, lng: float, place_type: str = "restaurant", radius: int = 5000) -> List[Dict]:
        data = self._get(PLACES_NEARBY_URL, {"location": f"{lat},{lng}", "radius": radius, "type": place_type})
        places = []
        for place in (data.get("results") or [])[:10]:
            location = place["geometry"]["location"]
            places.append({
                "name": place.get("name"),
                "address": place.get("vicinity", ""),
                "rating": place.get("rating"),
                "types": place.get("types", []),
                "place_id": place.get("place_id"),
                "lat": location["lat"],
                "lng": location["lng"],
            })
        return places


def get_maps_client() -> GoogleMapsClient:
    return GoogleMapsClient(settings.GOOGLE_MAPS_API_KEY)
