from typing import Dict, Iterable

from app.geo.client import GeoProviderError, GoogleMapsClient


def compute_midpoint(points: Iterable[Dict]) -> Dict[str, float]:
    """Moyenne arithmétique des coordonnées."""
    points = list(points)
    if not points:
        raise ValueError("At least one point required")
    lat = sum(p["lat"] for p in points) / len(points)
    lng = sum(p["lng"] for p in points) / len(points)
    return {"lat": lat, "lng": lng}


def midpoint_of_addresses(client: GoogleMapsClient, addresses: Iterable[str]) -> Dict[str, float]:
    locations = []
    for address in addresses:
        location = client.geocode(address)
        if location is None:
            raise GeoProviderError(f"Address not found: {address}")
        locations.append(location)
    return compute_midpoint(locations)
