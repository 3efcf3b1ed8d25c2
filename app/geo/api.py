from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from app.geo.client import GeoProviderError, GoogleMapsClient, MissingApiKeyError, get_maps_client
from app.geo.schemas import (
    Coordinates, GeocodeRequest, GeocodeResult, MidpointRequest, Place, PlacesRequest, Suggestion,
)
from app.geo.services import midpoint_of_addresses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["geo"])

# Les appels au fournisseur sont bloquants (requests) : routes synchrones,
# exécutées par FastAPI dans le threadpool.


def _provider_failure(e: GeoProviderError, message: str) -> HTTPException:
    if isinstance(e, MissingApiKeyError):
        return HTTPException(status_code=500, detail="Server missing API key")
    return HTTPException(status_code=500, detail=message)


@router.get("/address/autocomplete", response_model=List[Suggestion])
def autocomplete_address(
    text: str = Query("", alias="input", description="Partial address"),
    client: GoogleMapsClient = Depends(get_maps_client),
):
    if len(text) < 3:
        return []
    try:
        suggestions = client.autocomplete(text)
    except GeoProviderError as e:
        raise _provider_failure(e, "Failed to fetch suggestions")
    logger.info(f"Autocomplete '{text}': {len(suggestions)} suggestions")
    return suggestions


@router.post("/geocode", response_model=GeocodeResult)
def geocode_address(payload: GeocodeRequest, client: GoogleMapsClient = Depends(get_maps_client)):
    try:
        location = client.geocode(payload.address)
    except GeoProviderError as e:
        raise _provider_failure(e, "Failed to geocode address")
    if location is None:
        raise HTTPException(status_code=404, detail="Address not found")
    return location


@router.post("/midpoint", response_model=Coordinates)
def midpoint(payload: MidpointRequest, client: GoogleMapsClient = Depends(get_maps_client)):
    if len(payload.addresses) < 2:
        raise HTTPException(status_code=400, detail="At least 2 addresses required")
    try:
        return midpoint_of_addresses(client, payload.addresses)
    except GeoProviderError as e:
        logger.error(f"Midpoint error: {e}")
        raise _provider_failure(e, "Failed to calculate midpoint")


@router.post("/places", response_model=List[Place])
def nearby_places(payload: PlacesRequest, client: GoogleMapsClient = Depends(get_maps_client)):
    try:
        return client.places_nearby(payload.lat, payload.lng, payload.type)
    except GeoProviderError as e:
        raise _provider_failure(e, "Failed to fetch places")
