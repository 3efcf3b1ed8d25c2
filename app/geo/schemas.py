from typing import List, Optional

from pydantic import Field

from app.utils.schemas import APIModel


class Suggestion(APIModel):
    place_id: Optional[str] = None
    description: Optional[str] = None
    main_text: Optional[str] = None
    secondary_text: str = ""


class GeocodeRequest(APIModel):
    address: str = Field(..., min_length=1)


class GeocodeResult(APIModel):
    lat: float
    lng: float
    address: str


class MidpointRequest(APIModel):
    addresses: List[str] = Field(default_factory=list)


class Coordinates(APIModel):
    lat: float
    lng: float


class PlacesRequest(APIModel):
    lat: float
    lng: float
    type: str = "restaurant"


class Place(APIModel):
    name: Optional[str] = None
    address: str = ""
    rating: Optional[float] = None
    types: List[str] = []
    place_id: Optional[str] = None
    lat: float
    lng: float
