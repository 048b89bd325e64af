import math
from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel, Field

# OSM relation id
EntityId = int


class AddressType(str, Enum):
    CITY = "city"
    TOWN = "town"
    STATE = "state"


# Order is important for MatchMode.BEST: a point can be inside both a "city"
# and a "state" relation (Tarragona / Catalonia) and the city wins. Some points
# only have a "state" (Phnom Penh), so the list falls through to it.
CITY_MATCH_PRIORITY: Tuple[AddressType, ...] = (
    AddressType.CITY,
    AddressType.TOWN,
    AddressType.STATE,
)


class MatchMode(str, Enum):
    BEST = "best"
    ANY = "any"


class CandidateRecord(BaseModel):
    """One resolved relation, with the English enrichment filled in by a second lookup pass."""
    entity_id: EntityId
    primary_name: str = ""
    english_name: str = ""
    primary_country: str = ""
    english_country: str = ""
    latitude: float = float("nan")  # NaN means unknown
    longitude: float = float("nan")
    address_type: str


class TaggedFeature(BaseModel):
    latitude: float = float("nan")
    longitude: float = float("nan")
    tags: Dict[str, str] = Field(default_factory=dict)


class Location(BaseModel):
    latitude: float
    longitude: float


def _coordinate(value):
    # JSON has no NaN
    return None if math.isnan(value) else value


def city_to_dict(city: CandidateRecord):
    return {
        "id": city.entity_id,
        "name": city.primary_name,
        "name_en": city.english_name,
        "country": city.primary_country,
        "country_en": city.english_country,
        "address_type": city.address_type,
        "latitude": _coordinate(city.latitude),
        "longitude": _coordinate(city.longitude),
    }


def feature_to_dict(feature: TaggedFeature):
    return {
        "latitude": _coordinate(feature.latitude),
        "longitude": _coordinate(feature.longitude),
        "tags": dict(feature.tags),
    }

