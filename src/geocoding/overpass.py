"""
Overpass API helpers.
Builds Overpass QL queries that discover OSM relations by name or by position,
and extracts relation ids and tourism features from the JSON answers.
"""
import json
import logging
from typing import Any, Dict, List

from src.models.relation import EntityId, TaggedFeature

# Get logger
logger = logging.getLogger(__name__)

# Relations whose name matches exactly and which are administrative boundaries.
REQUEST_BY_NAME_FORMAT = (
    '[out:json];'
    'rel["name"="{name}"]["boundary"="administrative"];'
    'out ids;'
)

# is_in() saves every area containing the point to .areas, then the relations
# outlining those areas are selected if they are administrative boundaries or
# city/town/state places.
REQUEST_BY_COORDINATES_FORMAT = (
    '[out:json];'
    'is_in({latitude},{longitude}) -> .areas;'
    '('
    'rel(pivot.areas)["boundary"="administrative"];'
    'rel(pivot.areas)["place"~"^(city|town|state)$"];'
    ');'
    'out ids;'
)

REQUEST_BOUNDARY_FEATURES_FORMAT = """
[out:json];
rel(id: {entity_id})[boundary=administrative];
map_to_area->.cityArea;
(
node[tourism=hotel](area.cityArea);
node[tourism=museum](area.cityArea);
);
out center;"""

FEATURE_TOURISM_VALUES = ("hotel", "museum")


def build_name_query(name: str) -> str:
    return REQUEST_BY_NAME_FORMAT.format(name=name)


def build_location_query(latitude: float, longitude: float) -> str:
    return REQUEST_BY_COORDINATES_FORMAT.format(latitude=latitude, longitude=longitude)


def build_boundary_feature_query(entity_id: EntityId) -> str:
    return REQUEST_BOUNDARY_FEATURES_FORMAT.format(entity_id=entity_id)


def _parse_elements(response_text: str) -> List[Dict[str, Any]]:
    if not response_text:
        return []
    try:
        document = json.loads(response_text)
    except ValueError as e:
        logger.warning(f"Malformed Overpass response: {e}")
        return []
    if not isinstance(document, dict) or not isinstance(document.get("elements"), list):
        return []
    return [e for e in document["elements"] if isinstance(e, dict)]


def _to_int(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_float(value) -> float:
    if isinstance(value, bool):
        return float("nan")
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def extract_relation_ids(response_text: str) -> List[EntityId]:
    """Return the ids of all "relation" elements, in document order."""
    result = []
    for element in _parse_elements(response_text):
        if element.get("type") != "relation":
            continue
        relation_id = _to_int(element.get("id", element.get("osm_id")))
        if relation_id:
            result.append(relation_id)
    return result


def _tag(tags: Dict[str, Any], key: str) -> str:
    value = tags.get(key)
    return value if isinstance(value, str) else ""


def extract_boundary_features(response_text: str) -> List[TaggedFeature]:
    """
    Extract hotels and museums from an Overpass response.

    Only "node" elements with a tourism tag of hotel or museum are kept.
    The name and name:en tags are copied when they are present and non-empty.
    """
    features = []
    for element in _parse_elements(response_text):
        if element.get("type") != "node":
            continue

        tags = element.get("tags")
        if not isinstance(tags, dict):
            continue

        tourism = _tag(tags, "tourism")
        if tourism not in FEATURE_TOURISM_VALUES:
            continue

        latitude = element.get("lat")
        longitude = element.get("lon")
        center = element.get("center")
        if latitude is None and longitude is None and isinstance(center, dict):
            latitude = center.get("lat")
            longitude = center.get("lon")

        feature_tags = {"tourism": tourism}
        for key in ("name", "name:en"):
            value = _tag(tags, key)
            if value:
                feature_tags[key] = value

        features.append(TaggedFeature(
            latitude=_to_float(latitude),
            longitude=_to_float(longitude),
            tags=feature_tags,
        ))

    return features


def load_relation_ids_by_name(client, name: str) -> List[EntityId]:
    response = client.post(build_name_query(name))
    relation_ids = extract_relation_ids(response)
    logger.info(f"Found {len(relation_ids)} relations named '{name}'")
    return relation_ids


def load_relation_ids_by_location(client, latitude: float, longitude: float) -> List[EntityId]:
    response = client.post(build_location_query(latitude, longitude))
    relation_ids = extract_relation_ids(response)
    logger.info(f"Found {len(relation_ids)} relations containing ({latitude}, {longitude})")
    return relation_ids


def load_boundary_features(client, entity_id: EntityId) -> List[TaggedFeature]:
    response = client.post(build_boundary_feature_query(entity_id))
    features = extract_boundary_features(response)
    logger.info(f"Found {len(features)} hotels and museums in relation {entity_id}")
    return features
