"""
Nominatim lookup helpers.
Resolves OSM relation ids into named, positioned records using the lookup
endpoint, which accepts a limited number of ids per request. Every lookup is
done twice: once in the primary language and once in English.
"""
import json
import math
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from src.models.relation import CITY_MATCH_PRIORITY, CandidateRecord, EntityId, MatchMode

# Maximum number of OSM ids in a single lookup request,
# from https://nominatim.org/release-docs/latest/api/Lookup/#endpoint
CHUNK_SIZE = 50
ENGLISH = "en"
# Two candidates closer than this on both axes are the same place
CLOSE_COORDINATES_DEGREES = 1.0

# Get logger
logger = logging.getLogger(__name__)

Document = List[Dict[str, Any]]


def iter_chunks(ids: Sequence[EntityId], size: int = CHUNK_SIZE) -> Iterator[Sequence[EntityId]]:
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


def format_lookup_request(ids: Sequence[EntityId], language: Optional[str] = None) -> str:
    request = "format=json&osm_ids=" + ",".join(f"R{osm_id}" for osm_id in ids)
    if language:
        request += f"&accept-language={language}"
    return request


def parse_document(response_text: str) -> Document:
    try:
        document = json.loads(response_text)
    except ValueError as e:
        logger.warning(f"Malformed Nominatim response: {e}")
        return []
    if not isinstance(document, list):
        return []
    return [item for item in document if isinstance(item, dict)]


def dispatch_chunks(ids: Sequence[EntityId], client, handler: Callable[[Document], None],
                    language: Optional[str] = None) -> None:
    """
    Split `ids` into chunks, send one lookup per chunk and pass every parsed
    response to `handler`, in chunk order.

    An empty response skips the chunk. A response that cannot be parsed is
    handed over as an empty document.
    """
    for chunk in iter_chunks(ids):
        response = client.get(format_lookup_request(chunk, language))
        if not response:
            logger.warning(f"No lookup data for a chunk of {len(chunk)} relations (language={language})")
            continue
        handler(parse_document(response))


def _address_field(item: Dict[str, Any], key: str) -> str:
    address = item.get("address")
    if not isinstance(address, dict):
        return ""
    value = address.get(key)
    return value if isinstance(value, str) else ""


def _osm_id(item: Dict[str, Any]) -> EntityId:
    value = item.get("osm_id")
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _address_type(item: Dict[str, Any]) -> str:
    value = item.get("addresstype")
    return value if isinstance(value, str) else ""


def _coordinate(value) -> float:
    if not isinstance(value, str):
        return math.nan
    try:
        return float(value)
    except ValueError:
        return math.nan


def to_candidate_record(item: Dict[str, Any], address_type: str) -> CandidateRecord:
    """Shape one lookup item; the name is read from `address.<address_type>`."""
    return CandidateRecord(
        entity_id=_osm_id(item),
        primary_name=_address_field(item, address_type),
        primary_country=_address_field(item, "country"),
        latitude=_coordinate(item.get("lat")),
        longitude=_coordinate(item.get("lon")),
        address_type=address_type,
    )


def _apply_english_names(ids, client, records: List[CandidateRecord], index: Dict[EntityId, int]) -> None:
    # Only fills existing records, never appends.
    def handle_response(document):
        for item in document:
            osm_id = _osm_id(item)
            if osm_id == 0 or not _address_type(item) or osm_id not in index:
                continue
            record = records[index[osm_id]]
            record.english_name = _address_field(item, record.address_type)
            record.english_country = _address_field(item, "country")

    dispatch_chunks(ids, client, handle_response, ENGLISH)


def lookup_relation_information(relation_ids: Sequence[EntityId], client,
                                language: Optional[str] = None) -> List[CandidateRecord]:
    """
    Look up every relation and merge the English names into the result.

    The first item seen for an id wins. Items without an osm_id or an
    addresstype are dropped.
    """
    records: List[CandidateRecord] = []
    index: Dict[EntityId, int] = {}

    def handle_response(document):
        for item in document:
            osm_id = _osm_id(item)
            address_type = _address_type(item)
            if osm_id == 0 or not address_type:
                logger.debug(f"Skipping lookup item without osm_id or addresstype: {item.get('osm_id')}")
                continue
            if osm_id in index:
                continue
            records.append(to_candidate_record(item, address_type))
            index[osm_id] = len(records) - 1

    dispatch_chunks(relation_ids, client, handle_response, language)
    _apply_english_names(relation_ids, client, records, index)

    logger.info(f"Resolved {len(records)} of {len(relation_ids)} relations")
    return records


def are_close_coordinates(first: CandidateRecord, second: CandidateRecord) -> bool:
    return (abs(first.latitude - second.latitude) < CLOSE_COORDINATES_DEGREES
            and abs(first.longitude - second.longitude) < CLOSE_COORDINATES_DEGREES)


def lookup_relation_information_for_cities(relation_ids: Sequence[EntityId], match: MatchMode, client,
                                           language: Optional[str] = None) -> List[CandidateRecord]:
    """
    Pick the relations that best describe a location, then add English names.

    Address types are scanned in CITY_MATCH_PRIORITY order.

    MatchMode.BEST keeps every candidate of the first type found in a chunk
    and ignores the rest of the types and chunks.

    MatchMode.ANY keeps all matching candidates, but a candidate whose
    coordinates are within a degree of an already accepted one is treated as
    the same place and skipped. Accepted candidates come from earlier types
    and earlier chunks, so a "state" is dropped when its "city" was found first.
    """
    match = MatchMode(match)
    cities: List[CandidateRecord] = []
    index: Dict[EntityId, int] = {}

    def handle_response(document):
        if match == MatchMode.BEST and cities:
            return

        for address_type in CITY_MATCH_PRIORITY:
            for item in document:
                if _address_type(item) != address_type.value:
                    continue
                osm_id = _osm_id(item)
                if osm_id == 0 or osm_id in index:
                    continue

                candidate = to_candidate_record(item, address_type.value)
                if match == MatchMode.ANY and any(are_close_coordinates(c, candidate) for c in cities):
                    continue

                cities.append(candidate)
                index[osm_id] = len(cities) - 1
                logger.debug(f"addresstype {address_type.value}, osm_id {osm_id}, "
                             f"lat {item.get('lat')}, lon {item.get('lon')}")

            if match == MatchMode.BEST and cities:
                break

    dispatch_chunks(relation_ids, client, handle_response, language)
    _apply_english_names(relation_ids, client, cities, index)

    logger.info(f"Selected {len(cities)} cities from {len(relation_ids)} relations (match={match.value})")
    return cities
