"""
Search Engine
-------------
Entry point used by the API and the command line. Discovers candidate relations
with Overpass and resolves them with Nominatim.
"""
import logging
import concurrent.futures
from typing import Dict, List, Optional, Sequence, Tuple

from src.geocoding import nominatim, overpass
from src.geocoding.web_client import create_nominatim_client, create_overpass_client
from src.models.relation import CandidateRecord, EntityId, MatchMode, TaggedFeature

# Get logger
logger = logging.getLogger(__name__)


class SearchEngine:
    def __init__(self, nominatim_client, overpass_client):
        self.nominatim_client = nominatim_client
        self.overpass_client = overpass_client

    @classmethod
    def from_env(cls):
        return cls(create_nominatim_client(), create_overpass_client())

    def resolve_by_name(self, name: str, language: Optional[str] = None) -> List[CandidateRecord]:
        relation_ids = overpass.load_relation_ids_by_name(self.overpass_client, name)
        if not relation_ids:
            return []
        return nominatim.lookup_relation_information(relation_ids, self.nominatim_client, language)

    def resolve_by_location(self, latitude: float, longitude: float, mode: MatchMode = MatchMode.BEST,
                            language: Optional[str] = None) -> List[CandidateRecord]:
        relation_ids = overpass.load_relation_ids_by_location(self.overpass_client, latitude, longitude)
        if not relation_ids:
            return []
        return nominatim.lookup_relation_information_for_cities(
            relation_ids, mode, self.nominatim_client, language)

    def fetch_boundary_features(self, entity_id: EntityId) -> List[TaggedFeature]:
        return overpass.load_boundary_features(self.overpass_client, entity_id)


def batch_resolve_locations(engine: SearchEngine, coordinates_list: Sequence[Tuple[float, float]],
                            mode: MatchMode = MatchMode.BEST, language: Optional[str] = None,
                            max_workers: int = 4) -> Dict[Tuple[float, float], List[CandidateRecord]]:
    """
    Resolve many independent positions in parallel.

    Each position is one full resolve_by_location call, so chunk and pass
    order inside a call are unaffected by the thread pool.

    A position counts as a success in the logged rate when at least one city
    was found for it. An empty result after a transport failure and an empty
    result for a place with no city both count as failures.
    """
    results = {}
    success_count = 0
    failure_count = 0

    total_coords = len(coordinates_list)
    logger.info(f"Starting parallel resolution for {total_coords} coordinate pairs with {max_workers} workers")

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_coords = {
            executor.submit(engine.resolve_by_location, lat, lon, mode, language): (lat, lon)
            for lat, lon in coordinates_list
        }

        for i, future in enumerate(concurrent.futures.as_completed(future_to_coords)):
            coords = future_to_coords[future]
            try:
                cities = future.result()
                results[coords] = cities

                if cities:
                    success_count += 1
                else:
                    failure_count += 1

                if (i + 1) % 10 == 0 or (i + 1) == total_coords:
                    logger.info(f"Resolution progress: {i+1}/{total_coords} ({((i+1)/total_coords*100):.1f}%)")
            except Exception as e:
                failure_count += 1
                logger.error(f"Error resolving coordinates {coords}: {str(e)}")
                results[coords] = []

    total = success_count + failure_count
    if total > 0:
        success_rate = (success_count / total) * 100
        logger.info(f"Parallel resolution completed: {success_rate:.1f}% success rate ({success_count}/{total})")

    return results
