from fastapi import FastAPI, HTTPException, Depends
from pydantic import BaseModel, Field
import logging
from typing import Optional, List

from src.geocoding.search_engine import SearchEngine, batch_resolve_locations
from src.models.relation import Location, MatchMode, city_to_dict, feature_to_dict

# Configure logging - Adjust format to remove INFO/WARNING prefixes
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="OSM Relation Resolver API",
    description="Resolve place names and coordinates into cities, towns and states",
    version="1.0.0"
)

_search_engine = None


def get_search_engine():
    global _search_engine
    if _search_engine is None:
        _search_engine = SearchEngine.from_env()
    return _search_engine


class BatchRequest(BaseModel):
    locations: List[Location]
    match: MatchMode = MatchMode.BEST
    lang: Optional[str] = None
    max_workers: int = Field(default=4, ge=1, le=16)


def validate_position(latitude, longitude):
    if not -90.0 <= latitude <= 90.0:
        return "Wrong latitude"
    if not -180.0 <= longitude <= 180.0:
        return "Wrong longitude"
    return None


@app.get("/")
def read_root():
    return {"message": "Welcome to the OSM Relation Resolver API"}


@app.get("/cities")
def get_cities(
    name: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    match: MatchMode = MatchMode.BEST,
    lang: Optional[str] = None,
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Find cities by position or by exact name.
    When both are given the position is used.
    """
    has_position = latitude is not None and longitude is not None
    if not has_position and not name:
        raise HTTPException(status_code=400, detail="Either position or name must be set")
    if has_position:
        error = validate_position(latitude, longitude)
        if error:
            raise HTTPException(status_code=400, detail=error)

    try:
        if has_position:
            cities = engine.resolve_by_location(latitude, longitude, match, lang)
        else:
            cities = engine.resolve_by_name(name, lang)

        return {"cities": [city_to_dict(c) for c in cities]}
    except Exception as e:
        logger.error(f"Error resolving cities: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/cities/{entity_id}/features")
def get_city_features(entity_id: int, engine: SearchEngine = Depends(get_search_engine)):
    """Hotels and museums inside the boundary of a relation"""
    try:
        features = engine.fetch_boundary_features(entity_id)
        return {"features": [feature_to_dict(f) for f in features]}
    except Exception as e:
        logger.error(f"Error loading features for relation {entity_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/cities/batch")
def resolve_cities_batch(body: BatchRequest, engine: SearchEngine = Depends(get_search_engine)):
    for location in body.locations:
        error = validate_position(location.latitude, location.longitude)
        if error:
            raise HTTPException(status_code=400, detail=f"{error}: ({location.latitude}, {location.longitude})")

    try:
        coords_list = [(location.latitude, location.longitude) for location in body.locations]
        results = batch_resolve_locations(engine, coords_list, body.match, body.lang, body.max_workers)

        return {
            "results": [
                {
                    "latitude": lat,
                    "longitude": lon,
                    "cities": [city_to_dict(c) for c in results.get((lat, lon), [])],
                }
                for lat, lon in coords_list
            ]
        }
    except Exception as e:
        logger.error(f"Error resolving batch of {len(body.locations)} locations: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
