import json
import math

from src.geocoding.overpass import (
    build_boundary_feature_query,
    build_location_query,
    build_name_query,
    extract_boundary_features,
    extract_relation_ids,
    load_boundary_features,
    load_relation_ids_by_location,
    load_relation_ids_by_name,
)


def test_build_name_query():
    assert build_name_query("Roma") == (
        '[out:json];rel["name"="Roma"]["boundary"="administrative"];out ids;'
    )


def test_build_location_query():
    query = build_location_query(41.1172364, 1.2546057)
    assert query.startswith("[out:json];is_in(41.1172364,1.2546057) -> .areas;")
    assert 'rel(pivot.areas)["boundary"="administrative"];' in query
    assert 'rel(pivot.areas)["place"~"^(city|town|state)$"];' in query
    assert query.endswith("out ids;")


def test_build_boundary_feature_query():
    query = build_boundary_feature_query(41485)
    assert "rel(id: 41485)[boundary=administrative];" in query
    assert "node[tourism=hotel](area.cityArea);" in query
    assert "node[tourism=museum](area.cityArea);" in query
    assert query.endswith("out center;")


def test_extract_relation_ids_keeps_relations_in_order():
    response = json.dumps({
        "elements": [
            {"type": "relation", "id": 41485},
            {"type": "node", "id": 7},
            {"type": "relation", "id": 349053},
            {"type": "relation"},
            {"type": "relation", "id": 0},
        ]
    })
    assert extract_relation_ids(response) == [41485, 349053]


def test_extract_relation_ids_malformed_input():
    assert extract_relation_ids("") == []
    assert extract_relation_ids("not json") == []
    assert extract_relation_ids("[1, 2, 3]") == []
    assert extract_relation_ids('{"remark": "runtime error"}') == []


def test_extract_boundary_features_keeps_hotels_and_museums():
    response = json.dumps({
        "elements": [
            {"type": "node", "lat": 41.9, "lon": 12.5,
             "tags": {"tourism": "hotel", "name": "Grand Hotel", "stars": "5"}},
            {"type": "node", "lat": 41.8, "lon": 12.4, "tags": {"tourism": "restaurant"}},
        ]
    })
    features = extract_boundary_features(response)
    assert len(features) == 1
    assert features[0].tags == {"tourism": "hotel", "name": "Grand Hotel"}
    assert features[0].latitude == 41.9
    assert features[0].longitude == 12.5


def test_extract_boundary_features_skips_incomplete_elements():
    response = json.dumps({
        "elements": [
            {"type": "node", "lat": 1.0, "lon": 2.0},
            {"type": "node", "lat": 1.0, "lon": 2.0, "tags": {"tourism": ""}},
            {"type": "node", "lat": 1.0, "lon": 2.0, "tags": {"name": "No tourism"}},
            {"type": "way", "tags": {"tourism": "museum"}},
            {"type": "node", "lat": 3.0, "lon": 4.0,
             "tags": {"tourism": "museum", "name": "", "name:en": "Vatican Museums"}},
        ]
    })
    features = extract_boundary_features(response)
    assert len(features) == 1
    assert features[0].tags == {"tourism": "museum", "name:en": "Vatican Museums"}


def test_extract_boundary_features_uses_center_and_nan():
    response = json.dumps({
        "elements": [
            {"type": "node", "center": {"lat": 5.5, "lon": 6.5}, "tags": {"tourism": "hotel"}},
            {"type": "node", "tags": {"tourism": "hotel"}},
        ]
    })
    features = extract_boundary_features(response)
    assert (features[0].latitude, features[0].longitude) == (5.5, 6.5)
    assert math.isnan(features[1].latitude)
    assert math.isnan(features[1].longitude)


def test_extract_boundary_features_malformed_input():
    assert extract_boundary_features("") == []
    assert extract_boundary_features("{") == []
    assert extract_boundary_features('{"elements": 5}') == []


def test_load_relation_ids_posts_queries(overpass_client_factory):
    client = overpass_client_factory(json.dumps({"elements": [{"type": "relation", "id": 41485}]}))
    assert load_relation_ids_by_name(client, "Roma") == [41485]
    assert load_relation_ids_by_location(client, 41.9, 12.5) == [41485]
    assert client.queries == [build_name_query("Roma"), build_location_query(41.9, 12.5)]


def test_load_boundary_features_transport_failure(overpass_client_factory):
    client = overpass_client_factory("")
    assert load_boundary_features(client, 41485) == []
    assert client.queries == [build_boundary_feature_query(41485)]
