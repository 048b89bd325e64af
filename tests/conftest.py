import json
from urllib.parse import parse_qs

import pytest


class FakeNominatimClient:
    """Answers lookup requests from per-language item tables keyed by osm_id."""

    def __init__(self, items=None, english_items=None, raw_responses=None):
        self.items = items or {}
        self.english_items = english_items or {}
        self.raw_responses = list(raw_responses or [])
        self.requests = []

    def get(self, query):
        self.requests.append(query)
        if self.raw_responses:
            return self.raw_responses.pop(0)
        params = parse_qs(query)
        ids = [int(i[1:]) for i in params["osm_ids"][0].split(",")]
        table = self.english_items if params.get("accept-language") == ["en"] else self.items
        return json.dumps([table[i] for i in ids if i in table])

    def languages(self):
        return [parse_qs(q).get("accept-language", [None])[0] for q in self.requests]

    def requested_ids(self):
        return [[int(i[1:]) for i in parse_qs(q)["osm_ids"][0].split(",")] for q in self.requests]


class FakeOverpassClient:
    def __init__(self, response=""):
        self.response = response
        self.queries = []

    def post(self, query):
        self.queries.append(query)
        return self.response


def lookup_item(osm_id, address_type, name, country="Italia", lat="41.89", lon="12.48"):
    return {
        "osm_id": osm_id,
        "osm_type": "relation",
        "addresstype": address_type,
        "address": {address_type: name, "country": country},
        "lat": lat,
        "lon": lon,
    }


@pytest.fixture
def nominatim_client_factory():
    return FakeNominatimClient


@pytest.fixture
def overpass_client_factory():
    return FakeOverpassClient


@pytest.fixture
def make_item():
    return lookup_item
