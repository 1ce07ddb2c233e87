"""Shared fixtures — a small set of landmark records with known duplicates."""

import pytest

from place_dedup.algorithms import DetectionConfig, Place

LANDMARK_RECORDS = [
    {
        "id": "sf-1",
        "name": "Sagrada Familia",
        "kind": "landmark",
        "city": "Barcelona",
        "country": "Spain",
        "coords": {"lat": 41.4036, "lon": 2.1744},
    },
    {
        "id": "sf-2",
        "name": "Basílica de la Sagrada Família",
        "kind": "church",
        "city": "Barcelona",
        "country": "Spain",
        "coords": {"lat": 41.4036, "lon": 2.1744},
    },
    {
        "id": "cb-1",
        "name": "Casa Batlló",
        "kind": "landmark",
        "city": "Barcelona",
        "country": "Spain",
        "coords": {"lat": 41.3916, "lon": 2.1649},
    },
    {
        "id": "et-1",
        "name": "Eiffel Tower",
        "kind": "landmark",
        "city": "Paris",
        "country": "France",
        "coords": {"lat": 48.8584, "lon": 2.2945},
    },
    {
        "id": "et-2",
        "name": "Tour Eiffel",
        "kind": "landmark",
        "city": "Paris",
        "country": "France",
        "latitude": 48.8583,
        "longitude": 2.2944,
        "altNames": ["Eiffel Tower"],
    },
    {
        "id": "bb-1",
        "name": "Big Ben",
        "kind": "landmark",
        "city": "London",
        "country": "United Kingdom",
        "coords": {"lat": 51.5007, "lon": -0.1246},
    },
    {
        "id": "bb-2",
        "name": "Big Ben",
        "kind": "landmark",
        "city": "London",
        "country": "United Kingdom",
        "coords": None,
    },
]


@pytest.fixture
def landmark_records():
    return [dict(r) for r in LANDMARK_RECORDS]


@pytest.fixture
def landmark_places():
    return [Place.from_record(r) for r in LANDMARK_RECORDS]


@pytest.fixture
def config():
    return DetectionConfig()


@pytest.fixture
def expected_pairs():
    """Pairs every strategy is expected to report at the default thresholds."""
    return {
        frozenset({"sf-1", "sf-2"}),
        frozenset({"et-1", "et-2"}),
        frozenset({"bb-1", "bb-2"}),
    }
