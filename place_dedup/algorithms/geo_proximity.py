#!/usr/bin/env python3
"""
Place Deduplication — Geospatial Proximity Matching

Computes distance-based similarity between place coordinates using the
Haversine formula, plus the fixed-size grid buckets used to narrow candidate
pools during batch detection.

No external geo-libraries required — pure math with stdlib.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EARTH_RADIUS_KM = 6371.0

# 0.01° ≈ 1.1 km of latitude; a 3×3 window of cells covers roughly 3 km
GEO_BUCKET_DEGREES = 0.01


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 coordinate pair."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """Check whether the pair falls inside the WGS84 value ranges."""
        return (
            -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def coerce_coordinate(value: Any) -> Coordinate | None:
    """
    Turn a loosely-shaped coordinate into a ``Coordinate``.

    Accepts a ``Coordinate``, a mapping with ``lat``/``lon`` (or
    ``latitude``/``longitude``) keys, or a two-item sequence.  Anything that
    does not carry a finite numeric latitude *and* longitude is treated as
    absent and returns None.
    """
    if value is None:
        return None

    if isinstance(value, Coordinate):
        lat, lon = value.latitude, value.longitude
    elif isinstance(value, Mapping):
        lat = value.get("lat", value.get("latitude"))
        lon = value.get("lon", value.get("longitude"))
    elif isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
        lat, lon = value
    else:
        return None

    if not (_is_number(lat) and _is_number(lon)):
        return None
    if isinstance(value, Coordinate):
        return value
    return Coordinate(latitude=float(lat), longitude=float(lon))


# ---------------------------------------------------------------------------
# Core distance calculation
# ---------------------------------------------------------------------------


def haversine_km(coord_a: Coordinate, coord_b: Coordinate) -> float:
    """
    Compute the great-circle distance in kilometres between two WGS84 points
    using the Haversine formula.
    """
    lat1 = math.radians(coord_a.latitude)
    lat2 = math.radians(coord_b.latitude)
    dlat = math.radians(coord_b.latitude - coord_a.latitude)
    dlon = math.radians(coord_b.longitude - coord_a.longitude)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a just past 1.0 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def location_similarity(
    coord_a: Any,
    coord_b: Any,
    threshold_km: float,
) -> float:
    """
    Compute a proximity similarity score in [0.0, 1.0].

    Scoring curve:
        - either coordinate missing or malformed → 0.0
        - distance == 0                           → 1.0
        - distance <= threshold                   → linear decay 1.0 → 0.0
        - distance >  threshold                   → 0.0

    Raises
    ------
    ValueError
        If ``threshold_km`` is not positive.
    """
    if threshold_km <= 0:
        raise ValueError(f"threshold_km must be positive, got {threshold_km!r}")

    a = coerce_coordinate(coord_a)
    b = coerce_coordinate(coord_b)
    if a is None or b is None:
        return 0.0

    dist = haversine_km(a, b)
    if dist > threshold_km:
        return 0.0
    return max(0.0, 1.0 - dist / threshold_km)


def compute_geo_proximity(
    coord_a: Any,
    coord_b: Any,
    threshold_km: float,
) -> dict[str, float | str | None]:
    """
    High-level geo proximity computation between two places.

    Returns
    -------
    dict with keys:
        - distance_km : float or None
        - score       : float [0–1]; 0.0 when coordinates are missing
        - status      : 'computed' | 'missing_coords_a' | 'missing_coords_b' | 'missing_coords_both'
    """
    a = coerce_coordinate(coord_a)
    b = coerce_coordinate(coord_b)

    if a is None and b is None:
        return {"distance_km": None, "score": 0.0, "status": "missing_coords_both"}
    if a is None:
        return {"distance_km": None, "score": 0.0, "status": "missing_coords_a"}
    if b is None:
        return {"distance_km": None, "score": 0.0, "status": "missing_coords_b"}

    return {
        "distance_km": haversine_km(a, b),
        "score": location_similarity(a, b, threshold_km),
        "status": "computed",
    }


# ---------------------------------------------------------------------------
# Grid buckets
# ---------------------------------------------------------------------------


def geo_bucket(coord: Coordinate, cell_degrees: float = GEO_BUCKET_DEGREES) -> tuple[int, int]:
    """Return the (lat, lon) grid cell containing ``coord``."""
    return (
        math.floor(coord.latitude / cell_degrees),
        math.floor(coord.longitude / cell_degrees),
    )


def neighboring_buckets(bucket: tuple[int, int]) -> Iterator[tuple[int, int]]:
    """Yield the bucket itself and its 8 surrounding cells."""
    lat_cell, lon_cell = bucket
    for dlat in (-1, 0, 1):
        for dlon in (-1, 0, 1):
            yield (lat_cell + dlat, lon_cell + dlon)
