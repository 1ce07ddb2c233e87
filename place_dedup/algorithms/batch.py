#!/usr/bin/env python3
"""
Place Deduplication — Batch Detection

Runs single-target detection for every place of a collection.  Two
interchangeable strategies are provided:

    baseline  Every place against the full collection (O(n²) comparisons).
              The correctness reference.
    indexed   City, geo-bucket and name-prefix indices are built once; each
              place is compared only against places sharing at least one of
              its city, its 3×3 grid neighbourhood or its 2-character
              normalised name prefix.

For any collection where every true duplicate pair shares one of those three
keys, both strategies report the same matches per place.  A pair sharing none
of them is found by baseline only.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Sequence

from .composite_scorer import DetectionConfig
from .detection import DetectionResult, detect_duplicates
from .geo_proximity import coerce_coordinate, geo_bucket, neighboring_buckets
from .name_similarity import normalize_name
from .place import Place

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

STRATEGY_BASELINE = "baseline"
STRATEGY_INDEXED = "indexed"
STRATEGIES = (STRATEGY_BASELINE, STRATEGY_INDEXED)

NAME_PREFIX_LENGTH = 2

# Key shared by every place without a recorded city
NO_CITY = None


def _city_key(place: Place) -> str | None:
    city = (place.city or "").lower().strip()
    return city or NO_CITY


def _name_prefix(place: Place) -> str | None:
    prefix = normalize_name(place.name)[:NAME_PREFIX_LENGTH]
    return prefix if len(prefix) == NAME_PREFIX_LENGTH else None


def _check_unique_ids(places: Sequence[Place]) -> None:
    seen: set[str] = set()
    for place in places:
        if place.id in seen:
            raise ValueError(f"duplicate place id in batch input: {place.id!r}")
        seen.add(place.id)


# ---------------------------------------------------------------------------
# Candidate index
# ---------------------------------------------------------------------------


class CandidateIndex:
    """
    Write-once lookup tables narrowing the candidate pool of each place.

    Entries are positions into the place sequence the index was built from.
    Build a fresh index per batch run; never share one across collections.
    """

    def __init__(
        self,
        places: Sequence[Place],
        by_city: dict[str | None, list[int]],
        by_geo_bucket: dict[tuple[int, int], list[int]],
        by_name_prefix: dict[str, list[int]],
    ):
        self.places = places
        self.by_city = by_city
        self.by_geo_bucket = by_geo_bucket
        self.by_name_prefix = by_name_prefix

    @classmethod
    def build(cls, places: Sequence[Place]) -> "CandidateIndex":
        by_city: dict[str | None, list[int]] = defaultdict(list)
        by_geo_bucket: dict[tuple[int, int], list[int]] = defaultdict(list)
        by_name_prefix: dict[str, list[int]] = defaultdict(list)

        for pos, place in enumerate(places):
            by_city[_city_key(place)].append(pos)

            coord = coerce_coordinate(place.coords)
            if coord is not None:
                by_geo_bucket[geo_bucket(coord)].append(pos)

            prefix = _name_prefix(place)
            if prefix is not None:
                by_name_prefix[prefix].append(pos)

        return cls(places, dict(by_city), dict(by_geo_bucket), dict(by_name_prefix))

    def candidate_positions(self, pos: int) -> list[int]:
        """Positions sharing city, grid neighbourhood or name prefix with ``pos``."""
        place = self.places[pos]
        found: set[int] = set(self.by_city.get(_city_key(place), ()))

        coord = coerce_coordinate(place.coords)
        if coord is not None:
            for bucket in neighboring_buckets(geo_bucket(coord)):
                found.update(self.by_geo_bucket.get(bucket, ()))

        # Prefix matches regardless of city, so a place with no recorded city
        # still meets a same-named place in a known one
        prefix = _name_prefix(place)
        if prefix is not None:
            found.update(self.by_name_prefix.get(prefix, ()))

        found.discard(pos)
        return sorted(found)

    def candidates_for(self, pos: int) -> list[Place]:
        """Candidate places for the place at ``pos``, in input order."""
        return [self.places[i] for i in self.candidate_positions(pos)]


# ---------------------------------------------------------------------------
# Batch orchestrators
# ---------------------------------------------------------------------------


def batch_detect_baseline(
    places: Sequence[Place],
    config: DetectionConfig,
    on_progress: ProgressCallback | None = None,
) -> dict[str, DetectionResult]:
    """
    Detect duplicates of every place against the whole collection.

    Returns an insertion-ordered mapping of place id → DetectionResult.
    ``on_progress(processed, total)`` is called once per place, in order.
    """
    places = list(places)
    _check_unique_ids(places)

    t0 = time.time()
    results: dict[str, DetectionResult] = {}
    total = len(places)

    for i, place in enumerate(places):
        results[place.id] = detect_duplicates(place, places, config)
        if on_progress is not None:
            on_progress(i + 1, total)

    logger.info("Baseline batch: %d places in %.2fs", total, time.time() - t0)
    return results


def batch_detect_indexed(
    places: Sequence[Place],
    config: DetectionConfig,
    on_progress: ProgressCallback | None = None,
) -> dict[str, DetectionResult]:
    """
    Detect duplicates of every place against an index-narrowed pool.

    Same contract as ``batch_detect_baseline``; ``total_candidates`` in each
    result reflects the narrowed pool.
    """
    places = list(places)
    _check_unique_ids(places)

    t0 = time.time()
    index = CandidateIndex.build(places)
    logger.debug(
        "Candidate index: %d city keys, %d geo buckets, %d name prefixes",
        len(index.by_city),
        len(index.by_geo_bucket),
        len(index.by_name_prefix),
    )

    results: dict[str, DetectionResult] = {}
    total = len(places)
    compared = 0

    for i, place in enumerate(places):
        candidates = index.candidates_for(i)
        compared += len(candidates)
        results[place.id] = detect_duplicates(place, candidates, config)
        if on_progress is not None:
            on_progress(i + 1, total)

    logger.info(
        "Indexed batch: %d places, %d comparisons (full scan: %d) in %.2fs",
        total,
        compared,
        total * max(total - 1, 0),
        time.time() - t0,
    )
    return results


def batch_detect(
    places: Sequence[Place],
    config: DetectionConfig,
    on_progress: ProgressCallback | None = None,
    *,
    strategy: str = STRATEGY_INDEXED,
) -> dict[str, DetectionResult]:
    """Run batch detection with the selected strategy ('indexed' or 'baseline')."""
    if strategy == STRATEGY_INDEXED:
        return batch_detect_indexed(places, config, on_progress)
    if strategy == STRATEGY_BASELINE:
        return batch_detect_baseline(places, config, on_progress)
    raise ValueError(f"unknown batch strategy {strategy!r}; expected one of {STRATEGIES}")
