#!/usr/bin/env python3
"""
Place Deduplication — Duplicate Clusters

Groups batch detection results into clusters of places for human review.

Grouping is one-hop seed expansion, not transitive closure: each unprocessed
place seeds a cluster with its own qualifying matches, and a match of a match
joins only if it also appears in the seed's own list.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .detection import HIGH_CONFIDENCE_THRESHOLD, DetectionResult
from .place import Place

logger = logging.getLogger(__name__)

DEFAULT_MIN_CLUSTER_SIZE = 2
DEFAULT_CLUSTER_CONFIDENCE = 0.6


@dataclass(frozen=True)
class DuplicateCluster:
    """Places believed to describe the same real-world location."""

    places: list[Place]
    avg_confidence: float
    cluster_id: str

    @property
    def place_ids(self) -> list[str]:
        return [p.id for p in self.places]

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "avg_confidence": self.avg_confidence,
            "places": [
                p.to_dict() if include_details else p.summary_dict()
                for p in self.places
            ],
        }


def _new_cluster_id() -> str:
    return f"cluster_{uuid.uuid4()}"


def find_clusters(
    batch_results: Mapping[str, DetectionResult],
    min_cluster_size: int = DEFAULT_MIN_CLUSTER_SIZE,
    min_confidence: float = DEFAULT_CLUSTER_CONFIDENCE,
) -> list[DuplicateCluster]:
    """
    Build duplicate clusters from per-place detection results.

    Parameters
    ----------
    batch_results : mapping of place id → DetectionResult
        Output of either batch strategy; iterated in its own order.
    min_cluster_size : int
        Clusters smaller than this are dropped.  Default 2.
    min_confidence : float
        Matches below this confidence do not join a cluster.  Independent of
        the detection-time ``min_confidence_score``.  Default 0.6.

    Returns
    -------
    Clusters sorted by average match confidence, descending.  No place id
    appears in more than one cluster.
    """
    if min_cluster_size < 1:
        raise ValueError(f"min_cluster_size must be at least 1, got {min_cluster_size!r}")
    if not 0.0 <= min_confidence <= 1.0:
        raise ValueError(f"min_confidence must be within [0, 1], got {min_confidence!r}")

    processed: set[str] = set()
    clusters: list[DuplicateCluster] = []

    for place_id, result in batch_results.items():
        if place_id in processed:
            continue

        members = [result.original_place]
        member_ids = {result.original_place.id}
        confidences: list[float] = []

        for match in result.potential_duplicates:
            if match.confidence < min_confidence:
                continue
            if match.place.id in processed or match.place.id in member_ids:
                continue
            members.append(match.place)
            member_ids.add(match.place.id)
            confidences.append(match.confidence)

        processed.add(place_id)
        processed.update(member_ids)

        if len(members) >= min_cluster_size:
            clusters.append(DuplicateCluster(
                places=members,
                avg_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
                cluster_id=_new_cluster_id(),
            ))

    clusters.sort(key=lambda c: c.avg_confidence, reverse=True)
    logger.debug("Formed %d clusters from %d results", len(clusters), len(batch_results))
    return clusters


# ---------------------------------------------------------------------------
# Review helpers
# ---------------------------------------------------------------------------


def filter_dismissed_clusters(
    clusters: Iterable[DuplicateCluster],
    dismissed_pairs: Iterable[tuple[str, str]],
) -> list[DuplicateCluster]:
    """
    Drop clusters containing any pair a reviewer already marked "not a duplicate".

    Pairs are unordered: (a, b) dismisses (b, a) too.
    """
    dismissed = {frozenset(pair) for pair in dismissed_pairs if len(set(pair)) == 2}

    kept = []
    for cluster in clusters:
        ids = cluster.place_ids
        blocked = any(
            frozenset((ids[i], ids[j])) in dismissed
            for i in range(len(ids))
            for j in range(i + 1, len(ids))
        )
        if not blocked:
            kept.append(cluster)
    return kept


def summarize_batch(
    batch_results: Mapping[str, DetectionResult],
    min_confidence: float = 0.0,
) -> dict[str, Any]:
    """Counts of places and matches at or above ``min_confidence``."""
    places_with_duplicates = 0
    total_matches = 0
    high_confidence = 0

    for result in batch_results.values():
        matches = [m for m in result.potential_duplicates if m.confidence >= min_confidence]
        if matches:
            places_with_duplicates += 1
            total_matches += len(matches)
            high_confidence += sum(1 for m in matches if m.confidence > HIGH_CONFIDENCE_THRESHOLD)

    return {
        "total_places": len(batch_results),
        "places_with_duplicates": places_with_duplicates,
        "total_duplicate_matches": total_matches,
        "high_confidence_matches": high_confidence,
        "avg_duplicates_per_place": (
            total_matches / places_with_duplicates if places_with_duplicates else 0.0
        ),
    }


def summarize_clusters(clusters: list[DuplicateCluster], total_places: int) -> dict[str, Any]:
    sizes = [len(c.places) for c in clusters]
    return {
        "total_places": total_places,
        "total_clusters": len(clusters),
        "largest_cluster_size": max(sizes, default=0),
        "avg_cluster_size": sum(sizes) / len(sizes) if sizes else 0.0,
    }
