#!/usr/bin/env python3
"""
Place Deduplication — Single-Target Detection

Scores one target place against a pool of candidates and returns the probable
duplicates above the configured confidence floor, best first.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from .composite_scorer import (
    DetectionConfig,
    MatchFactors,
    clamp_score,
    generate_reasoning,
    pairwise_score,
)
from .name_similarity import alt_name_similarity
from .place import Place

# A match above this confidence flags the target for priority review
HIGH_CONFIDENCE_THRESHOLD = 0.8


@dataclass(frozen=True)
class DuplicateMatch:
    """One candidate judged a probable duplicate of the target."""

    place: Place
    confidence: float
    factors: MatchFactors
    reasoning: list[str]

    def to_dict(self, include_reasoning: bool = True) -> dict[str, Any]:
        d = {
            "place": self.place.to_dict(),
            "confidence": self.confidence,
            "factors": self.factors.to_dict(),
        }
        if include_reasoning:
            d["reasoning"] = list(self.reasoning)
        return d


@dataclass(frozen=True)
class DetectionResult:
    """Probable duplicates of one place, sorted by confidence descending."""

    original_place: Place
    potential_duplicates: list[DuplicateMatch]
    has_high_confidence_duplicates: bool
    total_candidates: int

    def to_dict(self, include_reasoning: bool = True) -> dict[str, Any]:
        return {
            "original_place": self.original_place.to_dict(),
            "potential_duplicates": [
                m.to_dict(include_reasoning) for m in self.potential_duplicates
            ],
            "has_high_confidence_duplicates": self.has_high_confidence_duplicates,
            "total_candidates": self.total_candidates,
        }


def detect_duplicates(
    target: Place,
    candidates: Iterable[Place],
    config: DetectionConfig,
) -> DetectionResult:
    """
    Find probable duplicates of ``target`` among ``candidates``.

    Each candidate is scored pairwise, then the name signal is upgraded with
    the best alternate-name similarity.  The upgrade is a linear correction
    with the configured name weight on top of the already-weighted score,
    so the adaptive weighting applied by the pairwise scorer stands.

    The target never appears in its own result, even when the pool contains
    it.  ``total_candidates`` is the size of the pool as given.
    """
    pool = list(candidates)
    matches: list[DuplicateMatch] = []

    for candidate in pool:
        if candidate.id == target.id:
            continue

        pairwise = pairwise_score(target, candidate, config)
        name_score = pairwise.factors.name_score

        # Without aliases the cross product is just the primary pair
        if target.alt_names or candidate.alt_names:
            enhanced_name_score = max(name_score, alt_name_similarity(target, candidate))
        else:
            enhanced_name_score = name_score

        confidence = clamp_score(
            pairwise.score + (enhanced_name_score - name_score) * config.weights.name
        )
        if confidence < config.min_confidence_score:
            continue

        factors = replace(pairwise.factors, name_score=enhanced_name_score)
        matches.append(DuplicateMatch(
            place=candidate,
            confidence=confidence,
            factors=factors,
            reasoning=generate_reasoning(target, candidate, factors, confidence),
        ))

    matches.sort(key=lambda m: m.confidence, reverse=True)

    return DetectionResult(
        original_place=target,
        potential_duplicates=matches,
        has_high_confidence_duplicates=any(
            m.confidence > HIGH_CONFIDENCE_THRESHOLD for m in matches
        ),
        total_candidates=len(pool),
    )
