#!/usr/bin/env python3
"""
Place Deduplication — Composite Pairwise Scorer

Combines name similarity, geospatial proximity and categorical attribute
agreement (kind, city, country) into a single duplicate confidence score
(0.0–1.0), and explains the result in short human-readable phrases.

When either place has no coordinates, the location weight is redistributed
proportionally among the remaining signals rather than penalizing the pair.

Dependencies:
    pip install rapidfuzz pyyaml
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .geo_proximity import compute_geo_proximity
from .name_similarity import name_similarity, names_are_similar
from .place import Place


# ---------------------------------------------------------------------------
# Defaults (overridden by detection_rules.yaml at runtime)
# ---------------------------------------------------------------------------

_DEFAULT_WEIGHTS = {
    "name": 0.40,
    "location": 0.30,
    "kind": 0.15,
    "city": 0.10,
    "country": 0.05,
}

_DEFAULT_THRESHOLDS = {
    "name": 0.80,
    "min_confidence": 0.60,
}

_DEFAULT_GEO = {
    "location_threshold_km": 0.5,
}


def clamp_score(value: float) -> float:
    return min(1.0, max(0.0, value))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchWeights:
    """Relative weight of each signal in the composite score."""

    name: float = _DEFAULT_WEIGHTS["name"]
    location: float = _DEFAULT_WEIGHTS["location"]
    kind: float = _DEFAULT_WEIGHTS["kind"]
    city: float = _DEFAULT_WEIGHTS["city"]
    country: float = _DEFAULT_WEIGHTS["country"]

    def __post_init__(self) -> None:
        for key, value in self.to_dict().items():
            if value < 0:
                raise ValueError(f"weight '{key}' must be non-negative, got {value!r}")
        if self.name + self.kind + self.city + self.country <= 0:
            raise ValueError("at least one non-location weight must be positive")

    def to_dict(self) -> dict[str, float]:
        return {
            "name": self.name,
            "location": self.location,
            "kind": self.kind,
            "city": self.city,
            "country": self.country,
        }


@dataclass(frozen=True)
class DetectionConfig:
    """Immutable duplicate-detection settings, passed explicitly to every call."""

    name_threshold: float = _DEFAULT_THRESHOLDS["name"]
    location_threshold_km: float = _DEFAULT_GEO["location_threshold_km"]
    min_confidence_score: float = _DEFAULT_THRESHOLDS["min_confidence"]
    weights: MatchWeights = field(default_factory=MatchWeights)

    def __post_init__(self) -> None:
        if not 0.0 <= self.name_threshold <= 1.0:
            raise ValueError(f"name_threshold must be within [0, 1], got {self.name_threshold!r}")
        if self.location_threshold_km <= 0:
            raise ValueError(
                f"location_threshold_km must be positive, got {self.location_threshold_km!r}"
            )
        if not 0.0 <= self.min_confidence_score <= 1.0:
            raise ValueError(
                f"min_confidence_score must be within [0, 1], got {self.min_confidence_score!r}"
            )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DetectionConfig":
        """Load configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        weights = raw.get("weights", {})
        thresholds = raw.get("thresholds", {})
        geo_raw = raw.get("geo_proximity", {})

        return cls(
            name_threshold=thresholds.get("name", _DEFAULT_THRESHOLDS["name"]),
            location_threshold_km=geo_raw.get(
                "location_threshold_km", _DEFAULT_GEO["location_threshold_km"]
            ),
            min_confidence_score=thresholds.get(
                "min_confidence", _DEFAULT_THRESHOLDS["min_confidence"]
            ),
            weights=MatchWeights(**{
                key: weights.get(key, default)
                for key, default in _DEFAULT_WEIGHTS.items()
            }),
        )

    def with_overrides(self, **changes: Any) -> "DetectionConfig":
        """Return a copy with the given fields replaced (None values ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def names_match(self, name_a: str | None, name_b: str | None) -> bool:
        """Whether two names reach the configured ``name_threshold``."""
        return names_are_similar(name_a, name_b, self.name_threshold)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name_threshold": self.name_threshold,
            "location_threshold_km": self.location_threshold_km,
            "min_confidence_score": self.min_confidence_score,
            "weights": self.weights.to_dict(),
        }


# ---------------------------------------------------------------------------
# Pairwise score
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchFactors:
    """Per-signal breakdown behind a pairwise score."""

    name_score: float
    location_score: float
    kind_match: bool
    city_match: bool
    country_match: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name_score": self.name_score,
            "location_score": self.location_score,
            "kind_match": self.kind_match,
            "city_match": self.city_match,
            "country_match": self.country_match,
        }


@dataclass(frozen=True)
class PairwiseScore:
    """Detailed result of comparing two places."""

    score: float
    factors: MatchFactors
    has_location: bool
    distance_km: float | None
    signals_used: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "factors": self.factors.to_dict(),
            "has_location": self.has_location,
            "distance_km": self.distance_km,
            "signals_used": self.signals_used,
        }


def effective_weights(weights: MatchWeights, has_location: bool) -> MatchWeights:
    """
    Weights actually applied to a pair.

    Without coordinates on both sides, the location weight is spread over the
    other four signals in proportion to their own weight, and location drops
    to zero.
    """
    if has_location:
        return weights

    others = weights.name + weights.kind + weights.city + weights.country
    share = weights.location / others
    return MatchWeights(
        name=weights.name + weights.name * share,
        location=0.0,
        kind=weights.kind + weights.kind * share,
        city=weights.city + weights.city * share,
        country=weights.country + weights.country * share,
    )


def _casefold_or_none(value: str | None) -> str | None:
    # Blank strings count as unknown, same as a missing value
    return value.lower() if value else None


def pairwise_score(
    place_a: Place,
    place_b: Place,
    config: DetectionConfig,
) -> PairwiseScore:
    """
    Compute a composite duplicate confidence between two places.

    Parameters
    ----------
    place_a, place_b : Place
        The places to compare.  Missing coordinates, city, country or names
        are valid and produce neutral signals, never errors.
    config : DetectionConfig
        Scoring configuration.

    Returns
    -------
    PairwiseScore with ``score`` clamped to [0.0, 1.0].
    """
    geo = compute_geo_proximity(place_a.coords, place_b.coords, config.location_threshold_km)
    has_location = geo["status"] == "computed"

    factors = MatchFactors(
        name_score=name_similarity(place_a.name, place_b.name),
        location_score=geo["score"] if has_location else 0.0,
        kind_match=place_a.kind == place_b.kind,
        # both unknown is compatible, not contradictory
        city_match=_casefold_or_none(place_a.city) == _casefold_or_none(place_b.city),
        country_match=_casefold_or_none(place_a.country) == _casefold_or_none(place_b.country),
    )

    weights = effective_weights(config.weights, has_location)
    score = (
        factors.name_score * weights.name
        + factors.location_score * weights.location
        + (1.0 if factors.kind_match else 0.0) * weights.kind
        + (1.0 if factors.city_match else 0.0) * weights.city
        + (1.0 if factors.country_match else 0.0) * weights.country
    )

    signals_used = ["name", "kind", "city", "country"]
    if has_location:
        signals_used.insert(1, "location")

    return PairwiseScore(
        score=clamp_score(score),
        factors=factors,
        has_location=has_location,
        distance_km=geo["distance_km"],
        signals_used=signals_used,
    )


# ---------------------------------------------------------------------------
# Reasoning
# ---------------------------------------------------------------------------

LOW_SIMILARITY_SCORE = 0.3
LOW_SIMILARITY_REASON = "Low similarity detected"


def generate_reasoning(
    place_a: Place,
    place_b: Place,
    factors: MatchFactors,
    score: float,
) -> list[str]:
    """
    Explain a pairwise score as an ordered list of short phrases.

    The list is never empty: a low score, or a pair with no positive signal,
    gets "Low similarity detected".
    """
    reasoning: list[str] = []

    if factors.name_score > 0.85:
        reasoning.append("Names are nearly identical")
    elif factors.name_score > 0.7:
        reasoning.append("Names are very similar")
    elif factors.name_score > 0.5:
        reasoning.append("Names have some similarity")

    if factors.location_score > 0.8:
        reasoning.append("Locations are very close")
    elif factors.location_score > 0.5:
        reasoning.append("Locations are nearby")
    elif factors.location_score > 0:
        reasoning.append("Locations are within proximity threshold")

    if factors.kind_match and place_a.kind:
        reasoning.append(f"Both are {place_a.kind} type")

    if factors.city_match and place_a.city:
        reasoning.append(f"Both located in {place_a.city}")

    if factors.country_match and place_a.country:
        reasoning.append(f"Both in {place_a.country}")

    if score <= LOW_SIMILARITY_SCORE or not reasoning:
        reasoning.append(LOW_SIMILARITY_REASON)

    return reasoning
