"""Place Deduplication — Detection Algorithms."""

from .geo_proximity import (
    Coordinate,
    coerce_coordinate,
    compute_geo_proximity,
    haversine_km,
    location_similarity,
)
from .name_similarity import (
    alt_name_similarity,
    compute_name_similarity,
    name_similarity,
    names_are_similar,
    normalize_name,
)
from .place import Place
from .composite_scorer import (
    DetectionConfig,
    MatchFactors,
    MatchWeights,
    PairwiseScore,
    effective_weights,
    generate_reasoning,
    pairwise_score,
)
from .detection import (
    DetectionResult,
    DuplicateMatch,
    detect_duplicates,
)
from .batch import (
    CandidateIndex,
    batch_detect,
    batch_detect_baseline,
    batch_detect_indexed,
)
from .clustering import (
    DuplicateCluster,
    filter_dismissed_clusters,
    find_clusters,
    summarize_batch,
    summarize_clusters,
)

__all__ = [
    "Coordinate",
    "coerce_coordinate",
    "compute_geo_proximity",
    "haversine_km",
    "location_similarity",
    "alt_name_similarity",
    "compute_name_similarity",
    "name_similarity",
    "names_are_similar",
    "normalize_name",
    "Place",
    "DetectionConfig",
    "MatchFactors",
    "MatchWeights",
    "PairwiseScore",
    "effective_weights",
    "generate_reasoning",
    "pairwise_score",
    "DetectionResult",
    "DuplicateMatch",
    "detect_duplicates",
    "CandidateIndex",
    "batch_detect",
    "batch_detect_baseline",
    "batch_detect_indexed",
    "DuplicateCluster",
    "filter_dismissed_clusters",
    "find_clusters",
    "summarize_batch",
    "summarize_clusters",
]
