#!/usr/bin/env python3
"""
Place Deduplication — Duplicate Report

Loads place records from a JSON file, runs duplicate detection and writes a
JSON report for human review.

Modes:
    single    Duplicates of one place (--place-id) among the others
    batch     Duplicates of every place
    clusters  Groups of mutually duplicate places, minus reviewer-dismissed pairs

Usage:
    place-dedup places.json --mode clusters --min-confidence 0.7 \
        --dismissed dismissed_pairs.json --output-dir output/duplicates/

Dependencies:
    pip install rapidfuzz pyyaml pydantic
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from place_dedup.algorithms import (
    DetectionConfig,
    Place,
    batch_detect,
    detect_duplicates,
    filter_dismissed_clusters,
    find_clusters,
    summarize_batch,
    summarize_clusters,
)
from place_dedup.algorithms.detection import HIGH_CONFIDENCE_THRESHOLD
from place_dedup.models import DuplicateQuery

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "detection_rules.yaml"


# ---------------------------------------------------------------------------
# Data loading
# ---------------------------------------------------------------------------


def load_places(path: str | Path) -> list[Place]:
    """Load place records from a JSON list (or a {"places": [...]} object)."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict):
        raw = raw.get("places", [])
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of place records")

    places = [Place.from_record(r) for r in raw]
    logger.info("Loaded %d places from %s", len(places), path)
    return places


def load_dismissed_pairs(path: str | Path | None) -> list[tuple[str, str]]:
    """
    Load reviewer-dismissed pairs.

    Accepts ``[["id1", "id2"], ...]`` or
    ``[{"place_id_1": "id1", "place_id_2": "id2"}, ...]``.
    """
    if path is None:
        return []

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of dismissed pairs")

    pairs = []
    for entry in raw:
        if isinstance(entry, dict):
            pairs.append((str(entry["place_id_1"]), str(entry["place_id_2"])))
        elif isinstance(entry, list) and len(entry) == 2:
            first, second = entry
            pairs.append((str(first), str(second)))
        else:
            raise ValueError(f"{path}: malformed dismissed pair {entry!r}")
    logger.info("Loaded %d dismissed pairs from %s", len(pairs), path)
    return pairs


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _log_progress(processed: int, total: int) -> None:
    step = max(total // 10, 1)
    if processed % step == 0 or processed == total:
        logger.info("  processed %d/%d places", processed, total)


def run_single(
    places: list[Place],
    query: DuplicateQuery,
    config: DetectionConfig,
) -> dict[str, Any]:
    target = next((p for p in places if p.id == query.place_id), None)
    if target is None:
        raise LookupError(f"place not found: {query.place_id}")

    candidates = [p for p in places if p.id != target.id][: query.limit]
    result = detect_duplicates(target, candidates, config)

    return {
        "result": result.to_dict(query.include_reasoning),
        "performance": {
            "candidates_checked": result.total_candidates,
            "duplicates_found": len(result.potential_duplicates),
            "high_confidence_matches": sum(
                1 for m in result.potential_duplicates
                if m.confidence > HIGH_CONFIDENCE_THRESHOLD
            ),
        },
    }


def run_batch(
    places: list[Place],
    query: DuplicateQuery,
    config: DetectionConfig,
) -> dict[str, Any]:
    places = places[: query.limit]
    results = batch_detect(places, config, _log_progress, strategy=query.strategy)

    return {
        "results": {
            place_id: result.to_dict(query.include_reasoning)
            for place_id, result in results.items()
            if result.potential_duplicates
        },
        "summary": summarize_batch(results, config.min_confidence_score),
    }


def run_clusters(
    places: list[Place],
    query: DuplicateQuery,
    config: DetectionConfig,
    dismissed_pairs: list[tuple[str, str]],
) -> dict[str, Any]:
    places = places[: query.limit]
    results = batch_detect(places, config, _log_progress, strategy=query.strategy)

    all_clusters = find_clusters(results, 2, config.min_confidence_score)
    clusters = filter_dismissed_clusters(all_clusters, dismissed_pairs)
    if len(clusters) < len(all_clusters):
        logger.info("Dropped %d clusters with dismissed pairs", len(all_clusters) - len(clusters))

    return {
        "clusters": [c.to_dict(query.include_reasoning) for c in clusters],
        "summary": summarize_clusters(clusters, len(places)),
    }


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def write_output(report: dict[str, Any], output_dir: str | Path) -> Path:
    """Write the report as timestamped JSON and return its path."""
    out_path = Path(output_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    report_path = out_path / f"duplicates_{report['mode']}_{ts}.json"
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
    logger.info("Wrote %s report to %s", report["mode"], report_path)
    return report_path


# ---------------------------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find duplicate place records and write a review report",
    )
    parser.add_argument("input", help="JSON file with place records")
    parser.add_argument(
        "--mode",
        default="single",
        help="single | batch | clusters (default: single)",
    )
    parser.add_argument("--place-id", default=None, help="Target place id (single mode)")
    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum places considered, 1-1000 (default: 100)",
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Override the minimum match confidence (0-1) from the config file",
    )
    parser.add_argument(
        "--name-threshold",
        type=float,
        default=None,
        help="Override the name-similarity threshold from the config file",
    )
    parser.add_argument(
        "--location-threshold-km",
        type=float,
        default=None,
        help="Override the location proximity radius from the config file",
    )
    parser.add_argument(
        "--strategy",
        default="indexed",
        help="Batch strategy: indexed | baseline (default: indexed)",
    )
    parser.add_argument(
        "--no-reasoning",
        action="store_true",
        help="Omit reasoning phrases and reduce cluster places to key fields",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to detection_rules.yaml (default: packaged rules)",
    )
    parser.add_argument(
        "--dismissed",
        default=None,
        help="JSON file of reviewer-dismissed place id pairs (clusters mode)",
    )
    parser.add_argument(
        "--output-dir",
        default="output/duplicates",
        help="Directory for the JSON report (default: output/duplicates/)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    args = parse_args(argv)

    fields = {
        "mode": args.mode,
        "place_id": args.place_id,
        "limit": args.limit,
        "name_threshold": args.name_threshold,
        "location_threshold_km": args.location_threshold_km,
        "strategy": args.strategy,
        "include_reasoning": not args.no_reasoning,
    }
    # Unset means the rules file decides
    if args.min_confidence is not None:
        fields["min_confidence"] = args.min_confidence

    try:
        query = DuplicateQuery(**fields)
    except ValidationError as exc:
        logger.error("Invalid parameters:\n%s", exc)
        return 2

    if query.mode == "single" and not query.place_id:
        logger.error("--place-id is required for single mode")
        return 2

    config_path = args.config or DEFAULT_CONFIG_PATH
    try:
        config = DetectionConfig.from_yaml(config_path).with_overrides(
            name_threshold=query.name_threshold,
            location_threshold_km=query.location_threshold_km,
            min_confidence_score=args.min_confidence,
        )
        places = load_places(args.input)
        dismissed = load_dismissed_pairs(args.dismissed)
    except (OSError, ValueError, KeyError) as exc:
        logger.error("Could not load inputs: %s", exc)
        return 1
    logger.info("Loaded detection rules from %s", config_path)

    try:
        if query.mode == "single":
            body = run_single(places, query, config)
        elif query.mode == "batch":
            body = run_batch(places, query, config)
        else:
            body = run_clusters(places, query, config, dismissed)
    except (LookupError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    report = {
        "mode": query.mode,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "config": config.to_dict(),
        **body,
    }
    write_output(report, args.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
