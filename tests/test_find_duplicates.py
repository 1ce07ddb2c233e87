"""Tests for the place-dedup command-line report and its parameter model."""

import json

import pytest
from pydantic import ValidationError

from place_dedup.models import DuplicateQuery
from place_dedup.scripts.find_duplicates import (
    load_dismissed_pairs,
    load_places,
    main,
    write_output,
)


@pytest.fixture
def places_file(tmp_path, landmark_records):
    path = tmp_path / "places.json"
    path.write_text(json.dumps(landmark_records), encoding="utf-8")
    return path


def _run(args, output_dir):
    code = main([*args, "--output-dir", str(output_dir)])
    reports = sorted(output_dir.glob("*.json")) if output_dir.exists() else []
    return code, reports


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


# ---- DuplicateQuery ---------------------------------------------------------


class TestDuplicateQuery:
    def test_defaults(self):
        query = DuplicateQuery()
        assert query.mode == "single"
        assert query.limit == 100
        assert query.min_confidence == 0.6
        assert query.strategy == "indexed"
        assert query.include_reasoning is True
        assert query.name_threshold is None

    @pytest.mark.parametrize("field, value", [
        ("limit", 0),
        ("limit", 1001),
        ("min_confidence", 1.5),
        ("min_confidence", -0.1),
        ("name_threshold", 2.0),
        ("location_threshold_km", 0.0),
        ("location_threshold_km", 51.0),
        ("mode", "everything"),
        ("strategy", "quadtree"),
    ])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            DuplicateQuery(**{field: value})


# ---- loaders ----------------------------------------------------------------


class TestLoaders:
    def test_load_places(self, places_file):
        places = load_places(places_file)
        assert [p.id for p in places][:2] == ["sf-1", "sf-2"]
        assert places[4].alt_names == ("Eiffel Tower",)
        assert places[6].coords is None

    def test_load_places_wrapped(self, tmp_path, landmark_records):
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"places": landmark_records}), encoding="utf-8")
        assert len(load_places(path)) == len(landmark_records)

    def test_load_places_rejects_scalar(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("42", encoding="utf-8")
        with pytest.raises(ValueError):
            load_places(path)

    def test_load_dismissed_pairs(self, tmp_path):
        path = tmp_path / "dismissed.json"
        path.write_text(json.dumps([
            ["a", "b"],
            {"place_id_1": "c", "place_id_2": "d"},
        ]), encoding="utf-8")
        assert load_dismissed_pairs(path) == [("a", "b"), ("c", "d")]

    @pytest.mark.parametrize("entry", [5, "ab", ["a"], ["a", "b", "c"]])
    def test_load_dismissed_pairs_rejects_malformed_entry(self, tmp_path, entry):
        path = tmp_path / "dismissed.json"
        path.write_text(json.dumps([entry]), encoding="utf-8")
        with pytest.raises(ValueError):
            load_dismissed_pairs(path)

    def test_no_dismissed_file(self):
        assert load_dismissed_pairs(None) == []

    def test_write_output(self, tmp_path):
        path = write_output({"mode": "batch", "results": {}}, tmp_path / "out")
        assert path.name.startswith("duplicates_batch_")
        assert _read(path)["mode"] == "batch"


# ---- main -------------------------------------------------------------------


class TestMain:
    def test_single_mode(self, places_file, tmp_path):
        code, reports = _run([str(places_file), "--place-id", "sf-1"], tmp_path / "out")
        assert code == 0
        report = _read(reports[0])
        assert report["mode"] == "single"
        duplicates = report["result"]["potential_duplicates"]
        assert [d["place"]["id"] for d in duplicates] == ["sf-2"]
        assert "reasoning" in duplicates[0]
        assert report["performance"]["candidates_checked"] == 6
        assert report["config"]["min_confidence_score"] == 0.6

    def test_single_mode_requires_place_id(self, places_file, tmp_path):
        code, reports = _run([str(places_file)], tmp_path / "out")
        assert code == 2
        assert reports == []

    def test_unknown_place_id(self, places_file, tmp_path):
        code, _ = _run([str(places_file), "--place-id", "nope"], tmp_path / "out")
        assert code == 1

    def test_invalid_parameters(self, places_file, tmp_path):
        code, _ = _run([str(places_file), "--mode", "batch", "--limit", "0"], tmp_path / "out")
        assert code == 2

    def test_missing_input(self, tmp_path):
        code, _ = _run([str(tmp_path / "missing.json"), "--mode", "batch"], tmp_path / "out")
        assert code == 1

    def test_batch_mode(self, places_file, tmp_path):
        code, reports = _run([str(places_file), "--mode", "batch"], tmp_path / "out")
        assert code == 0
        report = _read(reports[0])
        assert set(report["results"]) == {"sf-1", "sf-2", "et-1", "et-2", "bb-1", "bb-2"}
        assert report["summary"]["total_places"] == 7
        assert report["summary"]["places_with_duplicates"] == 6

    def test_batch_mode_baseline_strategy(self, places_file, tmp_path):
        code, reports = _run(
            [str(places_file), "--mode", "batch", "--strategy", "baseline", "--no-reasoning"],
            tmp_path / "out",
        )
        assert code == 0
        match = _read(reports[0])["results"]["sf-1"]["potential_duplicates"][0]
        assert "reasoning" not in match

    def test_limit_applies_before_detection(self, places_file, tmp_path):
        code, reports = _run([str(places_file), "--mode", "batch", "--limit", "2"],
                             tmp_path / "out")
        assert code == 0
        assert _read(reports[0])["summary"]["total_places"] == 2

    def test_clusters_mode(self, places_file, tmp_path):
        code, reports = _run([str(places_file), "--mode", "clusters"], tmp_path / "out")
        assert code == 0
        report = _read(reports[0])
        assert report["summary"]["total_clusters"] == 3
        assert all(c["cluster_id"].startswith("cluster_") for c in report["clusters"])

    def test_clusters_mode_dismissed(self, places_file, tmp_path):
        dismissed = tmp_path / "dismissed.json"
        dismissed.write_text(json.dumps([["sf-2", "sf-1"]]), encoding="utf-8")
        code, reports = _run(
            [str(places_file), "--mode", "clusters", "--dismissed", str(dismissed),
             "--no-reasoning"],
            tmp_path / "out",
        )
        assert code == 0
        report = _read(reports[0])
        ids = {p["id"] for c in report["clusters"] for p in c["places"]}
        assert "sf-1" not in ids
        assert report["summary"]["total_clusters"] == 2
        assert set(report["clusters"][0]["places"][0]) == {"id", "name", "kind", "city", "country"}

    def test_threshold_overrides(self, places_file, tmp_path):
        code, reports = _run(
            [str(places_file), "--place-id", "sf-1", "--min-confidence", "0.9",
             "--location-threshold-km", "1.0", "--name-threshold", "0.7"],
            tmp_path / "out",
        )
        assert code == 0
        report = _read(reports[0])
        assert report["config"]["location_threshold_km"] == 1.0
        assert report["config"]["name_threshold"] == 0.7
        assert report["result"]["potential_duplicates"] == []

    def test_custom_config_file(self, places_file, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("thresholds:\n  min_confidence: 0.95\n", encoding="utf-8")
        code, reports = _run(
            [str(places_file), "--place-id", "sf-1", "--config", str(rules)],
            tmp_path / "out",
        )
        assert code == 0
        report = _read(reports[0])
        assert report["config"]["min_confidence_score"] == 0.95
        # sf-2 scores 0.85, below the file's floor
        assert report["result"]["potential_duplicates"] == []

    def test_min_confidence_flag_overrides_config_file(self, places_file, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("thresholds:\n  min_confidence: 0.95\n", encoding="utf-8")
        code, reports = _run(
            [str(places_file), "--place-id", "sf-1", "--config", str(rules),
             "--min-confidence", "0.7"],
            tmp_path / "out",
        )
        assert code == 0
        report = _read(reports[0])
        assert report["config"]["min_confidence_score"] == 0.7
        assert [d["place"]["id"] for d in report["result"]["potential_duplicates"]] == ["sf-2"]

    def test_malformed_dismissed_file(self, places_file, tmp_path):
        dismissed = tmp_path / "dismissed.json"
        dismissed.write_text("[5]", encoding="utf-8")
        code, reports = _run(
            [str(places_file), "--mode", "clusters", "--dismissed", str(dismissed)],
            tmp_path / "out",
        )
        assert code == 1
        assert reports == []
