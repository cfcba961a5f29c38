"""
Tests for reading baseline directories.
"""

import json
import math

import pytest

from perfrunner.baselines import check_statistics, from_json_files, load_baselines
from perfrunner.exceptions import BaselineLoadError, CollaboratorError
from perfrunner.models import Baseline, Measurements
from perfrunner.version import Version


def _metric(project="p", metric="parse", mean=1.0, stddev=0.1):
    return {"project": project, "metric": metric, "mean": mean, "stddev": stddev}


class TestFromJsonFiles:

    def test_parses_every_json_file_in_name_order(self, baseline_dir, baseline_payload):
        directory = baseline_dir({
            "b.json": baseline_payload("2.0.0", [_metric()]),
            "a.json": baseline_payload("1.0.0", [_metric()]),
            "notes.txt": "not a baseline",
        })

        records = from_json_files(directory, Baseline)

        assert [path.name for path in records] == ["a.json", "b.json"]
        assert [b.version for b in records.values()] == [Version(1, 0, 0), Version(2, 0, 0)]

    def test_works_for_any_model(self, baseline_dir):
        directory = baseline_dir({
            "parse___p.json": {
                "results": [{
                    "command": "c", "mean": 1.0, "stddev": 0.0, "median": 1.0,
                    "user": 1.0, "system": 0.0, "min": 1.0, "max": 1.0, "times": [1.0],
                }]
            }
        })

        (measurements,) = from_json_files(directory, Measurements).values()

        assert measurements.results[0].times == [1.0]

    def test_ignores_subdirectories(self, baseline_dir, baseline_payload):
        directory = baseline_dir({"1.0.0.json": baseline_payload("1.0.0", [])})
        (directory / "nested.json").mkdir()

        assert len(from_json_files(directory, Baseline)) == 1

    def test_empty_directory_yields_nothing(self, tmp_path):
        assert from_json_files(tmp_path, Baseline) == {}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(BaselineLoadError) as exc_info:
            from_json_files(tmp_path / "missing", Baseline)

        assert exc_info.value.error_code == "COLLAB_101"
        assert isinstance(exc_info.value, CollaboratorError)

    def test_invalid_json(self, baseline_dir):
        directory = baseline_dir({"broken.json": "{not json"})

        with pytest.raises(BaselineLoadError) as exc_info:
            from_json_files(directory, Baseline)

        assert exc_info.value.error_code == "COLLAB_103"
        assert exc_info.value.context["file_path"].endswith("broken.json")

    def test_non_utf8_file(self, tmp_path):
        directory = tmp_path / "baselines"
        directory.mkdir()
        (directory / "1.0.0.json").write_bytes(b"\xff")

        with pytest.raises(BaselineLoadError) as exc_info:
            load_baselines(directory)

        assert exc_info.value.error_code == "COLLAB_103"
        assert exc_info.value.context["file_path"].endswith("1.0.0.json")

    def test_schema_mismatch(self, baseline_dir, baseline_payload):
        directory = baseline_dir({"bad.json": baseline_payload("1.2", [])})

        with pytest.raises(BaselineLoadError) as exc_info:
            from_json_files(directory, Baseline)

        assert exc_info.value.error_code == "COLLAB_104"
        assert exc_info.value.context["validation_errors"]


class TestLoadBaselines:

    def test_loads_valid_baselines(self, baseline_dir, baseline_payload, caplog):
        directory = baseline_dir({
            "1.0.0.json": baseline_payload("1.0.0", [_metric()]),
            "1.1.0.json": baseline_payload("1.1.0", [_metric(mean=2.0)]),
        })

        baselines = load_baselines(directory)

        assert len(baselines) == 2
        assert "Loaded 2 baseline(s)" in caplog.text

    @pytest.mark.parametrize("mean,stddev", [
        (1.0, float("nan")),
        (float("nan"), 0.1),
        (1.0, float("inf")),
        (float("-inf"), 0.1),
        (1.0, -0.1),
    ])
    def test_rejects_unusable_statistics(self, baseline_dir, mean, stddev):
        # json.dumps writes NaN/Infinity tokens, which the loader accepts as floats
        payload = {
            "version": "1.0.0",
            "metrics": [{
                "project": "p", "metric": "parse", "ts": "2024-01-15T12:30:00Z",
                "measurement": {
                    "command": "c", "mean": mean, "stddev": stddev, "median": 1.0,
                    "user": 1.0, "system": 0.0, "min": 0.0, "max": 2.0, "times": [],
                },
            }],
        }
        directory = baseline_dir({"1.0.0.json": json.dumps(payload)})

        with pytest.raises(BaselineLoadError) as exc_info:
            load_baselines(directory)

        assert exc_info.value.error_code == "COLLAB_105"
        assert exc_info.value.context["project"] == "p"

    def test_statistics_check_can_be_disabled(self, baseline_dir):
        payload = {
            "version": "1.0.0",
            "metrics": [{
                "project": "p", "metric": "parse", "ts": "2024-01-15T12:30:00Z",
                "measurement": {
                    "command": "c", "mean": 1.0, "stddev": float("nan"), "median": 1.0,
                    "user": 1.0, "system": 0.0, "min": 0.0, "max": 2.0, "times": [],
                },
            }],
        }
        directory = baseline_dir({"1.0.0.json": json.dumps(payload)})

        (baseline,) = load_baselines(directory, validate_statistics=False).values()

        assert math.isnan(baseline.metrics[0].measurement.stddev)


def test_check_statistics_accepts_zero_stddev(make_baseline):
    check_statistics(make_baseline(Version(1, 0, 0), [("p", "parse", 1.0, 0.0)]))
