from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest

from astralneo.tools.validate_json import ReportConsistencyError, StrictJsonError, validate_json


def _payload() -> dict:
    # Minimal payload that must satisfy schema v1
    return {
        "meta": {
            "generated_at": "2026-01-01 00:00",
            "coverage": "Coverage: N/A",
            "decision_version": "dev",
            "schema_version": "v1",
            "time_offset_hours": 0.0,
        },
        "population": {
            "verdict": "1 objects tracked, no elevated threats.",
            "delta": [],
            "summary": {
                "total": 1,
                "hazardous": 0,
                "high_risk": 0,
                "by_category": {"minimal": 0, "low": 1, "moderate": 0, "high": 0},
                "closest_identifier": None,
                "closest_distance_lunar": None,
                "max_score": 30,
            },
            "top_risks": [],
        },
        "objects": [
            {
                "identifier": "1",
                "name": "",
                "approach": {
                    "identifier": "1",
                    "estimatedDiameterM": 100.0,
                    "missDistanceLunar": None,
                    "relativeVelocityKmS": 10.0,
                    "isPotentiallyHazardous": False,
                },
                "risk": {"value": 30, "category": "low"},
                "orbit": {
                    "semiMajorAxis": 3.0,
                    "eccentricity": 0.3,
                    "inclinationDeg": 20.0,
                    "ascendingNodeDeg": 10.0,
                    "argumentOfPeriapsisDeg": 200.0,
                },
                "position": {"x": 2.1, "y": 0.0, "z": 0.0},
            }
        ],
        "alerts": [],
        "notes": [],
    }


def _write(tmp_path: Path, payload: dict) -> Path:
    out = tmp_path / "check.json"
    out.write_text(json.dumps(payload, allow_nan=False), encoding="utf-8")
    return out


def test_bundled_schema_validates_sample_json(tmp_path: Path) -> None:
    result = validate_json(_write(tmp_path, _payload()))
    assert result.ok
    assert result.objects == 1


def test_extra_meta_key_is_rejected(tmp_path: Path) -> None:
    payload = _payload()
    payload["meta"]["debug"] = True
    with pytest.raises(jsonschema.ValidationError):
        validate_json(_write(tmp_path, payload))


def test_risk_value_out_of_range_is_rejected(tmp_path: Path) -> None:
    payload = _payload()
    payload["objects"][0]["risk"]["value"] = 0
    with pytest.raises(jsonschema.ValidationError):
        validate_json(_write(tmp_path, payload))


def test_counts_must_match_objects(tmp_path: Path) -> None:
    payload = _payload()
    payload["population"]["summary"]["total"] = 2
    with pytest.raises(ReportConsistencyError):
        validate_json(_write(tmp_path, payload))


def test_nan_is_rejected(tmp_path: Path) -> None:
    out = tmp_path / "nan.json"
    out.write_text('{"meta": {"schema_version": "v1", "time_offset_hours": NaN}}', encoding="utf-8")
    with pytest.raises(StrictJsonError):
        validate_json(out)
