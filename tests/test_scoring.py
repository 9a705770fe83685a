import pytest

from astralneo.core.ingest import ApproachRecord
from astralneo.core.scoring import (
    add_risk_score,
    category_for,
    diameter_factor,
    proximity_factor,
    risk_factors,
    score,
    top_risks,
    velocity_factor,
)


@pytest.mark.parametrize(
    "diameter_m, expected",
    [(10.0, 33.3), (100.0, 66.7), (500.0, 90.0), (1000.0, 100.0), (25000.0, 100.0)],
)
def test_diameter_factor_reference_points(diameter_m, expected):
    assert diameter_factor(diameter_m) == pytest.approx(expected, abs=1.0)


@pytest.mark.parametrize("bad", [0.0, -5.0, float("nan"), None, "n/a"])
def test_diameter_factor_non_positive_or_garbage_is_zero(bad):
    assert diameter_factor(bad) == 0.0


def test_proximity_factor_reference_points():
    assert proximity_factor(1.0) == 100.0
    assert proximity_factor(50.0) == 0.0
    assert proximity_factor(None) == 100.0
    assert proximity_factor(0.0) == 100.0
    assert proximity_factor(-3.0) == 100.0
    assert proximity_factor(0.2) == 100.0
    assert proximity_factor(120.0) == 0.0


def test_velocity_factor_clamps():
    assert velocity_factor(15.0) == pytest.approx(50.0)
    assert velocity_factor(45.0) == 100.0
    assert velocity_factor(-2.0) == 0.0


def test_end_to_end_example_is_high(hazardous_record):
    f = risk_factors(hazardous_record)
    assert f.weighted == pytest.approx(85.6, abs=0.05)

    s = score(hazardous_record)
    assert s.value == 86
    assert s.category == "high"


@pytest.mark.parametrize(
    "value, category",
    [(1, "minimal"), (25, "minimal"), (26, "low"), (50, "low"), (51, "moderate"), (75, "moderate"), (76, "high"), (100, "high")],
)
def test_category_breakpoints_inclusive_upper(value, category):
    assert category_for(value) == category


def test_score_is_floored_at_one():
    rec = ApproachRecord(identifier="x", estimated_diameter_m=0.0, miss_distance_lunar=80.0, relative_velocity_km_s=0.0)
    s = score(rec)
    assert s.value == 1
    assert s.category == "minimal"


def test_score_never_raises_on_garbage_numbers():
    rec = ApproachRecord(
        identifier="junk",
        estimated_diameter_m=float("nan"),
        miss_distance_lunar=float("inf"),
        relative_velocity_km_s=float("-inf"),
        is_potentially_hazardous=False,
    )
    s = score(rec)
    assert 1 <= s.value <= 100


def test_score_bounds_over_grid():
    for hz in (False, True):
        for d in (0.0, 1.0, 30.0, 140.0, 999.0, 5e4):
            for ld in (None, 0.05, 1.0, 12.0, 49.9, 400.0):
                for v in (0.0, 7.5, 30.0, 90.0):
                    s = score(ApproachRecord("g", d, ld, v, hz))
                    assert 1 <= s.value <= 100
                    assert s.category == category_for(s.value)


def test_add_risk_score_matches_scalar(sample_df):
    out = add_risk_score(sample_df)

    assert list(out["risk_score"]) == [86, 28, 50, 29]
    assert list(out["risk_category"]) == ["high", "low", "low", "low"]
    # input frame is untouched
    assert "risk_score" not in sample_df.columns


def test_top_risks_orders_by_score(sample_df):
    risks = top_risks(add_risk_score(sample_df), top_n=2)

    assert len(risks) == 2
    assert list(risks["identifier"]) == ["3542519", "3840689"]


def test_top_risks_empty_frame_has_columns():
    import pandas as pd

    risks = top_risks(pd.DataFrame(), top_n=3)
    assert risks.empty
    assert "risk_score" in risks.columns

