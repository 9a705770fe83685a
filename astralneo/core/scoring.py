from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import pandas as pd

from astralneo.core.contract import (
    CATEGORY_BANDS,
    DIAMETER_FULL_SCALE_M,
    PROXIMITY_FAR_LD,
    PROXIMITY_NEAR_LD,
    VELOCITY_FULL_SCALE_KM_S,
    WEIGHT_DIAMETER,
    WEIGHT_HAZARDOUS,
    WEIGHT_PROXIMITY,
    WEIGHT_VELOCITY,
)
from astralneo.core.ingest import ApproachRecord, records_from_frame


CATEGORIES = tuple(label for _, label in CATEGORY_BANDS)


@dataclass(frozen=True)
class RiskFactors:
    hazard: float
    diameter: float
    proximity: float
    velocity: float

    @property
    def weighted(self) -> float:
        return (
            WEIGHT_HAZARDOUS * self.hazard
            + WEIGHT_DIAMETER * self.diameter
            + WEIGHT_PROXIMITY * self.proximity
            + WEIGHT_VELOCITY * self.velocity
        )


@dataclass(frozen=True)
class RiskScore:
    value: int
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "category": self.category}


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _finite_or(x: Any, default: float) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default


def diameter_factor(diameter_m: Any) -> float:
    d = _finite_or(diameter_m, 0.0)
    if d <= 0:
        return 0.0
    return _clamp(math.log10(max(d, 1.0)) / math.log10(DIAMETER_FULL_SCALE_M) * 100.0, 0.0, 100.0)


def proximity_factor(miss_distance_lunar: Any) -> float:
    # Unknown distance is treated as worst case
    if miss_distance_lunar is None:
        return 100.0
    d = _finite_or(miss_distance_lunar, 0.0)
    if d <= 0:
        return 100.0
    span = PROXIMITY_FAR_LD - PROXIMITY_NEAR_LD
    return _clamp((PROXIMITY_FAR_LD - d) / span * 100.0, 0.0, 100.0)


def velocity_factor(velocity_km_s: Any) -> float:
    v = _finite_or(velocity_km_s, 0.0)
    return _clamp(v / VELOCITY_FULL_SCALE_KM_S * 100.0, 0.0, 100.0)


def risk_factors(record: ApproachRecord) -> RiskFactors:
    return RiskFactors(
        hazard=100.0 if record.is_potentially_hazardous else 0.0,
        diameter=diameter_factor(record.estimated_diameter_m),
        proximity=proximity_factor(record.miss_distance_lunar),
        velocity=velocity_factor(record.relative_velocity_km_s),
    )


def category_for(value: int) -> str:
    for upper, label in CATEGORY_BANDS:
        if value <= upper:
            return label
    return CATEGORY_BANDS[-1][1]


def score(record: ApproachRecord) -> RiskScore:
    """
    Weighted hazard score in [1, 100].

    Half-up rounding of the weighted factor sum, floored at 1. Never raises:
    malformed numerics are clamped inside the factor functions.
    """
    raw = risk_factors(record).weighted
    value = int(math.floor(raw + 0.5))
    value = int(_clamp(value, 1, 100))
    return RiskScore(value=value, category=category_for(value))


def add_risk_score(approach_df: pd.DataFrame) -> pd.DataFrame:
    if approach_df.empty:
        return pd.DataFrame()

    d = approach_df.copy()
    scores = [score(r) for r in records_from_frame(d)]

    d["risk_score"] = [s.value for s in scores]
    d["risk_category"] = [s.category for s in scores]
    return d


def top_risks(scored_df: pd.DataFrame, top_n: int = 5) -> pd.DataFrame:
    """
    Riskiest objects first; ties broken by closer miss distance, then identifier.
    """
    cols = ["identifier", "name", "risk_score", "risk_category", "miss_distance_lunar", "is_potentially_hazardous"]
    if scored_df.empty or "risk_score" not in scored_df.columns:
        return pd.DataFrame(columns=cols)

    d = scored_df.copy()
    d["_dist"] = pd.to_numeric(d["miss_distance_lunar"], errors="coerce").fillna(0.0)
    d = d.sort_values(["risk_score", "_dist", "identifier"], ascending=[False, True, True])

    present = [c for c in cols if c in d.columns]
    return d.head(top_n)[present].reset_index(drop=True)
