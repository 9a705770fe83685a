from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import pandas as pd

from astralneo.core.contract import LUNAR_DISTANCE_KM


REQUIRED_COLUMNS = [
    "identifier",
    "estimated_diameter_m",
    "miss_distance_lunar",
    "relative_velocity_km_s",
    "is_potentially_hazardous",
]

OPTIONAL_COLUMNS = ["name", "close_approach_date"]

NUMERIC_COLUMNS = ["estimated_diameter_m", "miss_distance_lunar", "relative_velocity_km_s"]

_TRUTHY = {"true", "t", "yes", "y", "1"}


@dataclass(frozen=True)
class ApproachRecord:
    """Immutable snapshot of one close approach, as produced upstream each cycle."""

    identifier: str
    estimated_diameter_m: float = 0.0
    miss_distance_lunar: float | None = None
    relative_velocity_km_s: float = 0.0
    is_potentially_hazardous: bool = False
    name: str = ""
    close_approach_date: str | None = None

    @property
    def miss_distance_km(self) -> float:
        d = self.miss_distance_lunar
        if d is None or not math.isfinite(d) or d <= 0:
            return 0.0
        return d * LUNAR_DISTANCE_KM

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ApproachRecord":
        """
        Build a record from loosely-typed input (CSV row, JSON object).
        Never raises on bad numerics; they fall back to the defensive defaults.
        Accepts both snake_case and the camelCase wire names.
        """
        def pick(*keys: str) -> Any:
            for k in keys:
                if k in raw:
                    return raw[k]
            return None

        return cls(
            identifier=_coerce_identifier(pick("identifier", "id", "neo_reference_id")),
            estimated_diameter_m=_coerce_float(pick("estimated_diameter_m", "estimatedDiameterM"), 0.0),
            miss_distance_lunar=_coerce_opt_float(pick("miss_distance_lunar", "missDistanceLunar")),
            relative_velocity_km_s=_coerce_float(pick("relative_velocity_km_s", "relativeVelocityKmS"), 0.0),
            is_potentially_hazardous=_coerce_bool(pick("is_potentially_hazardous", "isPotentiallyHazardous")),
            name=_coerce_text(pick("name")),
            close_approach_date=_coerce_text(pick("close_approach_date", "closeApproachDate")) or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "estimatedDiameterM": self.estimated_diameter_m,
            "missDistanceLunar": self.miss_distance_lunar,
            "relativeVelocityKmS": self.relative_velocity_km_s,
            "isPotentiallyHazardous": self.is_potentially_hazardous,
        }


@dataclass(frozen=True)
class IngestResult:
    df: pd.DataFrame
    issues: list[str]


# ----------------------------
# Coercion helpers
# ----------------------------

def _is_missing(x: Any) -> bool:
    if x is None:
        return True
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def _coerce_float(x: Any, default: float) -> float:
    if _is_missing(x):
        return default
    try:
        v = float(x)
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default


def _coerce_opt_float(x: Any) -> float | None:
    if _is_missing(x):
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def _coerce_bool(x: Any) -> bool:
    if _is_missing(x):
        return False
    if isinstance(x, bool):
        return x
    if isinstance(x, (int, float)):
        return x != 0
    return str(x).strip().lower() in _TRUTHY


def _coerce_text(x: Any) -> str:
    if _is_missing(x):
        return ""
    return str(x).strip()


def _coerce_identifier(x: Any) -> str:
    s = _coerce_text(x)
    # CSV readers turn numeric ids into floats ("3542519.0")
    if s.endswith(".0") and s[:-2].isdigit():
        s = s[:-2]
    return s


# ----------------------------
# Load
# ----------------------------

def load_approaches_csv(path: str | Path) -> IngestResult:
    """
    Load an approach-record CSV and validate basic schema.

    Expected columns:
    identifier, estimated_diameter_m, miss_distance_lunar, relative_velocity_km_s,
    is_potentially_hazardous (+ optional name, close_approach_date)
    """
    path = Path(path)
    issues: list[str] = []

    if not path.exists():
        return IngestResult(df=pd.DataFrame(), issues=[f"File not found: {path}"])

    df = pd.read_csv(path, dtype={"identifier": str})

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        issues.append(f"Missing required columns: {missing}")
        return IngestResult(df=pd.DataFrame(), issues=issues)

    for col in OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = ""

    df["identifier"] = df["identifier"].map(_coerce_identifier)
    blank_ids = int((df["identifier"] == "").sum())
    if blank_ids:
        issues.append(f"{blank_ids} rows have no identifier and were dropped")
    df = df[df["identifier"] != ""].copy()

    dupes = int(df["identifier"].duplicated().sum())
    if dupes:
        issues.append(f"{dupes} duplicate identifiers; keeping the last row for each")
        df = df.drop_duplicates(subset="identifier", keep="last").copy()

    # Coerce numerics; bad values become NaN and are clamped at scoring time
    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    bad_size = int(df["estimated_diameter_m"].isna().sum())
    if bad_size:
        issues.append(f"{bad_size} rows have invalid estimated_diameter_m (treated as 0)")
    bad_vel = int(df["relative_velocity_km_s"].isna().sum())
    if bad_vel:
        issues.append(f"{bad_vel} rows have invalid relative_velocity_km_s (treated as 0)")
    no_dist = int(df["miss_distance_lunar"].isna().sum() + (df["miss_distance_lunar"] <= 0).sum())
    if no_dist:
        issues.append(f"{no_dist} rows have missing/non-positive miss_distance_lunar (worst case assumed)")

    df["is_potentially_hazardous"] = df["is_potentially_hazardous"].map(_coerce_bool)
    df["name"] = df["name"].map(_coerce_text)
    df["close_approach_date"] = df["close_approach_date"].map(_coerce_text)

    return IngestResult(df=df.reset_index(drop=True), issues=issues)


def records_from_frame(df: pd.DataFrame) -> list[ApproachRecord]:
    if df is None or df.empty:
        return []
    return [ApproachRecord.from_mapping(row) for row in df.to_dict(orient="records")]
