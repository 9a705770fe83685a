from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from astralneo.core.contract import (
    BASE_ECCENTRICITY,
    ECCENTRICITY_VELOCITY_SCALE,
    INCLINATION_BASE_DEFAULT_DEG,
    INCLINATION_BASE_HAZARDOUS_DEG,
    INCLINATION_SPREAD_DEG,
    MAX_ECCENTRICITY,
    PERIAPSIS_CLEARANCE,
    VIS_SCALE,
)
from astralneo.core.ingest import ApproachRecord, records_from_frame


ORBIT_COLUMNS = [
    "semi_major_axis",
    "eccentricity",
    "inclination_deg",
    "ascending_node_deg",
    "argument_of_periapsis_deg",
]


@dataclass(frozen=True)
class OrbitalElements:
    semi_major_axis: float
    eccentricity: float
    inclination_deg: float
    ascending_node_deg: float
    argument_of_periapsis_deg: float

    @property
    def periapsis(self) -> float:
        return self.semi_major_axis * (1.0 - self.eccentricity)

    @property
    def apoapsis(self) -> float:
        return self.semi_major_axis * (1.0 + self.eccentricity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "semiMajorAxis": self.semi_major_axis,
            "eccentricity": self.eccentricity,
            "inclinationDeg": self.inclination_deg,
            "ascendingNodeDeg": self.ascending_node_deg,
            "argumentOfPeriapsisDeg": self.argument_of_periapsis_deg,
        }


def seed_for(identifier: str) -> int:
    """Stable 64-bit seed for an object identifier (independent of PYTHONHASHSEED)."""
    digest = hashlib.sha256(str(identifier).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def _generator(identifier: str) -> np.random.Generator:
    # Philox is counter-based: a fresh generator per call never shares a stream
    return np.random.Generator(np.random.Philox(key=seed_for(identifier)))


def eccentricity_for(velocity_km_s: float) -> float:
    v = velocity_km_s if velocity_km_s > 0 else 0.0
    return min(MAX_ECCENTRICITY, BASE_ECCENTRICITY + v / ECCENTRICITY_VELOCITY_SCALE)


def periapsis_for(miss_distance_km: float) -> float:
    return PERIAPSIS_CLEARANCE + miss_distance_km * VIS_SCALE


def estimate(record: ApproachRecord) -> OrbitalElements:
    """
    Approximate, visual-scale orbit for one approach.

    Geometry comes from the record (periapsis from miss distance, eccentricity
    from velocity); orientation comes from a generator keyed by the identifier.
    Draw order is fixed: inclination, ascending node, argument of periapsis.
    """
    rng = _generator(record.identifier)

    rp = periapsis_for(record.miss_distance_km)
    e = eccentricity_for(record.relative_velocity_km_s)
    a = rp / (1.0 - e)

    i_base = INCLINATION_BASE_HAZARDOUS_DEG if record.is_potentially_hazardous else INCLINATION_BASE_DEFAULT_DEG
    inclination = i_base + float(rng.random()) * INCLINATION_SPREAD_DEG
    node = float(rng.random()) * 360.0
    periapsis_arg = float(rng.random()) * 360.0

    return OrbitalElements(
        semi_major_axis=a,
        eccentricity=e,
        inclination_deg=inclination,
        ascending_node_deg=node,
        argument_of_periapsis_deg=periapsis_arg,
    )


def add_orbit_elements(approach_df: pd.DataFrame) -> pd.DataFrame:
    if approach_df.empty:
        return pd.DataFrame()

    d = approach_df.copy()
    elements = [estimate(r) for r in records_from_frame(d)]
    for col in ORBIT_COLUMNS:
        d[col] = [getattr(el, col) for el in elements]
    return d


def elements_from_row(row: Any) -> OrbitalElements:
    return OrbitalElements(**{col: float(row[col]) for col in ORBIT_COLUMNS})
