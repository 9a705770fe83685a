from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from astralneo.core.contract import (
    CRATER_ANGLE_EXPONENT,
    CRATER_COEFFICIENT,
    CRATER_ENERGY_EXPONENT,
    EJECTA_CRATER_RATIO,
    FIREBALL_COEFFICIENT,
    FIREBALL_EXPONENT,
    JOULES_PER_MEGATON,
    MAX_EJECTA_HEIGHT_KM,
    MAX_QUAKE_MAGNITUDE,
    QUAKE_INTERCEPT,
    QUAKE_SLOPE,
)


# (field, lower, upper, lower_inclusive)
PARAM_RANGES = (
    ("diameter_km", 0.01, 100.0, True),
    ("velocity_km_s", 1.0, 72.0, True),
    ("density_kg_m3", 1000.0, 8000.0, True),
    ("impact_angle_deg", 0.0, 90.0, False),
)

# Half-open [lower, upper) megaton bands; contiguous, first lower is 0, last upper is inf
COMPARISON_BANDS = (
    (0.0, 0.001, "large conventional bomb"),
    (0.001, 0.02, "Hiroshima-class nuclear blast"),
    (0.02, 1.0, "Chelyabinsk-class airburst"),
    (1.0, 10.0, "Tunguska-class event"),
    (10.0, 100.0, "Tsar Bomba-class detonation"),
    (100.0, 1e4, "regional devastation"),
    (1e4, 1e6, "continental catastrophe"),
    (1e6, 1e8, "small extinction event"),
    (1e8, 1e9, "Chicxulub-class mass extinction"),
    (1e9, math.inf, "planet-shattering cataclysm"),
)

_WIRE_NAMES = {
    "diameter_km": "diameterKm",
    "velocity_km_s": "velocityKmS",
    "density_kg_m3": "densityKgM3",
    "impact_angle_deg": "impactAngleDeg",
}


class ImpactValidationError(ValueError):
    """Raised when an impact parameter is missing, non-numeric or out of range."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


@dataclass(frozen=True)
class ImpactParameters:
    diameter_km: float
    velocity_km_s: float
    density_kg_m3: float = 3000.0
    impact_angle_deg: float = 45.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ImpactParameters":
        """
        Parse user input (snake_case or wire names). Raises ImpactValidationError
        naming the first bad field; range checks happen in validate().
        """
        values: dict[str, float] = {}
        for field, wire in _WIRE_NAMES.items():
            x = raw.get(field, raw.get(wire))
            if x is None:
                default = getattr(cls, field, None)
                if default is None:
                    raise ImpactValidationError(field, "is required")
                values[field] = float(default)
                continue
            if isinstance(x, bool):
                raise ImpactValidationError(field, "must be a number")
            try:
                values[field] = float(x)
            except (TypeError, ValueError):
                raise ImpactValidationError(field, f"must be a number, got {x!r}") from None
        params = cls(**values)
        validate(params)
        return params

    def to_dict(self) -> dict[str, Any]:
        return {wire: getattr(self, field) for field, wire in _WIRE_NAMES.items()}


@dataclass(frozen=True)
class ImpactResult:
    energy_joules: float
    energy_megatons: float
    crater_diameter_km: float
    quake_magnitude: float
    fireball_radius_km: float
    ejecta_height_km: float
    comparison_label: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "energyJoules": self.energy_joules,
            "energyMegatons": self.energy_megatons,
            "craterDiameterKm": self.crater_diameter_km,
            "quakeMagnitude": self.quake_magnitude,
            "fireballRadiusKm": self.fireball_radius_km,
            "ejectaHeightKm": self.ejecta_height_km,
            "comparisonLabel": self.comparison_label,
        }


def validate(params: ImpactParameters) -> None:
    for field, lo, hi, lo_inclusive in PARAM_RANGES:
        v = getattr(params, field)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ImpactValidationError(field, "must be a number")
        if not math.isfinite(v):
            raise ImpactValidationError(field, "must be finite")
        below = v < lo if lo_inclusive else v <= lo
        if below or v > hi:
            bracket = "[" if lo_inclusive else "("
            raise ImpactValidationError(field, f"must be in {bracket}{lo:g}, {hi:g}], got {v:g}")


def comparison_label(megatons: float) -> str:
    for lo, hi, label in COMPARISON_BANDS:
        if lo <= megatons < hi:
            return label
    # Negative/NaN energies cannot come out of a validated simulation
    return COMPARISON_BANDS[0][2]


def simulate(params: ImpactParameters) -> ImpactResult:
    """
    Hypothetical impact consequences for a spherical impactor.

    Empirical scaling laws; the crater law yields metres for an energy in
    joules and is reported in km.
    """
    validate(params)

    radius_m = params.diameter_km * 500.0
    mass = params.density_kg_m3 * (4.0 / 3.0) * math.pi * radius_m ** 3
    velocity_m_s = params.velocity_km_s * 1000.0

    energy = 0.5 * mass * velocity_m_s ** 2
    megatons = energy / JOULES_PER_MEGATON

    angle = math.radians(params.impact_angle_deg)
    crater_m = CRATER_COEFFICIENT * energy ** CRATER_ENERGY_EXPONENT * math.sin(angle) ** CRATER_ANGLE_EXPONENT
    crater_km = crater_m / 1000.0

    quake = min(MAX_QUAKE_MAGNITUDE, QUAKE_SLOPE * math.log10(megatons) + QUAKE_INTERCEPT)
    fireball_km = FIREBALL_COEFFICIENT * megatons ** FIREBALL_EXPONENT
    ejecta_km = min(MAX_EJECTA_HEIGHT_KM, crater_km * EJECTA_CRATER_RATIO)

    return ImpactResult(
        energy_joules=energy,
        energy_megatons=megatons,
        crater_diameter_km=crater_km,
        quake_magnitude=quake,
        fireball_radius_km=fireball_km,
        ejecta_height_km=ejecta_km,
        comparison_label=comparison_label(megatons),
    )
