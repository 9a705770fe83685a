"""Kepler position solver for the visual-scale orbits produced by core.orbit."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

import numpy as np

from astralneo.core.contract import (
    DEFAULT_MEAN_MOTION_RAD_PER_HOUR,
    KEPLER_ITERATIONS,
    MAX_TIME_OFFSET_HOURS,
)
from astralneo.core.orbit import OrbitalElements

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class PositionVector:
    x: float
    y: float
    z: float

    def norm(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "z": self.z}


def clamp_time_offset(hours: float, limit: float = MAX_TIME_OFFSET_HOURS) -> float:
    return max(-limit, min(limit, float(hours)))


def mean_anomaly(time_offset: float, mean_motion: float = DEFAULT_MEAN_MOTION_RAD_PER_HOUR) -> float:
    """Mean anomaly in [0, 2pi); M = 0 (periapsis) at time offset 0."""
    return math.fmod(mean_motion * time_offset, TWO_PI) % TWO_PI


def solve_kepler(m: float, e: float, iterations: int = KEPLER_ITERATIONS) -> float:
    """
    Eccentric anomaly E for M = E - e*sin(E), Newton-Raphson from E0 = M.
    Fixed iteration count so the cost per call is constant.
    """
    E = m
    for _ in range(iterations):
        E = E - (E - e * math.sin(E) - m) / (1.0 - e * math.cos(E))
    return E


def true_anomaly(E: float, e: float) -> float:
    return 2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(E / 2.0), math.sqrt(1.0 - e) * math.cos(E / 2.0))


def _rotate(x: float, y: float, el: OrbitalElements) -> tuple[float, float, float]:
    # Rz(node) . Rx(inc) . Rz(arg_periapsis) applied to (x, y, 0)
    w = math.radians(el.argument_of_periapsis_deg)
    i = math.radians(el.inclination_deg)
    node = math.radians(el.ascending_node_deg)

    x1 = x * math.cos(w) - y * math.sin(w)
    y1 = x * math.sin(w) + y * math.cos(w)

    y2 = y1 * math.cos(i)
    z2 = y1 * math.sin(i)

    x3 = x1 * math.cos(node) - y2 * math.sin(node)
    y3 = x1 * math.sin(node) + y2 * math.cos(node)
    return x3, y3, z2


def position_at(
    elements: OrbitalElements,
    time_offset: float,
    mean_motion: float = DEFAULT_MEAN_MOTION_RAD_PER_HOUR,
) -> PositionVector:
    """
    Scene-space position of an object `time_offset` hours from closest approach.

    `mean_motion` (radians per hour) is a visualisation rate, not a physical
    orbital period.
    """
    a = elements.semi_major_axis
    e = elements.eccentricity

    m = mean_anomaly(time_offset, mean_motion)
    E = solve_kepler(m, e)
    theta = true_anomaly(E, e)

    b = a * math.sqrt(1.0 - e * e)
    c = a * e
    x = a * math.cos(theta) - c
    y = b * math.sin(theta)

    return PositionVector(*_rotate(x, y, elements))


def orbit_track(
    elements: OrbitalElements,
    offsets: Iterable[float],
    mean_motion: float = DEFAULT_MEAN_MOTION_RAD_PER_HOUR,
) -> np.ndarray:
    """
    Positions for a sequence of time offsets as an (n, 3) array.
    """
    pts = [position_at(elements, t, mean_motion) for t in offsets]
    if not pts:
        return np.empty((0, 3), dtype=float)
    return np.array([[p.x, p.y, p.z] for p in pts], dtype=float)


def sample_offsets(window_hours: float = MAX_TIME_OFFSET_HOURS, step_hours: float = 6.0) -> np.ndarray:
    if step_hours <= 0:
        raise ValueError("step_hours must be > 0")
    window = abs(float(window_hours))
    return np.arange(-window, window + step_hours / 2.0, step_hours)
