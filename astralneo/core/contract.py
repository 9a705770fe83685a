# astralneo/core/contract.py
"""
Astral NEO Decision Contract

This module defines the locked numeric constants for how Astral NEO maps
approach data -> scores, orbits, impact estimates and alert decisions.

If you change any constants in here, bump ASTRALNEO_DECISION_VERSION.
"""

ASTRALNEO_DECISION_VERSION = "0.1.0"

# Units
LUNAR_DISTANCE_KM = 384_400.0
JOULES_PER_MEGATON = 4.184e15

# Risk scoring weights (sum to 1.0)
WEIGHT_HAZARDOUS = 0.40
WEIGHT_DIAMETER = 0.25
WEIGHT_PROXIMITY = 0.25
WEIGHT_VELOCITY = 0.10

# Factor normalisation
DIAMETER_FULL_SCALE_M = 1000.0     # D = 100 at/above this size
PROXIMITY_NEAR_LD = 1.0            # P = 100 at/below this distance
PROXIMITY_FAR_LD = 50.0            # P = 0 at/above this distance
VELOCITY_FULL_SCALE_KM_S = 30.0

# Category breakpoints (inclusive upper bound of each band)
CATEGORY_BANDS = (
    (25, "minimal"),
    (50, "low"),
    (75, "moderate"),
    (100, "high"),
)

# Orbit estimation (scene units)
VIS_SCALE = 0.00004                # scene units per km of miss distance
PERIAPSIS_CLEARANCE = 2.5          # keeps orbits outside the rendered planet (radius 2)
MAX_ECCENTRICITY = 0.85
BASE_ECCENTRICITY = 0.15
ECCENTRICITY_VELOCITY_SCALE = 60.0
INCLINATION_BASE_HAZARDOUS_DEG = 5.0
INCLINATION_BASE_DEFAULT_DEG = 15.0
INCLINATION_SPREAD_DEG = 25.0

# Kepler solver
KEPLER_ITERATIONS = 10
DEFAULT_MEAN_MOTION_RAD_PER_HOUR = 0.05
MAX_TIME_OFFSET_HOURS = 168.0      # +/- 7 day playback window

# Impact physics
CRATER_COEFFICIENT = 0.07
CRATER_ENERGY_EXPONENT = 0.29
CRATER_ANGLE_EXPONENT = 0.33
QUAKE_SLOPE = 0.67
QUAKE_INTERCEPT = 5.87
MAX_QUAKE_MAGNITUDE = 10.0
FIREBALL_COEFFICIENT = 1.2
FIREBALL_EXPONENT = 0.4
EJECTA_CRATER_RATIO = 2.5
MAX_EJECTA_HEIGHT_KM = 100.0

# Alerting
MIN_SAFE_DISTANCE_LD = 1.0         # at/inside this distance -> danger
CLOSER_THAN_USUAL_LD = 5.0         # at/inside this distance -> warning
ALERT_DEDUPE_WINDOW_HOURS = 24.0

# Default per-user thresholds (used when config supplies none)
DEFAULT_ALERT_MIN_DIAMETER_M = 50.0
DEFAULT_ALERT_MAX_DISTANCE_LD = 10.0
DEFAULT_ALERT_MIN_RISK_SCORE = 50
