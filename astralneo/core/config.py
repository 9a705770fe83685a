from __future__ import annotations

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from astralneo.core.alerts import AlertThreshold
from astralneo.core.contract import (
    DEFAULT_ALERT_MAX_DISTANCE_LD,
    DEFAULT_ALERT_MIN_DIAMETER_M,
    DEFAULT_ALERT_MIN_RISK_SCORE,
    DEFAULT_MEAN_MOTION_RAD_PER_HOUR,
)


# ----------------------------
# Primary config object
# ----------------------------

@dataclass(frozen=True)
class AstralConfig:
    """
    Single, flattened config object used by the CLI/runtime.

    Supports config.sample.toml style:
      [astralneo]
      input, snapshot, json_out, history, top_risks, time_offset_hours

    Plus structured tables:
      [orbit]   mean_motion_rad_per_hour
      [alerts]  user_id, watchlist, min_diameter_m, max_distance_lunar, min_risk_score
    """
    schema_version: str = "1.0"

    # IO
    input: str = "data/approaches.csv"
    snapshot: str = "outputs/last_snapshot.csv"
    json_out: str = "outputs/astralneo_report.json"
    history: str = "outputs/alert_history.csv"

    # report knobs
    top_risks: int = 5

    # orbit / animation knobs
    time_offset_hours: float = 0.0
    mean_motion: float = DEFAULT_MEAN_MOTION_RAD_PER_HOUR

    # alerting (single configured user)
    user_id: str = "local"
    watchlist: tuple[str, ...] = ()
    min_diameter_m: float = DEFAULT_ALERT_MIN_DIAMETER_M
    max_distance_lunar: float = DEFAULT_ALERT_MAX_DISTANCE_LD
    min_risk_score: int = DEFAULT_ALERT_MIN_RISK_SCORE

    def alert_threshold(self) -> AlertThreshold:
        return AlertThreshold(
            min_diameter_m=self.min_diameter_m,
            max_distance_lunar=self.max_distance_lunar,
            min_risk_score=self.min_risk_score,
        )


# ----------------------------
# Helpers
# ----------------------------

def _as_dict(x: Any) -> dict[str, Any]:
    return x if isinstance(x, dict) else {}


def _get(d: dict[str, Any], key: str, default: Any) -> Any:
    return d.get(key, default) if isinstance(d, dict) else default


def _coerce_float(x: Any, default: float) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default


def _coerce_int(x: Any, default: int) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def _coerce_str(x: Any, default: str) -> str:
    if x is None:
        return default
    s = str(x)
    return s if s.strip() else default


def _coerce_ids(x: Any) -> tuple[str, ...]:
    if x is None:
        return ()
    if isinstance(x, str):
        items = x.split(",")
    elif isinstance(x, (list, tuple, set)):
        items = list(x)
    else:
        return ()
    return tuple(sorted({str(i).strip() for i in items if str(i).strip()}))


# ----------------------------
# Load + merge
# ----------------------------

def load_config(path: str | Path | None) -> AstralConfig:
    """
    Load TOML config. If missing/None, returns safe defaults.
    Never raises for missing file (config is optional).
    """
    if not path:
        return AstralConfig()

    p = Path(path)
    if not p.exists():
        return AstralConfig()

    data = tomllib.loads(p.read_text(encoding="utf-8"))

    ast = _as_dict(data.get("astralneo", {}))
    meta = _as_dict(data.get("meta", {}))
    orbit = _as_dict(data.get("orbit", {}))
    alerts = _as_dict(data.get("alerts", {}))

    d = AstralConfig()

    return AstralConfig(
        schema_version=_coerce_str(_get(meta, "schema_version", d.schema_version), d.schema_version),
        input=_coerce_str(_get(ast, "input", d.input), d.input),
        snapshot=_coerce_str(_get(ast, "snapshot", d.snapshot), d.snapshot),
        json_out=_coerce_str(_get(ast, "json_out", d.json_out), d.json_out),
        history=_coerce_str(_get(ast, "history", d.history), d.history),
        top_risks=_coerce_int(_get(ast, "top_risks", d.top_risks), d.top_risks),
        time_offset_hours=_coerce_float(_get(ast, "time_offset_hours", d.time_offset_hours), d.time_offset_hours),
        mean_motion=_coerce_float(_get(orbit, "mean_motion_rad_per_hour", d.mean_motion), d.mean_motion),
        user_id=_coerce_str(_get(alerts, "user_id", d.user_id), d.user_id),
        watchlist=_coerce_ids(_get(alerts, "watchlist", None)),
        min_diameter_m=_coerce_float(_get(alerts, "min_diameter_m", d.min_diameter_m), d.min_diameter_m),
        max_distance_lunar=_coerce_float(
            _get(alerts, "max_distance_lunar", d.max_distance_lunar), d.max_distance_lunar
        ),
        min_risk_score=_coerce_int(_get(alerts, "min_risk_score", d.min_risk_score), d.min_risk_score),
    )


def merge_config(cfg: AstralConfig, overrides: Mapping[str, Any]) -> AstralConfig:
    """
    Merge explicit CLI values over file config.
    Only applies keys that are known fields AND not None/empty.
    """
    clean: dict[str, Any] = {}
    for key, value in overrides.items():
        if not hasattr(cfg, key) or value is None:
            continue
        cur = getattr(cfg, key)
        if isinstance(cur, tuple):
            ids = _coerce_ids(value)
            if ids:
                clean[key] = ids
        elif isinstance(cur, str):
            if str(value).strip():
                clean[key] = str(value).strip()
        elif isinstance(cur, float):
            clean[key] = _coerce_float(value, cur)
        elif isinstance(cur, int):
            clean[key] = _coerce_int(value, cur)

    return replace(cfg, **clean) if clean else cfg
