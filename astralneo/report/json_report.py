from __future__ import annotations

import json
import math
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from astralneo.core.alerts import AlertEvent
from astralneo.core.population import PopulationSummary


def _json_safe(x: Any) -> Any:
    """
    Convert values into strict JSON-safe Python types.

    Guarantees:
    - No NaN / Infinity (converted to None)
    - pandas/numpy NA -> None
    - numpy scalars -> python primitives
    - Recurses through dict/list/tuple
    """
    if isinstance(x, dict):
        return {str(k): _json_safe(v) for k, v in x.items()}

    if isinstance(x, (list, tuple)):
        return [_json_safe(v) for v in x]

    try:
        if pd.isna(x):
            return None
    except (TypeError, ValueError):
        pass

    if isinstance(x, float):
        if math.isnan(x) or math.isinf(x):
            return None
        return x

    # Timestamps before numpy scalars: both expose .item()/.isoformat()
    if isinstance(x, (pd.Timestamp, datetime)):
        return x.isoformat()

    if isinstance(x, (str, int, bool)) or x is None:
        return x

    # Numpy scalars (float/int/bool) -> python primitives
    if hasattr(x, "item") and callable(x.item):
        try:
            return _json_safe(x.item())
        except (TypeError, ValueError):
            pass

    return str(x)


def _df_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    if df is None or df.empty:
        return []
    clean = df.copy()
    for col in clean.columns:
        clean[col] = clean[col].apply(_json_safe).astype(object)
    return clean.to_dict(orient="records")


def write_json_report(
    out_path: str | Path,
    *,
    generated_at: str | None,
    coverage_line: str | None,
    verdict: str,
    delta_lines: list[str] | None,
    summary: PopulationSummary,
    top_risks: pd.DataFrame,
    objects: list[dict[str, Any]],
    alerts: list[AlertEvent],
    notes: list[str] | None,
    run_config: dict[str, str] | None,
) -> Path:
    """
    Writes the canonical Astral NEO JSON report.

    IMPORTANT:
    - `meta` must remain schema-stable and NOT include extra keys.
    - `objects` entries carry wire-format payloads (camelCase field names).
    """
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    rc = run_config or {}

    payload: dict[str, Any] = {
        "meta": {
            "generated_at": generated_at,
            "coverage": coverage_line,
            "decision_version": rc.get("version"),
            "schema_version": rc.get("schema"),
            "time_offset_hours": _json_safe(float(rc.get("time_offset_hours", 0.0) or 0.0)),
        },
        "population": {
            "verdict": verdict,
            "delta": delta_lines or [],
            "summary": asdict(summary),
            "top_risks": _df_to_records(top_risks),
        },
        "objects": objects,
        "alerts": [a.to_dict() for a in alerts],
        "notes": notes or [],
    }

    payload = _json_safe(payload)

    # STRICT JSON: no NaN allowed
    p.write_text(
        json.dumps(payload, indent=2, sort_keys=False, allow_nan=False),
        encoding="utf-8",
    )
    return p
