from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from astralneo.core.scoring import CATEGORIES


@dataclass(frozen=True)
class DeltaConfig:
    score_jump_points: float = 5.0
    distance_change_ld: float = 0.5


SNAPSHOT_COLUMNS = [
    "identifier",
    "risk_score",
    "risk_category",
    "miss_distance_lunar",
    "estimated_diameter_m",
    "relative_velocity_km_s",
    "is_potentially_hazardous",
]

# Columns whose change marks a watched object as updated
WATCH_COLUMNS = [
    "miss_distance_lunar",
    "estimated_diameter_m",
    "relative_velocity_km_s",
    "is_potentially_hazardous",
]


def _normalize(df: pd.DataFrame) -> pd.DataFrame:
    for c in SNAPSHOT_COLUMNS:
        if c not in df.columns:
            df[c] = pd.NA

    out = df[SNAPSHOT_COLUMNS].copy()
    out["identifier"] = out["identifier"].astype(str)
    out["risk_category"] = out["risk_category"].astype(str)
    for c in ("risk_score", "miss_distance_lunar", "estimated_diameter_m", "relative_velocity_km_s"):
        out[c] = pd.to_numeric(out[c], errors="coerce")
    out["is_potentially_hazardous"] = (
        out["is_potentially_hazardous"].astype(str).str.strip().str.lower().isin(["true", "1", "1.0"])
    )
    return out.sort_values("identifier").reset_index(drop=True)


def snapshot_from_scores(scored_df: pd.DataFrame) -> pd.DataFrame:
    """
    Extract a stable snapshot from a scored approach table.
    Expected columns: identifier, risk_score, risk_category + raw approach fields.
    """
    if scored_df is None or scored_df.empty:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)
    return _normalize(scored_df.copy())


def load_snapshot(path: str | Path) -> pd.DataFrame:
    p = Path(path)
    if not p.exists():
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    try:
        df = pd.read_csv(p, dtype={"identifier": str})
    except (OSError, ValueError):
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    if df.empty:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)
    return _normalize(df)


def save_snapshot(snapshot_df: pd.DataFrame, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    out = snapshot_df.copy()
    for c in SNAPSHOT_COLUMNS:
        if c not in out.columns:
            out[c] = pd.NA
    out[SNAPSHOT_COLUMNS].to_csv(p, index=False)


def new_identifiers(prev_snapshot: pd.DataFrame, curr_snapshot: pd.DataFrame) -> set[str]:
    """Objects seen this cycle but not last cycle. Empty on the first run."""
    if prev_snapshot.empty:
        return set()
    return set(curr_snapshot["identifier"].astype(str)) - set(prev_snapshot["identifier"].astype(str))


def _differs(a, b, tol: float = 1e-9) -> bool:
    if pd.isna(a) and pd.isna(b):
        return False
    if pd.isna(a) or pd.isna(b):
        return True
    if isinstance(a, (bool,)) or isinstance(b, (bool,)):
        return bool(a) != bool(b)
    try:
        return abs(float(a) - float(b)) > tol
    except (TypeError, ValueError):
        return str(a) != str(b)


def changed_identifiers(prev_snapshot: pd.DataFrame, curr_snapshot: pd.DataFrame) -> set[str]:
    """Objects present in both cycles whose approach data changed."""
    if prev_snapshot.empty or curr_snapshot.empty:
        return set()

    prev_i = prev_snapshot.set_index("identifier", drop=False)
    curr_i = curr_snapshot.set_index("identifier", drop=False)

    out: set[str] = set()
    for ident in set(prev_i.index) & set(curr_i.index):
        was = prev_i.loc[ident]
        now = curr_i.loc[ident]
        if any(_differs(was[c], now[c]) for c in WATCH_COLUMNS):
            out.add(str(ident))
    return out


def _category_rank(c: str) -> int:
    # Higher risk = higher number
    try:
        return CATEGORIES.index(str(c))
    except ValueError:
        return -1


def compute_delta_lines(
    prev_snapshot: pd.DataFrame,
    curr_snapshot: pd.DataFrame,
    cfg: DeltaConfig | None = None,
    max_lines: int = 8,
) -> list[str]:
    """
    Produce briefing-style bullet lines describing what changed since the last cycle.
    """
    cfg = cfg or DeltaConfig()

    prev = prev_snapshot.copy()
    curr = curr_snapshot.copy()

    if curr.empty and prev.empty:
        return ["No approach data available yet."]

    if prev.empty and not curr.empty:
        return ["Baseline created (first run). Future reports will highlight changes."]

    prev_i = prev.set_index("identifier", drop=False)
    curr_i = curr.set_index("identifier", drop=False)

    idents = sorted(set(prev_i.index.tolist()) | set(curr_i.index.tolist()))
    lines: list[str] = []

    for ident in idents:
        was = prev_i.loc[ident] if ident in prev_i.index else None
        now = curr_i.loc[ident] if ident in curr_i.index else None

        if was is None and now is not None:
            hz = " (potentially hazardous)" if bool(now["is_potentially_hazardous"]) else ""
            lines.append(f"{ident} newly observed{hz}, risk {now['risk_category']}.")
            continue

        if now is None and was is not None:
            lines.append(f"{ident} no longer in the approach window.")
            continue

        was_cat = str(was["risk_category"])
        now_cat = str(now["risk_category"])
        if _category_rank(now_cat) > _category_rank(was_cat):
            lines.append(f"{ident} risk escalated {was_cat} → {now_cat}.")
        elif _category_rank(now_cat) < _category_rank(was_cat):
            lines.append(f"{ident} risk reduced {was_cat} → {now_cat}.")

        was_s = was["risk_score"]
        now_s = now["risk_score"]
        if pd.notna(was_s) and pd.notna(now_s):
            jump = float(now_s) - float(was_s)
            if abs(jump) >= cfg.score_jump_points:
                lines.append(f"{ident} score moved {jump:+.0f} points ({was_s:.0f} → {now_s:.0f}).")

        was_d = was["miss_distance_lunar"]
        now_d = now["miss_distance_lunar"]
        if pd.notna(was_d) and pd.notna(now_d):
            closer = float(was_d) - float(now_d)
            if closer >= cfg.distance_change_ld:
                lines.append(f"{ident} miss distance tightened {was_d:.2f} → {now_d:.2f} LD.")

        if not bool(was["is_potentially_hazardous"]) and bool(now["is_potentially_hazardous"]):
            lines.append(f"{ident} newly flagged potentially hazardous.")

        if len(lines) >= max_lines:
            break

    if not lines:
        return ["No material changes detected since last report."]

    return lines[:max_lines]
