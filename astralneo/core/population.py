from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from astralneo.core.scoring import CATEGORIES


SORT_COLUMNS = {
    "risk": "risk_score",
    "distance": "miss_distance_lunar",
    "diameter": "estimated_diameter_m",
    "velocity": "relative_velocity_km_s",
    "date": "close_approach_date",
    "name": "name",
}


@dataclass(frozen=True)
class PopulationSummary:
    total: int
    hazardous: int
    high_risk: int
    by_category: dict[str, int]
    closest_identifier: str | None
    closest_distance_lunar: float | None
    max_score: int | None


def population_summary(scored_df: pd.DataFrame) -> PopulationSummary:
    if scored_df.empty or "risk_score" not in scored_df.columns:
        return PopulationSummary(
            total=0,
            hazardous=0,
            high_risk=0,
            by_category={c: 0 for c in CATEGORIES},
            closest_identifier=None,
            closest_distance_lunar=None,
            max_score=None,
        )

    d = scored_df
    counts = d["risk_category"].value_counts()
    by_category = {c: int(counts.get(c, 0)) for c in CATEGORIES}

    dist = pd.to_numeric(d["miss_distance_lunar"], errors="coerce")
    dist = dist[dist > 0]
    if dist.empty:
        closest_id, closest_d = None, None
    else:
        idx = dist.idxmin()
        closest_id, closest_d = str(d.loc[idx, "identifier"]), float(dist.loc[idx])

    return PopulationSummary(
        total=int(len(d)),
        hazardous=int(d["is_potentially_hazardous"].astype(bool).sum()),
        high_risk=by_category["high"],
        by_category=by_category,
        closest_identifier=closest_id,
        closest_distance_lunar=closest_d,
        max_score=int(d["risk_score"].max()),
    )


def population_verdict(summary: PopulationSummary) -> str:
    if summary.total == 0:
        return "No approach data available."

    parts: list[str] = [f"{summary.total} objects tracked"]
    if summary.high_risk:
        parts.append(f"{summary.high_risk} rated high risk")
    if summary.hazardous:
        parts.append(f"{summary.hazardous} potentially hazardous")
    if summary.closest_identifier is not None:
        parts.append(f"closest approach {summary.closest_identifier} at {summary.closest_distance_lunar:.2f} LD")
    if not summary.high_risk and not summary.hazardous:
        parts.append("no elevated threats")

    return ", ".join(parts) + "."


def filter_approaches(
    scored_df: pd.DataFrame,
    *,
    category: str | None = None,
    hazardous_only: bool = False,
    query: str | None = None,
    sort_by: str = "risk",
    ascending: bool | None = None,
) -> pd.DataFrame:
    """
    Filter and order a scored table the way the object browser does:
    optional category, hazardous-only, case-insensitive name/id search.
    Risk sorts descending by default; everything else ascending.
    """
    if scored_df.empty:
        return scored_df.copy()

    if sort_by not in SORT_COLUMNS:
        raise ValueError(f"Unknown sort key: {sort_by} (expected one of {sorted(SORT_COLUMNS)})")

    d = scored_df.copy()

    if category:
        d = d[d["risk_category"] == category]
    if hazardous_only:
        d = d[d["is_potentially_hazardous"].astype(bool)]
    if query and query.strip():
        q = query.strip().lower()
        names = d["name"].astype(str).str.lower() if "name" in d.columns else pd.Series("", index=d.index)
        ids = d["identifier"].astype(str).str.lower()
        d = d[names.str.contains(q, regex=False) | ids.str.contains(q, regex=False)]

    col = SORT_COLUMNS[sort_by]
    if col not in d.columns:
        return d.reset_index(drop=True)

    asc = (sort_by != "risk") if ascending is None else ascending
    return d.sort_values([col, "identifier"], ascending=[asc, True], na_position="last").reset_index(drop=True)
