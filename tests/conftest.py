import pandas as pd
import pytest

from astralneo.core.ingest import ApproachRecord


@pytest.fixture
def sample_df() -> pd.DataFrame:
    """
    Canonical ingested approach table (post load_approaches_csv types).

    Covers a hazardous close approach, a distant small rock, a missing miss
    distance (worst-case proximity) and a garbage diameter (NaN).
    """
    return pd.DataFrame(
        {
            "identifier": ["3542519", "2000433", "3840689", "54016843"],
            "name": ["(2010 PK9)", "433 Eros (A898 PA)", "(2019 OK)", "(2020 QG)"],
            "close_approach_date": ["2026-01-02", "2026-01-03", "2026-01-03", "2026-01-05"],
            "estimated_diameter_m": [200.0, 16840.0, 100.0, float("nan")],
            "miss_distance_lunar": [10.0, 48.0, float("nan"), 0.3],
            "relative_velocity_km_s": [18.0, 5.6, 24.5, 12.3],
            "is_potentially_hazardous": [True, False, False, False],
        }
    )


@pytest.fixture
def hazardous_record() -> ApproachRecord:
    return ApproachRecord(
        identifier="3542519",
        name="(2010 PK9)",
        estimated_diameter_m=200.0,
        miss_distance_lunar=10.0,
        relative_velocity_km_s=18.0,
        is_potentially_hazardous=True,
    )
