from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from astralneo.cli import main as cli_main
from astralneo.tools.generate_approaches import ThreatEvent, generate_csv


def _report(tmp_path: Path, threat: ThreatEvent | None) -> dict:
    case = tmp_path / ("threat" if threat else "quiet")
    data = case / "approaches.csv"

    generate_csv(
        out_path=data,
        start=date(2026, 1, 1),
        days=3,
        count=15,
        seed=1,
        profile="quiet",
        missing_rate=0.0,
        print_summary=False,
        threat=threat,
    )

    rc = cli_main(
        [
            "--input",
            str(data),
            "--snapshot",
            str(case / "snap.csv"),
            "--history",
            str(case / "alerts.csv"),
            "--json",
            str(case / "report.json"),
            "--now",
            "2026-01-01T00:00:00",
        ]
    )
    assert rc == 0
    return json.loads((case / "report.json").read_text(encoding="utf-8"))


def test_injected_threat_tops_the_risk_list(tmp_path: Path) -> None:
    threat = ThreatEvent("9999001", miss_distance_lunar=0.8, diameter_m=450.0, velocity_km_s=24.0)
    report = _report(tmp_path, threat)

    top = report["population"]["top_risks"][0]
    assert top["identifier"] == "9999001"
    assert top["risk_category"] == "high"
    assert report["population"]["summary"]["high_risk"] >= 1


def test_injected_threat_raises_danger_alerts(tmp_path: Path) -> None:
    quiet = _report(tmp_path, None)
    threat = _report(tmp_path, ThreatEvent("9999001", miss_distance_lunar=0.8, diameter_m=450.0, velocity_km_s=24.0))

    assert not any(a["subjectId"] == "9999001" for a in quiet["alerts"])
    danger = {a["type"] for a in threat["alerts"] if a["subjectId"] == "9999001" and a["severity"] == "danger"}
    assert danger == {"close_approach", "high_risk"}


def test_quiet_profile_has_no_hazards(tmp_path: Path) -> None:
    quiet = _report(tmp_path, None)
    assert quiet["population"]["summary"]["hazardous"] == 0
    assert all(o["orbit"]["eccentricity"] <= 0.85 for o in quiet["objects"])
