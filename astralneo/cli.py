from __future__ import annotations

import argparse
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import pandas as pd

from astralneo.core.alerts import AlertEvent, InMemoryAlertHistory, commit, evaluate, load_history, save_history
from astralneo.core.config import load_config, merge_config
from astralneo.core.contract import ASTRALNEO_DECISION_VERSION
from astralneo.core.delta import (
    changed_identifiers,
    compute_delta_lines,
    load_snapshot,
    new_identifiers,
    save_snapshot,
    snapshot_from_scores,
)
from astralneo.core.ingest import load_approaches_csv, records_from_frame
from astralneo.core.kepler import clamp_time_offset, position_at
from astralneo.core.orbit import estimate
from astralneo.core.population import population_summary, population_verdict
from astralneo.core.scoring import add_risk_score, score, top_risks
from astralneo.report.json_report import write_json_report
from astralneo.schema_constants import SCHEMA_VERSION

try:
    ASTRALNEO_PACKAGE_VERSION = version("astralneo")
except PackageNotFoundError:
    ASTRALNEO_PACKAGE_VERSION = "dev"


def _console_safe(s: str) -> str:
    """
    Windows PowerShell can choke on certain Unicode chars (e.g., arrows).
    Keep console output ASCII-safe while leaving the JSON report untouched.
    """
    return (
        str(s)
        .replace("→", "->")
        .replace("•", "-")
        .replace("⚠", "!")
    )


def _require_existing_file(path: Path, label: str) -> None:
    if not path.exists():
        raise FileNotFoundError(f"{label} not found: {path}")
    if path.is_dir():
        raise IsADirectoryError(f"{label} is a directory, expected a file: {path}")


def _parse_now(s: str | None) -> datetime:
    if not s:
        return datetime.now(timezone.utc)
    ts = datetime.fromisoformat(s)
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def _coverage_line(df: pd.DataFrame) -> str:
    dates = pd.to_datetime(df.get("close_approach_date", pd.Series([], dtype=str)), errors="coerce").dropna()
    span = "N/A"
    if not dates.empty:
        span = f"{dates.min().date()} -> {dates.max().date()}"
    hazardous = int(df["is_potentially_hazardous"].astype(bool).sum()) if "is_potentially_hazardous" in df else 0
    return f"Coverage: {span} | Objects: {len(df)} | Hazardous: {hazardous}"


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="astralneo", description="Astral NEO: approach scoring, orbits & alerts")

    p.add_argument("--input", default=None, help="Path to approaches CSV (defaults from config or built-in)")
    p.add_argument("--snapshot", default=None, help="Snapshot CSV path for change tracking (defaults from config or built-in)")
    p.add_argument("--history", default=None, help="Alert history CSV used for dedupe (defaults from config or built-in)")
    p.add_argument("--config", default=None, help="Path to config TOML (optional)")

    p.add_argument("--time-offset", type=float, default=None, help="Hours from closest approach for positions (clamped to +/-168)")
    p.add_argument("--mean-motion", type=float, default=None, help="Animation rate in radians per hour")
    p.add_argument("--top-risks", type=int, default=None, help="How many top-risk objects to list")

    p.add_argument("--user", dest="user_id", default=None, help="User id alerts are evaluated for")
    p.add_argument("--watch", dest="watchlist", default=None, help="Comma-separated watched identifiers")
    p.add_argument("--now", default=None, help="Evaluation time (ISO, UTC if naive). Default: current time")

    p.add_argument(
        "--json-out",
        "--json",
        dest="json_out",
        default=None,
        help="JSON report output path",
    )

    return p


def run_cycle(
    scored_df: pd.DataFrame,
    *,
    time_offset_hours: float,
    mean_motion: float,
) -> list[dict[str, Any]]:
    """Per-object payloads: approach, risk, orbit and position at the given offset."""
    out: list[dict[str, Any]] = []
    for rec in records_from_frame(scored_df):
        risk = score(rec)
        elements = estimate(rec)
        pos = position_at(elements, time_offset_hours, mean_motion)
        out.append(
            {
                "identifier": rec.identifier,
                "name": rec.name,
                "approach": rec.to_dict(),
                "risk": risk.to_dict(),
                "orbit": elements.to_dict(),
                "position": pos.to_dict(),
            }
        )
    return out


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    file_cfg = load_config(args.config)

    # Only keys the user actually provided override the file config
    cli_explicit: dict[str, Any] = {
        "input": args.input,
        "snapshot": args.snapshot,
        "history": args.history,
        "json_out": args.json_out,
        "time_offset_hours": args.time_offset,
        "mean_motion": args.mean_motion,
        "top_risks": args.top_risks,
        "user_id": args.user_id,
        "watchlist": args.watchlist,
    }
    cfg = merge_config(file_cfg, cli_explicit)

    data_path = Path(cfg.input)
    snapshot_path = Path(cfg.snapshot)
    history_path = Path(cfg.history)
    json_out_path = Path(cfg.json_out)

    try:
        now = _parse_now(args.now)
    except ValueError as e:
        print(f"ERROR: invalid --now: {e}")
        return 2

    try:
        _require_existing_file(data_path, "Input CSV")
    except (FileNotFoundError, IsADirectoryError) as e:
        print(f"ERROR: {e}")
        return 2

    ingest = load_approaches_csv(data_path)
    if ingest.df.empty:
        print(f"ERROR: input CSV parsed to 0 rows: {data_path}")
        if ingest.issues:
            print("Ingest issues:")
            for msg in ingest.issues:
                print(f" - {_console_safe(str(msg))}")
        return 1

    scored = add_risk_score(ingest.df)
    summary = population_summary(scored)
    verdict = population_verdict(summary)
    risks = top_risks(scored, top_n=int(cfg.top_risks))

    # Snapshot delta
    prev_snap = load_snapshot(snapshot_path)
    curr_snap = snapshot_from_scores(scored)
    delta_lines = compute_delta_lines(prev_snap, curr_snap)
    fresh = new_identifiers(prev_snap, curr_snap)
    changed = changed_identifiers(prev_snap, curr_snap)

    # Save snapshot AFTER computing delta (so "prev" truly means last run)
    save_snapshot(curr_snap, snapshot_path)

    # Alerts: evaluate against history, emit through the conditional insert
    history = InMemoryAlertHistory(load_history(history_path))
    threshold = cfg.alert_threshold()
    watch = set(cfg.watchlist)
    emitted: list[AlertEvent] = []
    for rec in records_from_frame(scored):
        decision = evaluate(
            rec,
            score(rec),
            threshold,
            history.recent(cfg.user_id, now),
            user_id=cfg.user_id,
            now=now,
            watched=rec.identifier in watch,
            changed=rec.identifier in changed,
            newly_observed=rec.identifier in fresh,
        )
        emitted.extend(commit(decision, history))
    save_history(history.all(), history_path, now=now)

    time_offset = clamp_time_offset(cfg.time_offset_hours)
    objects = run_cycle(scored, time_offset_hours=time_offset, mean_motion=cfg.mean_motion)

    generated_at = now.strftime("%Y-%m-%d %H:%M")
    coverage = _coverage_line(ingest.df)

    run_config = {
        "config": str(args.config or ""),
        "schema": SCHEMA_VERSION,
        "time_offset_hours": str(time_offset),
        "mean_motion": str(cfg.mean_motion),
        "top_risks": str(cfg.top_risks),
        "user_id": cfg.user_id,
        "version": f"{ASTRALNEO_DECISION_VERSION}+{ASTRALNEO_PACKAGE_VERSION}",
    }

    write_json_report(
        out_path=json_out_path,
        generated_at=generated_at,
        coverage_line=coverage,
        verdict=verdict,
        delta_lines=delta_lines,
        summary=summary,
        top_risks=risks,
        objects=objects,
        alerts=emitted,
        notes=ingest.issues,
        run_config=run_config,
    )

    # Prints only at main
    print(f"Report generated: {json_out_path.resolve()}")
    print(f"Snapshot saved:   {snapshot_path.resolve()}")
    print(f"Verdict:          {_console_safe(verdict)}")
    if not risks.empty:
        print("Top risks:")
        for row in risks.itertuples(index=False):
            print(f" - {row.identifier} {row.name}: {row.risk_score} ({row.risk_category})")

    if delta_lines:
        print("Key Changes:")
        for d in delta_lines:
            print(f" - {_console_safe(d)}")

    if emitted:
        print(f"Alerts for {cfg.user_id}:")
        for a in emitted:
            print(f" - [{a.severity.upper()}] {a.type} {a.subject_id}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
