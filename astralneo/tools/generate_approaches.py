from __future__ import annotations

import argparse
import csv
import math
import random
import string
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path

# ----------------------------
# Configuration / Profiles
# ----------------------------

CSV_COLUMNS = [
    "identifier",
    "name",
    "close_approach_date",
    "estimated_diameter_m",
    "miss_distance_lunar",
    "relative_velocity_km_s",
    "is_potentially_hazardous",
]


@dataclass(frozen=True)
class PopulationProfile:
    # log-uniform diameter range (m)
    diameter_min_m: float
    diameter_max_m: float
    # uniform miss distance range (LD)
    distance_min_ld: float
    distance_max_ld: float
    velocity_mean_km_s: float
    velocity_sigma_km_s: float
    hazardous_rate: float


@dataclass(frozen=True)
class ThreatEvent:
    identifier: str           # e.g. "9999001"
    miss_distance_lunar: float
    diameter_m: float
    velocity_km_s: float
    hazardous: bool = True


PROFILE_PRESETS: dict[str, PopulationProfile] = {
    "typical": PopulationProfile(5.0, 800.0, 0.5, 60.0, 14.0, 5.0, 0.08),
    "quiet": PopulationProfile(2.0, 120.0, 8.0, 70.0, 10.0, 3.0, 0.0),
    "busy": PopulationProfile(10.0, 1500.0, 0.2, 30.0, 18.0, 6.0, 0.20),
}


# ----------------------------
# Helpers
# ----------------------------

def parse_day(s: str) -> date:
    return datetime.fromisoformat(s).date()


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def make_identifier(rng: random.Random, used: set[str]) -> str:
    while True:
        ident = str(rng.randint(2_000_000, 3_999_999))
        if ident not in used:
            used.add(ident)
            return ident


def make_name(rng: random.Random, day: date) -> str:
    half = "ABCDEFGHJKLMNOPQRSTUVWXY"[min(23, (day.timetuple().tm_yday - 1) // 15)]
    letter = rng.choice(string.ascii_uppercase.replace("I", ""))
    num = rng.randint(1, 99)
    return f"({day.year} {half}{letter}{num})"


def log_uniform(rng: random.Random, lo: float, hi: float) -> float:
    return math.exp(rng.uniform(math.log(lo), math.log(hi)))


# ----------------------------
# Core generation
# ----------------------------

def generate_csv(
    out_path: Path,
    start: date,
    days: int,
    count: int,
    seed: int | None,
    profile: str,
    missing_rate: float,
    print_summary: bool,
    threat: ThreatEvent | None,
) -> None:
    """
    Write a synthetic approach-record CSV. Same seed + arguments -> same file.
    `missing_rate` blanks out miss distances to exercise worst-case handling.
    """
    if profile not in PROFILE_PRESETS:
        raise ValueError(f"Unknown profile: {profile}")

    out_path.parent.mkdir(parents=True, exist_ok=True)

    rng = random.Random(seed)
    cfg = PROFILE_PRESETS[profile]
    used: set[str] = set()

    rows = 0
    hazardous = 0
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(CSV_COLUMNS)

        for _ in range(count):
            day = start + timedelta(days=rng.randrange(max(1, days)))
            ident = make_identifier(rng, used)

            diameter = log_uniform(rng, cfg.diameter_min_m, cfg.diameter_max_m)
            distance = rng.uniform(cfg.distance_min_ld, cfg.distance_max_ld)
            velocity = clamp(rng.gauss(cfg.velocity_mean_km_s, cfg.velocity_sigma_km_s), 1.0, 72.0)

            # PHA criteria are size + proximity driven upstream; mimic that loosely
            is_pha = diameter >= 140.0 and rng.random() < cfg.hazardous_rate * 4
            hazardous += int(is_pha)

            dist_cell = "" if rng.random() < missing_rate else f"{distance:.4f}"

            w.writerow([
                ident,
                make_name(rng, day),
                day.isoformat(),
                f"{diameter:.1f}",
                dist_cell,
                f"{velocity:.3f}",
                "true" if is_pha else "false",
            ])
            rows += 1

        if threat is not None:
            w.writerow([
                threat.identifier,
                f"({start.year} THREAT)",
                start.isoformat(),
                f"{threat.diameter_m:.1f}",
                f"{threat.miss_distance_lunar:.4f}",
                f"{threat.velocity_km_s:.3f}",
                "true" if threat.hazardous else "false",
            ])
            rows += 1
            hazardous += int(threat.hazardous)

    if print_summary:
        print(f"Generated {out_path} with {rows:,} approaches ({hazardous} hazardous)")
        print(f"Profile: {profile} | Days: {days} | Seed: {seed} | Missing-distance rate: {missing_rate}")
        if threat is not None:
            print(
                f"Injected threat: id={threat.identifier} distance={threat.miss_distance_lunar} LD "
                f"diameter={threat.diameter_m} m velocity={threat.velocity_km_s} km/s"
            )


# ----------------------------
# CLI
# ----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="astralneo-generate",
        description="Generate a synthetic approaches.csv for Astral NEO demo/testing.",
    )

    p.add_argument("--out", default="data/approaches.csv",
                   help="Output CSV path (default: data/approaches.csv)")
    p.add_argument("--start", default="2026-01-01",
                   help="First close-approach date (ISO format)")
    p.add_argument("--days", type=int, default=7,
                   help="Spread approaches over this many days")
    p.add_argument("--count", type=int, default=40,
                   help="Number of approaches to generate")
    p.add_argument("--seed", type=int, default=None,
                   help="Random seed for reproducible output")
    p.add_argument("--profile", choices=sorted(PROFILE_PRESETS), default="typical",
                   help="Population profile preset")
    p.add_argument("--missing-rate", type=float, default=0.0,
                   help="Fraction of rows with a blank miss distance (0..1)")
    p.add_argument("--print-summary", action="store_true",
                   help="Print generation summary to console")

    # Threat injection (optional)
    p.add_argument("--inject-threat", action="store_true",
                   help="Append one large, close, hazardous approach")
    p.add_argument("--threat-id", default="9999001",
                   help="Identifier for the injected threat (default: 9999001)")
    p.add_argument("--threat-distance", type=float, default=0.8,
                   help="Injected threat miss distance in LD (default: 0.8)")
    p.add_argument("--threat-diameter", type=float, default=450.0,
                   help="Injected threat diameter in m (default: 450)")
    p.add_argument("--threat-velocity", type=float, default=24.0,
                   help="Injected threat velocity in km/s (default: 24)")

    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.days <= 0:
        raise SystemExit("--days must be > 0")
    if args.count < 0:
        raise SystemExit("--count must be >= 0")
    if not 0.0 <= args.missing_rate <= 1.0:
        raise SystemExit("--missing-rate must be within 0..1")

    threat: ThreatEvent | None = None
    if args.inject_threat:
        threat = ThreatEvent(
            identifier=str(args.threat_id),
            miss_distance_lunar=float(args.threat_distance),
            diameter_m=float(args.threat_diameter),
            velocity_km_s=float(args.threat_velocity),
        )

    generate_csv(
        out_path=Path(args.out),
        start=parse_day(args.start),
        days=args.days,
        count=args.count,
        seed=args.seed,
        profile=args.profile,
        missing_rate=args.missing_rate,
        print_summary=args.print_summary,
        threat=threat,
    )


if __name__ == "__main__":
    main()
