from __future__ import annotations

import argparse
import json

from astralneo.core.impact import ImpactParameters, ImpactValidationError, simulate


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="astralneo-impact",
        description="Estimate the physical consequences of a hypothetical impact.",
    )
    p.add_argument("--diameter-km", type=float, required=True, help="Impactor diameter in km (0.01..100)")
    p.add_argument("--velocity-km-s", type=float, required=True, help="Impact velocity in km/s (1..72)")
    p.add_argument("--density", type=float, default=3000.0, help="Bulk density in kg/m3 (1000..8000, default 3000)")
    p.add_argument("--angle", type=float, default=45.0, help="Impact angle from horizontal in degrees (0 < a <= 90)")
    p.add_argument("--json", action="store_true", help="Print the result as JSON (wire field names)")
    return p


def format_result(params: ImpactParameters, result) -> list[str]:
    return [
        f"Impactor:  {params.diameter_km:g} km @ {params.velocity_km_s:g} km/s, "
        f"{params.density_kg_m3:g} kg/m3, {params.impact_angle_deg:g} deg",
        f"Energy:    {result.energy_joules:.3e} J ({result.energy_megatons:.3e} Mt TNT)",
        f"Crater:    {result.crater_diameter_km:.2f} km",
        f"Quake:     M{result.quake_magnitude:.1f}",
        f"Fireball:  {result.fireball_radius_km:.2f} km radius",
        f"Ejecta:    {result.ejecta_height_km:.1f} km high",
        f"Compare:   {result.comparison_label}",
    ]


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        params = ImpactParameters.from_mapping(
            {
                "diameter_km": args.diameter_km,
                "velocity_km_s": args.velocity_km_s,
                "density_kg_m3": args.density,
                "impact_angle_deg": args.angle,
            }
        )
        result = simulate(params)
    except ImpactValidationError as e:
        print(f"ERROR: {e.field}: {e.message}")
        return 2

    if args.json:
        print(json.dumps({"params": params.to_dict(), "result": result.to_dict()}, indent=2, allow_nan=False))
    else:
        for line in format_result(params, result):
            print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
