from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import importlib.resources as resources

try:
    import jsonschema
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "jsonschema is required for schema validation. Install with: pip install jsonschema"
    ) from e


from astralneo.schema_constants import (
    SCHEMA_VERSION,
    SCHEMA_RESOURCE_PACKAGE,
    SCHEMA_RESOURCE_NAME,
)

EXPECTED_SCHEMA_VERSION = SCHEMA_VERSION


class StrictJsonError(ValueError):
    """Raised when JSON is invalid or contains forbidden constants (NaN/Infinity)."""


class SchemaVersionMismatch(ValueError):
    """Raised when meta.schema_version does not match EXPECTED_SCHEMA_VERSION."""


class ReportConsistencyError(ValueError):
    """Raised when a schema-valid report contradicts itself (counts vs objects)."""


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    schema_version: str
    objects: int


def _reject_nonfinite_constants(value: str) -> Any:
    """
    json.loads hook: reject NaN/Infinity/-Infinity.
    Python's stdlib json will otherwise accept them and produce floats.
    """
    raise StrictJsonError(f"Forbidden JSON constant encountered: {value}")


def _load_schema_text() -> str:
    """
    Load the bundled schema from package resources (no filesystem dependency).
    """
    return resources.files(SCHEMA_RESOURCE_PACKAGE).joinpath(SCHEMA_RESOURCE_NAME).read_text(
        encoding="utf-8"
    )


def _parse_strict_json(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text, parse_constant=_reject_nonfinite_constants)
    except StrictJsonError:
        raise
    except json.JSONDecodeError as e:
        raise StrictJsonError(f"Invalid JSON: {e.msg} (line {e.lineno}, col {e.colno})") from e

    if not isinstance(data, dict):
        raise StrictJsonError("Top-level JSON must be an object.")
    return data


def _extract_schema_version(data: dict[str, Any]) -> str:
    meta = data.get("meta")
    if not isinstance(meta, dict):
        raise SchemaVersionMismatch("Missing or invalid 'meta' object.")
    v = meta.get("schema_version")
    if not isinstance(v, str) or not v.strip():
        raise SchemaVersionMismatch("Missing or invalid 'meta.schema_version' (must be a non-empty string).")
    return v.strip()


def _check_consistency(data: dict[str, Any]) -> int:
    objects = data.get("objects") or []
    summary = (data.get("population") or {}).get("summary") or {}

    total = summary.get("total")
    if isinstance(total, int) and total != len(objects):
        raise ReportConsistencyError(f"population.summary.total={total} but {len(objects)} objects listed.")

    by_cat = summary.get("by_category")
    if isinstance(by_cat, dict) and objects:
        listed: dict[str, int] = {}
        for o in objects:
            cat = (o.get("risk") or {}).get("category")
            listed[cat] = listed.get(cat, 0) + 1
        for cat, n in by_cat.items():
            if listed.get(cat, 0) != n:
                raise ReportConsistencyError(
                    f"population.summary.by_category[{cat!r}]={n} but {listed.get(cat, 0)} objects carry it."
                )
    return len(objects)


def validate_json(path: str | Path, *, expected_schema_version: str = EXPECTED_SCHEMA_VERSION) -> ValidationResult:
    """
    Validate an Astral NEO report JSON file by:
      1) strict JSON parse (reject NaN/Infinity)
      2) hard-lock meta.schema_version to expected version
      3) JSON Schema validation (bundled schema)
      4) summary counts agree with the object list
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))

    data = _parse_strict_json(p.read_text(encoding="utf-8"))

    actual = _extract_schema_version(data)
    if actual != expected_schema_version:
        raise SchemaVersionMismatch(
            f"Schema version mismatch: expected '{expected_schema_version}', got '{actual}'."
        )

    schema = _parse_strict_json(_load_schema_text())
    jsonschema.validate(instance=data, schema=schema)

    n = _check_consistency(data)
    return ValidationResult(ok=True, schema_version=actual, objects=n)


def main(argv: list[str] | None = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(prog="astralneo-validate", description="Validate an Astral NEO JSON report.")
    parser.add_argument("path", help="Path to JSON report file")
    args = parser.parse_args(argv)

    try:
        result = validate_json(args.path)
    except (OSError, ValueError, jsonschema.ValidationError) as e:
        print(f"ERROR: {e}")
        return 1

    print(f"OK: JSON validation passed (strict + schema, {result.objects} objects).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
