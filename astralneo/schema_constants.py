"""
Central contract constants for Astral NEO reports.

This module prevents circular imports and ensures schema version + schema filename
are derived from a single source of truth.
"""

SCHEMA_VERSION = "v1"

SCHEMA_RESOURCE_PACKAGE = "astralneo.schemas"
SCHEMA_RESOURCE_NAME = f"astralneo_report.schema.{SCHEMA_VERSION}.json"
