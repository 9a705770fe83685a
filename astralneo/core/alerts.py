from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Protocol

import pandas as pd

from astralneo.core.contract import (
    ALERT_DEDUPE_WINDOW_HOURS,
    CLOSER_THAN_USUAL_LD,
    MIN_SAFE_DISTANCE_LD,
)
from astralneo.core.ingest import ApproachRecord
from astralneo.core.scoring import RiskScore


ALERT_TYPES = ("close_approach", "high_risk", "watched_update", "new_hazardous")
SEVERITIES = ("info", "warning", "danger")

DEDUPE_WINDOW = timedelta(hours=ALERT_DEDUPE_WINDOW_HOURS)

HISTORY_COLUMNS = ["subject_id", "user_id", "type", "severity", "timestamp"]


@dataclass(frozen=True)
class AlertThreshold:
    min_diameter_m: float
    max_distance_lunar: float
    min_risk_score: int


@dataclass(frozen=True)
class AlertEvent:
    subject_id: str
    user_id: str
    type: str
    severity: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "subjectId": self.subject_id,
            "userId": self.user_id,
            "type": self.type,
            "severity": self.severity,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class AlertDecision:
    events: tuple[AlertEvent, ...]
    suppressed: dict[str, str] = field(default_factory=dict)


# ----------------------------
# Matching
# ----------------------------

def _finite(x: Any) -> float | None:
    if x is None or isinstance(x, bool):
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def _utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)


def _known_distance(record: ApproachRecord) -> float | None:
    d = record.miss_distance_lunar
    if d is None or d != d or d <= 0:
        return None
    return float(d)


def severity_for(record: ApproachRecord, risk: RiskScore) -> str:
    d = _known_distance(record)
    if risk.category == "high" or (d is not None and d <= MIN_SAFE_DISTANCE_LD):
        return "danger"
    if risk.category == "moderate" or (d is not None and d <= CLOSER_THAN_USUAL_LD):
        return "warning"
    return "info"


def candidate_types(
    record: ApproachRecord,
    risk: RiskScore,
    threshold: AlertThreshold,
    *,
    watched: bool = False,
    changed: bool = False,
    newly_observed: bool = False,
) -> list[str]:
    """Alert types this record qualifies for, before the diameter gate and dedupe."""
    out: list[str] = []

    # An unknown distance never triggers a proximity alert
    d = _known_distance(record)
    if d is not None and d < threshold.max_distance_lunar:
        out.append("close_approach")
    if risk.value >= threshold.min_risk_score:
        out.append("high_risk")
    if watched and changed:
        out.append("watched_update")
    if record.is_potentially_hazardous and newly_observed:
        out.append("new_hazardous")
    return out


def is_duplicate(
    recent_alerts: Iterable[AlertEvent],
    subject_id: str,
    user_id: str,
    alert_type: str,
    now: datetime,
    window: timedelta = DEDUPE_WINDOW,
) -> bool:
    now = _utc(now)
    for a in recent_alerts:
        if a.subject_id != subject_id or a.user_id != user_id or a.type != alert_type:
            continue
        if now - _utc(a.timestamp) < window:
            return True
    return False


def evaluate(
    record: ApproachRecord,
    risk: RiskScore,
    threshold: AlertThreshold | None,
    recent_alerts: Iterable[AlertEvent] | None,
    *,
    user_id: str | None,
    now: datetime | None = None,
    watched: bool = False,
    changed: bool = False,
    newly_observed: bool = False,
) -> AlertDecision | None:
    """
    Decide which alerts (if any) a user should receive for one approach.

    Returns None when nothing should be emitted, including when the threshold
    or user is missing. The history check here is advisory; emission must go
    through commit() so concurrent evaluations cannot both record an event.
    """
    if threshold is None or not user_id or record is None or risk is None:
        return None

    # Unknown size or a malformed threshold gives no decision
    diameter = _finite(record.estimated_diameter_m)
    limits = [_finite(v) for v in (threshold.min_diameter_m, threshold.max_distance_lunar, threshold.min_risk_score)]
    if diameter is None or None in limits:
        return None
    threshold = AlertThreshold(*limits)

    if diameter < threshold.min_diameter_m:
        return None

    now = _utc(now or datetime.now(timezone.utc))
    history = list(recent_alerts or [])
    severity = severity_for(record, risk)

    events: list[AlertEvent] = []
    suppressed: dict[str, str] = {}
    for alert_type in candidate_types(
        record, risk, threshold, watched=watched, changed=changed, newly_observed=newly_observed
    ):
        if is_duplicate(history, record.identifier, user_id, alert_type, now):
            suppressed[alert_type] = "duplicate within dedupe window"
            continue
        events.append(
            AlertEvent(
                subject_id=record.identifier,
                user_id=user_id,
                type=alert_type,
                severity=severity,
                timestamp=now,
            )
        )

    if not events:
        return None
    return AlertDecision(events=tuple(events), suppressed=suppressed)


# ----------------------------
# History store
# ----------------------------

def dedupe_key(event: AlertEvent, window: timedelta = DEDUPE_WINDOW) -> tuple[str, str, str, int]:
    """(subject, user, type, time bucket) for a uniqueness constraint in a backing store."""
    bucket = int(_utc(event.timestamp).timestamp() // window.total_seconds())
    return (event.subject_id, event.user_id, event.type, bucket)


class AlertHistory(Protocol):
    def insert_if_absent(self, event: AlertEvent, window: timedelta = DEDUPE_WINDOW) -> bool:
        ...

    def recent(self, user_id: str, now: datetime, window: timedelta = DEDUPE_WINDOW) -> list[AlertEvent]:
        ...


class InMemoryAlertHistory:
    """
    Process-local alert history. insert_if_absent is the conditional insert:
    the window check and the append happen under one lock.
    """

    def __init__(self, events: Iterable[AlertEvent] | None = None) -> None:
        self._lock = threading.Lock()
        self._events: list[AlertEvent] = list(events or [])

    def insert_if_absent(self, event: AlertEvent, window: timedelta = DEDUPE_WINDOW) -> bool:
        with self._lock:
            if is_duplicate(self._events, event.subject_id, event.user_id, event.type, event.timestamp, window):
                return False
            self._events.append(event)
            return True

    def recent(self, user_id: str, now: datetime, window: timedelta = DEDUPE_WINDOW) -> list[AlertEvent]:
        now = _utc(now)
        with self._lock:
            return [e for e in self._events if e.user_id == user_id and now - _utc(e.timestamp) < window]

    def all(self) -> list[AlertEvent]:
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def commit(decision: AlertDecision | None, history: AlertHistory) -> list[AlertEvent]:
    """Record a decision's events; returns only those actually emitted."""
    if decision is None:
        return []
    return [e for e in decision.events if history.insert_if_absent(e)]


# ----------------------------
# CSV persistence (CLI)
# ----------------------------

def load_history(path: str | Path) -> list[AlertEvent]:
    p = Path(path)
    if not p.exists():
        return []

    try:
        df = pd.read_csv(p, dtype=str)
    except pd.errors.EmptyDataError:
        return []

    missing = [c for c in HISTORY_COLUMNS if c not in df.columns]
    if missing:
        return []

    df["timestamp"] = pd.to_datetime(df["timestamp"], errors="coerce", utc=True)
    df = df.dropna(subset=["subject_id", "user_id", "type", "timestamp"])

    return [
        AlertEvent(
            subject_id=str(row["subject_id"]),
            user_id=str(row["user_id"]),
            type=str(row["type"]),
            severity=str(row["severity"]),
            timestamp=row["timestamp"].to_pydatetime(),
        )
        for row in df.to_dict(orient="records")
    ]


def save_history(events: Iterable[AlertEvent], path: str | Path, *, now: datetime | None = None) -> None:
    """Write history, dropping entries older than the dedupe window when `now` is given."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    rows = []
    for e in events:
        if now is not None and _utc(now) - _utc(e.timestamp) >= DEDUPE_WINDOW:
            continue
        rows.append(
            {
                "subject_id": e.subject_id,
                "user_id": e.user_id,
                "type": e.type,
                "severity": e.severity,
                "timestamp": _utc(e.timestamp).isoformat(),
            }
        )

    pd.DataFrame(rows, columns=HISTORY_COLUMNS).to_csv(p, index=False)
