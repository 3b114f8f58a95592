"""Value types shared by the selector, merger and batch runner."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

TargetKind = Literal["exact", "prefix", "suffix"]
OutcomeStatus = Literal["annotated", "previewed", "no-op", "no-match", "failed"]

# A parsed dashboard body (the `DashboardBody` JSON object).
DashboardDocument = dict[str, Any]


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _utc_now(now: datetime | None) -> datetime:
    if now is None:
        now = datetime.now(timezone.utc)
    return _ensure_utc(now).astimezone(timezone.utc).replace(microsecond=0)


_RFC3339 = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})"
)
MAX_FRACTION_DIGITS = 6


def _match_rfc3339(raw: str) -> re.Match[str]:
    text = str(raw).strip()
    if not text:
        raise ValueError("timestamp is empty")
    match = _RFC3339.fullmatch(text)
    if match is None:
        raise ValueError(
            f"not an RFC3339 timestamp (expected YYYY-MM-DDTHH:MM:SS[.frac](Z|+HH:MM)): {raw!r}"
        )
    fraction = match.group("fraction") or ""
    if len(fraction) > MAX_FRACTION_DIGITS:
        raise ValueError(
            f"timestamp has {len(fraction)} fractional digits, at most {MAX_FRACTION_DIGITS} are supported: {raw!r}"
        )
    return match


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC3339 timestamp. The UTC offset is required."""
    match = _match_rfc3339(raw)
    fraction = match.group("fraction")
    offset = match.group("offset")
    if offset in {"Z", "z"}:
        offset = "+00:00"
    text = f"{match.group('date')}T{match.group('time')}"
    if fraction:
        text += "." + fraction.ljust(MAX_FRACTION_DIGITS, "0")
    try:
        return datetime.fromisoformat(text + offset)
    except ValueError as exc:
        raise ValueError(f"not an RFC3339 timestamp: {raw!r}: {exc}") from exc


def fraction_digits(raw: str) -> int:
    """Number of fractional-second digits written in an RFC3339 timestamp."""
    return len(_match_rfc3339(raw).group("fraction") or "")


def format_timestamp(ts: datetime, digits: int | None = None) -> str:
    """Render a timestamp as RFC3339, using `Z` for a zero UTC offset.

    `digits` fixes the width of the fractional part (0 drops it). Without it,
    whole seconds carry no fraction and sub-second values use millisecond or
    microsecond precision, whichever is needed.
    """
    ts = _ensure_utc(ts)
    if digits is not None:
        digits = max(0, min(digits, MAX_FRACTION_DIGITS))
        text = ts.replace(microsecond=0).isoformat(timespec="seconds")
        if digits:
            date_time, offset = text[:19], text[19:]
            text = f"{date_time}.{ts.microsecond:06d}"[: 20 + digits] + offset
    elif ts.microsecond == 0:
        text = ts.isoformat(timespec="seconds")
    elif ts.microsecond % 1000 == 0:
        text = ts.isoformat(timespec="milliseconds")
    else:
        text = ts.isoformat(timespec="microseconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


@dataclass(frozen=True)
class DashboardTarget:
    """Which dashboards a run applies to: one exact name, or a prefix/suffix match."""

    kind: TargetKind
    value: str

    def __post_init__(self) -> None:
        if self.kind not in ("exact", "prefix", "suffix"):
            raise ValueError(f"Unknown dashboard target kind: {self.kind}")
        if not self.value:
            raise ValueError(f"Dashboard {self.kind} must not be empty")

    @classmethod
    def exact(cls, name: str) -> DashboardTarget:
        return cls("exact", name)

    @classmethod
    def prefix(cls, prefix: str) -> DashboardTarget:
        return cls("prefix", prefix)

    @classmethod
    def suffix(cls, suffix: str) -> DashboardTarget:
        return cls("suffix", suffix)

    @property
    def is_exact(self) -> bool:
        return self.kind == "exact"

    def matches(self, name: str) -> bool:
        if self.kind == "prefix":
            return name.startswith(self.value)
        if self.kind == "suffix":
            return name.endswith(self.value)
        return name == self.value

    def describe(self) -> str:
        if self.kind == "exact":
            return f"dashboard '{self.value}'"
        return f"{self.kind} '{self.value}'"


@dataclass(frozen=True)
class AnnotationRequest:
    label: str
    value_text: str
    timestamp: datetime
    widget_title_filter: str | None = None
    # Fractional-second width of a textual timestamp, kept on output.
    fraction_digits: int | None = None

    @classmethod
    def build(
        cls,
        *,
        label: str,
        value_text: str,
        timestamp: datetime | str | None = None,
        widget_title_filter: str | None = None,
        now: datetime | None = None,
    ) -> AnnotationRequest:
        """Build a request, defaulting the timestamp to the current UTC second."""
        digits = None
        if timestamp is None:
            ts = _utc_now(now)
        elif isinstance(timestamp, str):
            ts = parse_timestamp(timestamp)
            digits = fraction_digits(timestamp)
        else:
            ts = _ensure_utc(timestamp)
        return cls(
            label=label,
            value_text=value_text,
            timestamp=ts,
            widget_title_filter=widget_title_filter or None,
            fraction_digits=digits,
        )

    @property
    def annotation_label(self) -> str:
        return f"{self.label}: {self.value_text}"

    @property
    def annotation_value(self) -> str:
        return format_timestamp(self.timestamp, self.fraction_digits)

    def to_annotation(self) -> dict[str, str]:
        """A fresh vertical annotation object for one widget."""
        return {"label": self.annotation_label, "value": self.annotation_value}


@dataclass(frozen=True)
class DashboardOutcome:
    status: OutcomeStatus
    name: str | None = None
    widgets_annotated: int = 0
    reason: str | None = None
    error_kind: str | None = None
    # Pre-image and merged body, kept for dry-run diffs.
    before: DashboardDocument | None = field(default=None, repr=False, compare=False)
    after: DashboardDocument | None = field(default=None, repr=False, compare=False)

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "name": self.name,
            "widgets_annotated": self.widgets_annotated,
            "reason": self.reason,
            "error_kind": self.error_kind,
        }
