"""
RoundLens — Outcome Ingestion Validators

Turns raw records into validated ``Outcome`` models. This is the only place
RoundLens raises on bad data; the engines assume well-typed input.
Raises OutcomeValidationError (a ValueError) so callers can map to 400s.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from typing import Any, Iterable, Mapping

from roundlens.errors import OutcomeValidationError
from roundlens.models import Outcome

_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def validate_value(raw: Any, position: int | None = None) -> float:
    """Parse a payout multiplier; must be a finite number above zero.

    >>> validate_value("2.35")
    2.35
    """
    if isinstance(raw, bool):
        raise OutcomeValidationError(f"expected a number, got {raw!r}", position, "value")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise OutcomeValidationError(f"expected a number, got {raw!r}", position, "value") from None
    if math.isnan(value) or math.isinf(value):
        raise OutcomeValidationError(f"value must be finite, got {raw!r}", position, "value")
    if value <= 0:
        raise OutcomeValidationError(f"value must be positive, got {value}", position, "value")
    return value


def validate_date(raw: Any, position: int | None = None) -> date:
    """Parse an ISO calendar date.

    >>> validate_date("2024-03-01")
    datetime.date(2024, 3, 1)
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError:
        raise OutcomeValidationError(f"unparseable date {raw!r}", position, "date") from None


def validate_time(raw: Any, position: int | None = None) -> time:
    """Parse an ``HH:MM:SS`` (or ``HH:MM``) time of day.

    >>> validate_time("14:05:09")
    datetime.time(14, 5, 9)
    """
    if isinstance(raw, time):
        return raw
    text = str(raw).strip()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise OutcomeValidationError(f"unparseable time {raw!r}", position, "time")


def parse_outcomes(records: Iterable[Mapping[str, Any]], *, require_sorted: bool = True) -> list[Outcome]:
    """Validate raw records and assign positional indices.

    Accepts ``value`` or ``multiplier`` for the payout, an ISO ``date`` and
    an ``HH:MM:SS`` ``time``.

    Raises:
        OutcomeValidationError: on the first invalid record, or when
            ``require_sorted`` and timestamps go backwards.
    """
    outcomes: list[Outcome] = []
    previous: tuple[date, time] | None = None

    for position, record in enumerate(records):
        if "value" in record:
            raw_value = record["value"]
        elif "multiplier" in record:
            raw_value = record["multiplier"]
        else:
            raise OutcomeValidationError("missing value", position, "value")

        value = validate_value(raw_value, position)
        day = validate_date(record.get("date"), position)
        clock = validate_time(record.get("time"), position)

        if require_sorted and previous is not None and (day, clock) < previous:
            raise OutcomeValidationError(
                f"out of order: {day} {clock} precedes {previous[0]} {previous[1]}",
                position,
                "time",
            )
        previous = (day, clock)
        outcomes.append(Outcome(value=value, date=day, time=clock, index=position))

    return outcomes
