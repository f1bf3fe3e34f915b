"""
Structured payment timeline.

Each domain event becomes one immutable TimelineEntry. The log is stored as a
JSON array (camelCase keys, lowerCamelCase enum values) sorted by timestamp.
A log that cannot be decoded is discarded as a whole and read back as empty.
"""

import json
import logging
from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from payplanner.domain.models import PaymentStatus
from payplanner.utils.date_utils import to_calendar_date, to_utc
from payplanner.utils.money import round_money, to_decimal

logger = logging.getLogger(__name__)


class TimelineEventType(str, Enum):
    CREATED = "created"
    PARTIAL_PAYMENT = "partialPayment"
    AMOUNT_ADJUSTED = "amountAdjusted"
    RESCHEDULED = "rescheduled"
    STATUS_CHANGED = "statusChanged"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class TimelineEntry:
    """One event in a payment's history. Only the fields of its tag are set."""

    timestamp: datetime
    event_type: TimelineEventType
    amount_delta: Optional[Decimal] = None
    effective_date: Optional[date] = None
    previous_date: Optional[date] = None
    new_date: Optional[date] = None
    previous_amount: Optional[Decimal] = None
    new_amount: Optional[Decimal] = None
    total_paid: Optional[Decimal] = None
    outstanding: Optional[Decimal] = None
    previous_status: Optional[PaymentStatus] = None
    new_status: Optional[PaymentStatus] = None
    comment: Optional[str] = None


# Factories

def created(timestamp: datetime, planned_date: Optional[date], amount: Decimal) -> TimelineEntry:
    return TimelineEntry(
        timestamp=to_utc(timestamp),
        event_type=TimelineEventType.CREATED,
        effective_date=to_calendar_date(planned_date),
        new_amount=round_money(amount),
        outstanding=round_money(amount),
    )


def partial_payment(
    timestamp: datetime,
    delta: Decimal,
    total_paid: Decimal,
    outstanding: Decimal,
    payment_date: Optional[date],
    comment: Optional[str] = None,
) -> TimelineEntry:
    return TimelineEntry(
        timestamp=to_utc(timestamp),
        event_type=TimelineEventType.PARTIAL_PAYMENT,
        amount_delta=round_money(delta),
        total_paid=round_money(total_paid),
        outstanding=round_money(outstanding),
        effective_date=to_calendar_date(payment_date),
        comment=comment,
    )


def amount_adjusted(
    timestamp: datetime,
    previous_amount: Decimal,
    new_amount: Decimal,
    total_paid: Decimal,
    outstanding: Decimal,
) -> TimelineEntry:
    return TimelineEntry(
        timestamp=to_utc(timestamp),
        event_type=TimelineEventType.AMOUNT_ADJUSTED,
        previous_amount=round_money(previous_amount),
        new_amount=round_money(new_amount),
        total_paid=round_money(total_paid),
        outstanding=round_money(outstanding),
    )


def rescheduled(
    timestamp: datetime,
    previous_date: date,
    new_date: date,
    outstanding: Decimal,
    comment: Optional[str] = None,
) -> TimelineEntry:
    return TimelineEntry(
        timestamp=to_utc(timestamp),
        event_type=TimelineEventType.RESCHEDULED,
        previous_date=to_calendar_date(previous_date),
        new_date=to_calendar_date(new_date),
        outstanding=round_money(outstanding),
        comment=comment,
    )


def status_changed(
    timestamp: datetime,
    previous_status: PaymentStatus,
    new_status: PaymentStatus,
    outstanding: Decimal,
    comment: Optional[str] = None,
) -> TimelineEntry:
    return TimelineEntry(
        timestamp=to_utc(timestamp),
        event_type=TimelineEventType.STATUS_CHANGED,
        previous_status=previous_status,
        new_status=new_status,
        outstanding=round_money(outstanding),
        comment=comment,
    )


def finalized(
    timestamp: datetime,
    total_paid: Decimal,
    outstanding: Decimal,
    payment_date: Optional[date],
    comment: Optional[str] = None,
) -> TimelineEntry:
    return TimelineEntry(
        timestamp=to_utc(timestamp),
        event_type=TimelineEventType.FINALIZED,
        total_paid=round_money(total_paid),
        outstanding=round_money(outstanding),
        effective_date=to_calendar_date(payment_date),
        comment=comment,
    )


def append(entries: Iterable[TimelineEntry], *new_entries: TimelineEntry) -> List[TimelineEntry]:
    """New list with the entries appended, kept in timestamp order"""
    combined = [e for e in entries if e is not None] + [e for e in new_entries if e is not None]
    return sorted(combined, key=lambda e: e.timestamp)


# Serialization

_MONEY_FIELDS = {"amount_delta", "previous_amount", "new_amount", "total_paid", "outstanding"}
_DATE_FIELDS = {"effective_date", "previous_date", "new_date"}
_STATUS_FIELDS = {"previous_status", "new_status"}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


_JSON_KEYS = {f.name: _camel(f.name) for f in fields(TimelineEntry)}


def _encode_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def entry_to_dict(entry: TimelineEntry) -> Dict[str, Any]:
    """camelCase mapping of an entry, fields its tag does not carry are omitted"""
    data = {}
    for name, key in _JSON_KEYS.items():
        value = getattr(entry, name)
        if value is not None:
            data[key] = _encode_value(value)
    return data


def entry_from_dict(data: Dict[str, Any]) -> TimelineEntry:
    """
    Build an entry from its camelCase mapping.

    Raises:
        KeyError, ValueError, TypeError, InvalidOperation: on malformed data
    """
    if not isinstance(data, dict):
        raise TypeError(f"Timeline entry must be an object, got {type(data).__name__}")

    values: Dict[str, Any] = {}
    for name, key in _JSON_KEYS.items():
        raw = data.get(key)
        if raw is None:
            continue
        if name == "timestamp":
            values[name] = to_utc(datetime.fromisoformat(raw))
        elif name == "event_type":
            values[name] = TimelineEventType(raw)
        elif name in _MONEY_FIELDS:
            if isinstance(raw, bool):
                raise TypeError(f"{key} must be a number")
            amount = to_decimal(raw)
            if not amount.is_finite():
                raise ValueError(f"{key} must be a finite number")
            values[name] = round_money(amount)
        elif name in _DATE_FIELDS:
            values[name] = date.fromisoformat(raw)
        elif name in _STATUS_FIELDS:
            values[name] = PaymentStatus(raw)
        else:
            values[name] = str(raw)

    return TimelineEntry(timestamp=values.pop("timestamp"), event_type=values.pop("event_type"), **values)


def _reject_constant(token: str) -> None:
    # json accepts NaN and Infinity, which are not valid JSON
    raise ValueError(f"Unsupported JSON constant {token}")


def to_json(entries: Optional[Iterable[TimelineEntry]]) -> str:
    """Encode a log as a JSON array sorted ascending by timestamp"""
    ordered = sorted((e for e in (entries or []) if e is not None), key=lambda e: e.timestamp)
    return json.dumps([entry_to_dict(e) for e in ordered], ensure_ascii=False)


def from_json(payload: Optional[str]) -> List[TimelineEntry]:
    """
    Decode a stored log.

    Any decode failure discards the whole log and returns an empty list
    rather than a partial history.
    """
    if payload is None or not payload.strip():
        return []
    try:
        raw = json.loads(payload, parse_float=Decimal, parse_constant=_reject_constant)
        if not isinstance(raw, list):
            raise TypeError("Timeline payload must be a JSON array")
        entries = [entry_from_dict(item) for item in raw]
    except (ValueError, TypeError, KeyError, InvalidOperation) as e:
        logger.warning("Discarding unreadable payment timeline: %s", e)
        return []
    return sorted(entries, key=lambda e: e.timestamp)
