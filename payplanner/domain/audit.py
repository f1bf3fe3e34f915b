"""Human-readable audit trail kept on each payment"""

from datetime import date, datetime
from typing import List, Optional

from payplanner.domain.models import PaymentRecord
from payplanner.domain.timeline import TimelineEntry, TimelineEventType
from payplanner.utils.date_utils import to_utc
from payplanner.utils.money import format_money

SYSTEM_ACTOR = "system"
MAX_NOTE_LINES = 200
MAX_NOTES_LENGTH = 4000

BULLET = "•"


def _format_date(value: Optional[date]) -> str:
    return value.strftime("%d.%m.%Y") if value else "?"


def format_note(message: str, now: datetime, actor: Optional[str] = None) -> str:
    """Single audit line: • 17.10.2026 (14:05) — alice: message"""
    stamp = to_utc(now)
    text = " ".join(message.split())  # one note is one line
    who = (actor or "").strip() or SYSTEM_ACTOR
    return f"{BULLET} {stamp:%d.%m.%Y} ({stamp:%H:%M}) — {who}: {text}"


def _trim(lines: List[str]) -> List[str]:
    # Drop whole lines from the oldest end, the newest line always survives
    total = sum(len(line) for line in lines) + max(len(lines) - 1, 0)
    start = 0
    while len(lines) - start > 1 and (len(lines) - start > MAX_NOTE_LINES or total > MAX_NOTES_LENGTH):
        total -= len(lines[start]) + 1
        start += 1
    return lines[start:]


def note_lines(record: PaymentRecord) -> List[str]:
    return [line for line in (record.audit_notes or "").split("\n") if line.strip()]


def append_note(
    record: PaymentRecord,
    message: str,
    now: datetime,
    actor: Optional[str] = None,
) -> PaymentRecord:
    """Append a stamped note to record.audit_notes, keeping the size caps"""
    lines = note_lines(record)
    lines.append(format_note(message, now, actor))
    record.audit_notes = "\n".join(_trim(lines))
    return record


def describe(entry: TimelineEntry) -> str:
    """Render a timeline event as audit note text"""
    event = entry.event_type

    if event == TimelineEventType.CREATED:
        return (
            f"Payment created for {format_money(entry.new_amount)} "
            f"due {_format_date(entry.effective_date)}."
        )

    if event == TimelineEventType.PARTIAL_PAYMENT:
        if entry.amount_delta < 0:
            head = f"Payment corrected by {format_money(entry.amount_delta)}"
        else:
            head = f"Received {format_money(entry.amount_delta)}"
        text = (
            f"{head} (total {format_money(entry.total_paid)}). "
            f"Outstanding {format_money(entry.outstanding)}."
        )
        return f"{text} {entry.comment}" if entry.comment else text

    if event == TimelineEventType.AMOUNT_ADJUSTED:
        return (
            f"Amount changed: {format_money(entry.previous_amount)} → {format_money(entry.new_amount)}. "
            f"Outstanding {format_money(entry.outstanding)}."
        )

    if event == TimelineEventType.RESCHEDULED:
        text = (
            f"Payment rescheduled: {_format_date(entry.previous_date)} → {_format_date(entry.new_date)}. "
            f"Outstanding {format_money(entry.outstanding)}."
        )
        return f"{text} ({entry.comment})" if entry.comment else text

    if event == TimelineEventType.STATUS_CHANGED:
        text = f"Status changed: {entry.previous_status.value} → {entry.new_status.value}."
        return f"{text} {entry.comment}" if entry.comment else text

    # Finalized
    text = f"Payment completed {_format_date(entry.effective_date)}."
    return f"{text} {entry.comment}" if entry.comment else text
