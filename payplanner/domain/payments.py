"""
Payment create/update workflow.

Runs Normalizer -> State Machine -> event recording for the CRUD layer. Every
event goes to the structured timeline and is rendered into the audit notes at
the same time, so the two never disagree.
"""

from datetime import datetime
from typing import List, Optional

from payplanner.domain import timeline
from payplanner.domain.audit import append_note, describe
from payplanner.domain.exceptions import InvalidPaymentDataError
from payplanner.domain.lifecycle import apply_status_rules
from payplanner.domain.models import PaymentRecord
from payplanner.domain.normalizer import normalize
from payplanner.domain.timeline import TimelineEntry
from payplanner.utils.date_utils import days_between
from payplanner.utils.money import TOLERANCE, ZERO

INITIAL_PAYMENT_COMMENT = "Initial payment."
CORRECTION_COMMENT = "Payment correction."
ALIGNED_COMMENT = "aligned to payment date"


def _validate(record: PaymentRecord) -> None:
    if record.amount_due is None:
        raise InvalidPaymentDataError("amount_due is required")
    if record.due_date is None:
        raise InvalidPaymentDataError("due_date is required")
    if record.paid_amount is None:
        record.paid_amount = ZERO


def _backfill_last_payment_date(record: PaymentRecord) -> None:
    if record.paid_amount > ZERO and record.last_payment_date is None:
        record.last_payment_date = record.paid_date or record.account_date or record.due_date


def _late_comment(record: PaymentRecord) -> Optional[str]:
    late_days = days_between(record.planned_date, record.paid_date)
    if late_days:
        return f"{late_days} days late."
    return None


def _record_events(record: PaymentRecord, events: List[TimelineEntry], actor: Optional[str]) -> None:
    for entry in events:
        record.timeline = timeline.append(record.timeline, entry)
        append_note(record, describe(entry), entry.timestamp, actor)


def prepare_for_create(record: PaymentRecord, now: datetime, actor: Optional[str] = None) -> PaymentRecord:
    """Normalize a new payment, derive its status and seed its history"""
    _validate(record)
    normalize(record)

    if record.planned_date is None:
        record.planned_date = record.due_date
    _backfill_last_payment_date(record)

    record.audit_notes = ""
    record.timeline = []

    requested_status = record.status
    apply_status_rules(record, now)

    events = [timeline.created(now, record.planned_date, record.amount_due)]

    if record.paid_amount > ZERO:
        events.append(
            timeline.partial_payment(
                now,
                record.paid_amount,
                record.paid_amount,
                record.outstanding,
                record.last_payment_date or record.paid_date or record.due_date,
                INITIAL_PAYMENT_COMMENT,
            )
        )

    if record.is_paid and record.amount_due > ZERO:
        events.append(
            timeline.finalized(
                now, record.paid_amount, record.outstanding, record.paid_date, _late_comment(record)
            )
        )

    if requested_status != record.status:
        events.append(timeline.status_changed(now, requested_status, record.status, record.outstanding))

    _record_events(record, events, actor)
    return record


def apply_update(
    entity: PaymentRecord,
    changes: PaymentRecord,
    now: datetime,
    actor: Optional[str] = None,
) -> PaymentRecord:
    """
    Apply user edits from ``changes`` to a stored payment.

    Records, in order: amount edit, money received or corrected (moves over a
    cent), caller reschedule (bumps reschedule_count), due date aligned by the
    engine, status change, and final settlement.
    """
    _validate(changes)

    previous_amount = entity.amount_due
    previous_paid = entity.paid_amount
    previous_due_date = entity.due_date
    previous_status = entity.status
    previous_outstanding = entity.outstanding

    entity.amount_due = changes.amount_due
    entity.paid_amount = changes.paid_amount
    entity.due_date = changes.due_date
    entity.last_payment_date = changes.last_payment_date
    entity.paid_date = changes.paid_date
    entity.account_date = changes.account_date
    entity.description = changes.description
    entity.notes = changes.notes
    entity.account = changes.account
    entity.planned_date = entity.planned_date or changes.planned_date or previous_due_date

    normalize(entity)
    _backfill_last_payment_date(entity)

    events: List[TimelineEntry] = []

    if entity.amount_due != previous_amount:
        events.append(
            timeline.amount_adjusted(
                now, previous_amount, entity.amount_due, entity.paid_amount, entity.outstanding
            )
        )

    delta = entity.paid_amount - previous_paid
    if abs(delta) > TOLERANCE:
        events.append(
            timeline.partial_payment(
                now,
                delta,
                entity.paid_amount,
                entity.outstanding,
                entity.last_payment_date or entity.paid_date or now,
                None if delta > ZERO else CORRECTION_COMMENT,
            )
        )

    if entity.due_date != previous_due_date:
        entity.reschedule_count += 1
        events.append(timeline.rescheduled(now, previous_due_date, entity.due_date, entity.outstanding))

    entity.status = changes.status
    due_date_before_rules = entity.due_date
    apply_status_rules(entity, now)

    if entity.due_date != due_date_before_rules:
        events.append(
            timeline.rescheduled(
                now, due_date_before_rules, entity.due_date, entity.outstanding, ALIGNED_COMMENT
            )
        )

    if entity.status != previous_status:
        events.append(timeline.status_changed(now, previous_status, entity.status, entity.outstanding))

    if entity.outstanding <= TOLERANCE and previous_outstanding > TOLERANCE:
        events.append(
            timeline.finalized(
                now, entity.paid_amount, entity.outstanding, entity.paid_date, _late_comment(entity)
            )
        )

    _record_events(entity, events, actor)
    return entity
