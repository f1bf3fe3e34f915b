"""Unit tests for the payment create/update workflow"""

import copy
import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from payplanner.domain.audit import note_lines
from payplanner.domain.exceptions import InvalidPaymentDataError
from payplanner.domain.models import PaymentRecord, PaymentStatus
from payplanner.domain.payments import apply_update, prepare_for_create
from payplanner.domain.timeline import TimelineEventType

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
LATER = NOW + timedelta(days=1)


def _new(**overrides) -> PaymentRecord:
    values = dict(amount_due=Decimal("100.00"), due_date=date(2026, 10, 20))
    values.update(overrides)
    return PaymentRecord(**values)


def _changes(stored: PaymentRecord, **overrides) -> PaymentRecord:
    """What a client sends back: the stored fields with some edits"""
    values = dict(
        amount_due=stored.amount_due,
        paid_amount=stored.paid_amount,
        due_date=stored.due_date,
        last_payment_date=stored.last_payment_date,
        paid_date=stored.paid_date,
        status=stored.status,
    )
    values.update(overrides)
    return PaymentRecord(**values)


def _events(record: PaymentRecord):
    return [e.event_type for e in record.timeline]


def test_create_seeds_timeline_and_notes():
    record = prepare_for_create(_new(description="  Rent "), NOW, "alice")

    assert record.status == PaymentStatus.PENDING
    assert record.planned_date == date(2026, 10, 20)
    assert record.description == "Rent"
    assert _events(record) == [TimelineEventType.CREATED]
    assert note_lines(record) == ["• 17.10.2026 (12:00) — alice: Payment created for 100.00 due 20.10.2026."]


def test_create_past_due_is_overdue_with_status_event():
    record = prepare_for_create(_new(due_date=date(2026, 10, 1)), NOW)

    assert record.status == PaymentStatus.OVERDUE
    assert _events(record) == [TimelineEventType.CREATED, TimelineEventType.STATUS_CHANGED]
    assert record.timeline[-1].new_status == PaymentStatus.OVERDUE


def test_create_with_partial_payment():
    record = prepare_for_create(_new(paid_amount=Decimal("30")), NOW)

    assert record.status == PaymentStatus.PENDING
    assert record.last_payment_date == date(2026, 10, 20)
    assert _events(record) == [TimelineEventType.CREATED, TimelineEventType.PARTIAL_PAYMENT]
    assert record.timeline[1].amount_delta == Decimal("30.00")
    assert record.timeline[1].comment == "Initial payment."


def test_create_fully_paid_is_finalized():
    record = prepare_for_create(
        _new(paid_amount=Decimal("100"), paid_date=date(2026, 10, 23)),
        NOW,
    )

    assert record.status == PaymentStatus.COMPLETED
    assert record.is_paid is True
    assert record.due_date == date(2026, 10, 23)
    assert _events(record) == [
        TimelineEventType.CREATED,
        TimelineEventType.PARTIAL_PAYMENT,
        TimelineEventType.FINALIZED,
        TimelineEventType.STATUS_CHANGED,
    ]
    assert record.timeline[2].comment == "3 days late."


def test_create_ignores_client_history():
    record = prepare_for_create(_new(audit_notes="forged"), NOW)

    assert "forged" not in record.audit_notes


def test_create_requires_amount_and_due_date():
    with pytest.raises(InvalidPaymentDataError):
        prepare_for_create(PaymentRecord(amount_due=None, due_date=date(2026, 10, 20)), NOW)
    with pytest.raises(InvalidPaymentDataError):
        prepare_for_create(PaymentRecord(amount_due=Decimal("1"), due_date=None), NOW)


def test_update_partial_payment():
    stored = prepare_for_create(_new(), NOW)

    apply_update(stored, _changes(stored, paid_amount=Decimal("40"), last_payment_date=date(2026, 10, 18)), LATER)

    assert stored.status == PaymentStatus.PENDING
    assert stored.outstanding == Decimal("60.00")
    assert _events(stored)[-1] == TimelineEventType.PARTIAL_PAYMENT
    assert stored.timeline[-1].amount_delta == Decimal("40.00")
    assert stored.timeline[-1].effective_date == date(2026, 10, 18)
    assert note_lines(stored)[-1].endswith("Received 40.00 (total 40.00). Outstanding 60.00.")


def test_update_sub_cent_change_not_recorded():
    stored = prepare_for_create(_new(paid_amount=Decimal("40")), NOW)
    count = len(stored.timeline)

    apply_update(stored, _changes(stored, paid_amount=Decimal("40.004")), LATER)

    assert len(stored.timeline) == count


def test_update_payment_correction():
    stored = prepare_for_create(_new(paid_amount=Decimal("40")), NOW)

    apply_update(stored, _changes(stored, paid_amount=Decimal("25")), LATER)

    entry = stored.timeline[-1]
    assert entry.event_type == TimelineEventType.PARTIAL_PAYMENT
    assert entry.amount_delta == Decimal("-15.00")
    assert entry.comment == "Payment correction."


def test_update_reschedule_counts_and_keeps_planned_date():
    stored = prepare_for_create(_new(), NOW)

    apply_update(stored, _changes(stored, due_date=date(2026, 11, 5)), LATER)
    apply_update(stored, _changes(stored, due_date=date(2026, 11, 20)), LATER + timedelta(hours=1))

    assert stored.reschedule_count == 2
    assert stored.planned_date == date(2026, 10, 20)
    reschedules = [e for e in stored.timeline if e.event_type == TimelineEventType.RESCHEDULED]
    assert [(e.previous_date, e.new_date) for e in reschedules] == [
        (date(2026, 10, 20), date(2026, 11, 5)),
        (date(2026, 11, 5), date(2026, 11, 20)),
    ]


def test_update_reschedule_into_past_marks_overdue():
    stored = prepare_for_create(_new(), NOW)

    apply_update(stored, _changes(stored, due_date=date(2026, 10, 10)), LATER)

    assert stored.status == PaymentStatus.OVERDUE
    assert _events(stored)[-2:] == [TimelineEventType.RESCHEDULED, TimelineEventType.STATUS_CHANGED]


def test_update_amount_change():
    stored = prepare_for_create(_new(paid_amount=Decimal("40")), NOW)

    apply_update(stored, _changes(stored, amount_due=Decimal("150")), LATER)

    entry = stored.timeline[-1]
    assert entry.event_type == TimelineEventType.AMOUNT_ADJUSTED
    assert entry.previous_amount == Decimal("100.00")
    assert entry.new_amount == Decimal("150.00")
    assert entry.outstanding == Decimal("110.00")


def test_update_final_payment_completes_and_aligns_due_date():
    stored = prepare_for_create(_new(paid_amount=Decimal("40")), NOW)

    apply_update(
        stored,
        _changes(stored, paid_amount=Decimal("100"), last_payment_date=date(2026, 10, 25)),
        LATER,
        "bob",
    )

    assert stored.status == PaymentStatus.COMPLETED
    assert stored.paid_date == date(2026, 10, 25)
    assert stored.due_date == date(2026, 10, 25)
    # Engine alignment is not a user reschedule
    assert stored.reschedule_count == 0
    assert _events(stored)[-4:] == [
        TimelineEventType.PARTIAL_PAYMENT,
        TimelineEventType.RESCHEDULED,
        TimelineEventType.STATUS_CHANGED,
        TimelineEventType.FINALIZED,
    ]
    assert stored.timeline[-3].comment == "aligned to payment date"
    assert stored.timeline[-1].comment == "5 days late."
    assert note_lines(stored)[-1] == "• 18.10.2026 (12:00) — bob: Payment completed 25.10.2026. 5 days late."


def test_update_removing_money_reopens_payment():
    stored = prepare_for_create(_new(paid_amount=Decimal("100"), paid_date=date(2026, 10, 20)), NOW)

    apply_update(stored, _changes(stored, paid_amount=Decimal("0"), paid_date=None), LATER)

    assert stored.status == PaymentStatus.PENDING
    assert stored.is_paid is False
    assert stored.paid_date is None
    assert stored.timeline[-1].previous_status == PaymentStatus.COMPLETED


def test_update_manual_cancel_kept():
    stored = prepare_for_create(_new(due_date=date(2026, 10, 1)), NOW)

    apply_update(stored, _changes(stored, status=PaymentStatus.CANCELLED), LATER)

    assert stored.status == PaymentStatus.CANCELLED
    assert stored.timeline[-1].new_status == PaymentStatus.CANCELLED


def test_update_without_changes_records_nothing():
    stored = prepare_for_create(_new(paid_amount=Decimal("10")), NOW)
    before = copy.deepcopy(stored)

    apply_update(stored, _changes(stored), LATER)

    assert stored.timeline == before.timeline
    assert stored.audit_notes == before.audit_notes


def test_timeline_and_notes_stay_in_step():
    stored = prepare_for_create(_new(), NOW)
    apply_update(stored, _changes(stored, paid_amount=Decimal("50")), LATER)
    apply_update(stored, _changes(stored, due_date=date(2026, 12, 1)), LATER + timedelta(hours=2))

    assert len(note_lines(stored)) == len(stored.timeline)
