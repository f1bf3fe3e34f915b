"""Canonicalize a payment's money, date and text fields before any rule runs"""

from typing import Optional

from payplanner.domain.models import PaymentRecord
from payplanner.utils.date_utils import to_calendar_date
from payplanner.utils.money import ZERO, round_money


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize(record: PaymentRecord) -> PaymentRecord:
    """
    Normalize a payment record in place and return it.

    - Text fields trimmed, empty text becomes None
    - Money rounded to cents (half away from zero), amount_due floored at 0
    - Dates truncated to calendar dates
    - paid_amount clamped into [0, amount_due]

    Status is never touched. Applying it twice gives the same result as once.
    """
    record.description = _clean_text(record.description)
    record.notes = _clean_text(record.notes)
    record.account = _clean_text(record.account)

    amount_due = round_money(record.amount_due)
    if amount_due < ZERO:
        amount_due = ZERO
    paid_amount = round_money(record.paid_amount)
    record.amount_due = amount_due
    record.paid_amount = min(max(paid_amount, ZERO), amount_due)

    record.due_date = to_calendar_date(record.due_date)
    record.planned_date = to_calendar_date(record.planned_date)
    record.last_payment_date = to_calendar_date(record.last_payment_date)
    record.paid_date = to_calendar_date(record.paid_date)
    record.account_date = to_calendar_date(record.account_date)

    if record.reschedule_count < 0:
        record.reschedule_count = 0

    return record
