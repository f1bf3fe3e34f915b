"""Payment lifecycle state machine"""

from datetime import date, datetime
from decimal import Decimal
from typing import Union

from payplanner.domain.models import PaymentRecord, PaymentStatus
from payplanner.utils.date_utils import to_calendar_date
from payplanner.utils.money import TOLERANCE

Moment = Union[date, datetime]


def is_fully_paid(amount_due: Decimal, paid_amount: Decimal) -> bool:
    """Completion threshold: paid within a cent of the amount due"""
    return paid_amount >= amount_due - TOLERANCE


def apply_status_rules(record: PaymentRecord, now: Moment) -> PaymentRecord:
    """
    Derive status, is_paid and paid dates from paid amount and due date.

    Rules, in order:
    1. Fully paid: paid_amount snaps to amount_due, status Completed, paid_date
       backfilled from last_payment_date or due_date, due_date follows the
       actual settlement date.
    2. Not fully paid: is_paid False, paid_date cleared. Cancelled and
       Processing are manual overrides and keep their status.
    3. Otherwise Overdue when due_date is before today, else Pending.

    Expects a normalized record. Safe to call any number of times.
    """
    today = to_calendar_date(now)

    if is_fully_paid(record.amount_due, record.paid_amount):
        record.paid_amount = record.amount_due
        record.is_paid = True
        record.status = PaymentStatus.COMPLETED
        if record.paid_date is None:
            record.paid_date = record.last_payment_date or record.due_date
        if record.last_payment_date is None:
            record.last_payment_date = record.paid_date
        record.due_date = record.last_payment_date
        return record

    record.is_paid = False
    record.paid_date = None

    match record.status:
        case PaymentStatus.CANCELLED | PaymentStatus.PROCESSING:
            pass
        case PaymentStatus.PENDING | PaymentStatus.OVERDUE | PaymentStatus.COMPLETED:
            record.status = PaymentStatus.OVERDUE if record.due_date < today else PaymentStatus.PENDING

    return record
