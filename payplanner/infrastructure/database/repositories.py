"""Data access layer for payments"""

import uuid
from datetime import date
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session
from payplanner.infrastructure.database.models import Payment
from payplanner.domain import timeline
from payplanner.domain.models import PaymentRecord, PaymentStatus
from payplanner.utils.money import round_money


class PaymentRepository:
    """Repository for payments"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, record: PaymentRecord) -> Payment:
        """Persist a prepared payment"""
        db_payment = Payment()
        self._apply(db_payment, record)
        self.db.add(db_payment)
        self.db.flush()  # Get ID without committing
        record.id = db_payment.id
        record.created_at = db_payment.created_at
        return db_payment

    def save(self, db_payment: Payment, record: PaymentRecord) -> Payment:
        """Write rule results back onto a loaded row"""
        self._apply(db_payment, record)
        self.db.flush()
        return db_payment

    def get(self, payment_id: uuid.UUID) -> Optional[Payment]:
        """Fetch a payment by ID"""
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def list_payments(self, status: Optional[PaymentStatus] = None, limit: int = 100) -> List[Payment]:
        """Payments ordered by due date, optionally filtered by status"""
        query = self.db.query(Payment)
        if status is not None:
            query = query.filter(Payment.status == status.value)
        return query.order_by(Payment.due_date.asc()).limit(limit).all()

    def mark_overdue(self, as_of: date) -> int:
        """
        Flip every unpaid Pending payment due before ``as_of`` to Overdue.

        One set-based UPDATE; the caller owns the transaction. Returns the
        number of rows changed.
        """
        result = self.db.execute(
            update(Payment)
            .where(
                Payment.is_paid.is_(False),
                Payment.status == PaymentStatus.PENDING.value,
                Payment.due_date < as_of,
            )
            .values(status=PaymentStatus.OVERDUE.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    @staticmethod
    def to_record(db_payment: Payment) -> PaymentRecord:
        """Load a row into a PaymentRecord for a rule pass"""
        return PaymentRecord(
            id=db_payment.id,
            amount_due=round_money(db_payment.amount_due),
            paid_amount=round_money(db_payment.paid_amount or 0),
            due_date=db_payment.due_date,
            planned_date=db_payment.planned_date,
            last_payment_date=db_payment.last_payment_date,
            paid_date=db_payment.paid_date,
            account_date=db_payment.account_date,
            status=PaymentStatus(db_payment.status),
            is_paid=db_payment.is_paid,
            reschedule_count=db_payment.reschedule_count or 0,
            audit_notes=db_payment.audit_notes or "",
            timeline=timeline.from_json(db_payment.timeline),
            description=db_payment.description,
            notes=db_payment.notes,
            account=db_payment.account,
            created_at=db_payment.created_at,
        )

    @staticmethod
    def _apply(db_payment: Payment, record: PaymentRecord) -> None:
        db_payment.amount_due = record.amount_due
        db_payment.paid_amount = record.paid_amount
        db_payment.due_date = record.due_date
        db_payment.planned_date = record.planned_date
        db_payment.last_payment_date = record.last_payment_date
        db_payment.paid_date = record.paid_date
        db_payment.account_date = record.account_date
        db_payment.status = record.status.value
        db_payment.is_paid = record.is_paid
        db_payment.reschedule_count = record.reschedule_count
        db_payment.audit_notes = record.audit_notes
        db_payment.timeline = timeline.to_json(record.timeline)
        db_payment.description = record.description
        db_payment.notes = record.notes
        db_payment.account = record.account
