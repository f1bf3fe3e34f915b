"""SQLAlchemy ORM models for the payment store"""

import uuid
from sqlalchemy import Column, Boolean, DateTime, Date, Integer, Numeric, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class Payment(Base):
    """Client payment tracked by the planner"""

    __tablename__ = "payment"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    amount_due = Column(Numeric(14, 2), nullable=False)
    paid_amount = Column(Numeric(14, 2), nullable=False, default=0)
    due_date = Column(Date, nullable=False)
    planned_date = Column(Date, nullable=True)
    last_payment_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)
    account_date = Column(Date, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    is_paid = Column(Boolean, nullable=False, default=False)
    reschedule_count = Column(Integer, nullable=False, default=0)
    audit_notes = Column(Text, nullable=False, default="")
    timeline = Column(Text, nullable=False, default="[]")
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    account = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Overdue sweeper predicate
    __table_args__ = (Index("ix_payment_unpaid_status_due", "is_paid", "status", "due_date"),)
