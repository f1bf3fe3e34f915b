"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from payplanner.utils.money import ZERO

if TYPE_CHECKING:
    from payplanner.domain.timeline import TimelineEntry


class PaymentStatus(str, Enum):
    """Payment lifecycle states"""

    PENDING = "pending"        # Awaiting payment
    COMPLETED = "completed"    # Fully paid
    OVERDUE = "overdue"        # Pending with due date in the past
    CANCELLED = "cancelled"    # Manual override, never auto-assigned
    PROCESSING = "processing"  # Manual override, never auto-assigned

    @property
    def is_manual_override(self) -> bool:
        return self in (PaymentStatus.CANCELLED, PaymentStatus.PROCESSING)


@dataclass
class PaymentRecord:
    """Payment being run through the lifecycle rules"""

    amount_due: Decimal
    due_date: date
    paid_amount: Decimal = ZERO
    status: PaymentStatus = PaymentStatus.PENDING
    is_paid: bool = False
    planned_date: Optional[date] = None  # Due date before any reschedule
    last_payment_date: Optional[date] = None
    paid_date: Optional[date] = None
    account_date: Optional[date] = None
    reschedule_count: int = 0
    audit_notes: str = ""
    timeline: List["TimelineEntry"] = field(default_factory=list)

    id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    account: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def outstanding(self) -> Decimal:
        """Amount still to be paid, never negative"""
        return max(self.amount_due - self.paid_amount, ZERO)


class RoundingMode(str, Enum):
    """How the level installment payment is rounded to a step"""

    NONE = "none"
    ROUND_DOWN = "roundDown"
    ROUND_UP = "roundUp"
    ROUND_NEAREST = "roundNearest"


@dataclass
class InstallmentRequest:
    """Input of the amortization calculator"""

    total: Decimal
    annual_rate: Decimal
    months: int
    start_date: date
    down_payment: Decimal = ZERO
    rounding_mode: RoundingMode = RoundingMode.NONE
    rounding_step: Optional[Decimal] = None


@dataclass(frozen=True)
class InstallmentItem:
    """Single month in a repayment schedule"""

    date: date
    principal: Decimal
    interest: Decimal
    payment: Decimal
    balance: Decimal  # Remaining after this payment


@dataclass
class InstallmentSchedule:
    """Output of the amortization calculator"""

    loan_amount: Decimal
    base_payment: Decimal
    rounded_payment: Optional[Decimal]
    total_payments: Decimal
    total_interest: Decimal
    overpay: Decimal
    amount_to_pay: Decimal
    items: List[InstallmentItem]
