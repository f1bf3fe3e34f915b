"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from payplanner.domain.models import PaymentStatus, RoundingMode

# Money goes over the wire as a JSON number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InstallmentCalcRequest(CamelModel):
    """Request body for POST /v1/installments/calc"""

    total: Decimal = Field(..., ge=0, description="Contract total before down payment")
    down_payment: Decimal = Field(Decimal("0"), ge=0)
    annual_rate: Decimal = Field(..., ge=0, le=1000, description="Annual interest rate, percent")
    months: int = Field(..., description="Term in months, 1..600")
    start_date: date = Field(..., description="First installment date")
    rounding_mode: RoundingMode = RoundingMode.NONE
    rounding_step: Optional[Decimal] = Field(None, description="Rounding step, e.g. 1000")


class InstallmentItemSchema(CamelModel):
    """Single month in the schedule"""

    date: date
    principal: Money
    interest: Money
    payment: Money
    balance: Money


class InstallmentCalcResponse(CamelModel):
    """Response for POST /v1/installments/calc"""

    overpay: Money
    amount_to_pay: Money
    loan_amount: Money
    base_payment: Money
    rounded_payment: Optional[Money] = None
    total_payments: Money
    total_interest: Money
    items: List[InstallmentItemSchema]


class PaymentRequest(CamelModel):
    """Request body for POST /v1/payments and PUT /v1/payments/{payment_id}"""

    amount_due: Decimal = Field(..., ge=0, description="Planned payment amount")
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    due_date: date
    planned_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    paid_date: Optional[date] = None
    account_date: Optional[date] = None
    status: PaymentStatus = PaymentStatus.PENDING
    description: Optional[str] = None
    notes: Optional[str] = None
    account: Optional[str] = None


class PaymentResponse(CamelModel):
    """Payment as returned by the API"""

    payment_id: str
    amount_due: Money
    paid_amount: Money
    outstanding: Money
    due_date: date
    planned_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    paid_date: Optional[date] = None
    account_date: Optional[date] = None
    status: PaymentStatus
    is_paid: bool
    reschedule_count: int
    audit_notes: str
    description: Optional[str] = None
    notes: Optional[str] = None
    account: Optional[str] = None
    created_at: Optional[datetime] = None


class PaymentListResponse(CamelModel):
    """Response for GET /v1/payments"""

    payments: List[PaymentResponse]


class TimelineResponse(CamelModel):
    """Response for GET /v1/payments/{payment_id}/timeline"""

    payment_id: str
    entries: List[Dict[str, Any]]
