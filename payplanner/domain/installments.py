"""Installment (amortization) schedule calculator"""

from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP
from typing import List, Optional

from payplanner.domain.exceptions import InvalidInstallmentRequestError
from payplanner.domain.models import (
    InstallmentItem,
    InstallmentRequest,
    InstallmentSchedule,
    RoundingMode,
)
from payplanner.utils.date_utils import add_months, to_calendar_date
from payplanner.utils.money import ZERO, round_money, to_decimal

MAX_MONTHS = 600

_STEP_ROUNDING = {
    RoundingMode.ROUND_DOWN: ROUND_FLOOR,
    RoundingMode.ROUND_UP: ROUND_CEILING,
    RoundingMode.ROUND_NEAREST: ROUND_HALF_UP,
}


def _pow(base: Decimal, exponent: int) -> Decimal:
    """Square-and-multiply for a non-negative integer exponent"""
    result = Decimal(1)
    while exponent > 0:
        if exponent & 1:
            result *= base
        base *= base
        exponent >>= 1
    return result


def _validate(request: InstallmentRequest) -> None:
    if request.months <= 0:
        raise InvalidInstallmentRequestError("Term in months must be greater than zero")
    if request.months > MAX_MONTHS:
        raise InvalidInstallmentRequestError(f"Term must not exceed {MAX_MONTHS} months")
    if to_decimal(request.total) < 0:
        raise InvalidInstallmentRequestError("Total must not be negative")
    if to_decimal(request.down_payment or ZERO) < 0:
        raise InvalidInstallmentRequestError("Down payment must not be negative")
    if to_decimal(request.annual_rate) < 0:
        raise InvalidInstallmentRequestError("Annual rate must not be negative")
    if request.rounding_mode != RoundingMode.NONE:
        if request.rounding_step is None or to_decimal(request.rounding_step) <= 0:
            raise InvalidInstallmentRequestError("Rounding step must be positive when rounding is enabled")


def level_payment(loan_amount: Decimal, monthly_rate: Decimal, months: int) -> Decimal:
    """
    Unrounded level monthly payment.

    Annuity formula L*r*(1+r)^n / ((1+r)^n - 1); a flat split when r is zero
    or too small to move (1+r)^n at Decimal precision.
    """
    if monthly_rate == 0:
        return loan_amount / months
    growth = _pow(1 + monthly_rate, months)
    if growth == 1:
        return loan_amount / months
    return loan_amount * monthly_rate * growth / (growth - 1)


def round_to_step(value: Decimal, mode: RoundingMode, step: Decimal) -> Decimal:
    """Round value to a multiple of step (e.g. nearest 1000)"""
    units = (value / step).quantize(Decimal(1), rounding=_STEP_ROUNDING[mode])
    return round_money(units * step)


def apply_rounding_policy(
    raw_payment: Decimal,
    first_interest: Decimal,
    mode: RoundingMode,
    step: Optional[Decimal],
) -> Optional[Decimal]:
    """
    Rounded level payment, or None when no policy applies.

    Never below the first month's interest; a result of zero or less abandons
    the policy and the unrounded payment is used instead.
    """
    if mode == RoundingMode.NONE or step is None:
        return None
    rounded = round_to_step(raw_payment, mode, to_decimal(step))
    if rounded < first_interest:
        rounded = first_interest
    if rounded <= 0:
        return None
    return rounded


def calculate_installments(request: InstallmentRequest) -> InstallmentSchedule:
    """
    Build a monthly repayment schedule.

    The final month always pays off the exact remaining balance, so the last
    balance is 0 and the payments sum to principal plus interest to the cent.

    Raises:
        InvalidInstallmentRequestError: term outside 1..600 months or negative inputs
    """
    _validate(request)

    down_payment = round_money(request.down_payment or ZERO)
    loan_amount = max(round_money(request.total) - down_payment, ZERO)
    monthly_rate = to_decimal(request.annual_rate) / 100 / 12
    months = request.months

    raw_payment = level_payment(loan_amount, monthly_rate, months)
    base_payment = round_money(raw_payment)
    first_interest = round_money(loan_amount * monthly_rate)
    rounded_payment = apply_rounding_policy(
        raw_payment, first_interest, request.rounding_mode, request.rounding_step
    )
    scheduled_payment = rounded_payment if rounded_payment is not None else base_payment

    items: List[InstallmentItem] = []
    balance = loan_amount
    start_date = to_calendar_date(request.start_date)

    for i in range(months):
        interest = round_money(balance * monthly_rate)

        if i == months - 1:
            # Last month closes whatever is left, no dangling cents
            principal = balance
        else:
            payment = max(scheduled_payment, interest)
            principal = min(payment - interest, balance)

        payment = principal + interest
        balance = balance - principal

        items.append(
            InstallmentItem(
                date=add_months(start_date, i),
                principal=principal,
                interest=interest,
                payment=payment,
                balance=balance,
            )
        )

    total_payments = sum((item.payment for item in items), ZERO)
    total_interest = sum((item.interest for item in items), ZERO)

    return InstallmentSchedule(
        loan_amount=loan_amount,
        base_payment=base_payment,
        rounded_payment=rounded_payment,
        total_payments=total_payments,
        total_interest=total_interest,
        overpay=total_payments - loan_amount,
        amount_to_pay=total_payments + down_payment,
        items=items,
    )
