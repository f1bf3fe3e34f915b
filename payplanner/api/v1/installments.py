"""POST /v1/installments/calc - Amortization schedule calculator"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from payplanner.api.v1.schemas import InstallmentCalcRequest, InstallmentCalcResponse, InstallmentItemSchema
from payplanner.api.dependencies import get_request_id
from payplanner.domain.installments import calculate_installments
from payplanner.domain.models import InstallmentRequest
from payplanner.domain.exceptions import InvalidInstallmentRequestError
from payplanner.infrastructure.observability.metrics import (
    installment_calculation_counter,
    installment_rejection_counter,
)

router = APIRouter()


@router.post("/installments/calc", response_model=InstallmentCalcResponse)
def calculate(
    request_body: InstallmentCalcRequest,
    request_id: str = Depends(get_request_id),
):
    """
    Calculate a monthly repayment schedule.

    Pure computation, nothing is persisted. An invalid term (outside 1..600
    months) is rejected with 422 before any calculation.
    """
    try:
        schedule = calculate_installments(
            InstallmentRequest(
                total=request_body.total,
                down_payment=request_body.down_payment,
                annual_rate=request_body.annual_rate,
                months=request_body.months,
                start_date=request_body.start_date,
                rounding_mode=request_body.rounding_mode,
                rounding_step=request_body.rounding_step,
            )
        )
    except InvalidInstallmentRequestError as e:
        installment_rejection_counter.inc()
        logging.warning(f"Invalid installment request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    installment_calculation_counter.labels(rounding_mode=request_body.rounding_mode.value).inc()

    return InstallmentCalcResponse(
        overpay=schedule.overpay,
        amount_to_pay=schedule.amount_to_pay,
        loan_amount=schedule.loan_amount,
        base_payment=schedule.base_payment,
        rounded_payment=schedule.rounded_payment,
        total_payments=schedule.total_payments,
        total_interest=schedule.total_interest,
        items=[
            InstallmentItemSchema(
                date=item.date,
                principal=item.principal,
                interest=item.interest,
                payment=item.payment,
                balance=item.balance,
            )
            for item in schedule.items
        ],
    )
