"""/v1/payments - Payment create, update and history endpoints"""

import time
import uuid
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from payplanner.api.v1.schemas import (
    PaymentListResponse,
    PaymentRequest,
    PaymentResponse,
    TimelineResponse,
)
from payplanner.api.dependencies import get_actor, get_clock, get_request_id
from payplanner.infrastructure.database.session import get_db
from payplanner.infrastructure.database.repositories import PaymentRepository
from payplanner.infrastructure.database.models import Payment
from payplanner.domain import timeline
from payplanner.domain.clock import Clock
from payplanner.domain.models import PaymentRecord, PaymentStatus
from payplanner.domain.payments import apply_update, prepare_for_create
from payplanner.domain.exceptions import InvalidPaymentDataError
from payplanner.infrastructure.observability.metrics import record_payment_write
from payplanner.infrastructure.observability.logging import log_payment_event

router = APIRouter()


def _to_record(body: PaymentRequest) -> PaymentRecord:
    return PaymentRecord(
        amount_due=body.amount_due,
        paid_amount=body.paid_amount,
        due_date=body.due_date,
        planned_date=body.planned_date,
        last_payment_date=body.last_payment_date,
        paid_date=body.paid_date,
        account_date=body.account_date,
        status=body.status,
        description=body.description,
        notes=body.notes,
        account=body.account,
    )


def _to_response(record: PaymentRecord) -> PaymentResponse:
    return PaymentResponse(
        payment_id=str(record.id),
        amount_due=record.amount_due,
        paid_amount=record.paid_amount,
        outstanding=record.outstanding,
        due_date=record.due_date,
        planned_date=record.planned_date,
        last_payment_date=record.last_payment_date,
        paid_date=record.paid_date,
        account_date=record.account_date,
        status=record.status,
        is_paid=record.is_paid,
        reschedule_count=record.reschedule_count,
        audit_notes=record.audit_notes,
        description=record.description,
        notes=record.notes,
        account=record.account,
        created_at=record.created_at,
    )


def _load(payment_id: str, repo: PaymentRepository) -> Payment:
    try:
        payment_uuid = uuid.UUID(payment_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payment ID format")

    db_payment = repo.get(payment_uuid)
    if not db_payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return db_payment


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def create_payment(
    request_body: PaymentRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Optional[str] = Depends(get_actor),
    request_id: str = Depends(get_request_id),
):
    """
    Create a payment.

    Flow:
    1. Normalize money, dates and text
    2. Derive status from paid amount and due date
    3. Seed the timeline and audit notes
    4. Persist
    """
    start_time = time.time()

    try:
        record = prepare_for_create(_to_record(request_body), clock.now(), actor)
        PaymentRepository(db).create(record)
        db.commit()

    except InvalidPaymentDataError as e:
        db.rollback()
        logging.warning(f"Invalid payment data: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_payment_write("create", None, record.status.value)
    log_payment_event(request_id, "create", str(record.id), record.status.value, None, duration_ms)

    return _to_response(record)


@router.get("/payments", response_model=PaymentListResponse)
def list_payments(
    status: Optional[PaymentStatus] = Query(None, description="Filter by status"),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """List payments ordered by due date"""
    repo = PaymentRepository(db)
    payments = repo.list_payments(status=status, limit=limit)
    return PaymentListResponse(payments=[_to_response(repo.to_record(p)) for p in payments])


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: str, db: Session = Depends(get_db)):
    """Retrieve a single payment"""
    repo = PaymentRepository(db)
    return _to_response(repo.to_record(_load(payment_id, repo)))


@router.put("/payments/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: str,
    request_body: PaymentRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    actor: Optional[str] = Depends(get_actor),
    request_id: str = Depends(get_request_id),
):
    """
    Update a payment.

    Reschedules, money received, amount edits and status changes are
    recorded in the timeline and audit notes.
    """
    start_time = time.time()
    repo = PaymentRepository(db)
    db_payment = _load(payment_id, repo)

    try:
        record = repo.to_record(db_payment)
        previous_status = record.status.value
        apply_update(record, _to_record(request_body), clock.now(), actor)
        repo.save(db_payment, record)
        db.commit()

    except InvalidPaymentDataError as e:
        db.rollback()
        logging.warning(f"Invalid payment data: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_payment_write("update", previous_status, record.status.value)
    log_payment_event(request_id, "update", str(record.id), record.status.value, previous_status, duration_ms)

    return _to_response(record)


@router.get("/payments/{payment_id}/timeline", response_model=TimelineResponse)
def get_timeline(payment_id: str, db: Session = Depends(get_db)):
    """Structured payment history, oldest event first"""
    repo = PaymentRepository(db)
    db_payment = _load(payment_id, repo)
    entries = timeline.from_json(db_payment.timeline)
    return TimelineResponse(
        payment_id=str(db_payment.id),
        entries=[timeline.entry_to_dict(e) for e in entries],
    )
