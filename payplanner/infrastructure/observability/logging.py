"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from payplanner.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment_event(
    request_id: str,
    action: str,
    payment_id: str,
    status: str,
    previous_status: Optional[str],
    duration_ms: float,
) -> None:
    """Log structured payment write outcome for analysis"""
    logging.info(
        "Payment saved",
        extra={
            "request_id": request_id,
            "step": f"payment_{action}",
            "payment_id": payment_id,
            "status": status,
            "previous_status": previous_status,
            "duration_ms": duration_ms,
        },
    )


def log_sweep(marked: int, as_of: str, duration_ms: float) -> None:
    """Log overdue sweep tick outcome"""
    logging.getLogger("payplanner.sweeper").info(
        "Overdue sweep completed",
        extra={
            "step": "overdue_sweep",
            "marked_overdue": marked,
            "as_of": as_of,
            "duration_ms": duration_ms,
        },
    )
