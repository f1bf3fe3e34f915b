"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Header, Request
from payplanner.domain.clock import Clock, SystemClock


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_actor(x_actor: Optional[str] = Header(None)) -> Optional[str]:
    """Name recorded in audit notes, defaults to the system label downstream"""
    return x_actor


def get_clock() -> Clock:
    """Provide the time source for lifecycle rules"""
    return SystemClock()
