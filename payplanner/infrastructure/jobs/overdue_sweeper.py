"""
Background job that marks late unpaid payments Overdue.

Each tick runs one set-based UPDATE in its own transaction. A failed tick is
rolled back, logged and retried on the next interval. The stop signal is
checked between ticks, never during one.
"""

import logging
import threading
import time
from typing import Callable, Optional
from sqlalchemy.orm import Session

from payplanner.config import settings
from payplanner.domain.clock import Clock, SystemClock
from payplanner.infrastructure.database.repositories import PaymentRepository
from payplanner.infrastructure.observability.logging import log_sweep
from payplanner.infrastructure.observability.metrics import (
    overdue_marked_counter,
    sweep_duration_histogram,
    sweep_failure_counter,
)

logger = logging.getLogger("payplanner.sweeper")


class OverdueSweeper:
    """Periodic Pending -> Overdue correction for payments past their due date"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Optional[Clock] = None,
        interval_seconds: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._interval = interval_seconds if interval_seconds is not None else settings.sweeper_interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> int:
        """
        Run one sweep. Returns the number of payments marked Overdue.

        Raises whatever the store raises, after rolling back.
        """
        as_of = self._clock.today()
        start_time = time.time()
        session = self._session_factory()
        try:
            with sweep_duration_histogram.time():
                marked = PaymentRepository(session).mark_overdue(as_of)
                session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        if marked:
            overdue_marked_counter.inc(marked)
            log_sweep(marked, as_of.isoformat(), (time.time() - start_time) * 1000)
        return marked

    def start(self) -> None:
        """Start the sweep loop on a daemon thread"""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="overdue-sweeper", daemon=True)
        self._thread.start()
        logger.info("Overdue sweeper started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal stop and wait for the current tick to finish"""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout if timeout is not None else settings.sweeper_stop_timeout_seconds)
        logger.info("Overdue sweeper stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                sweep_failure_counter.inc()
                logger.exception("Overdue sweep tick failed")
            self._stop_event.wait(timeout=self._interval)
