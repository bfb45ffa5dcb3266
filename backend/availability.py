# availability.py - Primary-store availability policy and connectivity probe
"""
A small circuit breaker decides whether an operation should try the primary
store at all:

* ``closed``    - try the primary store.
* ``open``      - skip it and go straight to the local cache.
* ``half_open`` - the reset timeout has elapsed; let calls through again and
  close on the next success or re-open on the next failure.

One breaker is shared by every repository built from the same service
container. Tests inject their own breaker and clock.
"""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from document_store import Collection, DocumentStore

logger = logging.getLogger("vice-city.availability")


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    def __init__(
        self,
        reset_timeout: Optional[float] = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.reset_timeout = reset_timeout
        self._clock = clock
        self.state = BreakerState.CLOSED
        self.consecutive_failures = 0
        self.last_error: Optional[str] = None
        self.opened_at: Optional[float] = None

    def allow_primary(self) -> bool:
        if self.state == BreakerState.OPEN:
            if self.reset_timeout is None or self.opened_at is None:
                return False
            if self._clock() - self.opened_at < self.reset_timeout:
                return False
            self.state = BreakerState.HALF_OPEN
            logger.info("Primary store breaker half-open, retrying primary")
        return True

    def record_success(self) -> None:
        if self.state != BreakerState.CLOSED:
            logger.info("Primary store reachable again, breaker closed")
        self.state = BreakerState.CLOSED
        self.consecutive_failures = 0
        self.last_error = None
        self.opened_at = None

    def record_failure(self, error: BaseException) -> None:
        self.consecutive_failures += 1
        self.last_error = f"{type(error).__name__}: {error}"
        if self.state != BreakerState.OPEN:
            logger.info(f"Primary store breaker opened after {self.consecutive_failures} failure(s)")
        self.state = BreakerState.OPEN
        self.opened_at = self._clock()

    def force_open(self, reason: str = "forced open") -> None:
        self.state = BreakerState.OPEN
        self.last_error = reason
        self.opened_at = self._clock()

    def reset(self) -> None:
        self.record_success()

    @property
    def available(self) -> bool:
        return self.state != BreakerState.OPEN

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "available": self.available,
            "consecutive_failures": self.consecutive_failures,
            "last_error": self.last_error,
            "reset_timeout": self.reset_timeout,
        }


@dataclass
class ConnectivityResult:
    available: bool
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class ConnectivityProbe:
    """Reads at most one document from the primary store."""

    def __init__(self, primary: DocumentStore, breaker: CircuitBreaker, collection: Collection):
        self.primary = primary
        self.breaker = breaker
        self.collection = collection

    async def check_connectivity(self) -> ConnectivityResult:
        try:
            docs = await self.primary.list(self.collection, limit=1)
        except Exception as e:
            self.breaker.record_failure(e)
            return ConnectivityResult(
                available=False,
                error=f"Cannot reach {self.primary.name}: {e}",
                details={"collection": self.collection.name},
            )
        self.breaker.record_success()
        return ConnectivityResult(
            available=True,
            details={"collection": self.collection.name, "sampled": len(docs)},
        )
