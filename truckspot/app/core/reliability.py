"""
Reliability utilities.

Circuit breaker guarding the location persistence step.
"""

import logging
import time
from typing import Any, Callable, Tuple, Type

from truckspot.app.core.config import settings
from truckspot.app.core.exceptions import AppException

logger = logging.getLogger("truckspot.reliability")


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Simple Circuit Breaker implementation.
    If 'failure_threshold' failures occur within 'reset_timeout',
    the circuit opens and rejects calls for 'reset_timeout' seconds.

    Exceptions listed in 'ignored_exceptions' are business outcomes
    (not found, permission denied) and never count as failures.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout: int = 60,
        ignored_exceptions: Tuple[Type[BaseException], ...] = (),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.ignored_exceptions = ignored_exceptions
        self._clock = clock
        self.failures = 0
        self.last_failure_time = 0.0
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if self._clock() - self.last_failure_time > self.reset_timeout:
                self.state = "HALF_OPEN"
            else:
                raise CircuitOpenError(f"Circuit '{self.name}' is OPEN")

        try:
            result = await func(*args, **kwargs)
        except self.ignored_exceptions:
            raise
        except Exception:
            self.record_failure()
            raise

        if self.state == "HALF_OPEN" or self.failures:
            self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        self.last_failure_time = self._clock()
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            if self.state != "OPEN":
                logger.warning("Circuit '%s' opened after %d failures", self.name, self.failures)
            self.state = "OPEN"

    def reset_state(self):
        self.failures = 0
        self.state = "CLOSED"


# Shared by every TruckLocationStore in the process
persistence_circuit_breaker = CircuitBreaker(
    name="location-persistence",
    failure_threshold=settings.persistence_failure_threshold,
    reset_timeout=settings.persistence_reset_timeout,
    ignored_exceptions=(AppException,),
)
