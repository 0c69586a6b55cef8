"""
Truck location store.

This is the only component allowed to change a truck's current location
or history. It applies the reconciliation policy under a per-truck lock and
persists the result atomically. It never broadcasts; callers publish events
after an accepted submission.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from truckspot.app.core.config import settings
from truckspot.app.core.exceptions import CustomerReportsDisabledError, ServiceUnavailableError
from truckspot.app.core.reliability import CircuitBreaker, CircuitOpenError, persistence_circuit_breaker
from truckspot.app.domain.location.locking import TruckLockRegistry, truck_locks
from truckspot.app.domain.location.policy import Decision, ReconciliationPolicy
from truckspot.app.domain.location.report import (
    LocationReport,
    TrackingPreferences,
    TruckLocationState,
    validate_report,
)
from truckspot.app.domain.location.repository import ApplyFn, LocationRepository, PersistenceError

logger = logging.getLogger("truckspot.location.store")


@dataclass(frozen=True)
class SubmissionResult:
    accepted: bool
    requires_verification: bool
    decision: Decision


class TruckLocationStore:
    """Reconciles incoming reports into per-truck location state."""

    def __init__(
        self,
        repository: LocationRepository,
        *,
        policy: Optional[ReconciliationPolicy] = None,
        locks: Optional[TruckLockRegistry] = None,
        history_cap: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        self._repository = repository
        self._policy = policy or ReconciliationPolicy()
        self._locks = locks if locks is not None else truck_locks
        self._history_cap = history_cap or settings.location_history_cap
        self._timeout = timeout_seconds or settings.persistence_timeout_seconds
        self._breaker = circuit_breaker or persistence_circuit_breaker

    async def submit(
        self,
        truck_id: int,
        report: LocationReport,
        preferences: Optional[TrackingPreferences] = None,
        *,
        override: bool = False,
    ) -> SubmissionResult:
        """
        Apply one report to a truck's location state.

        Flow:
        1. Validate coordinates (LocationValidationError, nothing touched)
        2. Take the truck's lock, load or lazily create its state
        3. Evaluate the reconciliation policy
        4. Append the report to history (capped)
        5. If accepted: push the outgoing current to history, replace current
        6. Persist; return whether accepted / pending verification

        ``override`` skips the policy and always accepts, whatever the
        report's source label. Admin corrections use it.

        Raises:
            LocationValidationError: coordinates missing or (0, 0)
            CustomerReportsDisabledError: policy rejected a customer report
            ServiceUnavailableError: persistence timed out or failed
        """
        validate_report(report)
        preferences = preferences or TrackingPreferences()
        decision: Optional[Decision] = None

        def apply(state: TruckLocationState) -> bool:
            nonlocal decision
            if override:
                decision = Decision.ACCEPT
            else:
                decision = self._policy.evaluate(state.current, report, preferences)
            if decision is Decision.REJECT:
                return False
            state.record(report, accepted=decision is Decision.ACCEPT, cap=self._history_cap)
            return True

        async with self._locks.hold(truck_id):
            await self._persist(truck_id, apply)

        if decision is Decision.REJECT:
            logger.info("Rejected %s report for truck %s", report.source.value, truck_id)
            raise CustomerReportsDisabledError(truck_id)

        accepted = decision is Decision.ACCEPT
        if accepted:
            logger.info(
                "Truck %s location accepted from %s (%s confidence)",
                truck_id, report.source.value, report.confidence.value,
            )
        else:
            logger.info("Truck %s %s report recorded pending verification", truck_id, report.source.value)

        return SubmissionResult(
            accepted=accepted,
            requires_verification=decision is Decision.RECORD_ONLY,
            decision=decision,
        )

    async def get_current(self, truck_id: int) -> Optional[LocationReport]:
        state = await self._read(truck_id)
        return state.current if state else None

    async def get_history(self, truck_id: int, limit: int = 10) -> List[LocationReport]:
        """Most recent first, at most ``limit`` entries."""
        state = await self._read(truck_id)
        return state.recent_history(limit) if state else []

    async def get_state(self, truck_id: int) -> Optional[TruckLocationState]:
        return await self._read(truck_id)

    async def _persist(self, truck_id: int, apply: ApplyFn) -> bool:
        async def attempt() -> bool:
            return await asyncio.wait_for(self._repository.mutate(truck_id, apply), self._timeout)

        try:
            return await self._breaker.call(attempt)
        except asyncio.TimeoutError as exc:
            logger.error("Location persistence timed out for truck %s after %.1fs", truck_id, self._timeout)
            raise ServiceUnavailableError(details={"truck_id": truck_id, "reason": "timeout"}) from exc
        except CircuitOpenError as exc:
            raise ServiceUnavailableError(details={"truck_id": truck_id, "reason": "circuit_open"}) from exc
        except PersistenceError as exc:
            raise ServiceUnavailableError(details={"truck_id": truck_id, "reason": "storage_error"}) from exc

    async def _read(self, truck_id: int) -> Optional[TruckLocationState]:
        try:
            return await asyncio.wait_for(self._repository.get_state(truck_id), self._timeout)
        except asyncio.TimeoutError as exc:
            raise ServiceUnavailableError(details={"truck_id": truck_id, "reason": "timeout"}) from exc
        except PersistenceError as exc:
            raise ServiceUnavailableError(details={"truck_id": truck_id, "reason": "storage_error"}) from exc
