"""
Location state repositories.

Both backends expose the same two operations:

- ``get_state(truck_id)`` returns a snapshot (or None if the truck has
  never had a location).
- ``mutate(truck_id, apply)`` loads the state (creating an empty one
  lazily), calls ``apply(state)`` and persists the result only when
  ``apply`` returns True. Either the whole mutation lands or none of it.
"""

import logging
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.core.exceptions import ResourceNotFoundError
from truckspot.app.domain.location.report import TruckLocationState
from truckspot.app.models.food_truck import FoodTruck

logger = logging.getLogger("truckspot.location.repository")

ApplyFn = Callable[[TruckLocationState], bool]


class PersistenceError(Exception):
    """The backing store failed; the mutation was not applied."""


class LocationRepository(Protocol):
    async def get_state(self, truck_id: int) -> Optional[TruckLocationState]:
        ...

    async def mutate(self, truck_id: int, apply: ApplyFn) -> bool:
        ...


class InMemoryLocationRepository:
    """Dictionary-backed repository for tests and single-process demos."""

    def __init__(self) -> None:
        self._states: Dict[int, TruckLocationState] = {}

    async def get_state(self, truck_id: int) -> Optional[TruckLocationState]:
        state = self._states.get(truck_id)
        return state.model_copy(deep=True) if state is not None else None

    async def mutate(self, truck_id: int, apply: ApplyFn) -> bool:
        existing = self._states.get(truck_id)
        # Work on a copy so a failing apply leaves no partial state behind
        draft = existing.model_copy(deep=True) if existing is not None else TruckLocationState()
        if not apply(draft):
            return False
        self._states[truck_id] = draft
        return True

    def clear(self) -> None:
        self._states.clear()


class SqlLocationRepository:
    """
    Repository over the FoodTruck row's JSON location columns.

    The row is read with SELECT ... FOR UPDATE so concurrent writers in
    other processes serialize on the database as well.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_truck(self, truck_id: int, for_update: bool = False) -> FoodTruck:
        query = select(FoodTruck).where(FoodTruck.id == truck_id)
        if for_update:
            # populate_existing: never trust attributes cached before the lock was taken
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        truck = result.scalar_one_or_none()
        if truck is None:
            raise ResourceNotFoundError("Food truck", truck_id)
        return truck

    async def get_state(self, truck_id: int) -> Optional[TruckLocationState]:
        try:
            truck = await self._load_truck(truck_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

        if truck.current_location is None and not truck.location_history:
            return None
        return TruckLocationState.from_documents(truck.current_location, truck.location_history)

    async def mutate(self, truck_id: int, apply: ApplyFn) -> bool:
        committed = False
        try:
            truck = await self._load_truck(truck_id, for_update=True)
            state = TruckLocationState.from_documents(truck.current_location, truck.location_history)
            if not apply(state):
                return False

            # Assign new objects so the JSON columns are flagged dirty
            truck.current_location = state.current_document()
            truck.location_history = state.history_documents()
            await self.db.commit()
            committed = True
            return True
        except SQLAlchemyError as exc:
            logger.error("Location write failed for truck %s: %s", truck_id, exc)
            raise PersistenceError(str(exc)) from exc
        finally:
            # Also reached on cancellation (timeout): release the row lock with the transaction
            if not committed:
                await self.db.rollback()
