"""
Application state container.

One ``Store`` per session.  ``dispatch`` runs every slice reducer, swaps in
the new ``AppState`` and notifies subscribers when anything changed.  All
callers (user actions and polling callbacks) go through ``dispatch``; the
last write wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Callable

from .auth import AuthState, auth_slice
from .core import Action
from .driver import DriverState, driver_slice
from .location import LocationState, location_slice
from .trip import TripState, trip_slice

logger = logging.getLogger(__name__)

Listener = Callable[["AppState", Action], None]

SLICES = {
    "auth": auth_slice,
    "driver": driver_slice,
    "trip": trip_slice,
    "location": location_slice,
}


@dataclass(frozen=True)
class AppState:
    auth: AuthState = field(default_factory=AuthState)
    driver: DriverState = field(default_factory=DriverState)
    trip: TripState = field(default_factory=TripState)
    location: LocationState = field(default_factory=LocationState)


class Store:
    def __init__(self, state: AppState | None = None):
        self._state = state or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> Action:
        changes = {}
        for f in fields(AppState):
            current = getattr(self._state, f.name)
            new = SLICES[f.name].reduce(current, action)
            if new is not current:
                changes[f.name] = new

        if changes:
            self._state = AppState(
                **{f.name: changes.get(f.name, getattr(self._state, f.name))
                   for f in fields(AppState)}
            )
            for listener in list(self._listeners):
                try:
                    listener(self._state, action)
                except Exception:
                    logger.exception("Store listener failed on %s", action.type)
        return action

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
