"""
Redux-style building blocks.

A ``Slice`` owns one piece of state and a table of pure reducers keyed by
action type (``"<slice>/<name>"``).  Decorating a reducer with
``@slice.reducer`` registers it and hands back an action creator of the
same name, so call sites read ``store.dispatch(set_bids(bids))``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

S = TypeVar("S")


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


class ActionCreator:
    def __init__(self, type_: str):
        self.type = type_

    def __call__(self, payload: Any = None) -> Action:
        return Action(self.type, payload)

    def __repr__(self) -> str:
        return f"<ActionCreator {self.type}>"


class Slice(Generic[S]):
    def __init__(self, name: str, initial_state: S):
        self.name = name
        self.initial_state = initial_state
        self._reducers: dict[str, Callable[[S, Any], S]] = {}

    def reducer(self, fn: Callable[[S, Any], S]) -> ActionCreator:
        type_ = f"{self.name}/{fn.__name__}"
        self._reducers[type_] = fn
        return ActionCreator(type_)

    def reduce(self, state: S, action: Action) -> S:
        handler = self._reducers.get(action.type)
        if handler is None:
            return state
        return handler(state, action.payload)
