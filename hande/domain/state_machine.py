"""
Driver status state machine.

``request_transition`` is the pure rule: look the desired status up in
``DRIVER_TRANSITIONS`` for the current status and either take it or keep
the current status.  Rejected transitions are dropped, never raised.
``OFFLINE`` is reachable from everywhere (manual / emergency stop).

The daily-fee guard on ``OFFLINE -> GOING_ONLINE`` is applied only when a
``DailyFee`` is supplied, so callers that have not loaded the fee yet get
the plain table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .entities import DailyFee
from .enums import DRIVER_TRANSITIONS, DriverStatus

logger = logging.getLogger(__name__)


def can_transition(current: DriverStatus, desired: DriverStatus) -> bool:
    if desired == DriverStatus.OFFLINE:
        return True
    return desired in DRIVER_TRANSITIONS.get(current, ())


def request_transition(
    current: DriverStatus,
    desired: DriverStatus,
    daily_fee: Optional[DailyFee] = None,
    now: Optional[datetime] = None,
) -> DriverStatus:
    """Return the status after attempting ``current -> desired``."""
    if not can_transition(current, desired):
        logger.debug("Dropped driver transition %s -> %s", current.value, desired.value)
        return current

    if (
        desired == DriverStatus.GOING_ONLINE
        and daily_fee is not None
        and not daily_fee.allows_going_online(now)
    ):
        logger.debug("Daily fee unpaid, staying %s", current.value)
        return current

    return desired


class DriverStatusMachine:
    """Single mutable driver status with an explicit accepted/dropped result."""

    def __init__(self, status: DriverStatus = DriverStatus.OFFLINE):
        self.status = status

    def transition(
        self, desired: DriverStatus, daily_fee: Optional[DailyFee] = None
    ) -> bool:
        """Attempt a transition; True only if the status actually changed."""
        new_status = request_transition(self.status, desired, daily_fee)
        changed = new_status != self.status
        self.status = new_status
        return changed

    def allowed_next(self) -> tuple[DriverStatus, ...]:
        nxt = DRIVER_TRANSITIONS.get(self.status, ())
        if DriverStatus.OFFLINE in nxt or self.status == DriverStatus.OFFLINE:
            return nxt
        return nxt + (DriverStatus.OFFLINE,)
