from __future__ import annotations
from datetime import datetime, timedelta
from typing import Callable

Clock = Callable[[], datetime]

class DeadlineGuard:
    """
    Wall-clock gate consulted before each phase and each action.

    Work already started is never interrupted; the guard only refuses to let
    new work begin once ``clock()`` reaches the cutoff.
    """

    def __init__(self, cutoff: datetime, clock: Clock = datetime.now):
        self.cutoff = cutoff
        self.clock = clock

    @classmethod
    def after(cls, duration: timedelta, clock: Clock = datetime.now) -> "DeadlineGuard":
        return cls(clock() + duration, clock)

    def may_start(self) -> bool:
        return self.clock() < self.cutoff

    def remaining(self) -> timedelta:
        return max(self.cutoff - self.clock(), timedelta(0))

    def __repr__(self) -> str:
        return f"DeadlineGuard(cutoff={self.cutoff.isoformat()})"
