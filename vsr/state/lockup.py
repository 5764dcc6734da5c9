"""
Lockup schedules.

A lockup is a kind plus a ``[start_ts, end_ts)`` window measured in whole
periods of the kind. Vesting kinds (DAILY, MONTHLY) release principal at the
end of each period; CLIFF releases everything at ``end_ts``; CONSTANT never
counts down until it is converted to another kind.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict

from ..constants import (
    MAX_LOCKUP_IN_FUTURE_SECS,
    MAX_LOCKUP_PERIODS,
    SECS_PER_DAY,
    SECS_PER_MONTH,
)
from ..exceptions import (
    DepositStartTooFarInFutureError,
    InvalidDaysError,
    InvalidLockupPeriodError,
)
from .intmath import ceil_div, to_i64


class LockupKind(IntEnum):
    """Lockup schedule kinds. The integer values are stable storage tags."""
    NONE = 0
    DAILY = 1
    MONTHLY = 2
    CLIFF = 3
    CONSTANT = 4

    @property
    def period_secs(self) -> int:
        """Length of one period in seconds (0 for NONE)."""
        return _PERIOD_SECS[self]

    @property
    def strictness(self) -> int:
        """
        Rank used to forbid moving tokens to a looser schedule.

        NONE < DAILY < MONTHLY < CLIFF == CONSTANT
        """
        return _STRICTNESS[self]

    @property
    def is_vesting(self) -> bool:
        return self in (LockupKind.DAILY, LockupKind.MONTHLY)


_PERIOD_SECS = {
    LockupKind.NONE: 0,
    LockupKind.DAILY: SECS_PER_DAY,
    LockupKind.MONTHLY: SECS_PER_MONTH,
    LockupKind.CLIFF: SECS_PER_DAY,
    LockupKind.CONSTANT: SECS_PER_DAY,
}

_STRICTNESS = {
    LockupKind.NONE: 0,
    LockupKind.DAILY: 1,
    LockupKind.MONTHLY: 2,
    LockupKind.CLIFF: 3,
    LockupKind.CONSTANT: 3,
}


@dataclass
class Lockup:
    kind: LockupKind = LockupKind.NONE
    start_ts: int = 0
    end_ts: int = 0

    @classmethod
    def new_from_periods(cls, kind: LockupKind, curr_ts: int, start_ts: int, periods: int) -> "Lockup":
        """
        Build a lockup of ``periods`` whole periods beginning at ``start_ts``.

        Raises:
            InvalidDaysError: NONE with periods != 0, or another kind with
                periods outside ``1..MAX_LOCKUP_PERIODS``
            DepositStartTooFarInFutureError: start_ts is 100 years or more ahead of curr_ts
        """
        kind = LockupKind(kind)
        if kind == LockupKind.NONE:
            if periods != 0:
                raise InvalidDaysError("NONE lockups take zero periods")
        elif not 1 <= periods <= MAX_LOCKUP_PERIODS:
            raise InvalidDaysError(f"Lockup periods must be in 1..{MAX_LOCKUP_PERIODS}, got {periods}")

        if start_ts >= curr_ts + MAX_LOCKUP_IN_FUTURE_SECS:
            raise DepositStartTooFarInFutureError(
                f"Lockup start {start_ts} is too far ahead of now ({curr_ts})"
            )

        end_ts = to_i64(start_ts + periods * kind.period_secs, InvalidLockupPeriodError)
        return cls(kind=kind, start_ts=to_i64(start_ts), end_ts=end_ts)

    def seconds_left(self, curr_ts: int) -> int:
        if self.kind == LockupKind.CONSTANT:
            curr_ts = self.start_ts
        if curr_ts >= self.end_ts:
            return 0
        return self.end_ts - curr_ts

    def expired(self, curr_ts: int) -> bool:
        return self.seconds_left(curr_ts) == 0

    def periods_total(self) -> int:
        period_secs = self.kind.period_secs
        if period_secs == 0:
            return 0

        lockup_secs = self.end_ts - self.start_ts
        if lockup_secs % period_secs != 0:
            raise InvalidLockupPeriodError(
                f"Lockup length {lockup_secs}s is not a multiple of {period_secs}s"
            )
        return lockup_secs // period_secs

    def periods_left(self, curr_ts: int) -> int:
        period_secs = self.kind.period_secs
        if period_secs == 0:
            return 0
        if curr_ts < self.start_ts:
            return self.periods_total()
        return ceil_div(self.seconds_left(curr_ts), period_secs)

    def period_current(self, curr_ts: int) -> int:
        """Number of periods already elapsed."""
        return self.periods_total() - self.periods_left(curr_ts)

    def remove_past_periods(self, curr_ts: int) -> None:
        """Move ``start_ts`` forward past every elapsed period."""
        periods = self.period_current(curr_ts)
        self.start_ts += periods * self.kind.period_secs

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.name,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lockup":
        kind = data.get("kind", LockupKind.NONE)
        return cls(
            kind=LockupKind[kind] if isinstance(kind, str) else LockupKind(kind),
            start_ts=data.get("start_ts", 0),
            end_ts=data.get("end_ts", 0),
        )
