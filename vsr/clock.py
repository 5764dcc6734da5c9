"""
Clock snapshot passed into every state transition.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Clock:
    """Wall-clock seconds and the ledger slot, captured once per operation."""
    unix_timestamp: int
    slot: int = 0

    def advance(self, seconds: int = 0, slots: int = 1) -> "Clock":
        return Clock(self.unix_timestamp + seconds, self.slot + slots)
