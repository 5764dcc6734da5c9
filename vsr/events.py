"""
Report records emitted by ``log_voter_info``.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class VestingInfo:
    # Principal released at the end of each period
    rate: int
    # Time of the next vesting point
    next_timestamp: int


@dataclass(frozen=True)
class LockingInfo:
    amount: int
    # None for CONSTANT lockups, which do not count down
    end_timestamp: Optional[int]
    vesting: Optional[VestingInfo]


@dataclass(frozen=True)
class DepositEntryInfo:
    deposit_entry_index: int
    voting_mint_config_index: int
    unlocked: int
    voting_power: int
    voting_power_baseline: int
    locking: Optional[LockingInfo]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VoterInfo:
    voting_power: int
    voting_power_baseline: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
