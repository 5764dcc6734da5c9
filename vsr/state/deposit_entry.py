"""
Deposit entries.

One entry tracks a single locked (or unlocked) position of one voting mint
inside a voter account. The entry stores the balance it holds and the
principal that was locked when the current schedule began; everything else
(vested, locked, withdrawable, vote weight) is derived from those two numbers,
the lockup and the current time.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict

from ..exceptions import (
    InternalProgramError,
    LockupSaturationMustBePositiveError,
    VoterWeightOverflowError,
)
from .intmath import ceil_div, checked_add, checked_sub, to_u64
from .lockup import Lockup, LockupKind
from .voting_mint_config import VotingMintConfig


@dataclass
class DepositEntry:
    lockup: Lockup = field(default_factory=Lockup)

    # Amount of tokens held in the voter's vault for this entry
    amount_deposited_native: int = 0

    # Principal under the current schedule; shrinks as periods vest
    amount_initially_locked_native: int = 0

    is_used: bool = False
    allow_clawback: bool = False
    voting_mint_config_idx: int = 0

    def copy(self) -> "DepositEntry":
        return replace(self, lockup=replace(self.lockup))

    # ══════════════════════════════════════════════════════════════════
    #  VOTE WEIGHT
    # ══════════════════════════════════════════════════════════════════

    def voting_power(self, voting_mint_config: VotingMintConfig, curr_ts: int) -> int:
        """
        Vote weight of this entry at ``curr_ts``.

        The whole deposited balance earns the unlocked weight. When the mint
        grants a lockup bonus, the initially locked principal additionally
        earns a share of the maximum bonus that decays as the lockup runs out.
        """
        deposited_vote_weight = voting_mint_config.unlocked_vote_weight(self.amount_deposited_native)
        if voting_mint_config.lockup_scaled_factor == 0:
            return deposited_vote_weight

        max_locked_vote_weight = voting_mint_config.max_lockup_vote_weight(
            self.amount_initially_locked_native
        )
        locked_vote_weight = self.voting_power_locked(
            curr_ts,
            max_locked_vote_weight,
            voting_mint_config.lockup_saturation_secs,
        )
        if locked_vote_weight > max_locked_vote_weight:
            raise InternalProgramError(
                f"Locked vote weight {locked_vote_weight} exceeds maximum {max_locked_vote_weight}"
            )
        return checked_add(deposited_vote_weight, locked_vote_weight, VoterWeightOverflowError)

    def voting_power_locked(self, curr_ts: int, max_locked_vote_weight: int, lockup_saturation_secs: int) -> int:
        """Lockup bonus at ``curr_ts``, between 0 and ``max_locked_vote_weight``."""
        if self.lockup.expired(curr_ts) or max_locked_vote_weight == 0:
            return 0
        if lockup_saturation_secs <= 0:
            raise LockupSaturationMustBePositiveError()

        kind = self.lockup.kind
        if kind == LockupKind.NONE:
            return 0
        if kind.is_vesting:
            return self.voting_power_linear_vesting(curr_ts, max_locked_vote_weight, lockup_saturation_secs)
        return self.voting_power_cliff(curr_ts, max_locked_vote_weight, lockup_saturation_secs)

    def voting_power_cliff(self, curr_ts: int, max_locked_vote_weight: int, lockup_saturation_secs: int) -> int:
        remaining = min(self.lockup.seconds_left(curr_ts), lockup_saturation_secs)
        return to_u64(max_locked_vote_weight * remaining // lockup_saturation_secs, VoterWeightOverflowError)

    def voting_power_linear_vesting(self, curr_ts: int, max_locked_vote_weight: int, lockup_saturation_secs: int) -> int:
        """
        Lockup bonus of a vesting schedule.

        Every remaining period vests ``1 / periods_total`` of the principal at
        its end and is worth a cliff lockup of that share until then. With
        ``s`` seconds to the next vesting point and ``p`` periods left, the
        bonus is

            max / total * sum(min(s + k * period, sat) / sat for k in 0..p-1)

        The first ``q`` terms are below saturation and form an arithmetic
        series, the remaining ``r = p - q`` terms are saturated. Evaluating
        the sum as one fraction keeps the result exact before the final floor.
        """
        periods_left = self.lockup.periods_left(curr_ts)
        periods_total = self.lockup.periods_total()
        period_secs = self.lockup.kind.period_secs

        if periods_left == 0:
            return 0

        secs_to_closest_cliff = self.lockup.seconds_left(curr_ts) - period_secs * (periods_left - 1)

        if secs_to_closest_cliff >= lockup_saturation_secs:
            unsaturated = 0
        else:
            unsaturated = min(
                ceil_div(lockup_saturation_secs - secs_to_closest_cliff, period_secs),
                periods_left,
            )
        saturated = periods_left - unsaturated

        lockup_secs = (
            unsaturated * secs_to_closest_cliff
            + period_secs * unsaturated * (unsaturated - 1) // 2
            + saturated * lockup_saturation_secs
        )
        return to_u64(
            max_locked_vote_weight * lockup_secs // (periods_total * lockup_saturation_secs),
            VoterWeightOverflowError,
        )

    # ══════════════════════════════════════════════════════════════════
    #  VESTING
    # ══════════════════════════════════════════════════════════════════

    def vested(self, curr_ts: int) -> int:
        """Portion of the initially locked principal that has been released."""
        if curr_ts < self.lockup.start_ts:
            return 0
        if self.lockup.expired(curr_ts):
            return self.amount_initially_locked_native

        kind = self.lockup.kind
        if kind == LockupKind.NONE:
            return self.amount_initially_locked_native
        if not kind.is_vesting:
            return 0

        periods_total = self.lockup.periods_total()
        if periods_total == 0:
            return self.amount_initially_locked_native
        return self.amount_initially_locked_native * self.lockup.period_current(curr_ts) // periods_total

    def amount_locked(self, curr_ts: int) -> int:
        return checked_sub(self.amount_initially_locked_native, self.vested(curr_ts), InternalProgramError)

    def amount_withdrawable(self, curr_ts: int) -> int:
        return checked_sub(self.amount_deposited_native, self.amount_locked(curr_ts), InternalProgramError)

    def resolve_vesting(self, curr_ts: int) -> None:
        """
        Fold vested principal into the unlocked balance and restart the
        schedule at the current period, so that ``vested(curr_ts) == 0``.
        """
        vested_amount = self.vested(curr_ts)
        self.amount_initially_locked_native = checked_sub(
            self.amount_initially_locked_native, vested_amount, InternalProgramError
        )
        self.lockup.remove_past_periods(curr_ts)

    # ══════════════════════════════════════════════════════════════════
    #  SERIALIZATION
    # ══════════════════════════════════════════════════════════════════

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lockup": self.lockup.to_dict(),
            "amount_deposited_native": self.amount_deposited_native,
            "amount_initially_locked_native": self.amount_initially_locked_native,
            "is_used": self.is_used,
            "allow_clawback": self.allow_clawback,
            "voting_mint_config_idx": self.voting_mint_config_idx,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DepositEntry":
        return cls(
            lockup=Lockup.from_dict(data.get("lockup", {})),
            amount_deposited_native=data.get("amount_deposited_native", 0),
            amount_initially_locked_native=data.get("amount_initially_locked_native", 0),
            is_used=data.get("is_used", False),
            allow_clawback=data.get("allow_clawback", False),
            voting_mint_config_idx=data.get("voting_mint_config_idx", 0),
        )
