"""
Per-mint vote weighting configuration.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..constants import DEFAULT_ADDRESS, SCALED_FACTOR_BASE
from ..exceptions import VoterWeightOverflowError
from .intmath import checked_add, to_u64


@dataclass
class VotingMintConfig:
    """
    How deposits of one mint translate into vote weight.

    ``digit_shift`` normalizes mints with different decimals to a common
    unit; the two scaled factors (parts per billion) weight the unlocked
    amount and the maximum lockup bonus.
    """
    mint: str = DEFAULT_ADDRESS
    grant_authority: str = DEFAULT_ADDRESS
    unlocked_scaled_factor: int = 0
    lockup_scaled_factor: int = 0
    lockup_saturation_secs: int = 0
    digit_shift: int = 0

    def in_use(self) -> bool:
        return self.mint != DEFAULT_ADDRESS

    def base_vote_weight(self, amount_native: int) -> int:
        """Apply the digit shift to a native amount."""
        shift = 10 ** abs(self.digit_shift)
        if self.digit_shift < 0:
            return to_u64(amount_native // shift, VoterWeightOverflowError)
        return to_u64(amount_native * shift, VoterWeightOverflowError)

    def apply_factor(self, base_vote_weight: int, factor: int) -> int:
        return to_u64(base_vote_weight * factor // SCALED_FACTOR_BASE, VoterWeightOverflowError)

    def unlocked_vote_weight(self, amount_native: int) -> int:
        """Weight of an amount held with no lockup."""
        return self.apply_factor(self.base_vote_weight(amount_native), self.unlocked_scaled_factor)

    def max_lockup_vote_weight(self, amount_native: int) -> int:
        """Extra weight of an amount locked for at least the saturation time."""
        return self.apply_factor(self.base_vote_weight(amount_native), self.lockup_scaled_factor)

    def max_vote_weight(self, amount_native: int) -> int:
        return checked_add(
            self.unlocked_vote_weight(amount_native),
            self.max_lockup_vote_weight(amount_native),
            VoterWeightOverflowError,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mint": self.mint,
            "grant_authority": self.grant_authority,
            "unlocked_scaled_factor": self.unlocked_scaled_factor,
            "lockup_scaled_factor": self.lockup_scaled_factor,
            "lockup_saturation_secs": self.lockup_saturation_secs,
            "digit_shift": self.digit_shift,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VotingMintConfig":
        return cls(**{k: data[k] for k in cls.__dataclass_fields__ if k in data})
