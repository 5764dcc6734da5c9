"""
Records exchanged with the governance module.

Governance consumes a voter's weight through :class:`VoterWeightRecord` and
the registrar-wide maximum through :class:`MaxVoterWeightRecord`. In the other
direction it reports, through :class:`TokenOwnerRecord`, whether the owner is
currently allowed to take governing tokens out.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .exceptions import WithdrawForbiddenError


@dataclass
class TokenOwnerRecord:
    realm: str
    governing_token_mint: str
    governing_token_owner: str
    unrelinquished_votes_count: int = 0
    outstanding_proposal_count: int = 0

    def can_withdraw_governing_tokens(self) -> bool:
        return self.unrelinquished_votes_count == 0 and self.outstanding_proposal_count == 0

    def assert_can_withdraw_governing_tokens(self) -> None:
        if self.can_withdraw_governing_tokens():
            return
        raise WithdrawForbiddenError(
            f"{self.governing_token_owner} has {self.unrelinquished_votes_count} unrelinquished votes "
            f"and {self.outstanding_proposal_count} outstanding proposals"
        )


@dataclass
class VoterWeightRecord:
    realm: str
    governing_token_mint: str
    governing_token_owner: str
    voter_weight: int = 0

    # Slot the weight was computed in; governance rejects it in later slots
    voter_weight_expiry: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "realm": self.realm,
            "governing_token_mint": self.governing_token_mint,
            "governing_token_owner": self.governing_token_owner,
            "voter_weight": self.voter_weight,
            "voter_weight_expiry": self.voter_weight_expiry,
        }


@dataclass
class MaxVoterWeightRecord:
    realm: str
    governing_token_mint: str
    max_voter_weight: int = 0
    max_voter_weight_expiry: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "realm": self.realm,
            "governing_token_mint": self.governing_token_mint,
            "max_voter_weight": self.max_voter_weight,
            "max_voter_weight_expiry": self.max_voter_weight_expiry,
        }
