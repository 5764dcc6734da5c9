"""
Checks shared by the state transitions.
"""

from ..constants import U64_MAX
from ..exceptions import (
    InvalidArgumentError,
    InvalidAuthorityError,
    InvalidRealmAuthorityError,
)
from ..state import DepositEntry, Registrar, Voter, VotingMintConfig


def require_voter_authority(voter: Voter, authority: str) -> None:
    if authority != voter.voter_authority:
        raise InvalidAuthorityError(f"{authority} does not control voter {voter.address}")


def require_realm_authority(registrar: Registrar, authority: str) -> None:
    if authority != registrar.realm_authority:
        raise InvalidRealmAuthorityError(f"{authority} is not the realm authority of {registrar.realm}")


def require_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 <= amount <= U64_MAX:
        raise InvalidArgumentError(f"Amount must be an integer in 0..{U64_MAX}, got {amount!r}")


def entry_mint_config(registrar: Registrar, entry: DepositEntry) -> VotingMintConfig:
    """Voting mint config an entry points at, which must still be configured."""
    return registrar.used_voting_mint_config(entry.voting_mint_config_idx)
