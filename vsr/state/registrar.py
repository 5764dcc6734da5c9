"""
Registrar: the per-realm configuration shared by all voters.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from ..clock import Clock
from ..constants import DEFAULT_ADDRESS, MAX_VOTING_MINTS, REGISTRAR_SEED
from ..exceptions import (
    OutOfBoundsVotingMintConfigIndexError,
    VoterWeightOverflowError,
    VotingMintNotFoundError,
)
from .intmath import checked_add
from .voting_mint_config import VotingMintConfig


def derive_address(*seeds: str) -> str:
    """Deterministic account identity derived from seed strings."""
    digest = hashlib.sha256()
    for seed in seeds:
        encoded = seed.encode("utf-8")
        digest.update(len(encoded).to_bytes(4, "little"))
        digest.update(encoded)
    return digest.hexdigest()


@dataclass
class Registrar:
    governance_program_id: str
    realm: str
    realm_governing_token_mint: str
    realm_authority: str
    clawback_authority: str = DEFAULT_ADDRESS
    voting_mints: List[VotingMintConfig] = field(
        default_factory=lambda: [VotingMintConfig() for _ in range(MAX_VOTING_MINTS)]
    )

    # Debug-only shift applied to the clock
    time_offset: int = 0

    def __post_init__(self):
        if self.clawback_authority == DEFAULT_ADDRESS:
            self.clawback_authority = self.realm_authority

    @property
    def address(self) -> str:
        return derive_address(self.realm, REGISTRAR_SEED, self.realm_governing_token_mint)

    def clock_unix_timestamp(self, clock: Clock) -> int:
        return clock.unix_timestamp + self.time_offset

    def voting_mint_config(self, idx: int) -> VotingMintConfig:
        if not 0 <= idx < len(self.voting_mints):
            raise OutOfBoundsVotingMintConfigIndexError(f"Voting mint index {idx} out of bounds")
        return self.voting_mints[idx]

    def used_voting_mint_config(self, idx: int) -> VotingMintConfig:
        """Config at ``idx``, which must still be bound to a mint."""
        config = self.voting_mint_config(idx)
        if not config.in_use():
            raise VotingMintNotFoundError(f"Voting mint #{idx} is not configured on registrar {self.address}")
        return config

    def voting_mint_config_index(self, mint: str) -> int:
        for idx, config in enumerate(self.voting_mints):
            if config.in_use() and config.mint == mint:
                return idx
        raise VotingMintNotFoundError(f"Mint {mint} is not configured on registrar {self.address}")

    def max_vote_weight(self, mint_supplies: Mapping[str, int]) -> int:
        """
        Sum of the maximum vote weight of every configured mint's supply.

        Raises:
            VotingMintNotFoundError: a configured mint has no supply entry
            VoterWeightOverflowError: the total does not fit u64
        """
        total = 0
        for config in self.voting_mints:
            if not config.in_use():
                continue
            if config.mint not in mint_supplies:
                raise VotingMintNotFoundError(f"No supply given for mint {config.mint}")
            total = checked_add(total, config.max_vote_weight(mint_supplies[config.mint]), VoterWeightOverflowError)
        return total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "governance_program_id": self.governance_program_id,
            "realm": self.realm,
            "realm_governing_token_mint": self.realm_governing_token_mint,
            "realm_authority": self.realm_authority,
            "clawback_authority": self.clawback_authority,
            "voting_mints": [m.to_dict() for m in self.voting_mints],
            "time_offset": self.time_offset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registrar":
        return cls(
            governance_program_id=data["governance_program_id"],
            realm=data["realm"],
            realm_governing_token_mint=data["realm_governing_token_mint"],
            realm_authority=data["realm_authority"],
            clawback_authority=data.get("clawback_authority", DEFAULT_ADDRESS),
            voting_mints=[VotingMintConfig.from_dict(m) for m in data.get("voting_mints", [])],
            time_offset=data.get("time_offset", 0),
        )
