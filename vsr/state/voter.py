"""
Voter accounts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..constants import MAX_DEPOSIT_ENTRIES, VAULT_SEED, VOTER_SEED, VOTER_WEIGHT_RECORD_SEED
from ..exceptions import (
    InvalidMintError,
    OutOfBoundsDepositEntryIndexError,
    UnusedDepositEntryIndexError,
    VoterWeightOverflowError,
)
from .deposit_entry import DepositEntry
from .intmath import checked_add
from .registrar import Registrar, derive_address


@dataclass
class Voter:
    voter_authority: str
    registrar: str
    deposits: List[DepositEntry] = field(
        default_factory=lambda: [DepositEntry() for _ in range(MAX_DEPOSIT_ENTRIES)]
    )

    # Slot of the most recent deposit; withdrawals must happen in a later slot
    last_deposit_slot: int = 0

    @property
    def address(self) -> str:
        return derive_address(self.registrar, VOTER_SEED, self.voter_authority)

    @property
    def voter_weight_record_address(self) -> str:
        return derive_address(self.registrar, VOTER_WEIGHT_RECORD_SEED, self.voter_authority)

    def vault_address(self, mint: str) -> str:
        """Custody account holding this voter's tokens of ``mint``."""
        return derive_address(self.address, VAULT_SEED, mint)

    def weight(self, registrar: Registrar, curr_ts: int) -> int:
        """Total vote weight of all used deposit entries at ``curr_ts``."""
        total = 0
        for entry in self.deposits:
            if not entry.is_used:
                continue
            config = registrar.used_voting_mint_config(entry.voting_mint_config_idx)
            total = checked_add(total, entry.voting_power(config, curr_ts), VoterWeightOverflowError)
        return total

    def weight_baseline(self, registrar: Registrar) -> int:
        """Vote weight ignoring any lockup bonus."""
        total = 0
        for entry in self.deposits:
            if not entry.is_used:
                continue
            config = registrar.used_voting_mint_config(entry.voting_mint_config_idx)
            total = checked_add(
                total, config.unlocked_vote_weight(entry.amount_deposited_native), VoterWeightOverflowError
            )
        return total

    def deposit_entry(self, index: int) -> DepositEntry:
        """Return the used entry at ``index``."""
        if not 0 <= index < len(self.deposits):
            raise OutOfBoundsDepositEntryIndexError(f"Deposit entry index {index} out of bounds")
        entry = self.deposits[index]
        if not entry.is_used:
            raise UnusedDepositEntryIndexError(f"Deposit entry #{index} is not in use")
        return entry

    def deposit_entry_for_mint(self, index: int, mint_idx: int) -> DepositEntry:
        entry = self.deposit_entry(index)
        if entry.voting_mint_config_idx != mint_idx:
            raise InvalidMintError(
                f"Deposit entry #{index} holds voting mint #{entry.voting_mint_config_idx}, not #{mint_idx}"
            )
        return entry

    def first_free_entry_index(self) -> Optional[int]:
        for index, entry in enumerate(self.deposits):
            if not entry.is_used:
                return index
        return None

    def total_deposited(self) -> int:
        return sum(entry.amount_deposited_native for entry in self.deposits if entry.is_used)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "voter_authority": self.voter_authority,
            "registrar": self.registrar,
            "deposits": [d.to_dict() for d in self.deposits],
            "last_deposit_slot": self.last_deposit_slot,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Voter":
        return cls(
            voter_authority=data["voter_authority"],
            registrar=data["registrar"],
            deposits=[DepositEntry.from_dict(d) for d in data.get("deposits", [])],
            last_deposit_slot=data.get("last_deposit_slot", 0),
        )
