"""
Account state of the voter stake registry.
"""

from .lockup import Lockup, LockupKind
from .voting_mint_config import VotingMintConfig
from .deposit_entry import DepositEntry
from .registrar import Registrar, derive_address
from .voter import Voter

__all__ = [
    "Lockup",
    "LockupKind",
    "VotingMintConfig",
    "DepositEntry",
    "Registrar",
    "Voter",
    "derive_address",
]
