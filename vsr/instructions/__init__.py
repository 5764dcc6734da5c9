"""
State transitions of the voter stake registry.

Each operation validates everything before it mutates anything, so a raised
error leaves the registrar and voter untouched.
"""

from .registrar import create_registrar, configure_voting_mint, set_time_offset, update_max_vote_weight
from .voter import create_voter, close_voter, update_voter_weight_record, log_voter_info
from .deposit import create_deposit_entry, deposit, withdraw, close_deposit_entry
from .grant import grant, clawback
from .lockup import reset_lockup, internal_transfer_locked, internal_transfer_unlocked

__all__ = [
    "create_registrar",
    "configure_voting_mint",
    "set_time_offset",
    "update_max_vote_weight",
    "create_voter",
    "close_voter",
    "update_voter_weight_record",
    "log_voter_info",
    "create_deposit_entry",
    "deposit",
    "withdraw",
    "close_deposit_entry",
    "grant",
    "clawback",
    "reset_lockup",
    "internal_transfer_locked",
    "internal_transfer_unlocked",
]
