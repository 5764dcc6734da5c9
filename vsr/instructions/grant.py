"""
Grants of pre-locked tokens and clawback of their unvested part.
"""

from typing import Optional

from ..clock import Clock
from ..constants import DEFAULT_ADDRESS
from ..custody import Custody, TransferIntent
from ..exceptions import (
    ClawbackNotAllowedOnDepositError,
    DepositEntryFullError,
    InvalidAuthorityError,
)
from ..logger import get_logger
from ..state import DepositEntry, Lockup, LockupKind, Registrar, Voter
from ..state.intmath import checked_sub
from .common import entry_mint_config, require_amount

logger = get_logger(__name__)


def grant(
    registrar: Registrar,
    voter: Voter,
    grant_authority: str,
    clock: Clock,
    custody: Custody,
    mint: str,
    kind: LockupKind,
    periods: int,
    amount: int,
    source: str,
    allow_clawback: bool = False,
    start_ts: Optional[int] = None,
) -> int:
    """
    Deposit ``amount`` of ``mint`` from ``source`` into a fresh, fully locked
    entry of ``voter``.

    Allowed for the realm authority, the mint's grant authority and the voter
    itself. Grant slots are a limited resource, so nobody else may fill them.

    Returns:
        The index of the new entry.
    """
    require_amount(amount)
    mint_idx = registrar.voting_mint_config_index(mint)
    config = registrar.voting_mint_config(mint_idx)

    allowed = {registrar.realm_authority, voter.voter_authority}
    if config.grant_authority != DEFAULT_ADDRESS:
        allowed.add(config.grant_authority)
    if grant_authority not in allowed:
        raise InvalidAuthorityError(f"{grant_authority} may not grant {mint} to {voter.voter_authority}")

    deposit_entry_index = voter.first_free_entry_index()
    if deposit_entry_index is None:
        raise DepositEntryFullError(f"Voter {voter.address} has no free deposit entry")

    curr_ts = registrar.clock_unix_timestamp(clock)
    entry = DepositEntry(
        lockup=Lockup.new_from_periods(kind, curr_ts, curr_ts if start_ts is None else start_ts, periods),
        amount_deposited_native=amount,
        amount_initially_locked_native=amount,
        is_used=True,
        allow_clawback=allow_clawback,
        voting_mint_config_idx=mint_idx,
    )

    custody.execute([TransferIntent(mint, source, voter.vault_address(mint), amount)])

    voter.deposits[deposit_entry_index] = entry
    voter.last_deposit_slot = clock.slot
    logger.info(
        f"Granted {amount} to voter {voter.address} at entry #{deposit_entry_index} "
        f"with lockup {entry.lockup.kind.name} for {periods} periods"
    )
    return deposit_entry_index


def clawback(
    registrar: Registrar,
    voter: Voter,
    authority: str,
    clock: Clock,
    custody: Custody,
    deposit_entry_index: int,
    destination: str,
) -> int:
    """
    Take the still locked part of a clawback-enabled entry back to
    ``destination``. The vested part stays with the voter, unlocked.

    Returns:
        The amount clawed back.
    """
    entry = voter.deposit_entry(deposit_entry_index)
    if authority != registrar.clawback_authority:
        raise InvalidAuthorityError(f"{authority} is not the clawback authority")
    if not entry.allow_clawback:
        raise ClawbackNotAllowedOnDepositError()

    config = entry_mint_config(registrar, entry)
    curr_ts = registrar.clock_unix_timestamp(clock)
    locked_amount = entry.amount_locked(curr_ts)

    staged = entry.copy()
    staged.amount_deposited_native = checked_sub(staged.amount_deposited_native, locked_amount)
    staged.amount_initially_locked_native = 0
    staged.lockup = Lockup(kind=LockupKind.NONE, start_ts=curr_ts, end_ts=curr_ts)
    staged.allow_clawback = False

    custody.execute([TransferIntent(config.mint, voter.vault_address(config.mint), destination, locked_amount)])

    voter.deposits[deposit_entry_index] = staged
    logger.info(f"Clawed back {locked_amount} from entry #{deposit_entry_index} of voter {voter.address}")
    return locked_amount
