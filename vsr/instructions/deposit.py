"""
Deposit entry lifecycle: create, fund, withdraw and close.

Every function captures the registrar time once, validates its inputs, works
on a copy of the affected entry, asks custody to move the tokens and only
then stores the copy back into the voter.
"""

from typing import Optional

from ..clock import Clock
from ..custody import Custody, TransferIntent
from ..exceptions import (
    DepositEntryFullError,
    DepositEntryInUseError,
    DepositStillLockedError,
    InsufficientUnlockedTokensError,
    InvalidAuthorityError,
    InvalidToDepositAndWithdrawInOneSlotError,
    OutOfBoundsDepositEntryIndexError,
    VotingTokenNonZeroError,
)
from ..governance import TokenOwnerRecord
from ..logger import get_logger
from ..state import DepositEntry, Lockup, LockupKind, Registrar, Voter
from ..state.intmath import checked_add, checked_sub
from .common import entry_mint_config, require_amount, require_voter_authority

logger = get_logger(__name__)


def create_deposit_entry(
    registrar: Registrar,
    voter: Voter,
    authority: str,
    clock: Clock,
    mint: str,
    kind: LockupKind,
    periods: int,
    allow_clawback: bool = False,
    start_ts: Optional[int] = None,
    deposit_entry_index: Optional[int] = None,
) -> int:
    """
    Open an empty deposit entry for ``mint`` with the given lockup.

    Uses ``deposit_entry_index`` when given, otherwise the first free entry.
    The lockup starts at ``start_ts``, or now when omitted.

    Returns:
        The index of the new entry.
    """
    require_voter_authority(voter, authority)
    mint_idx = registrar.voting_mint_config_index(mint)
    curr_ts = registrar.clock_unix_timestamp(clock)

    if deposit_entry_index is None:
        deposit_entry_index = voter.first_free_entry_index()
        if deposit_entry_index is None:
            raise DepositEntryFullError(f"Voter {voter.address} has no free deposit entry")
    elif not 0 <= deposit_entry_index < len(voter.deposits):
        raise OutOfBoundsDepositEntryIndexError(f"Deposit entry index {deposit_entry_index} out of bounds")
    elif voter.deposits[deposit_entry_index].is_used:
        raise DepositEntryInUseError(f"Deposit entry #{deposit_entry_index} is already in use")

    lockup = Lockup.new_from_periods(
        kind, curr_ts, curr_ts if start_ts is None else start_ts, periods
    )
    voter.deposits[deposit_entry_index] = DepositEntry(
        lockup=lockup,
        is_used=True,
        allow_clawback=allow_clawback,
        voting_mint_config_idx=mint_idx,
    )
    logger.info(
        f"Created deposit entry #{deposit_entry_index} on voter {voter.address}: "
        f"{lockup.kind.name} for {periods} periods"
    )
    return deposit_entry_index


def deposit(
    registrar: Registrar,
    voter: Voter,
    clock: Clock,
    custody: Custody,
    deposit_entry_index: int,
    amount: int,
    deposit_token: str,
) -> None:
    """
    Move ``amount`` from ``deposit_token`` into the entry.

    The new tokens join the entry's current schedule: vesting is resolved
    first, so the remaining periods release old and new principal together.
    Depositing zero changes nothing.
    """
    require_amount(amount)
    entry = voter.deposit_entry(deposit_entry_index)
    config = entry_mint_config(registrar, entry)
    if amount == 0:
        return

    curr_ts = registrar.clock_unix_timestamp(clock)
    staged = entry.copy()
    staged.resolve_vesting(curr_ts)
    staged.amount_deposited_native = checked_add(staged.amount_deposited_native, amount)
    staged.amount_initially_locked_native = checked_add(staged.amount_initially_locked_native, amount)

    custody.execute([TransferIntent(config.mint, deposit_token, voter.vault_address(config.mint), amount)])

    voter.deposits[deposit_entry_index] = staged
    voter.last_deposit_slot = clock.slot
    logger.info(f"Deposited {amount} into entry #{deposit_entry_index} of voter {voter.address}")


def withdraw(
    registrar: Registrar,
    voter: Voter,
    authority: str,
    clock: Clock,
    custody: Custody,
    token_owner_record: TokenOwnerRecord,
    deposit_entry_index: int,
    amount: int,
    mint: str,
    destination: str,
) -> None:
    """
    Withdraw unlocked tokens of ``mint`` from the entry to ``destination``.

    Raises:
        WithdrawForbiddenError: governance still counts the owner's votes
        InvalidToDepositAndWithdrawInOneSlotError: the voter deposited in this slot
        InsufficientUnlockedTokensError: amount exceeds the withdrawable balance
        InvalidMintError: the entry holds a different mint
    """
    require_voter_authority(voter, authority)
    require_amount(amount)
    if (
        token_owner_record.governing_token_owner != voter.voter_authority
        or token_owner_record.realm != registrar.realm
    ):
        raise InvalidAuthorityError(
            f"Token owner record of {token_owner_record.governing_token_owner} does not belong to voter {voter.address}"
        )
    token_owner_record.assert_can_withdraw_governing_tokens()

    if voter.last_deposit_slot >= clock.slot:
        raise InvalidToDepositAndWithdrawInOneSlotError()

    curr_ts = registrar.clock_unix_timestamp(clock)
    mint_idx = registrar.voting_mint_config_index(mint)
    entry = voter.deposit_entry_for_mint(deposit_entry_index, mint_idx)
    withdrawable = entry.amount_withdrawable(curr_ts)
    if amount > withdrawable:
        raise InsufficientUnlockedTokensError(
            f"Entry #{deposit_entry_index} has {withdrawable} withdrawable, {amount} requested"
        )

    staged = entry.copy()
    staged.amount_deposited_native = checked_sub(staged.amount_deposited_native, amount)

    custody.execute([TransferIntent(mint, voter.vault_address(mint), destination, amount)])

    voter.deposits[deposit_entry_index] = staged
    logger.info(f"Withdrew {amount} from entry #{deposit_entry_index} of voter {voter.address}")


def close_deposit_entry(registrar: Registrar, voter: Voter, authority: str, clock: Clock, deposit_entry_index: int) -> None:
    """Return an empty entry to the unused state."""
    require_voter_authority(voter, authority)
    entry = voter.deposit_entry(deposit_entry_index)
    if entry.amount_deposited_native != 0:
        raise VotingTokenNonZeroError(
            f"Entry #{deposit_entry_index} still holds {entry.amount_deposited_native} tokens"
        )

    # Clawback entries must live until the end of their lockup
    curr_ts = registrar.clock_unix_timestamp(clock)
    if entry.allow_clawback and not entry.lockup.expired(curr_ts):
        raise DepositStillLockedError(f"Entry #{deposit_entry_index} is locked until {entry.lockup.end_ts}")

    voter.deposits[deposit_entry_index] = DepositEntry()
    logger.info(f"Closed deposit entry #{deposit_entry_index} of voter {voter.address}")
