"""
Operations that change the schedule of locked tokens: relocking an entry
and moving tokens between two entries of the same voter.
"""

from ..clock import Clock
from ..exceptions import (
    InsufficientLockedTokensError,
    InsufficientUnlockedTokensError,
    InvalidArgumentError,
    InvalidChangeToClawbackDepositEntryError,
    InvalidLockupKindError,
    InvalidLockupPeriodError,
    InvalidMintError,
)
from ..logger import get_logger
from ..state import DepositEntry, Lockup, LockupKind, Registrar, Voter
from ..state.intmath import checked_add, checked_sub
from .common import require_amount, require_voter_authority

logger = get_logger(__name__)


def reset_lockup(
    registrar: Registrar,
    voter: Voter,
    authority: str,
    clock: Clock,
    deposit_entry_index: int,
    kind: LockupKind,
    periods: int,
) -> None:
    """
    Relock every deposited token of the entry under a new lockup starting now.

    The new lockup may not be less strict and may not end before the current
    one would have.
    """
    require_voter_authority(voter, authority)
    kind = LockupKind(kind)
    entry = voter.deposit_entry(deposit_entry_index)
    curr_ts = registrar.clock_unix_timestamp(clock)

    if entry.allow_clawback:
        raise InvalidChangeToClawbackDepositEntryError()
    if kind.strictness < entry.lockup.kind.strictness:
        raise InvalidLockupKindError(
            f"Cannot change lockup from {entry.lockup.kind.name} to {kind.name}"
        )
    seconds_left = entry.lockup.seconds_left(curr_ts)
    if periods * kind.period_secs < seconds_left:
        raise InvalidLockupPeriodError(
            f"New lockup of {periods} {kind.name} periods is shorter than the {seconds_left}s left"
        )

    staged = entry.copy()
    staged.lockup = Lockup.new_from_periods(kind, curr_ts, curr_ts, periods)
    staged.amount_initially_locked_native = staged.amount_deposited_native

    voter.deposits[deposit_entry_index] = staged
    logger.info(
        f"Reset lockup of entry #{deposit_entry_index} of voter {voter.address} "
        f"to {kind.name} for {periods} periods"
    )


def _transfer_pair(voter: Voter, source_index: int, target_index: int):
    if source_index == target_index:
        raise InvalidArgumentError("Source and target deposit entries must differ")
    source = voter.deposit_entry(source_index)
    target = voter.deposit_entry(target_index)
    if source.voting_mint_config_idx != target.voting_mint_config_idx:
        raise InvalidMintError(
            f"Entries #{source_index} and #{target_index} hold different voting mints"
        )
    if target.allow_clawback:
        raise InvalidChangeToClawbackDepositEntryError(f"Target entry #{target_index} allows clawback")
    return source, target


def _credit_locked(target: DepositEntry, curr_ts: int, amount: int) -> DepositEntry:
    staged = target.copy()
    staged.resolve_vesting(curr_ts)
    staged.amount_deposited_native = checked_add(staged.amount_deposited_native, amount)
    staged.amount_initially_locked_native = checked_add(staged.amount_initially_locked_native, amount)
    return staged


def internal_transfer_locked(
    registrar: Registrar,
    voter: Voter,
    authority: str,
    clock: Clock,
    source_deposit_entry_index: int,
    target_deposit_entry_index: int,
    amount: int,
) -> None:
    """
    Move still locked tokens to another entry whose lockup is at least as
    strict and at least as long.
    """
    require_voter_authority(voter, authority)
    require_amount(amount)
    source, target = _transfer_pair(voter, source_deposit_entry_index, target_deposit_entry_index)
    curr_ts = registrar.clock_unix_timestamp(clock)

    if source.allow_clawback:
        raise InvalidChangeToClawbackDepositEntryError(
            f"Source entry #{source_deposit_entry_index} allows clawback"
        )
    locked = source.amount_locked(curr_ts)
    if amount > locked:
        raise InsufficientLockedTokensError(
            f"Entry #{source_deposit_entry_index} has {locked} locked, {amount} requested"
        )
    if target.lockup.kind.strictness < source.lockup.kind.strictness:
        raise InvalidLockupKindError(
            f"Cannot move locked tokens from {source.lockup.kind.name} to {target.lockup.kind.name}"
        )
    if target.lockup.seconds_left(curr_ts) < source.lockup.seconds_left(curr_ts):
        raise InvalidLockupPeriodError("Target lockup ends before the source lockup")

    staged_source = source.copy()
    staged_source.resolve_vesting(curr_ts)
    staged_source.amount_deposited_native = checked_sub(staged_source.amount_deposited_native, amount)
    staged_source.amount_initially_locked_native = checked_sub(
        staged_source.amount_initially_locked_native, amount
    )
    staged_target = _credit_locked(target, curr_ts, amount)

    voter.deposits[source_deposit_entry_index] = staged_source
    voter.deposits[target_deposit_entry_index] = staged_target
    logger.info(
        f"Moved {amount} locked tokens from entry #{source_deposit_entry_index} "
        f"to #{target_deposit_entry_index} of voter {voter.address}"
    )


def internal_transfer_unlocked(
    registrar: Registrar,
    voter: Voter,
    authority: str,
    clock: Clock,
    source_deposit_entry_index: int,
    target_deposit_entry_index: int,
    amount: int,
) -> None:
    """Move withdrawable tokens into another entry, where they become locked."""
    require_voter_authority(voter, authority)
    require_amount(amount)
    source, target = _transfer_pair(voter, source_deposit_entry_index, target_deposit_entry_index)
    curr_ts = registrar.clock_unix_timestamp(clock)

    withdrawable = source.amount_withdrawable(curr_ts)
    if amount > withdrawable:
        raise InsufficientUnlockedTokensError(
            f"Entry #{source_deposit_entry_index} has {withdrawable} withdrawable, {amount} requested"
        )

    staged_source = source.copy()
    staged_source.amount_deposited_native = checked_sub(staged_source.amount_deposited_native, amount)
    staged_target = _credit_locked(target, curr_ts, amount)

    voter.deposits[source_deposit_entry_index] = staged_source
    voter.deposits[target_deposit_entry_index] = staged_target
    logger.info(
        f"Moved {amount} unlocked tokens from entry #{source_deposit_entry_index} "
        f"to #{target_deposit_entry_index} of voter {voter.address}"
    )
