"""
Voter-level operations.
"""

from typing import List, Tuple

from ..clock import Clock
from ..constants import MAX_DEPOSIT_ENTRIES_OUTPUT
from ..events import DepositEntryInfo, LockingInfo, VestingInfo, VoterInfo
from ..exceptions import InvalidArgumentError, InvalidAuthorityError, VotingTokenNonZeroError
from ..governance import VoterWeightRecord
from ..logger import get_logger
from ..state import LockupKind, Registrar, Voter
from .common import require_voter_authority

logger = get_logger(__name__)


def create_voter(registrar: Registrar, voter_authority: str) -> Tuple[Voter, VoterWeightRecord]:
    if not voter_authority:
        raise InvalidArgumentError("voter_authority must be set")

    voter = Voter(voter_authority=voter_authority, registrar=registrar.address)
    record = VoterWeightRecord(
        realm=registrar.realm,
        governing_token_mint=registrar.realm_governing_token_mint,
        governing_token_owner=voter_authority,
    )
    return voter, record


def close_voter(voter: Voter, authority: str) -> None:
    """Check that ``voter`` may be closed: signed by its owner and holding no tokens."""
    require_voter_authority(voter, authority)
    remaining = voter.total_deposited()
    if remaining != 0:
        raise VotingTokenNonZeroError(f"Voter {voter.address} still holds {remaining} tokens")
    logger.info(f"Closed voter {voter.address}")


def update_voter_weight_record(registrar: Registrar, voter: Voter, record: VoterWeightRecord, clock: Clock) -> VoterWeightRecord:
    """Write the voter's current weight into ``record``, valid for this slot only."""
    if record.governing_token_owner != voter.voter_authority:
        raise InvalidAuthorityError(
            f"Voter weight record of {record.governing_token_owner} does not belong to {voter.voter_authority}"
        )
    curr_ts = registrar.clock_unix_timestamp(clock)
    record.voter_weight = voter.weight(registrar, curr_ts)
    record.voter_weight_expiry = clock.slot
    return record


def log_voter_info(registrar: Registrar, voter: Voter, clock: Clock, deposit_entry_begin: int = 0) -> Tuple[VoterInfo, List[DepositEntryInfo]]:
    """
    Report the voter's weight and a page of its used deposit entries.

    At most ``MAX_DEPOSIT_ENTRIES_OUTPUT`` entries starting at index
    ``deposit_entry_begin`` are described.
    """
    if deposit_entry_begin < 0:
        raise InvalidArgumentError(f"deposit_entry_begin must be >= 0, got {deposit_entry_begin}")

    curr_ts = registrar.clock_unix_timestamp(clock)
    voter_info = VoterInfo(
        voting_power=voter.weight(registrar, curr_ts),
        voting_power_baseline=voter.weight_baseline(registrar),
    )

    entries = []
    page_end = deposit_entry_begin + MAX_DEPOSIT_ENTRIES_OUTPUT
    for index, entry in enumerate(voter.deposits):
        if not entry.is_used or not deposit_entry_begin <= index < page_end:
            continue

        lockup = entry.lockup
        config = registrar.used_voting_mint_config(entry.voting_mint_config_idx)
        seconds_left = lockup.seconds_left(curr_ts)
        end_ts = curr_ts + seconds_left

        locking = None
        if seconds_left > 0:
            vesting = None
            if lockup.kind.is_vesting:
                periods_left = lockup.periods_left(curr_ts)
                vesting = VestingInfo(
                    rate=entry.amount_initially_locked_native // lockup.periods_total(),
                    next_timestamp=end_ts - max(periods_left - 1, 0) * lockup.kind.period_secs,
                )
            locking = LockingInfo(
                amount=entry.amount_locked(curr_ts),
                end_timestamp=None if lockup.kind == LockupKind.CONSTANT else end_ts,
                vesting=vesting,
            )

        entries.append(
            DepositEntryInfo(
                deposit_entry_index=index,
                voting_mint_config_index=entry.voting_mint_config_idx,
                unlocked=entry.amount_withdrawable(curr_ts),
                voting_power=entry.voting_power(config, curr_ts),
                voting_power_baseline=config.unlocked_vote_weight(entry.amount_deposited_native),
                locking=locking,
            )
        )

    return voter_info, entries
