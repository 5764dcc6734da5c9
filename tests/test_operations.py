"""
Registry Operation Test Suite

Coverage:
  - deposit entry lifecycle: create, deposit, withdraw, close
  - grant and clawback
  - reset_lockup
  - internal transfers of locked and unlocked tokens
  - all-or-nothing behaviour when a check or the custody transfer fails
"""

import logging
import os
import sys

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from vsr.clock import Clock
from vsr.constants import DEBUG_GOVERNANCE_PROGRAM_ID, SCALED_FACTOR_BASE, SECS_PER_DAY, SECS_PER_MONTH
from vsr.exceptions import (
    ClawbackNotAllowedOnDepositError,
    DepositEntryFullError,
    DepositEntryInUseError,
    DepositStillLockedError,
    InsufficientFundsError,
    InsufficientLockedTokensError,
    InsufficientUnlockedTokensError,
    InvalidArgumentError,
    InvalidAuthorityError,
    InvalidChangeToClawbackDepositEntryError,
    InvalidLockupKindError,
    InvalidLockupPeriodError,
    InvalidMintError,
    InvalidToDepositAndWithdrawInOneSlotError,
    UnusedDepositEntryIndexError,
    VotingMintNotFoundError,
    VotingTokenNonZeroError,
    WithdrawForbiddenError,
)
from vsr.governance import TokenOwnerRecord
from vsr.registry import StakeRegistry
from vsr.state import LockupKind


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

DAY = SECS_PER_DAY
MONTH = SECS_PER_MONTH
HOUR = 3600
T0 = 1_700_000_000

REALM = "realm-" + "11" * 16
GOV_MINT = "mint-" + "AA" * 16
OTHER_MINT = "mint-" + "BB" * 16
REALM_AUTHORITY = "auth-" + "A1" * 16
CLAWBACK_AUTHORITY = "auth-" + "B2" * 16
GRANTER = "auth-" + "C3" * 16
ALICE = "user-" + "D4" * 16
BOB = "user-" + "E5" * 16
ALICE_WALLET = "wallet-" + "D4" * 16
TREASURY = "wallet-" + "FF" * 16


def make_registry(lockup_scaled_factor=0, saturation=5 * 365 * DAY, funds=1_000_000):
    """Registry with one registrar, two voting mints and a funded voter ALICE."""
    registry = StakeRegistry()
    registrar = registry.create_registrar(
        governance_program_id=DEBUG_GOVERNANCE_PROGRAM_ID,
        realm=REALM,
        realm_governing_token_mint=GOV_MINT,
        realm_authority=REALM_AUTHORITY,
        signer=REALM_AUTHORITY,
        clawback_authority=CLAWBACK_AUTHORITY,
    )
    registry.configure_voting_mint(
        registrar.address, REALM_AUTHORITY, idx=0, mint=GOV_MINT, digit_shift=0,
        unlocked_scaled_factor=SCALED_FACTOR_BASE, lockup_scaled_factor=lockup_scaled_factor,
        lockup_saturation_secs=saturation, grant_authority=GRANTER,
    )
    registry.configure_voting_mint(
        registrar.address, REALM_AUTHORITY, idx=1, mint=OTHER_MINT, digit_shift=0,
        unlocked_scaled_factor=SCALED_FACTOR_BASE, lockup_scaled_factor=0,
        lockup_saturation_secs=DAY,
    )
    registry.create_voter(registrar.address, ALICE, ALICE)
    registry.custody.mint_to(ALICE_WALLET, GOV_MINT, funds)
    registry.custody.mint_to(ALICE_WALLET, OTHER_MINT, funds)
    registry.custody.mint_to(TREASURY, GOV_MINT, funds)
    return registry, registrar


def token_owner_record(owner=ALICE, votes=0, proposals=0) -> TokenOwnerRecord:
    return TokenOwnerRecord(
        realm=REALM,
        governing_token_mint=GOV_MINT,
        governing_token_owner=owner,
        unrelinquished_votes_count=votes,
        outstanding_proposal_count=proposals,
    )


def open_and_fund(registry, registrar, clock, kind, periods, amount, mint=GOV_MINT, **kwargs) -> int:
    index = registry.create_deposit_entry(
        registrar.address, ALICE, ALICE, clock, mint, kind, periods, **kwargs
    )
    registry.deposit(registrar.address, ALICE, clock, index, amount, ALICE_WALLET)
    return index


def entry(registry, registrar, index):
    return registry.get_voter(registrar.address, ALICE).deposits[index]


# ══════════════════════════════════════════════════════════════════════
#  DEPOSIT ENTRY LIFECYCLE
# ══════════════════════════════════════════════════════════════════════


class TestCreateDepositEntry:

    def test_uses_first_free_entry(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        first = registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.CLIFF, 3)
        second = registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, OTHER_MINT, LockupKind.NONE, 0)
        assert (first, second) == (0, 1)
        created = entry(registry, registrar, 0)
        assert created.is_used
        assert created.lockup.start_ts == T0
        assert created.lockup.end_ts == T0 + 3 * DAY
        assert entry(registry, registrar, 1).voting_mint_config_idx == 1

    def test_explicit_index_and_start(self):
        registry, registrar = make_registry()
        index = registry.create_deposit_entry(
            registrar.address, ALICE, ALICE, Clock(T0, 1), GOV_MINT, LockupKind.DAILY, 2,
            start_ts=T0 + DAY, deposit_entry_index=5,
        )
        assert index == 5
        assert entry(registry, registrar, 5).lockup.start_ts == T0 + DAY

    def test_index_in_use(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.CLIFF, 1)
        with pytest.raises(DepositEntryInUseError):
            registry.create_deposit_entry(
                registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.CLIFF, 1, deposit_entry_index=0
            )

    def test_requires_owner(self):
        registry, registrar = make_registry()
        with pytest.raises(InvalidAuthorityError):
            registry.create_deposit_entry(registrar.address, ALICE, BOB, Clock(T0, 1), GOV_MINT, LockupKind.CLIFF, 1)

    def test_unknown_mint(self):
        registry, registrar = make_registry()
        with pytest.raises(VotingMintNotFoundError):
            registry.create_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0, 1), "nope", LockupKind.CLIFF, 1)

    def test_full(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        for _ in range(32):
            registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.NONE, 0)
        with pytest.raises(DepositEntryFullError):
            registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.NONE, 0)


class TestDeposit:

    def test_moves_tokens_into_vault(self):
        registry, registrar = make_registry(funds=5000)
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.CLIFF, 10, 4000)
        voter = registry.get_voter(registrar.address, ALICE)
        assert registry.custody.balance_of(ALICE_WALLET, GOV_MINT) == 1000
        assert registry.custody.balance_of(voter.vault_address(GOV_MINT), GOV_MINT) == 4000
        assert entry(registry, registrar, 0).amount_deposited_native == 4000
        assert entry(registry, registrar, 0).amount_initially_locked_native == 4000
        assert voter.last_deposit_slot == 1

    def test_zero_deposit_changes_nothing(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.DAILY, 10, 1000)
        before = registry.get_voter(registrar.address, ALICE).to_dict()

        registry.deposit(registrar.address, ALICE, Clock(T0 + 3 * DAY, 7), 0, 0, ALICE_WALLET)

        assert registry.get_voter(registrar.address, ALICE).to_dict() == before

    def test_deposit_into_vesting_schedule(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.DAILY, 10, 1000)
        curr_ts = T0 + 3 * DAY + DAY // 2

        registry.deposit(registrar.address, ALICE, Clock(curr_ts, 2), 0, 700, ALICE_WALLET)

        d = entry(registry, registrar, 0)
        assert d.amount_deposited_native == 1700
        assert d.amount_initially_locked_native == 1400
        assert d.lockup.start_ts == T0 + 3 * DAY
        assert d.lockup.periods_total() == 7
        assert d.amount_withdrawable(curr_ts) == 300
        # the 1400 now vest over the 7 remaining days
        assert d.vested(T0 + 4 * DAY) == 200

    def test_deposit_into_expired_schedule_is_unlocked(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.CLIFF, 1, 100)
        curr_ts = T0 + 2 * DAY

        registry.deposit(registrar.address, ALICE, Clock(curr_ts, 2), 0, 50, ALICE_WALLET)

        d = entry(registry, registrar, 0)
        assert d.amount_deposited_native == 150
        assert d.lockup.start_ts == d.lockup.end_ts
        assert d.amount_withdrawable(curr_ts) == 150

    def test_custody_failure_leaves_entry_untouched(self):
        registry, registrar = make_registry(funds=100)
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.DAILY, 10, 100)
        before = registry.get_voter(registrar.address, ALICE).to_dict()

        with pytest.raises(InsufficientFundsError):
            registry.deposit(registrar.address, ALICE, Clock(T0 + 5 * DAY, 2), 0, 1, ALICE_WALLET)

        assert registry.get_voter(registrar.address, ALICE).to_dict() == before

    def test_unused_entry(self):
        registry, registrar = make_registry()
        with pytest.raises(UnusedDepositEntryIndexError):
            registry.deposit(registrar.address, ALICE, Clock(T0, 1), 0, 10, ALICE_WALLET)

    def test_negative_amount(self):
        registry, registrar = make_registry()
        registry.create_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0, 1), GOV_MINT, LockupKind.NONE, 0)
        with pytest.raises(InvalidArgumentError):
            registry.deposit(registrar.address, ALICE, Clock(T0, 1), 0, -5, ALICE_WALLET)

    def test_boolean_amount_rejected(self):
        registry, registrar = make_registry()
        registry.create_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0, 1), GOV_MINT, LockupKind.NONE, 0)
        with pytest.raises(InvalidArgumentError):
            registry.deposit(registrar.address, ALICE, Clock(T0, 1), 0, True, ALICE_WALLET)
        assert entry(registry, registrar, 0).amount_deposited_native == 0
        assert registry.custody.balance_of(ALICE_WALLET, GOV_MINT) == 1_000_000


class TestWithdraw:

    def _withdraw(self, registry, registrar, clock, amount, index=0, mint=GOV_MINT, record=None, signer=ALICE):
        registry.withdraw(
            registrar.address, ALICE, signer, clock, record or token_owner_record(),
            index, amount, mint, ALICE_WALLET,
        )

    def test_cliff_unlocks_at_end(self):
        registry, registrar = make_registry(lockup_scaled_factor=SCALED_FACTOR_BASE, saturation=10 * DAY, funds=10_000)
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.CLIFF, 10, 10_000)

        for day in range(1, 10):
            clock = Clock(T0 + day * DAY, 1 + day)
            locked_power = registry.voter_weight(registrar.address, ALICE, clock) - 10_000
            assert locked_power == 10_000 * (10 - day) // 10
            with pytest.raises(InsufficientUnlockedTokensError):
                self._withdraw(registry, registrar, clock, 1)

        self._withdraw(registry, registrar, Clock(T0 + 10 * DAY, 20), 10_000)

        d = entry(registry, registrar, 0)
        assert d.amount_deposited_native == 0
        assert d.amount_locked(T0 + 10 * DAY) == 0
        assert registry.custody.balance_of(ALICE_WALLET, GOV_MINT) == 10_000

    def test_monthly_after_one_period(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.MONTHLY, 12, 12_000)
        clock = Clock(T0 + MONTH, 2)

        with pytest.raises(InsufficientUnlockedTokensError):
            self._withdraw(registry, registrar, clock, 1001)
        self._withdraw(registry, registrar, clock, 1000)

        d = entry(registry, registrar, 0)
        assert d.amount_deposited_native == 11_000
        assert d.amount_locked(T0 + MONTH) == 11_000

    def test_same_slot_as_deposit(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 4), LockupKind.NONE, 0, 100)
        with pytest.raises(InvalidToDepositAndWithdrawInOneSlotError):
            self._withdraw(registry, registrar, Clock(T0, 4), 100)
        self._withdraw(registry, registrar, Clock(T0, 5), 100)

    def test_governance_forbids(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.NONE, 0, 100)
        with pytest.raises(WithdrawForbiddenError):
            self._withdraw(registry, registrar, Clock(T0, 2), 100, record=token_owner_record(votes=1))
        with pytest.raises(WithdrawForbiddenError):
            self._withdraw(registry, registrar, Clock(T0, 2), 100, record=token_owner_record(proposals=2))

    def test_foreign_token_owner_record(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.NONE, 0, 100)
        with pytest.raises(InvalidAuthorityError):
            self._withdraw(registry, registrar, Clock(T0, 2), 100, record=token_owner_record(owner=BOB))

    def test_wrong_mint(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.NONE, 0, 100)
        with pytest.raises(InvalidMintError):
            self._withdraw(registry, registrar, Clock(T0, 2), 100, mint=OTHER_MINT)

    def test_mint_checked_before_unlocked_balance(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.CLIFF, 10, 100)
        with pytest.raises(InvalidMintError):
            self._withdraw(registry, registrar, Clock(T0, 2), 100, mint=OTHER_MINT)
        with pytest.raises(InsufficientUnlockedTokensError):
            self._withdraw(registry, registrar, Clock(T0, 2), 100)

    def test_boolean_amount_rejected(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.NONE, 0, 100)
        with pytest.raises(InvalidArgumentError):
            self._withdraw(registry, registrar, Clock(T0, 2), True)
        assert entry(registry, registrar, 0).amount_deposited_native == 100

    @pytest.mark.parametrize("votes,proposals", [(0, 0), (1, 0), (0, 3), (2, 2)])
    def test_token_owner_record_check_matches_predicate(self, votes, proposals):
        record = token_owner_record(votes=votes, proposals=proposals)
        if record.can_withdraw_governing_tokens():
            record.assert_can_withdraw_governing_tokens()
        else:
            with pytest.raises(WithdrawForbiddenError):
                record.assert_can_withdraw_governing_tokens()
        assert record.can_withdraw_governing_tokens() == (votes == 0 and proposals == 0)

    def test_requires_owner(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.NONE, 0, 100)
        with pytest.raises(InvalidAuthorityError):
            self._withdraw(registry, registrar, Clock(T0, 2), 100, signer=BOB)


class TestCloseDepositEntry:

    def test_requires_empty_entry(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.NONE, 0, 100)
        with pytest.raises(VotingTokenNonZeroError):
            registry.close_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0, 2), 0)

        registry.withdraw(
            registrar.address, ALICE, ALICE, Clock(T0, 2), token_owner_record(), 0, 100, GOV_MINT, ALICE_WALLET
        )
        registry.close_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0, 2), 0)
        assert not entry(registry, registrar, 0).is_used

    def test_empty_locked_entry_can_be_closed(self):
        registry, registrar = make_registry()
        registry.create_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0, 1), GOV_MINT, LockupKind.CLIFF, 30)
        registry.close_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0, 1), 0)
        assert registry.get_voter(registrar.address, ALICE).first_free_entry_index() == 0

    def test_clawback_entry_must_expire(self):
        registry, registrar = make_registry()
        registry.create_deposit_entry(
            registrar.address, ALICE, ALICE, Clock(T0, 1), GOV_MINT, LockupKind.CLIFF, 3, allow_clawback=True
        )
        with pytest.raises(DepositStillLockedError):
            registry.close_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0 + DAY, 2), 0)
        registry.close_deposit_entry(registrar.address, ALICE, ALICE, Clock(T0 + 3 * DAY, 3), 0)


# ══════════════════════════════════════════════════════════════════════
#  GRANTS
# ══════════════════════════════════════════════════════════════════════


class TestGrantAndClawback:

    def _grant(self, registry, registrar, authority=REALM_AUTHORITY, amount=5000, allow_clawback=True):
        return registry.grant(
            registrar.address, BOB, authority, Clock(T0, 1), GOV_MINT,
            LockupKind.DAILY, 10, amount, TREASURY, allow_clawback=allow_clawback,
        )

    def test_grant_creates_voter(self):
        registry, registrar = make_registry()
        index = self._grant(registry, registrar)
        voter = registry.get_voter(registrar.address, BOB)
        d = voter.deposits[index]
        assert d.amount_deposited_native == 5000
        assert d.amount_initially_locked_native == 5000
        assert d.allow_clawback
        assert voter.last_deposit_slot == 1
        assert registry.get_voter_weight_record(registrar.address, BOB).governing_token_owner == BOB

    def test_grant_authorities(self):
        registry, registrar = make_registry()
        self._grant(registry, registrar, authority=GRANTER)
        self._grant(registry, registrar, authority=BOB)
        with pytest.raises(InvalidAuthorityError):
            self._grant(registry, registrar, authority=ALICE)

    def test_failed_grant_creates_no_voter(self):
        registry, registrar = make_registry()
        with pytest.raises(InsufficientFundsError):
            self._grant(registry, registrar, amount=10**12)
        assert registry.find_voter(registrar.address, BOB) is None

    def test_failed_grant_logs_no_voter_creation(self, caplog):
        registry, registrar = make_registry()
        caplog.clear()
        with caplog.at_level(logging.INFO):
            with pytest.raises(InsufficientFundsError):
                self._grant(registry, registrar, amount=10**12)
        assert not [r for r in caplog.records if r.getMessage().startswith("Created voter")]

        with caplog.at_level(logging.INFO):
            self._grant(registry, registrar)
        voter = registry.get_voter(registrar.address, BOB)
        created = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Created voter")]
        assert created == [f"Created voter {voter.address} for {BOB}"]

    def test_grant_then_clawback_returns_everything(self):
        registry, registrar = make_registry()
        index = self._grant(registry, registrar)

        clawed = registry.clawback(registrar.address, BOB, CLAWBACK_AUTHORITY, Clock(T0, 2), index, TREASURY)

        assert clawed == 5000
        d = registry.get_voter(registrar.address, BOB).deposits[index]
        assert d.amount_deposited_native == 0
        assert d.amount_initially_locked_native == 0
        assert d.lockup.kind == LockupKind.NONE
        assert not d.allow_clawback
        assert registry.custody.balance_of(TREASURY, GOV_MINT) == 1_000_000
        registry.close_deposit_entry(registrar.address, BOB, BOB, Clock(T0, 2), index)

    def test_clawback_keeps_vested_part(self):
        registry, registrar = make_registry()
        index = self._grant(registry, registrar, amount=1000)
        curr = Clock(T0 + 4 * DAY, 2)

        clawed = registry.clawback(registrar.address, BOB, CLAWBACK_AUTHORITY, curr, index, TREASURY)

        assert clawed == 600
        record = TokenOwnerRecord(REALM, GOV_MINT, BOB)
        registry.withdraw(registrar.address, BOB, BOB, Clock(T0 + 4 * DAY, 3), record, index, 400, GOV_MINT, BOB)
        assert registry.custody.balance_of(BOB, GOV_MINT) == 400

    def test_clawback_requires_clawback_authority(self):
        registry, registrar = make_registry()
        index = self._grant(registry, registrar)
        with pytest.raises(InvalidAuthorityError):
            registry.clawback(registrar.address, BOB, REALM_AUTHORITY, Clock(T0, 2), index, TREASURY)

    def test_clawback_requires_flag(self):
        registry, registrar = make_registry()
        index = self._grant(registry, registrar, allow_clawback=False)
        with pytest.raises(ClawbackNotAllowedOnDepositError):
            registry.clawback(registrar.address, BOB, CLAWBACK_AUTHORITY, Clock(T0, 2), index, TREASURY)


# ══════════════════════════════════════════════════════════════════════
#  LOCKUP CHANGES
# ══════════════════════════════════════════════════════════════════════


class TestResetLockup:

    def test_cannot_shorten(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.CLIFF, 10, 1000)
        clock = Clock(T0 + 3 * DAY, 2)
        with pytest.raises(InvalidLockupPeriodError):
            registry.reset_lockup(registrar.address, ALICE, ALICE, clock, 0, LockupKind.CLIFF, 6)

    def test_equal_periods_restart_now(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.CLIFF, 10, 1000)
        clock = Clock(T0 + 3 * DAY, 2)

        registry.reset_lockup(registrar.address, ALICE, ALICE, clock, 0, LockupKind.CLIFF, 7)

        d = entry(registry, registrar, 0)
        assert d.lockup.start_ts == T0 + 3 * DAY
        assert d.lockup.end_ts == T0 + 10 * DAY
        assert d.amount_initially_locked_native == 1000

    def test_relocks_vested_tokens(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.DAILY, 10, 1000)
        clock = Clock(T0 + 5 * DAY, 2)

        registry.reset_lockup(registrar.address, ALICE, ALICE, clock, 0, LockupKind.MONTHLY, 1)

        d = entry(registry, registrar, 0)
        assert d.lockup.kind == LockupKind.MONTHLY
        assert d.amount_initially_locked_native == 1000
        assert d.amount_withdrawable(T0 + 5 * DAY) == 0

    def test_cannot_loosen_kind(self):
        registry, registrar = make_registry()
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.MONTHLY, 2, 1000)
        with pytest.raises(InvalidLockupKindError):
            registry.reset_lockup(registrar.address, ALICE, ALICE, Clock(T0, 2), 0, LockupKind.DAILY, 365)

    def test_clawback_entry_frozen(self):
        registry, registrar = make_registry()
        registry.grant(
            registrar.address, ALICE, REALM_AUTHORITY, Clock(T0, 1), GOV_MINT,
            LockupKind.CLIFF, 5, 100, TREASURY, allow_clawback=True,
        )
        with pytest.raises(InvalidChangeToClawbackDepositEntryError):
            registry.reset_lockup(registrar.address, ALICE, ALICE, Clock(T0, 2), 0, LockupKind.CLIFF, 50)


class TestInternalTransferLocked:

    def _status(self, registry, registrar, clock, index):
        d = entry(registry, registrar, index)
        now = registrar.clock_unix_timestamp(clock)
        duration = d.lockup.periods_total() * d.lockup.kind.period_secs
        return (
            duration - d.lockup.seconds_left(now),
            duration,
            d.amount_initially_locked_native,
            d.amount_deposited_native,
            d.amount_withdrawable(now),
        )

    def _transfer(self, registry, registrar, clock, source, target, amount):
        registry.internal_transfer_locked(registrar.address, ALICE, ALICE, clock, source, target, amount)

    def test_partially_vested_source(self):
        registry, registrar = make_registry()
        ts = T0
        open_and_fund(registry, registrar, Clock(ts, 1), LockupKind.MONTHLY, 3, 300)
        ts += MONTH + HOUR
        open_and_fund(registry, registrar, Clock(ts, 2), LockupKind.DAILY, 3, 30)

        # both deposits have vested one period
        ts += DAY + HOUR
        clock = Clock(ts, 3)
        assert self._status(registry, registrar, clock, 0) == (MONTH + DAY + 2 * HOUR, 3 * MONTH, 300, 300, 100)
        assert self._status(registry, registrar, clock, 1) == (DAY + HOUR, 3 * DAY, 30, 30, 10)

        with pytest.raises(InvalidLockupKindError):
            self._transfer(registry, registrar, clock, 0, 1, 1)
        with pytest.raises(InsufficientLockedTokensError):
            self._transfer(registry, registrar, clock, 1, 0, 21)
        self._transfer(registry, registrar, clock, 1, 0, 10)

        assert self._status(registry, registrar, clock, 0) == (DAY + 2 * HOUR, 2 * MONTH, 210, 310, 100)
        assert self._status(registry, registrar, clock, 1) == (HOUR, 2 * DAY, 10, 20, 10)

    def test_constant_to_cliff(self):
        registry, registrar = make_registry()
        ts = T0
        clock = Clock(ts, 1)
        open_and_fund(registry, registrar, clock, LockupKind.CONSTANT, 5, 1000)
        registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.CLIFF, 5)
        assert self._status(registry, registrar, clock, 0) == (0, 5 * DAY, 1000, 1000, 0)
        assert self._status(registry, registrar, clock, 1) == (0, 5 * DAY, 0, 0, 0)

        self._transfer(registry, registrar, clock, 0, 1, 100)
        assert self._status(registry, registrar, clock, 0) == (0, 5 * DAY, 900, 900, 0)
        assert self._status(registry, registrar, clock, 1) == (0, 5 * DAY, 100, 100, 0)

        ts += 2 * DAY + HOUR
        clock = Clock(ts, 2)
        with pytest.raises(InvalidLockupPeriodError):
            self._transfer(registry, registrar, clock, 0, 1, 100)

        registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.CLIFF, 8)
        self._transfer(registry, registrar, clock, 0, 2, 100)
        assert self._status(registry, registrar, clock, 0) == (0, 5 * DAY, 800, 800, 0)
        assert self._status(registry, registrar, clock, 1) == (2 * DAY + HOUR, 5 * DAY, 100, 100, 0)
        assert self._status(registry, registrar, clock, 2) == (0, 8 * DAY, 100, 100, 0)

        # the cliff target still has 7 days left, which is >= 5
        ts += DAY + HOUR
        clock = Clock(ts, 3)
        self._transfer(registry, registrar, clock, 0, 2, 800)
        assert self._status(registry, registrar, clock, 0) == (0, 5 * DAY, 0, 0, 0)
        assert self._status(registry, registrar, clock, 2) == (HOUR, 7 * DAY, 900, 900, 0)

    def test_different_mints(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        open_and_fund(registry, registrar, clock, LockupKind.CLIFF, 5, 100)
        open_and_fund(registry, registrar, clock, LockupKind.CLIFF, 5, 100, mint=OTHER_MINT)
        with pytest.raises(InvalidMintError):
            self._transfer(registry, registrar, clock, 0, 1, 10)

    def test_same_entry(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        open_and_fund(registry, registrar, clock, LockupKind.CLIFF, 5, 100)
        with pytest.raises(InvalidArgumentError):
            self._transfer(registry, registrar, clock, 0, 0, 10)

    def test_clawback_entries_rejected(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        registry.grant(
            registrar.address, ALICE, REALM_AUTHORITY, clock, GOV_MINT,
            LockupKind.CLIFF, 5, 100, TREASURY, allow_clawback=True,
        )
        open_and_fund(registry, registrar, clock, LockupKind.CLIFF, 10, 100)
        with pytest.raises(InvalidChangeToClawbackDepositEntryError):
            self._transfer(registry, registrar, clock, 0, 1, 10)
        with pytest.raises(InvalidChangeToClawbackDepositEntryError):
            self._transfer(registry, registrar, clock, 1, 0, 10)


class TestInternalTransferUnlocked:

    def test_moves_and_locks(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        open_and_fund(registry, registrar, clock, LockupKind.NONE, 0, 500)
        registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.CLIFF, 10)

        registry.internal_transfer_unlocked(registrar.address, ALICE, ALICE, clock, 0, 1, 200)

        source, target = entry(registry, registrar, 0), entry(registry, registrar, 1)
        assert source.amount_deposited_native == 300
        assert target.amount_deposited_native == 200
        assert target.amount_locked(T0) == 200

    def test_only_withdrawable_amount(self):
        registry, registrar = make_registry()
        clock = Clock(T0 + DAY, 1)
        open_and_fund(registry, registrar, Clock(T0, 1), LockupKind.DAILY, 4, 400)
        registry.create_deposit_entry(registrar.address, ALICE, ALICE, clock, GOV_MINT, LockupKind.CLIFF, 10)
        with pytest.raises(InsufficientUnlockedTokensError):
            registry.internal_transfer_unlocked(registrar.address, ALICE, ALICE, clock, 0, 1, 101)
        registry.internal_transfer_unlocked(registrar.address, ALICE, ALICE, clock, 0, 1, 100)
        assert entry(registry, registrar, 0).amount_withdrawable(T0 + DAY) == 0

    def test_clawback_target_rejected(self):
        registry, registrar = make_registry()
        clock = Clock(T0, 1)
        open_and_fund(registry, registrar, clock, LockupKind.NONE, 0, 500)
        registry.grant(
            registrar.address, ALICE, REALM_AUTHORITY, clock, GOV_MINT,
            LockupKind.CLIFF, 5, 100, TREASURY, allow_clawback=True,
        )
        with pytest.raises(InvalidChangeToClawbackDepositEntryError):
            registry.internal_transfer_unlocked(registrar.address, ALICE, ALICE, clock, 0, 1, 100)
