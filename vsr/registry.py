"""
VSR Stake Registry

Account store and entry point for every registry operation. Registrars and
voters are addressed by their derived identities; the registry resolves them,
serializes operations with a lock and hands token movements to the custody
collaborator.
"""

import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple

from . import instructions
from .clock import Clock
from .config import RegistryConfig
from .constants import VOTER_SEED
from .custody import Custody, InMemoryCustody
from .events import DepositEntryInfo, VoterInfo
from .exceptions import AccountAlreadyExistsError, AccountNotFoundError, InvalidAuthorityError
from .governance import MaxVoterWeightRecord, TokenOwnerRecord, VoterWeightRecord
from .logger import get_logger
from .state import LockupKind, Registrar, Voter, VotingMintConfig, derive_address

logger = get_logger(__name__)


class StakeRegistry:
    """
    Holds registrars, voters and their governance records.

    Responsibilities:
    - One registrar per (realm, governing mint), one voter per (registrar, owner)
    - Resolve accounts by identity and run operations against them
    - Keep one voter weight record per voter and one max weight record per registrar
    """

    def __init__(self, custody: Custody = None):
        self.custody = custody or InMemoryCustody()
        self._lock = threading.RLock()

        self._registrars: Dict[str, Registrar] = {}
        self._voters: Dict[str, Voter] = {}
        self._voter_weight_records: Dict[str, VoterWeightRecord] = {}
        self._max_voter_weight_records: Dict[str, MaxVoterWeightRecord] = {}

    @classmethod
    def from_config(cls, config: RegistryConfig, custody: Custody = None) -> "StakeRegistry":
        """Build a registry holding the registrar and voting mints described by ``config``."""
        config.validate()
        registry = cls(custody)
        section = config.registrar
        registrar = registry.create_registrar(
            governance_program_id=section.governance_program_id,
            realm=section.realm,
            realm_governing_token_mint=section.realm_governing_token_mint,
            realm_authority=section.realm_authority,
            signer=section.realm_authority,
            clawback_authority=section.clawback_authority or None,
            max_voting_mints=section.max_voting_mints,
        )
        for position, mint_cfg in enumerate(config.voting_mints):
            registry.configure_voting_mint(
                registrar.address,
                section.realm_authority,
                idx=position if mint_cfg.index is None else mint_cfg.index,
                mint=mint_cfg.mint,
                digit_shift=mint_cfg.digit_shift,
                unlocked_scaled_factor=mint_cfg.unlocked_scaled_factor,
                lockup_scaled_factor=mint_cfg.lockup_scaled_factor,
                lockup_saturation_secs=mint_cfg.lockup_saturation_secs,
                grant_authority=mint_cfg.grant_authority or None,
            )
        logger.info(
            f"Registry ready: registrar {registrar.address} with {len(config.voting_mints)} voting mints"
        )
        return registry

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_registrar(self, registrar_address: str) -> Registrar:
        registrar = self._registrars.get(registrar_address)
        if registrar is None:
            raise AccountNotFoundError(f"Registrar {registrar_address} not found")
        return registrar

    def find_voter(self, registrar_address: str, voter_authority: str) -> Optional[Voter]:
        return self._voters.get(derive_address(registrar_address, VOTER_SEED, voter_authority))

    def get_voter(self, registrar_address: str, voter_authority: str) -> Voter:
        voter = self.find_voter(registrar_address, voter_authority)
        if voter is None:
            raise AccountNotFoundError(f"No voter for {voter_authority} on registrar {registrar_address}")
        return voter

    def get_voter_weight_record(self, registrar_address: str, voter_authority: str) -> VoterWeightRecord:
        voter = self.get_voter(registrar_address, voter_authority)
        return self._voter_weight_records[voter.address]

    def get_max_voter_weight_record(self, registrar_address: str) -> Optional[MaxVoterWeightRecord]:
        return self._max_voter_weight_records.get(registrar_address)

    def list_voters(self, registrar_address: str) -> List[Voter]:
        return [v for v in self._voters.values() if v.registrar == registrar_address]

    def voter_weight(self, registrar_address: str, voter_authority: str, clock: Clock) -> int:
        """Read-only weight query used by governance."""
        registrar = self.get_registrar(registrar_address)
        voter = self.get_voter(registrar_address, voter_authority)
        return voter.weight(registrar, registrar.clock_unix_timestamp(clock))

    # =========================================================================
    # REGISTRAR OPERATIONS
    # =========================================================================

    def create_registrar(
        self,
        governance_program_id: str,
        realm: str,
        realm_governing_token_mint: str,
        realm_authority: str,
        signer: str,
        clawback_authority: Optional[str] = None,
        max_voting_mints: Optional[int] = None,
    ) -> Registrar:
        with self._lock:
            kwargs = {} if max_voting_mints is None else {"max_voting_mints": max_voting_mints}
            registrar = instructions.create_registrar(
                governance_program_id,
                realm,
                realm_governing_token_mint,
                realm_authority,
                signer,
                clawback_authority=clawback_authority,
                **kwargs,
            )
            if registrar.address in self._registrars:
                raise AccountAlreadyExistsError(
                    f"Registrar for realm {realm} and mint {realm_governing_token_mint} already exists"
                )
            self._registrars[registrar.address] = registrar
            return registrar

    def configure_voting_mint(
        self,
        registrar_address: str,
        authority: str,
        idx: int,
        mint: str,
        digit_shift: int,
        unlocked_scaled_factor: int,
        lockup_scaled_factor: int,
        lockup_saturation_secs: int,
        grant_authority: Optional[str] = None,
        mint_supplies: Optional[Mapping[str, int]] = None,
    ) -> VotingMintConfig:
        with self._lock:
            return instructions.configure_voting_mint(
                self.get_registrar(registrar_address),
                authority,
                idx,
                mint,
                digit_shift,
                unlocked_scaled_factor,
                lockup_scaled_factor,
                lockup_saturation_secs,
                grant_authority=grant_authority,
                mint_supplies=mint_supplies,
            )

    def set_time_offset(self, registrar_address: str, authority: str, time_offset: int) -> None:
        with self._lock:
            instructions.set_time_offset(self.get_registrar(registrar_address), authority, time_offset)

    def update_max_vote_weight(self, registrar_address: str, mint_supplies: Mapping[str, int], clock: Clock) -> MaxVoterWeightRecord:
        with self._lock:
            record = instructions.update_max_vote_weight(
                self.get_registrar(registrar_address), mint_supplies, clock
            )
            self._max_voter_weight_records[registrar_address] = record
            return record

    # =========================================================================
    # VOTER OPERATIONS
    # =========================================================================

    def create_voter(self, registrar_address: str, voter_authority: str, signer: str) -> Voter:
        with self._lock:
            if signer != voter_authority:
                raise InvalidAuthorityError(f"{signer} cannot create a voter for {voter_authority}")
            registrar = self.get_registrar(registrar_address)
            if self.find_voter(registrar_address, voter_authority) is not None:
                raise AccountAlreadyExistsError(f"Voter for {voter_authority} already exists")
            voter, record = instructions.create_voter(registrar, voter_authority)
            self._voters[voter.address] = voter
            self._voter_weight_records[voter.address] = record
            logger.info(f"Created voter {voter.address} for {voter_authority}")
            return voter

    def close_voter(self, registrar_address: str, voter_authority: str, signer: str) -> None:
        with self._lock:
            voter = self.get_voter(registrar_address, voter_authority)
            instructions.close_voter(voter, signer)
            del self._voters[voter.address]
            self._voter_weight_records.pop(voter.address, None)

    def update_voter_weight_record(self, registrar_address: str, voter_authority: str, clock: Clock) -> VoterWeightRecord:
        with self._lock:
            registrar = self.get_registrar(registrar_address)
            voter = self.get_voter(registrar_address, voter_authority)
            return instructions.update_voter_weight_record(
                registrar, voter, self._voter_weight_records[voter.address], clock
            )

    def log_voter_info(self, registrar_address: str, voter_authority: str, clock: Clock, deposit_entry_begin: int = 0) -> Tuple[VoterInfo, List[DepositEntryInfo]]:
        with self._lock:
            return instructions.log_voter_info(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                clock,
                deposit_entry_begin,
            )

    # =========================================================================
    # DEPOSIT OPERATIONS
    # =========================================================================

    def create_deposit_entry(
        self,
        registrar_address: str,
        voter_authority: str,
        signer: str,
        clock: Clock,
        mint: str,
        kind: LockupKind,
        periods: int,
        allow_clawback: bool = False,
        start_ts: Optional[int] = None,
        deposit_entry_index: Optional[int] = None,
    ) -> int:
        with self._lock:
            return instructions.create_deposit_entry(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                signer,
                clock,
                mint,
                kind,
                periods,
                allow_clawback=allow_clawback,
                start_ts=start_ts,
                deposit_entry_index=deposit_entry_index,
            )

    def deposit(
        self,
        registrar_address: str,
        voter_authority: str,
        clock: Clock,
        deposit_entry_index: int,
        amount: int,
        deposit_token: str,
    ) -> None:
        with self._lock:
            instructions.deposit(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                clock,
                self.custody,
                deposit_entry_index,
                amount,
                deposit_token,
            )

    def withdraw(
        self,
        registrar_address: str,
        voter_authority: str,
        signer: str,
        clock: Clock,
        token_owner_record: TokenOwnerRecord,
        deposit_entry_index: int,
        amount: int,
        mint: str,
        destination: str,
    ) -> None:
        with self._lock:
            instructions.withdraw(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                signer,
                clock,
                self.custody,
                token_owner_record,
                deposit_entry_index,
                amount,
                mint,
                destination,
            )

    def close_deposit_entry(self, registrar_address: str, voter_authority: str, signer: str, clock: Clock, deposit_entry_index: int) -> None:
        with self._lock:
            instructions.close_deposit_entry(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                signer,
                clock,
                deposit_entry_index,
            )

    # =========================================================================
    # GRANTS
    # =========================================================================

    def grant(
        self,
        registrar_address: str,
        voter_authority: str,
        grant_authority: str,
        clock: Clock,
        mint: str,
        kind: LockupKind,
        periods: int,
        amount: int,
        source: str,
        allow_clawback: bool = False,
        start_ts: Optional[int] = None,
    ) -> int:
        """Grant locked tokens, creating the recipient's voter account if needed."""
        with self._lock:
            registrar = self.get_registrar(registrar_address)
            voter = self.find_voter(registrar_address, voter_authority)
            record = None
            if voter is None:
                voter, record = instructions.create_voter(registrar, voter_authority)

            index = instructions.grant(
                registrar,
                voter,
                grant_authority,
                clock,
                self.custody,
                mint,
                kind,
                periods,
                amount,
                source,
                allow_clawback=allow_clawback,
                start_ts=start_ts,
            )
            if record is not None:
                self._voters[voter.address] = voter
                self._voter_weight_records[voter.address] = record
                logger.info(f"Created voter {voter.address} for {voter_authority}")
            return index

    def clawback(
        self,
        registrar_address: str,
        voter_authority: str,
        authority: str,
        clock: Clock,
        deposit_entry_index: int,
        destination: str,
    ) -> int:
        with self._lock:
            return instructions.clawback(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                authority,
                clock,
                self.custody,
                deposit_entry_index,
                destination,
            )

    # =========================================================================
    # LOCKUP CHANGES
    # =========================================================================

    def reset_lockup(
        self,
        registrar_address: str,
        voter_authority: str,
        signer: str,
        clock: Clock,
        deposit_entry_index: int,
        kind: LockupKind,
        periods: int,
    ) -> None:
        with self._lock:
            instructions.reset_lockup(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                signer,
                clock,
                deposit_entry_index,
                kind,
                periods,
            )

    def internal_transfer_locked(
        self,
        registrar_address: str,
        voter_authority: str,
        signer: str,
        clock: Clock,
        source_deposit_entry_index: int,
        target_deposit_entry_index: int,
        amount: int,
    ) -> None:
        with self._lock:
            instructions.internal_transfer_locked(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                signer,
                clock,
                source_deposit_entry_index,
                target_deposit_entry_index,
                amount,
            )

    def internal_transfer_unlocked(
        self,
        registrar_address: str,
        voter_authority: str,
        signer: str,
        clock: Clock,
        source_deposit_entry_index: int,
        target_deposit_entry_index: int,
        amount: int,
    ) -> None:
        with self._lock:
            instructions.internal_transfer_unlocked(
                self.get_registrar(registrar_address),
                self.get_voter(registrar_address, voter_authority),
                signer,
                clock,
                source_deposit_entry_index,
                target_deposit_entry_index,
                amount,
            )

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registrars": [r.to_dict() for r in self._registrars.values()],
            "voters": [v.to_dict() for v in self._voters.values()],
            "voter_weight_records": [r.to_dict() for r in self._voter_weight_records.values()],
            "max_voter_weight_records": [r.to_dict() for r in self._max_voter_weight_records.values()],
        }
