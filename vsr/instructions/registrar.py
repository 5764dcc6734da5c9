"""
Registrar-level operations: creation, voting mint configuration, debug time
offset and the registrar-wide maximum vote weight.
"""

from dataclasses import replace
from typing import Mapping, Optional

from ..clock import Clock
from ..constants import (
    DEBUG_GOVERNANCE_PROGRAM_ID,
    DEFAULT_ADDRESS,
    MAX_DIGIT_SHIFT,
    MAX_VOTING_MINTS,
    MIN_DIGIT_SHIFT,
    U64_MAX,
)
from ..exceptions import (
    DebugInstructionError,
    InvalidArgumentError,
    InvalidRealmAuthorityError,
    LockupSaturationMustBePositiveError,
    OutOfBoundsVotingMintConfigIndexError,
    VotingMintConfigIndexAlreadyInUseError,
    VotingMintConfiguredWithDifferentIndexError,
)
from ..governance import MaxVoterWeightRecord
from ..logger import get_logger
from ..state import Registrar, VotingMintConfig
from .common import require_realm_authority

logger = get_logger(__name__)


def create_registrar(
    governance_program_id: str,
    realm: str,
    realm_governing_token_mint: str,
    realm_authority: str,
    signer: str,
    clawback_authority: Optional[str] = None,
    max_voting_mints: int = MAX_VOTING_MINTS,
) -> Registrar:
    """
    Create a registrar for ``(realm, realm_governing_token_mint)``.

    The creating signer must be the realm authority. The clawback authority
    defaults to the realm authority.
    """
    if signer != realm_authority:
        raise InvalidRealmAuthorityError(f"{signer} is not the realm authority of {realm}")
    for name, value in (
        ("governance_program_id", governance_program_id),
        ("realm", realm),
        ("realm_governing_token_mint", realm_governing_token_mint),
        ("realm_authority", realm_authority),
    ):
        if not value:
            raise InvalidArgumentError(f"{name} must be set")
    if max_voting_mints < 1:
        raise InvalidArgumentError(f"max_voting_mints must be >= 1, got {max_voting_mints}")

    registrar = Registrar(
        governance_program_id=governance_program_id,
        realm=realm,
        realm_governing_token_mint=realm_governing_token_mint,
        realm_authority=realm_authority,
        clawback_authority=clawback_authority or DEFAULT_ADDRESS,
        voting_mints=[VotingMintConfig() for _ in range(max_voting_mints)],
    )
    logger.info(f"Created registrar {registrar.address} for realm {realm}")
    return registrar


def configure_voting_mint(
    registrar: Registrar,
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
    """
    Bind ``mint`` to slot ``idx`` of the registrar's voting mint table, or
    update the factors of a mint already bound there.

    When ``mint_supplies`` is given, the maximum vote weight of the resulting
    table must fit in u64 for those supplies.
    """
    require_realm_authority(registrar, authority)
    if lockup_saturation_secs <= 0:
        raise LockupSaturationMustBePositiveError()
    if not 0 <= idx < len(registrar.voting_mints):
        raise OutOfBoundsVotingMintConfigIndexError(f"Voting mint index {idx} out of bounds")
    if not mint:
        raise InvalidArgumentError("mint must be set")
    if not MIN_DIGIT_SHIFT <= digit_shift <= MAX_DIGIT_SHIFT:
        raise InvalidArgumentError(f"digit_shift must be in {MIN_DIGIT_SHIFT}..{MAX_DIGIT_SHIFT}")
    for name, factor in (
        ("unlocked_scaled_factor", unlocked_scaled_factor),
        ("lockup_scaled_factor", lockup_scaled_factor),
    ):
        if not 0 <= factor <= U64_MAX:
            raise InvalidArgumentError(f"{name} out of range: {factor}")

    for other_idx, other in enumerate(registrar.voting_mints):
        if other_idx != idx and other.in_use() and other.mint == mint:
            raise VotingMintConfiguredWithDifferentIndexError(
                f"Mint {mint} is already configured at index {other_idx}"
            )

    current = registrar.voting_mints[idx]
    if current.in_use() and current.mint != mint:
        raise VotingMintConfigIndexAlreadyInUseError(
            f"Voting mint index {idx} is bound to {current.mint}"
        )

    config = VotingMintConfig(
        mint=mint,
        grant_authority=grant_authority or DEFAULT_ADDRESS,
        unlocked_scaled_factor=unlocked_scaled_factor,
        lockup_scaled_factor=lockup_scaled_factor,
        lockup_saturation_secs=lockup_saturation_secs,
        digit_shift=digit_shift,
    )

    voting_mints = list(registrar.voting_mints)
    voting_mints[idx] = config
    if mint_supplies is not None:
        replace(registrar, voting_mints=voting_mints).max_vote_weight(mint_supplies)

    if current.in_use():
        logger.warning(f"Reconfiguring voting mint #{idx} ({mint}) on registrar {registrar.address}")
    registrar.voting_mints = voting_mints
    logger.info(f"Configured voting mint #{idx} ({mint}) on registrar {registrar.address}")
    return config


def set_time_offset(registrar: Registrar, authority: str, time_offset: int) -> None:
    """Shift the registrar's clock. Only available on the debug governance program."""
    if registrar.governance_program_id != DEBUG_GOVERNANCE_PROGRAM_ID:
        raise DebugInstructionError()
    require_realm_authority(registrar, authority)

    registrar.time_offset = time_offset
    logger.warning(f"Time offset of registrar {registrar.address} set to {time_offset}s")


def update_max_vote_weight(registrar: Registrar, mint_supplies: Mapping[str, int], clock: Clock) -> MaxVoterWeightRecord:
    max_weight = registrar.max_vote_weight(mint_supplies)
    return MaxVoterWeightRecord(
        realm=registrar.realm,
        governing_token_mint=registrar.realm_governing_token_mint,
        max_voter_weight=max_weight,
        max_voter_weight_expiry=clock.slot,
    )
