"""
VSR TOML Configuration Loader

Reads the registrar description, its voting mint table and logging settings
from a TOML file, with environment variable overrides.

Environment variable mapping:
    [registrar] realm_authority        → VSR_REALM_AUTHORITY
    [registrar] clawback_authority     → VSR_CLAWBACK_AUTHORITY
    [registrar] governance_program_id  → VSR_GOVERNANCE_PROGRAM_ID
    [logging] level                    → VSR_LOG_LEVEL
    ...
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..constants import (
    DEFAULT_ADDRESS,
    MAX_DIGIT_SHIFT,
    MAX_VOTING_MINTS,
    MIN_DIGIT_SHIFT,
    SCALED_FACTOR_BASE,
    SECS_PER_DAY,
    U64_MAX,
)
from ..exceptions import ConfigurationError
from ..logger import reconfigure

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RegistrarSectionConfig:
    """[registrar] section."""
    governance_program_id: str = ""
    realm: str = ""
    realm_governing_token_mint: str = ""
    realm_authority: str = ""
    clawback_authority: str = DEFAULT_ADDRESS
    max_voting_mints: int = MAX_VOTING_MINTS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistrarSectionConfig":
        return cls(
            governance_program_id=data.get("governance_program_id", ""),
            realm=data.get("realm", ""),
            realm_governing_token_mint=data.get("realm_governing_token_mint", ""),
            realm_authority=data.get("realm_authority", ""),
            clawback_authority=data.get("clawback_authority", DEFAULT_ADDRESS),
            max_voting_mints=data.get("max_voting_mints", MAX_VOTING_MINTS),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("VSR_GOVERNANCE_PROGRAM_ID"):
            self.governance_program_id = v
        if v := os.environ.get("VSR_REALM"):
            self.realm = v
        if v := os.environ.get("VSR_REALM_AUTHORITY"):
            self.realm_authority = v
        if v := os.environ.get("VSR_CLAWBACK_AUTHORITY"):
            self.clawback_authority = v

    def validate(self) -> None:
        for name in ("governance_program_id", "realm", "realm_governing_token_mint", "realm_authority"):
            if not getattr(self, name):
                raise ConfigurationError(f"[registrar] {name} must be set")
        if self.max_voting_mints < 1:
            raise ConfigurationError("[registrar] max_voting_mints must be >= 1")


@dataclass
class VotingMintSectionConfig:
    """One [[voting_mints]] table."""
    mint: str = ""
    index: Optional[int] = None
    grant_authority: str = DEFAULT_ADDRESS
    digit_shift: int = 0
    unlocked_scaled_factor: int = SCALED_FACTOR_BASE
    lockup_scaled_factor: int = 0
    lockup_saturation_secs: int = 365 * SECS_PER_DAY

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VotingMintSectionConfig":
        return cls(
            mint=data.get("mint", ""),
            index=data.get("index"),
            grant_authority=data.get("grant_authority", DEFAULT_ADDRESS),
            digit_shift=data.get("digit_shift", 0),
            unlocked_scaled_factor=data.get("unlocked_scaled_factor", SCALED_FACTOR_BASE),
            lockup_scaled_factor=data.get("lockup_scaled_factor", 0),
            lockup_saturation_secs=data.get("lockup_saturation_secs", 365 * SECS_PER_DAY),
        )

    def validate(self) -> None:
        if not self.mint:
            raise ConfigurationError("[[voting_mints]] mint must be set")
        if not MIN_DIGIT_SHIFT <= self.digit_shift <= MAX_DIGIT_SHIFT:
            raise ConfigurationError(f"digit_shift out of range for {self.mint}: {self.digit_shift}")
        for name in ("unlocked_scaled_factor", "lockup_scaled_factor"):
            value = getattr(self, name)
            if not 0 <= value <= U64_MAX:
                raise ConfigurationError(f"{name} out of range for {self.mint}: {value}")
        if self.lockup_saturation_secs <= 0:
            raise ConfigurationError(f"lockup_saturation_secs must be positive for {self.mint}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mint": self.mint,
            "index": self.index,
            "grant_authority": self.grant_authority,
            "digit_shift": self.digit_shift,
            "unlocked_scaled_factor": self.unlocked_scaled_factor,
            "lockup_scaled_factor": self.lockup_scaled_factor,
            "lockup_saturation_secs": self.lockup_saturation_secs,
        }


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file_enabled=data.get("file_enabled", False),
            file_path=data.get("file_path", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("VSR_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("VSR_LOG_FILE_ENABLED"):
            self.file_enabled = v.lower() in ("1", "true", "yes")


@dataclass
class RegistryConfig:
    """
    Registry configuration.

    Describes one registrar and the voting mints to configure on it. This is
    what :meth:`vsr.registry.StakeRegistry.from_config` consumes.
    """
    registrar: RegistrarSectionConfig = field(default_factory=RegistrarSectionConfig)
    voting_mints: List[VotingMintSectionConfig] = field(default_factory=list)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistryConfig":
        return cls(
            registrar=RegistrarSectionConfig.from_dict(data.get("registrar", {})),
            voting_mints=[VotingMintSectionConfig.from_dict(m) for m in data.get("voting_mints", [])],
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "RegistryConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults with environment overrides applied.
        Malformed TOML raises :class:`ConfigurationError`.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Malformed config file {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        logger.info(f"Loaded registry config from {config_path} ({len(cfg.voting_mints)} voting mints)")
        return cfg

    def apply_env(self) -> None:
        self.registrar.apply_env()
        self.logging.apply_env()

    def configure_logging(self) -> None:
        """Apply the [logging] section to the process-wide log handlers."""
        reconfigure(
            log_level=self.logging.level,
            log_file=Path(self.logging.file_path) if self.logging.file_path else None,
            file_output=self.logging.file_enabled,
        )

    def validate(self) -> bool:
        """
        Validate all sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.registrar.validate()
        if self.logging.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        if len(self.voting_mints) > self.registrar.max_voting_mints:
            raise ConfigurationError(
                f"{len(self.voting_mints)} voting mints configured, "
                f"registrar holds at most {self.registrar.max_voting_mints}"
            )

        seen_mints = set()
        seen_indexes = set()
        for position, mint_cfg in enumerate(self.voting_mints):
            mint_cfg.validate()
            index = position if mint_cfg.index is None else mint_cfg.index
            if not 0 <= index < self.registrar.max_voting_mints:
                raise ConfigurationError(f"Voting mint index {index} out of bounds")
            if mint_cfg.mint in seen_mints:
                raise ConfigurationError(f"Voting mint {mint_cfg.mint} configured twice")
            if index in seen_indexes:
                raise ConfigurationError(f"Voting mint index {index} configured twice")
            seen_mints.add(mint_cfg.mint)
            seen_indexes.add(index)
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics)."""
        return {
            "registrar": {
                "governance_program_id": self.registrar.governance_program_id,
                "realm": self.registrar.realm,
                "realm_governing_token_mint": self.registrar.realm_governing_token_mint,
                "realm_authority": self.registrar.realm_authority,
                "clawback_authority": self.registrar.clawback_authority,
                "max_voting_mints": self.registrar.max_voting_mints,
            },
            "voting_mints": [m.to_dict() for m in self.voting_mints],
            "logging": {
                "level": self.logging.level,
                "file_enabled": self.logging.file_enabled,
                "file_path": self.logging.file_path,
            },
        }


def load_config(path: Optional[str] = None) -> RegistryConfig:
    """
    Load registry configuration.

    Resolution order:
        1. Explicit *path* argument
        2. VSR_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("VSR_CONFIG", "config.toml")

    return RegistryConfig.from_file(path)
