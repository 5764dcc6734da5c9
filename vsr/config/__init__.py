"""
VSR Configuration

Loads the registrar and voting mint description from config.toml.
Environment variables override TOML values.
"""

from .loader import (
    RegistryConfig,
    RegistrarSectionConfig,
    VotingMintSectionConfig,
    LoggingSectionConfig,
    load_config,
)

__all__ = [
    "RegistryConfig",
    "RegistrarSectionConfig",
    "VotingMintSectionConfig",
    "LoggingSectionConfig",
    "load_config",
]
