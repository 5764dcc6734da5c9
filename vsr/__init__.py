"""
Voter Stake Registry

Lockup, vesting and voting power bookkeeping for token-weighted governance.
Core imports are lazily loaded; for direct access import from submodules:

    from vsr.registry import StakeRegistry
    from vsr.state import Lockup, LockupKind, DepositEntry
    from vsr.exceptions import InsufficientUnlockedTokensError
"""

__version__ = "0.2.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'StakeRegistry':
        from .registry import StakeRegistry
        return StakeRegistry
    elif name == 'Clock':
        from .clock import Clock
        return Clock
    elif name == 'VSRException':
        from .exceptions import VSRException
        return VSRException
    raise AttributeError(f"module 'vsr' has no attribute {name!r}")

__all__ = ['StakeRegistry', 'Clock', 'VSRException']
