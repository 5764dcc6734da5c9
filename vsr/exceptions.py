"""
VSR Exceptions

Custom exception classes for the voter stake registry.

Every error carries a stable numeric ``code`` so that callers (and logs) can
identify a failure without parsing messages. The intermediate classes group
failures by kind: capacity, reference, authorization, lockup/ordering and
arithmetic.
"""


class VSRException(Exception):
    """Base exception for the voter stake registry."""
    code = 6000
    default_message = "Voter stake registry error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


# ══════════════════════════════════════════════════════════════════════
#  CATEGORIES
# ══════════════════════════════════════════════════════════════════════

class CapacityError(VSRException):
    """A fixed-size table has no room left."""


class InvalidReferenceError(VSRException):
    """An index or identity does not point at a usable record."""


class AuthorizationError(VSRException):
    """The acting identity is not allowed to perform the operation."""


class LockupViolationError(VSRException):
    """The operation would break a lockup, vesting or ordering rule."""


class ArithmeticOverflowError(VSRException):
    """An amount or weight left the unsigned 64-bit range."""


class InvalidArgumentError(VSRException, ValueError):
    """An input value is malformed."""
    code = 6001
    default_message = "Invalid argument"


class ConfigurationError(VSRException, ValueError):
    """Configuration error."""
    code = 6002
    default_message = "Invalid configuration"


class InternalProgramError(VSRException):
    """A ledger invariant that should always hold was found broken."""
    code = 6003
    default_message = "Internal invariant violated"


# ══════════════════════════════════════════════════════════════════════
#  CAPACITY
# ══════════════════════════════════════════════════════════════════════

class DepositEntryFullError(CapacityError):
    code = 6010
    default_message = "No free deposit entry available"


class VotingMintConfigIndexAlreadyInUseError(CapacityError):
    code = 6011
    default_message = "Voting mint config index is already bound to a different mint"


class VotingMintConfiguredWithDifferentIndexError(CapacityError):
    code = 6012
    default_message = "Mint is already configured at a different index"


class AccountAlreadyExistsError(CapacityError):
    code = 6013
    default_message = "Account already exists"


# ══════════════════════════════════════════════════════════════════════
#  REFERENCES
# ══════════════════════════════════════════════════════════════════════

class OutOfBoundsDepositEntryIndexError(InvalidReferenceError):
    code = 6020
    default_message = "Deposit entry index out of bounds"


class UnusedDepositEntryIndexError(InvalidReferenceError):
    code = 6021
    default_message = "Deposit entry index points at an unused entry"


class DepositEntryInUseError(InvalidReferenceError):
    code = 6026
    default_message = "Deposit entry index points at an entry already in use"


class OutOfBoundsVotingMintConfigIndexError(InvalidReferenceError):
    code = 6022
    default_message = "Voting mint config index out of bounds"


class VotingMintNotFoundError(InvalidReferenceError):
    code = 6023
    default_message = "Mint is not configured on the registrar"


class InvalidMintError(InvalidReferenceError):
    code = 6024
    default_message = "Mint does not match the deposit entry"


class AccountNotFoundError(InvalidReferenceError):
    code = 6025
    default_message = "Account not found"


# ══════════════════════════════════════════════════════════════════════
#  AUTHORIZATION
# ══════════════════════════════════════════════════════════════════════

class InvalidAuthorityError(AuthorizationError):
    code = 6030
    default_message = "Signer is not the required authority"


class InvalidRealmAuthorityError(AuthorizationError):
    code = 6031
    default_message = "Signer is not the realm authority"


class DebugInstructionError(AuthorizationError):
    code = 6032
    default_message = "Debug instructions are only allowed against the test governance program"


# ══════════════════════════════════════════════════════════════════════
#  LOCKUP / ORDERING
# ══════════════════════════════════════════════════════════════════════

class InvalidLockupPeriodError(LockupViolationError):
    code = 6040
    default_message = "Lockup duration is invalid"


class InvalidLockupKindError(LockupViolationError):
    code = 6041
    default_message = "Lockup kind may not become less strict"


class InvalidDaysError(LockupViolationError):
    code = 6042
    default_message = "Invalid number of lockup periods"


class DepositStartTooFarInFutureError(LockupViolationError):
    code = 6043
    default_message = "Lockup start is too far in the future"


class InvalidToDepositAndWithdrawInOneSlotError(LockupViolationError):
    code = 6044
    default_message = "Cannot withdraw in the same slot as a deposit"


class InsufficientUnlockedTokensError(LockupViolationError):
    code = 6045
    default_message = "Not enough unlocked tokens"


class InsufficientLockedTokensError(LockupViolationError):
    code = 6046
    default_message = "Not enough locked tokens"


class ClawbackNotAllowedOnDepositError(LockupViolationError):
    code = 6047
    default_message = "Deposit entry does not allow clawback"


class InvalidChangeToClawbackDepositEntryError(LockupViolationError):
    code = 6048
    default_message = "Lockup of a clawback deposit entry cannot be changed"


class DepositStillLockedError(LockupViolationError):
    code = 6049
    default_message = "Deposit entry lockup has not expired"


class VotingTokenNonZeroError(LockupViolationError):
    code = 6050
    default_message = "Account still holds deposited tokens"


class LockupSaturationMustBePositiveError(LockupViolationError):
    code = 6051
    default_message = "Lockup saturation must be positive"


# ══════════════════════════════════════════════════════════════════════
#  ARITHMETIC
# ══════════════════════════════════════════════════════════════════════

class VoterWeightOverflowError(ArithmeticOverflowError):
    code = 6060
    default_message = "Vote weight overflows u64"


class AmountOverflowError(ArithmeticOverflowError):
    code = 6061
    default_message = "Amount overflows u64"


# ══════════════════════════════════════════════════════════════════════
#  COLLABORATORS
# ══════════════════════════════════════════════════════════════════════

class GovernanceError(VSRException):
    """Governance refused the operation."""
    code = 6070


class WithdrawForbiddenError(GovernanceError):
    code = 6071
    default_message = "Governance forbids withdrawing governing tokens right now"


class CustodyError(VSRException):
    """The custody layer could not execute a transfer."""
    code = 6080


class InsufficientFundsError(CustodyError):
    """Raised when a custody account balance is too low."""
    code = 6081

    def __init__(self, account: str, mint: str, required: int, available: int):
        self.account = account
        self.mint = mint
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient funds in {account} for mint {mint}: "
            f"{available} available, {required} required"
        )
