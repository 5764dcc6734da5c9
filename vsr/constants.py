"""
VSR Constants

This module consolidates the protocol constants of the voter stake registry
and the environment configuration used by the ambient services (logging,
config discovery). Constants are organized by category for easy reference.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

REGISTRY_DEFAULTS = {
    'VSR_CONFIG':                      'config.toml',
    'VSR_DEBUG_GOVERNANCE_PROGRAM_ID': 'GovernanceProgramTest1111111111111111111111',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_ENABLED':                'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW DEFINE HOW DEPOSITS VEST AND HOW VOTE WEIGHT IS
# COMPUTED. CHANGING THEM ON A LIVE REGISTRAR CHANGES THE MEANING OF EVERY
# STORED LOCKUP.

# ==================================================================================
# INTEGER LIMITS
# ==================================================================================
U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
U32_MAX = 2**32 - 1


# ==================================================================================
# LOCKUP PARAMETERS
# ==================================================================================
SECS_PER_DAY = 86_400
SECS_PER_MONTH = 365 * SECS_PER_DAY // 12  # 2_628_000

# Upper bound on the number of periods a single lockup may span
MAX_LOCKUP_PERIODS = U32_MAX

# Deposits may not be scheduled to start further than this in the future
MAX_LOCKUP_IN_FUTURE_SECS = 100 * 365 * 24 * 60 * 60


# ==================================================================================
# VOTE WEIGHT PARAMETERS
# ==================================================================================
# Scaled factors are parts per billion: 1_000_000_000 == 1.0
SCALED_FACTOR_BASE = 1_000_000_000

# Bounds of the signed power-of-ten normalization applied per voting mint
MIN_DIGIT_SHIFT = -127
MAX_DIGIT_SHIFT = 127


# ==================================================================================
# ACCOUNT CAPACITIES
# ==================================================================================
MAX_VOTING_MINTS = 4
MAX_DEPOSIT_ENTRIES = 32

# log_voter_info reports at most this many deposit entries per call
MAX_DEPOSIT_ENTRIES_OUTPUT = 16


# ==================================================================================
# IDENTITIES
# ==================================================================================
# Unset identity (the equivalent of an all-zero public key)
DEFAULT_ADDRESS = ''

REGISTRAR_SEED = 'registrar'
VOTER_SEED = 'voter'
VAULT_SEED = 'vault'
VOTER_WEIGHT_RECORD_SEED = 'voter-weight-record'


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    def __hash__(self):
        return hash(bool(self))


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = REGISTRY_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Leaves every other value untouched.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)

DEBUG_GOVERNANCE_PROGRAM_ID = str(namespace['VSR_DEBUG_GOVERNANCE_PROGRAM_ID'])
