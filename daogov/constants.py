"""
daogov Constants

This module consolidates the global constants and environment configuration
used throughout the package. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from decimal import Decimal
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

GOVERNANCE_DEFAULTS = {
    'DAOGOV_CONFIG':                   'daogov.toml',
    'DAOGOV_DAO_ADDRESS':              '',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW BOUND WHAT A PROPOSAL MAY STORE AND HOW TALLIES ARE
# COMPARED. CHANGING THEM ON A LIVE DEPLOYMENT CHANGES THE OUTCOME OF PROPOSALS
# THAT ARE ALREADY OPEN.

# ==================================================================================
# ARITHMETIC
# ==================================================================================
UINT128_MAX = 2 ** 128 - 1
PERCENT_DECIMAL_PLACES = 18  # Fixed-point precision of percentage thresholds
PERCENT_ONE = Decimal(1)


# ==================================================================================
# PROPOSAL LIMITS
# ==================================================================================
# Maximum encoded size of a stored proposal. Larger proposals could be created
# but not queried back, so they are refused at creation.
MAX_PROPOSAL_SIZE = 64_000

# Maximum number of choices on a multiple choice proposal, excluding the
# automatically appended "None of the above" option.
MAX_NUM_CHOICES = 20
MIN_NUM_CHOICES = 2
NONE_OPTION_DESCRIPTION = "None of the above"

# Page size for list queries when no limit is supplied
DEFAULT_LIMIT = 30


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

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = LOGGER_DEFAULTS | GOVERNANCE_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
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
