"""
GovBridge Constants

Protocol constants of the bridge executors and the process settings read
from ``.env``. Settings are resolved once at import; each keeps its default
reachable through ``.default()``.
"""

from dotenv import dotenv_values

# =============================================================================
# TIMELOCK DEFAULTS (seconds)
# =============================================================================
# Values of the reference Gnosis Chain deployment.
EXECUTOR_DEFAULT_DELAY_SECONDS = 172_800         # 2 days
EXECUTOR_DEFAULT_GRACE_PERIOD_SECONDS = 259_200  # 3 days
EXECUTOR_DEFAULT_MINIMUM_DELAY_SECONDS = 28_800  # 8 hours
EXECUTOR_DEFAULT_MAXIMUM_DELAY_SECONDS = 604_800 # 7 days


# =============================================================================
# ACTIONS SET WIRE FORMAT
# =============================================================================
# abi.encode(targets, values, signatures, calldatas, withDelegatecalls)
ACTIONS_SET_ABI_TYPES = ('address[]', 'uint256[]', 'string[]', 'bytes[]', 'bool[]')

# Fields hashed into an action key, in order.
ACTION_KEY_ABI_TYPES = ('address', 'uint256', 'string', 'bytes', 'uint256', 'bool')

# getActionsSetById return tuple
ACTIONS_SET_RETURN_ABI = '(address[],uint256[],string[],bytes[],bool[],uint256,bool,bool)'


# =============================================================================
# BRIDGES
# =============================================================================
# Arbitrum rewrites the sender of L1 → L2 retryable tickets by this offset.
L1_TO_L2_ALIAS_OFFSET = 0x1111000000000000000000000000000000001111

# Polygon state-sync system caller for FxChild.onStateReceive
STATE_SYNC_SYSTEM_ADDRESS = '0x0000000000000000000000000000000000001001'

# Optimism messenger placeholder while no message is being relayed
DEFAULT_L2_SENDER = '0x000000000000000000000000000000000000dEaD'

SUPPORTED_BRIDGE_KINDS = ('amb', 'polygon', 'optimism', 'arbitrum')


# =============================================================================
# HOST
# =============================================================================
MAX_CALL_DEPTH = 64
ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
DEFAULT_DEPLOYER = '0x00000000000000000000000000000000000D3910'


# =============================================================================
# SETTINGS (.env)
# =============================================================================
class ConfigString(str):
    """A setting value that remembers its default."""

    def __new__(cls, value, default):
        obj = super().__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default


class ConfigBool(int):
    """Boolean setting; an ``int`` subclass because ``bool`` cannot be."""

    def __new__(cls, value, default):
        obj = super().__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return repr(bool(self))

    __str__ = __repr__

    def __eq__(self, other):
        return bool(self) == other

    def __hash__(self):
        return hash(bool(self))


def _as_bool(raw):
    """``True``/``False`` in any casing, else ``None``."""
    text = str(raw).strip().lower()
    return {"true": True, "false": False}.get(text)


def _setting(env, key, default):
    raw = env.get(key)
    if raw is None:
        raw = default
    default_flag = _as_bool(default)
    if default_flag is not None:
        flag = _as_bool(raw)
        return ConfigBool(default_flag if flag is None else flag, default_flag)
    return ConfigString(raw, default)


_env = dotenv_values(".env")

GOVBRIDGE_CONFIG_PATH = _setting(_env, 'GOVBRIDGE_CONFIG_PATH', 'govbridge.toml')
GOVBRIDGE_NETWORK_NAME = _setting(_env, 'GOVBRIDGE_NETWORK_NAME', 'local')

LOG_LEVEL = _setting(_env, 'LOG_LEVEL', 'INFO')
LOG_FORMAT = _setting(_env, 'LOG_FORMAT', '%(asctime)s - %(levelname)s - %(name)s - %(message)s')
LOG_DATE_FORMAT = _setting(_env, 'LOG_DATE_FORMAT', '%Y-%m-%dT%H:%M:%S')
LOG_CONSOLE_HIGHLIGHTING = _setting(_env, 'LOG_CONSOLE_HIGHLIGHTING', 'True')
LOG_FILE_OUTPUT = _setting(_env, 'LOG_FILE_OUTPUT', 'False')
LOG_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5
