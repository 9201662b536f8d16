"""
GovBridge TOML Deployment Configuration Loader

Loads the executor deployment settings from a TOML file with environment
variable overrides.

Environment variable mapping:
    [executor] delay         → GOVBRIDGE_DELAY
    [executor] grace_period  → GOVBRIDGE_GRACE_PERIOD
    [executor] minimum_delay → GOVBRIDGE_MINIMUM_DELAY
    [executor] maximum_delay → GOVBRIDGE_MAXIMUM_DELAY
    [executor] guardian      → GOVBRIDGE_GUARDIAN
    [bridge] kind            → GOVBRIDGE_BRIDGE_KIND
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

from ..constants import (
    EXECUTOR_DEFAULT_DELAY_SECONDS,
    EXECUTOR_DEFAULT_GRACE_PERIOD_SECONDS,
    EXECUTOR_DEFAULT_MAXIMUM_DELAY_SECONDS,
    EXECUTOR_DEFAULT_MINIMUM_DELAY_SECONDS,
    GOVBRIDGE_CONFIG_PATH,
    GOVBRIDGE_NETWORK_NAME,
    SUPPORTED_BRIDGE_KINDS,
)
from ..crypto.address import is_valid_address
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

# Identity fields each bridge kind needs.
REQUIRED_BRIDGE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "amb": ("amb", "controller"),
    "polygon": ("fx_root_sender", "fx_child"),
    "optimism": ("messenger", "ethereum_governance_executor"),
    "arbitrum": ("ethereum_governance_executor",),
}


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if not v:
        return None
    try:
        return int(v, 0)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}") from None


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class ExecutorSettings:
    """[executor] section."""
    delay: int = EXECUTOR_DEFAULT_DELAY_SECONDS
    grace_period: int = EXECUTOR_DEFAULT_GRACE_PERIOD_SECONDS
    minimum_delay: int = EXECUTOR_DEFAULT_MINIMUM_DELAY_SECONDS
    maximum_delay: int = EXECUTOR_DEFAULT_MAXIMUM_DELAY_SECONDS
    guardian: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutorSettings":
        return cls(
            delay=data.get("delay", EXECUTOR_DEFAULT_DELAY_SECONDS),
            grace_period=data.get("grace_period", EXECUTOR_DEFAULT_GRACE_PERIOD_SECONDS),
            minimum_delay=data.get("minimum_delay", EXECUTOR_DEFAULT_MINIMUM_DELAY_SECONDS),
            maximum_delay=data.get("maximum_delay", EXECUTOR_DEFAULT_MAXIMUM_DELAY_SECONDS),
            guardian=data.get("guardian", ""),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if (v := _env_int("GOVBRIDGE_DELAY")) is not None:
            self.delay = v
        if (v := _env_int("GOVBRIDGE_GRACE_PERIOD")) is not None:
            self.grace_period = v
        if (v := _env_int("GOVBRIDGE_MINIMUM_DELAY")) is not None:
            self.minimum_delay = v
        if (v := _env_int("GOVBRIDGE_MAXIMUM_DELAY")) is not None:
            self.maximum_delay = v
        if v := os.environ.get("GOVBRIDGE_GUARDIAN"):
            self.guardian = v


@dataclass
class BridgeSettings:
    """[bridge] section; which fields matter depends on ``kind``."""
    kind: str = "amb"
    # amb
    amb: str = ""
    controller: str = ""
    chain_id: int = 1
    # polygon
    fx_root_sender: str = ""
    fx_child: str = ""
    # optimism / arbitrum
    messenger: str = ""
    ethereum_governance_executor: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeSettings":
        chain_id = data.get("chain_id", 1)
        if isinstance(chain_id, str):
            try:
                chain_id = int(chain_id, 0)
            except ValueError:
                raise ConfigurationError(f"Invalid chain_id: {chain_id!r}") from None
        return cls(
            kind=str(data.get("kind", "amb")).lower(),
            amb=data.get("amb", ""),
            controller=data.get("controller", ""),
            chain_id=chain_id,
            fx_root_sender=data.get("fx_root_sender", ""),
            fx_child=data.get("fx_child", ""),
            messenger=data.get("messenger", ""),
            ethereum_governance_executor=data.get("ethereum_governance_executor", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GOVBRIDGE_BRIDGE_KIND"):
            self.kind = v.lower()

    def identity(self) -> Dict[str, Any]:
        """Fields that identify the transport for this kind."""
        result = {
            name: getattr(self, name)
            for name in REQUIRED_BRIDGE_FIELDS.get(self.kind, ())
        }
        if self.kind == "amb":
            result["chain_id"] = self.chain_id
        return result


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass
class DeploymentConfig:
    """Everything needed to deploy one bridge executor."""
    network: str = str(GOVBRIDGE_NETWORK_NAME)
    executor: ExecutorSettings = field(default_factory=ExecutorSettings)
    bridge: BridgeSettings = field(default_factory=BridgeSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        return cls(
            network=data.get("network", str(GOVBRIDGE_NETWORK_NAME)),
            executor=ExecutorSettings.from_dict(data.get("executor", {})),
            bridge=BridgeSettings.from_dict(data.get("bridge", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "DeploymentConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides).
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
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {exc}") from exc

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.executor.apply_env()
        self.bridge.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate the deployment settings.

        Raises:
            ConfigurationError: on invalid config
        """
        ex = self.executor
        for name in ("delay", "grace_period", "minimum_delay", "maximum_delay"):
            value = getattr(ex, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigurationError(f"executor.{name} must be a non-negative integer")
        if ex.minimum_delay > ex.maximum_delay:
            raise ConfigurationError(
                f"minimum_delay {ex.minimum_delay} > maximum_delay {ex.maximum_delay}"
            )
        if not ex.minimum_delay <= ex.delay <= ex.maximum_delay:
            raise ConfigurationError(
                f"delay {ex.delay} outside [{ex.minimum_delay}, {ex.maximum_delay}]"
            )
        if not is_valid_address(ex.guardian):
            raise ConfigurationError(f"Invalid guardian address: {ex.guardian!r}")

        if self.bridge.kind not in SUPPORTED_BRIDGE_KINDS:
            raise ConfigurationError(
                f"Unsupported bridge kind {self.bridge.kind!r} "
                f"(expected one of {', '.join(SUPPORTED_BRIDGE_KINDS)})"
            )
        for name in REQUIRED_BRIDGE_FIELDS[self.bridge.kind]:
            value = getattr(self.bridge, name)
            if not value:
                raise ConfigurationError(f"bridge.{name} is required for kind '{self.bridge.kind}'")
            if not is_valid_address(value):
                raise ConfigurationError(f"Invalid bridge.{name} address: {value!r}")
        if self.bridge.kind == "amb" and not 0 < self.bridge.chain_id < 2 ** 256:
            raise ConfigurationError(f"Invalid bridge.chain_id: {self.bridge.chain_id}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "executor": {
                "delay": self.executor.delay,
                "grace_period": self.executor.grace_period,
                "minimum_delay": self.executor.minimum_delay,
                "maximum_delay": self.executor.maximum_delay,
                "guardian": self.executor.guardian,
            },
            "bridge": {"kind": self.bridge.kind, **self.bridge.identity()},
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> DeploymentConfig:
    """
    Load deployment configuration.

    Resolution order:
        1. Explicit *path* argument
        2. GOVBRIDGE_CONFIG env var
        3. GOVBRIDGE_CONFIG_PATH from .env (default ./govbridge.toml)
    """
    if path is None:
        path = os.environ.get("GOVBRIDGE_CONFIG", str(GOVBRIDGE_CONFIG_PATH))

    return DeploymentConfig.from_file(path)
