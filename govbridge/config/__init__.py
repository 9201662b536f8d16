"""
GovBridge Deployment Configuration

Loads the [executor] and [bridge] sections of a TOML file.
Environment variables override TOML values.
"""

from .loader import (
    REQUIRED_BRIDGE_FIELDS,
    BridgeSettings,
    DeploymentConfig,
    ExecutorSettings,
    load_config,
)

__all__ = [
    "REQUIRED_BRIDGE_FIELDS",
    "BridgeSettings",
    "DeploymentConfig",
    "ExecutorSettings",
    "load_config",
]
