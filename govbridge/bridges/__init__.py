"""
GovBridge Bridges Module

Admission gates, concrete executors and local transport endpoints for the
AMB, Polygon FxPortal, Optimism and Arbitrum bridges.
"""

from .executors import (
    AMBBridgeExecutor,
    ArbitrumBridgeExecutor,
    L2BridgeExecutor,
    OptimismBridgeExecutor,
    PolygonBridgeExecutor,
)
from .factory import deploy_executor
from .gates import AMBGate, ArbitrumGate, FxPortalGate, OptimismGate, to_bytes32
from .transports import (
    AMBMessenger,
    FxChild,
    InvalidSender,
    L2CrossDomainMessenger,
    MalformedMessage,
    MessageAlreadyRelayed,
    NotRelaying,
    TransportError,
)

__all__ = [
    # Executors
    "AMBBridgeExecutor",
    "ArbitrumBridgeExecutor",
    "L2BridgeExecutor",
    "OptimismBridgeExecutor",
    "PolygonBridgeExecutor",
    "deploy_executor",
    # Gates
    "AMBGate",
    "ArbitrumGate",
    "FxPortalGate",
    "OptimismGate",
    "to_bytes32",
    # Transports
    "AMBMessenger",
    "FxChild",
    "InvalidSender",
    "L2CrossDomainMessenger",
    "MalformedMessage",
    "MessageAlreadyRelayed",
    "NotRelaying",
    "TransportError",
]
