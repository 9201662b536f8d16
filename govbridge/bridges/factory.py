"""
Deploy an executor from a :class:`~govbridge.config.DeploymentConfig`.
"""

from ..chain.host import Host
from ..config.loader import DeploymentConfig
from ..constants import DEFAULT_DEPLOYER
from ..exceptions import ConfigurationError
from ..executor.base import BridgeExecutorBase
from ..logger import get_logger
from .executors import (
    AMBBridgeExecutor,
    ArbitrumBridgeExecutor,
    OptimismBridgeExecutor,
    PolygonBridgeExecutor,
)

logger = get_logger(__name__)


def deploy_executor(
    host: Host,
    config: DeploymentConfig,
    deployer: str = DEFAULT_DEPLOYER,
) -> BridgeExecutorBase:
    """Validate *config* and deploy the executor for its bridge kind."""
    config.validate()
    timelock = dict(
        delay=config.executor.delay,
        grace_period=config.executor.grace_period,
        minimum_delay=config.executor.minimum_delay,
        maximum_delay=config.executor.maximum_delay,
        guardian=config.executor.guardian,
        deployer=deployer,
    )
    bridge = config.bridge

    if bridge.kind == "amb":
        executor = AMBBridgeExecutor(
            host,
            amb=bridge.amb,
            controller=bridge.controller,
            chain_id=bridge.chain_id,
            **timelock,
        )
    elif bridge.kind == "polygon":
        executor = PolygonBridgeExecutor(
            host,
            fx_root_sender=bridge.fx_root_sender,
            fx_child=bridge.fx_child,
            **timelock,
        )
    elif bridge.kind == "optimism":
        executor = OptimismBridgeExecutor(
            host,
            messenger=bridge.messenger,
            ethereum_governance_executor=bridge.ethereum_governance_executor,
            **timelock,
        )
    elif bridge.kind == "arbitrum":
        executor = ArbitrumBridgeExecutor(
            host,
            ethereum_governance_executor=bridge.ethereum_governance_executor,
            **timelock,
        )
    else:
        raise ConfigurationError(f"Unsupported bridge kind: {bridge.kind!r}")

    logger.info(f"Deployed {bridge.kind} executor for network '{config.network}' at {executor.address}")
    return executor
