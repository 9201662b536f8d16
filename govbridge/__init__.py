"""
GovBridge Package

Cross-chain governance bridge executors: timelocked queues of actions sets
relayed from a controlling chain.

Core imports are lazily loaded. For direct module access, import from
submodules:

    from govbridge.chain import Host
    from govbridge.bridges import AMBBridgeExecutor, AMBMessenger
    from govbridge.executor import ActionsSetState, encode_actions_set
"""

__version__ = "0.1.0"


# Lazy imports so the logger and .env are only touched when needed
def __getattr__(name):
    """Lazy module loading."""
    if name == 'Host':
        from .chain import Host
        return Host
    elif name == 'BridgeExecutorBase':
        from .executor import BridgeExecutorBase
        return BridgeExecutorBase
    elif name == 'deploy_executor':
        from .bridges import deploy_executor
        return deploy_executor
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'govbridge' has no attribute {name!r}")

__all__ = ['Host', 'BridgeExecutorBase', 'deploy_executor', 'load_config']
