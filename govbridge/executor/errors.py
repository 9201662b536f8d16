"""
Bridge executor error taxonomy.

Every error is raised where it is detected and aborts the enclosing frame,
so a failing operation never leaves partial state behind.
"""

from typing import Optional

from ..exceptions import Revert


class BridgeExecutorError(Revert):
    """Base class for executor reverts."""


# ══════════════════════════════════════════════════════════════════════
#  ADMISSION
# ══════════════════════════════════════════════════════════════════════

class AdmissionError(BridgeExecutorError):
    """Inbound message failed origin validation."""


class UnauthorizedTransport(AdmissionError):
    """Caller is not the registered transport endpoint."""


class UnauthorizedAMB(UnauthorizedTransport):
    pass


class UnauthorizedChildOrigin(UnauthorizedTransport):
    pass


class UnauthorizedMessenger(UnauthorizedTransport):
    pass


class UnauthorizedChainId(AdmissionError):
    """Declared origin chain id differs from the configured one."""


class UnauthorizedController(AdmissionError):
    """Declared origin sender is not the configured controller."""


class UnauthorizedRootOrigin(UnauthorizedController):
    pass


class UnauthorizedEthereumExecutor(UnauthorizedController):
    pass


# ══════════════════════════════════════════════════════════════════════
#  DECODE / QUEUE
# ══════════════════════════════════════════════════════════════════════

class DecodeError(BridgeExecutorError):
    """Payload is not a valid actions set."""


class EmptyTargets(DecodeError):
    pass


class InconsistentParamsLength(DecodeError):
    pass


class MalformedActionsSet(DecodeError):
    """Payload bytes are not abi(address[],uint256[],string[],bytes[],bool[])."""


class QueueError(BridgeExecutorError):
    pass


class DuplicateAction(QueueError):
    pass


# ══════════════════════════════════════════════════════════════════════
#  LIFECYCLE / AUTHORIZATION
# ══════════════════════════════════════════════════════════════════════

class LifecycleError(BridgeExecutorError):
    pass


class InvalidActionsSetId(LifecycleError):
    pass


class TimelockNotFinished(LifecycleError):
    pass


class ActionsSetNotQueued(LifecycleError):
    """Set is executed, canceled or expired."""


class ActionsSetAlreadyCanceled(LifecycleError):
    pass


class AuthorizationError(BridgeExecutorError):
    pass


class OnlyCallableByThis(AuthorizationError):
    """Setter reached from anywhere but the executor's own execution."""


class OnlyByGuardian(AuthorizationError):
    pass


class OnlyBeforeExecuted(AuthorizationError):
    pass


# ══════════════════════════════════════════════════════════════════════
#  CONFIGURATION / EXECUTION
# ══════════════════════════════════════════════════════════════════════

class ConfigValidationError(BridgeExecutorError):
    pass


class DelayShorterThanMin(ConfigValidationError):
    pass


class DelayLongerThanMax(ConfigValidationError):
    pass


class ExecutionError(BridgeExecutorError):
    pass


class InsufficientBalance(ExecutionError):
    """Delegated action value exceeds the executor balance."""


class FailedActionExecution(ExecutionError):
    """
    A sub-call of an executing actions set failed.

    Attributes:
        index:  position of the failing action
        reason: the sub-call's exception
    """

    def __init__(self, index: int, reason: Optional[BaseException] = None):
        self.index = index
        self.reason = reason
        detail = f"{type(reason).__name__}: {reason}" if reason is not None else "no reason"
        super().__init__(f"Action {index} failed ({detail})")
