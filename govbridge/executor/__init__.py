"""
GovBridge Executor Module

Timelock queue, lifecycle and execution shared by every bridge executor.
"""

from .admission import AdmissionGate, Envelope
from .base import BridgeExecutorBase
from .codec import (
    build_call_data,
    decode_actions_set,
    encode_actions_set,
    hash_action,
    validate_actions_set,
)
from .errors import (
    ActionsSetAlreadyCanceled,
    ActionsSetNotQueued,
    AdmissionError,
    AuthorizationError,
    BridgeExecutorError,
    ConfigValidationError,
    DecodeError,
    DelayLongerThanMax,
    DelayShorterThanMin,
    DuplicateAction,
    EmptyTargets,
    ExecutionError,
    FailedActionExecution,
    InconsistentParamsLength,
    InsufficientBalance,
    InvalidActionsSetId,
    LifecycleError,
    MalformedActionsSet,
    OnlyBeforeExecuted,
    OnlyByGuardian,
    OnlyCallableByThis,
    QueueError,
    TimelockNotFinished,
    UnauthorizedAMB,
    UnauthorizedChainId,
    UnauthorizedChildOrigin,
    UnauthorizedController,
    UnauthorizedEthereumExecutor,
    UnauthorizedMessenger,
    UnauthorizedRootOrigin,
    UnauthorizedTransport,
)
from .types import Action, ActionsSet, ActionsSetState, ExecutorConfig

__all__ = [
    # Model
    "Action",
    "ActionsSet",
    "ActionsSetState",
    "ExecutorConfig",
    # Admission
    "AdmissionGate",
    "Envelope",
    # Executor
    "BridgeExecutorBase",
    # Codec
    "build_call_data",
    "decode_actions_set",
    "encode_actions_set",
    "hash_action",
    "validate_actions_set",
    # Errors
    "ActionsSetAlreadyCanceled",
    "ActionsSetNotQueued",
    "AdmissionError",
    "AuthorizationError",
    "BridgeExecutorError",
    "ConfigValidationError",
    "DecodeError",
    "DelayLongerThanMax",
    "DelayShorterThanMin",
    "DuplicateAction",
    "EmptyTargets",
    "ExecutionError",
    "FailedActionExecution",
    "InconsistentParamsLength",
    "InsufficientBalance",
    "InvalidActionsSetId",
    "LifecycleError",
    "MalformedActionsSet",
    "OnlyBeforeExecuted",
    "OnlyByGuardian",
    "OnlyCallableByThis",
    "QueueError",
    "TimelockNotFinished",
    "UnauthorizedAMB",
    "UnauthorizedChainId",
    "UnauthorizedChildOrigin",
    "UnauthorizedController",
    "UnauthorizedEthereumExecutor",
    "UnauthorizedMessenger",
    "UnauthorizedRootOrigin",
    "UnauthorizedTransport",
]
