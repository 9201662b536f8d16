"""
Actions set data model.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .admission import AdmissionGate


class ActionsSetState(IntEnum):
    """Lifecycle state of an actions set, derived from its record and the clock."""
    QUEUED = 0
    EXECUTED = 1
    CANCELED = 2
    EXPIRED = 3


@dataclass(frozen=True)
class Action:
    """One call of an actions set."""
    target: str
    value: int
    signature: str
    calldata: bytes
    with_delegatecall: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "value": self.value,
            "signature": self.signature,
            "calldata": '0x' + self.calldata.hex(),
            "withDelegatecall": self.with_delegatecall,
        }


@dataclass
class ActionsSet:
    """
    A batch of calls queued together.

    Attributes:
        id:                 Sequential id assigned at queue time
        targets:            Call targets
        values:             Native value per call
        signatures:         Function signatures ('' = calldata is already encoded)
        calldatas:          Argument bytes per call
        with_delegatecalls: Delegate flag per call
        execution_time:     Earliest execution timestamp
        executed:           Set once by execute
        canceled:           Set once by cancel
    """
    id: int
    targets: List[str]
    values: List[int]
    signatures: List[str]
    calldatas: List[bytes]
    with_delegatecalls: List[bool]
    execution_time: int
    executed: bool = False
    canceled: bool = False

    def __len__(self) -> int:
        return len(self.targets)

    def actions(self) -> List[Action]:
        return [
            Action(t, v, s, c, d)
            for t, v, s, c, d in zip(
                self.targets,
                self.values,
                self.signatures,
                self.calldatas,
                self.with_delegatecalls,
            )
        ]

    def state_at(self, now: int, grace_period: int) -> ActionsSetState:
        if self.canceled:
            return ActionsSetState.CANCELED
        if self.executed:
            return ActionsSetState.EXECUTED
        if now >= self.execution_time + grace_period:
            return ActionsSetState.EXPIRED
        return ActionsSetState.QUEUED

    def copy(self) -> "ActionsSet":
        return replace(
            self,
            targets=list(self.targets),
            values=list(self.values),
            signatures=list(self.signatures),
            calldatas=list(self.calldatas),
            with_delegatecalls=list(self.with_delegatecalls),
        )

    def to_abi(self) -> Tuple:
        """Tuple matching ``ACTIONS_SET_RETURN_ABI``."""
        return (
            list(self.targets),
            list(self.values),
            list(self.signatures),
            list(self.calldatas),
            list(self.with_delegatecalls),
            self.execution_time,
            self.executed,
            self.canceled,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "actions": [a.to_dict() for a in self.actions()],
            "executionTime": self.execution_time,
            "executed": self.executed,
            "canceled": self.canceled,
        }


@dataclass
class ExecutorConfig:
    """
    Timelock parameters and bridge identity owned by an executor.

    Invariant: minimum_delay <= delay <= maximum_delay.
    """
    delay: int
    grace_period: int
    minimum_delay: int
    maximum_delay: int
    guardian: str
    bridge: Optional["AdmissionGate"] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delay": self.delay,
            "gracePeriod": self.grace_period,
            "minimumDelay": self.minimum_delay,
            "maximumDelay": self.maximum_delay,
            "guardian": self.guardian,
            "bridge": self.bridge.to_dict() if self.bridge is not None else None,
        }
