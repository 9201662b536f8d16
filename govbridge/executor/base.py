"""
Bridge Executor: timelocked execution of relayed actions sets.

Implements:
  - Queue: sequential ids, executionTime = now + delay, duplicate detection
  - Lifecycle: Queued / Executed / Canceled / Expired, derived from the clock
  - Execute: all-or-nothing batch of calls and delegatecalls
  - Guardian cancellation
  - Self-amendment: parameter setters callable only by the executor itself

Concrete executors add a transport-specific deliver entry point that hands
an :class:`Envelope` to :meth:`BridgeExecutorBase._admit`.
"""

from typing import Dict, List

from ..chain.contract import CallContext, Contract, external
from ..constants import ACTIONS_SET_RETURN_ABI, DEFAULT_DEPLOYER, ZERO_ADDRESS
from ..crypto.address import normalize_address
from ..exceptions import Revert
from ..logger import get_logger
from .admission import AdmissionGate, Envelope
from .codec import (
    build_call_data,
    decode_actions_set,
    hash_action,
    validate_actions_set,
)
from .errors import (
    ActionsSetAlreadyCanceled,
    ActionsSetNotQueued,
    AdmissionError,
    DelayLongerThanMax,
    DelayShorterThanMin,
    DuplicateAction,
    FailedActionExecution,
    InsufficientBalance,
    InvalidActionsSetId,
    OnlyBeforeExecuted,
    OnlyByGuardian,
    OnlyCallableByThis,
    TimelockNotFinished,
)
from .types import Action, ActionsSet, ActionsSetState, ExecutorConfig

logger = get_logger(__name__)


class BridgeExecutorBase(Contract):
    """
    Timelock executor shared by every bridge variant.

    State:
        config:          delays, guardian and the admission gate
        _actions_sets:   records by id, never deleted
        _queued_actions: action key -> number of queued sets holding it
    """

    def __init__(
        self,
        host,
        delay: int,
        grace_period: int,
        minimum_delay: int,
        maximum_delay: int,
        guardian: str,
        gate: AdmissionGate,
        deployer: str = DEFAULT_DEPLOYER,
    ):
        self._validate_delay(delay, minimum_delay, maximum_delay)
        guardian = normalize_address(guardian)
        super().__init__(host, deployer)

        self.config = ExecutorConfig(
            delay=0,
            grace_period=0,
            minimum_delay=0,
            maximum_delay=0,
            guardian=guardian,
            bridge=gate,
        )
        self._actions_sets: List[ActionsSet] = []
        self._queued_actions: Dict[bytes, int] = {}

        self._set_delay(delay)
        self._set_grace_period(grace_period)
        self._set_minimum_delay(minimum_delay)
        self._set_maximum_delay(maximum_delay)
        self._emit('GuardianUpdate', oldGuardian=ZERO_ADDRESS, newGuardian=guardian)

        logger.info(
            f"{type(self).__name__} deployed at {self.address} "
            f"(delay={delay}s, grace={grace_period}s, "
            f"bounds=[{minimum_delay}s, {maximum_delay}s], guardian={guardian})"
        )

    # ── Admission & queue ─────────────────────────────────────────────

    def _admit(self, envelope: Envelope) -> bytes:
        """Run the admission gate; the payload is returned only if it passes."""
        try:
            return self.config.bridge.validate(envelope)
        except AdmissionError as exc:
            logger.warning(
                f"REJECTED message to {self.address} from {envelope.caller}: "
                f"{exc.error_name}"
            )
            raise

    def _queue_payload(self, ctx: CallContext, payload: bytes) -> int:
        return self._queue(ctx, *decode_actions_set(payload))

    def _queue(
        self,
        ctx: CallContext,
        targets: List[str],
        values: List[int],
        signatures: List[str],
        calldatas: List[bytes],
        with_delegatecalls: List[bool],
    ) -> int:
        """
        Queue an actions set for execution after the current delay.

        Returns:
            The new actions set id
        """
        validate_actions_set(targets, values, signatures, calldatas, with_delegatecalls)

        execution_time = ctx.timestamp + self.config.delay
        keys = []
        for index in range(len(targets)):
            key = hash_action(
                targets[index],
                values[index],
                signatures[index],
                calldatas[index],
                execution_time,
                with_delegatecalls[index],
            )
            if key in keys:
                raise DuplicateAction(f"Action {index} duplicates an earlier action")
            keys.append(key)

        actions_set = ActionsSet(
            id=len(self._actions_sets),
            targets=list(targets),
            values=list(values),
            signatures=list(signatures),
            calldatas=[bytes(c) for c in calldatas],
            with_delegatecalls=list(with_delegatecalls),
            execution_time=execution_time,
        )
        self._actions_sets.append(actions_set)
        for key in keys:
            self._queued_actions[key] = self._queued_actions.get(key, 0) + 1

        self._emit(
            'ActionsSetQueued',
            id=actions_set.id,
            targets=list(actions_set.targets),
            values=list(actions_set.values),
            signatures=list(actions_set.signatures),
            calldatas=list(actions_set.calldatas),
            withDelegatecalls=list(actions_set.with_delegatecalls),
            executionTime=execution_time,
        )
        logger.info(
            f"ActionsSet #{actions_set.id} queued with {len(actions_set)} action(s) "
            f"(executionTime={execution_time})"
        )
        return actions_set.id

    def _release_keys(self, actions_set: ActionsSet) -> None:
        for action in actions_set.actions():
            key = self._action_key(action, actions_set.execution_time)
            remaining = self._queued_actions.get(key, 0) - 1
            if remaining > 0:
                self._queued_actions[key] = remaining
            else:
                self._queued_actions.pop(key, None)

    @staticmethod
    def _action_key(action: Action, execution_time: int) -> bytes:
        return hash_action(
            action.target,
            action.value,
            action.signature,
            action.calldata,
            execution_time,
            action.with_delegatecall,
        )

    # ── Execute / cancel ──────────────────────────────────────────────

    @external("execute(uint256)", returns=("bytes[]",), payable=True)
    def execute(self, ctx: CallContext, actions_set_id: int) -> List[bytes]:
        """
        Execute a queued actions set once its timelock has passed.

        Checks:
            1. id exists
            2. now >= executionTime
            3. state is Queued (not executed, canceled or expired)
        The set is marked executed before any action runs. A failing action
        aborts the whole batch.
        """
        actions_set = self._get(actions_set_id)
        if ctx.timestamp < actions_set.execution_time:
            raise TimelockNotFinished(
                f"ActionsSet #{actions_set_id} executable at {actions_set.execution_time}"
            )
        state = self._state_of(actions_set)
        if state != ActionsSetState.QUEUED:
            raise ActionsSetNotQueued(f"ActionsSet #{actions_set_id} is {state.name}")

        actions_set.executed = True
        self._release_keys(actions_set)

        returned_data = []
        for index, action in enumerate(actions_set.actions()):
            returned_data.append(self._execute_action(ctx, index, action))

        self._emit(
            'ActionsSetExecuted',
            id=actions_set_id,
            initiatorExecution=ctx.sender,
            returnedData=list(returned_data),
        )
        logger.info(f"ActionsSet #{actions_set_id} Executed by {ctx.sender}")
        return returned_data

    def _execute_action(self, ctx: CallContext, index: int, action: Action) -> bytes:
        call_data = build_call_data(action.signature, action.calldata)
        if action.with_delegatecall:
            # delegatecall carries no value; it may only spend what the executor holds
            balance = self.host.balance_of(self.address)
            if balance < action.value:
                raise InsufficientBalance(
                    f"Action {index} needs {action.value}, executor holds {balance}"
                )
        try:
            if action.with_delegatecall:
                return ctx.delegatecall(action.target, call_data)
            return ctx.call(action.target, call_data, value=action.value)
        except Revert as exc:
            raise FailedActionExecution(index, exc) from exc

    @external("cancel(uint256)")
    def cancel(self, ctx: CallContext, actions_set_id: int) -> None:
        """Guardian-only cancellation of a set that has not been executed."""
        if ctx.sender != self.config.guardian:
            raise OnlyByGuardian(f"{ctx.sender} is not the guardian")
        actions_set = self._get(actions_set_id)
        if actions_set.executed:
            raise OnlyBeforeExecuted(f"ActionsSet #{actions_set_id} already executed")
        if actions_set.canceled:
            raise ActionsSetAlreadyCanceled(f"ActionsSet #{actions_set_id}")

        actions_set.canceled = True
        self._release_keys(actions_set)

        self._emit('ActionsSetCanceled', id=actions_set_id)
        logger.warning(f"ActionsSet #{actions_set_id} Canceled by guardian {ctx.sender}")

    @external("receiveFunds()", payable=True)
    def receive_funds(self, ctx: CallContext) -> None:
        logger.debug(f"{self.address} received {ctx.value} from {ctx.sender}")

    # ── Self-amendment ────────────────────────────────────────────────

    def _only_self(self, ctx: CallContext) -> None:
        if ctx.sender != self.address:
            raise OnlyCallableByThis(f"{ctx.sender} is not {self.address}")

    @staticmethod
    def _validate_delay(delay: int, minimum_delay: int, maximum_delay: int) -> None:
        if delay < minimum_delay:
            raise DelayShorterThanMin(f"delay {delay} < minimum {minimum_delay}")
        if delay > maximum_delay:
            raise DelayLongerThanMax(f"delay {delay} > maximum {maximum_delay}")

    @external("updateGuardian(address)")
    def update_guardian(self, ctx: CallContext, guardian: str) -> None:
        self._only_self(ctx)
        old = self.config.guardian
        self.config.guardian = guardian
        self._emit('GuardianUpdate', oldGuardian=old, newGuardian=guardian)
        logger.info(f"Guardian changed: {old} → {guardian}")

    @external("updateDelay(uint256)")
    def update_delay(self, ctx: CallContext, delay: int) -> None:
        self._only_self(ctx)
        self._validate_delay(delay, self.config.minimum_delay, self.config.maximum_delay)
        self._set_delay(delay)

    @external("updateGracePeriod(uint256)")
    def update_grace_period(self, ctx: CallContext, grace_period: int) -> None:
        self._only_self(ctx)
        self._set_grace_period(grace_period)

    @external("updateMinimumDelay(uint256)")
    def update_minimum_delay(self, ctx: CallContext, minimum_delay: int) -> None:
        self._only_self(ctx)
        if self.config.delay < minimum_delay:
            raise DelayShorterThanMin(
                f"current delay {self.config.delay} < new minimum {minimum_delay}"
            )
        self._set_minimum_delay(minimum_delay)

    @external("updateMaximumDelay(uint256)")
    def update_maximum_delay(self, ctx: CallContext, maximum_delay: int) -> None:
        self._only_self(ctx)
        if self.config.delay > maximum_delay:
            raise DelayLongerThanMax(
                f"current delay {self.config.delay} > new maximum {maximum_delay}"
            )
        self._set_maximum_delay(maximum_delay)

    def _set_delay(self, delay: int) -> None:
        old, self.config.delay = self.config.delay, delay
        self._emit('DelayUpdate', oldDelay=old, newDelay=delay)
        logger.info(f"Delay changed: {old}s → {delay}s")

    def _set_grace_period(self, grace_period: int) -> None:
        old, self.config.grace_period = self.config.grace_period, grace_period
        self._emit('GracePeriodUpdate', oldGracePeriod=old, newGracePeriod=grace_period)
        logger.info(f"Grace period changed: {old}s → {grace_period}s")

    def _set_minimum_delay(self, minimum_delay: int) -> None:
        old, self.config.minimum_delay = self.config.minimum_delay, minimum_delay
        self._emit('MinimumDelayUpdate', oldMinimumDelay=old, newMinimumDelay=minimum_delay)
        logger.info(f"Minimum delay changed: {old}s → {minimum_delay}s")

    def _set_maximum_delay(self, maximum_delay: int) -> None:
        old, self.config.maximum_delay = self.config.maximum_delay, maximum_delay
        self._emit('MaximumDelayUpdate', oldMaximumDelay=old, newMaximumDelay=maximum_delay)
        logger.info(f"Maximum delay changed: {old}s → {maximum_delay}s")

    # ── Queries ───────────────────────────────────────────────────────

    def _get(self, actions_set_id: int) -> ActionsSet:
        if not 0 <= actions_set_id < len(self._actions_sets):
            raise InvalidActionsSetId(f"No ActionsSet #{actions_set_id}")
        return self._actions_sets[actions_set_id]

    def _state_of(self, actions_set: ActionsSet) -> ActionsSetState:
        return actions_set.state_at(self.host.timestamp, self.config.grace_period)

    @external("getCurrentState(uint256)", returns=("uint8",), view=True)
    def get_current_state(self, actions_set_id: int) -> ActionsSetState:
        return self._state_of(self._get(actions_set_id))

    @external("getActionsSetById(uint256)", returns=(ACTIONS_SET_RETURN_ABI,), view=True)
    def get_actions_set_by_id(self, actions_set_id: int) -> ActionsSet:
        return self._get(actions_set_id).copy()

    @external("getActionsSetCount()", returns=("uint256",), view=True)
    def get_actions_set_count(self) -> int:
        return len(self._actions_sets)

    @external("getDelay()", returns=("uint256",), view=True)
    def get_delay(self) -> int:
        return self.config.delay

    @external("getGracePeriod()", returns=("uint256",), view=True)
    def get_grace_period(self) -> int:
        return self.config.grace_period

    @external("getMinimumDelay()", returns=("uint256",), view=True)
    def get_minimum_delay(self) -> int:
        return self.config.minimum_delay

    @external("getMaximumDelay()", returns=("uint256",), view=True)
    def get_maximum_delay(self) -> int:
        return self.config.maximum_delay

    @external("getGuardian()", returns=("address",), view=True)
    def get_guardian(self) -> str:
        return self.config.guardian

    @external("isActionQueued(bytes32)", returns=("bool",), view=True)
    def is_action_queued(self, action_hash: bytes) -> bool:
        return self._queued_actions.get(bytes(action_hash), 0) > 0

    # ── Helpers ───────────────────────────────────────────────────────

    def _emit(self, name: str, **args) -> None:
        self.host.emit(self.address, name, args)

    def to_dict(self):
        return {
            "address": self.address,
            "config": self.config.to_dict(),
            "actionsSetCount": len(self._actions_sets),
            "actionsSets": [s.to_dict() for s in self._actions_sets],
        }
