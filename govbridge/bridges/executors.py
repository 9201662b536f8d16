"""
Concrete bridge executors.

Each executor adds the deliver entry point of its transport and the setters
for its bridge identity. Setters are self-only: they can be reached only
by queuing an actions set that targets the executor itself.
"""

from abc import ABC, abstractmethod
from typing import List, Union

from eth_abi.exceptions import DecodingError

from ..chain.contract import CallContext, external, from_abi
from ..constants import DEFAULT_DEPLOYER, ZERO_ADDRESS
from ..crypto.encoding import decode_result, encode_call
from ..exceptions import Revert
from ..executor.admission import Envelope
from ..executor.base import BridgeExecutorBase
from ..executor.codec import encode_actions_set
from ..logger import get_logger
from .gates import AMBGate, ArbitrumGate, FxPortalGate, OptimismGate, to_bytes32

logger = get_logger(__name__)


def read_origin(ctx: CallContext, signature: str, abi_type: str):
    """
    Ask the calling transport for a field of the message it is relaying.

    Returns ``None`` when the caller is not a contract or cannot answer.
    """
    if not ctx.host.is_contract(ctx.sender):
        return None
    try:
        output = ctx.static_call(ctx.sender, encode_call(signature))
        (value,) = decode_result((abi_type,), output)
    except (Revert, DecodingError):
        return None
    return from_abi(abi_type, value)


# ══════════════════════════════════════════════════════════════════════
#  ARBITRARY MESSAGE BRIDGE (Gnosis Chain)
# ══════════════════════════════════════════════════════════════════════

class AMBBridgeExecutor(BridgeExecutorBase):
    """Executor fed by an arbitrary message bridge endpoint."""

    def __init__(
        self,
        host,
        amb: str,
        controller: str,
        chain_id: Union[int, bytes],
        delay: int,
        grace_period: int,
        minimum_delay: int,
        maximum_delay: int,
        guardian: str,
        deployer: str = DEFAULT_DEPLOYER,
    ):
        gate = AMBGate(amb=amb, controller=controller, chain_id=chain_id)
        super().__init__(
            host, delay, grace_period, minimum_delay, maximum_delay,
            guardian, gate, deployer=deployer,
        )
        self._emit('AmbAddressUpdated', oldAmbAddress=ZERO_ADDRESS, newAmbAddress=gate.amb)
        self._emit('ControllerUpdated', oldController=ZERO_ADDRESS, newController=gate.controller)
        self._emit('ChainIdUpdated', oldChainId=bytes(32), newChainId=gate.chain_id)

    @external("processMessageFromAMB(bytes)")
    def process_message_from_amb(self, ctx: CallContext, data: bytes) -> None:
        envelope = Envelope(
            caller=ctx.sender,
            payload=data,
            origin_chain_id=read_origin(ctx, "messageSourceChainId()", "bytes32"),
            origin_sender=read_origin(ctx, "messageSender()", "address"),
        )
        self._queue_payload(ctx, self._admit(envelope))

    @external("setAmb(address)")
    def set_amb(self, ctx: CallContext, amb: str) -> None:
        self._only_self(ctx)
        old, self.config.bridge.amb = self.config.bridge.amb, amb
        self._emit('AmbAddressUpdated', oldAmbAddress=old, newAmbAddress=amb)
        logger.info(f"AMB changed: {old} → {amb}")

    @external("setController(address)")
    def set_controller(self, ctx: CallContext, controller: str) -> None:
        self._only_self(ctx)
        old, self.config.bridge.controller = self.config.bridge.controller, controller
        self._emit('ControllerUpdated', oldController=old, newController=controller)
        logger.info(f"Controller changed: {old} → {controller}")

    @external("setChainId(bytes32)")
    def set_chain_id(self, ctx: CallContext, chain_id: bytes) -> None:
        self._only_self(ctx)
        chain_id = to_bytes32(chain_id)
        old, self.config.bridge.chain_id = self.config.bridge.chain_id, chain_id
        self._emit('ChainIdUpdated', oldChainId=old, newChainId=chain_id)
        logger.info(f"Chain id changed: 0x{old.hex()} → 0x{chain_id.hex()}")

    @external("amb()", returns=("address",), view=True)
    def amb(self) -> str:
        return self.config.bridge.amb

    @external("controller()", returns=("address",), view=True)
    def controller(self) -> str:
        return self.config.bridge.controller

    @external("chainId()", returns=("bytes32",), view=True)
    def chain_id(self) -> bytes:
        return self.config.bridge.chain_id


# ══════════════════════════════════════════════════════════════════════
#  POLYGON FX PORTAL
# ══════════════════════════════════════════════════════════════════════

class PolygonBridgeExecutor(BridgeExecutorBase):
    """Executor fed by the FxPortal child tunnel."""

    def __init__(
        self,
        host,
        fx_root_sender: str,
        fx_child: str,
        delay: int,
        grace_period: int,
        minimum_delay: int,
        maximum_delay: int,
        guardian: str,
        deployer: str = DEFAULT_DEPLOYER,
    ):
        gate = FxPortalGate(fx_child=fx_child, fx_root_sender=fx_root_sender)
        super().__init__(
            host, delay, grace_period, minimum_delay, maximum_delay,
            guardian, gate, deployer=deployer,
        )
        self._emit('FxRootSenderUpdate', oldFxRootSender=ZERO_ADDRESS, newFxRootSender=gate.fx_root_sender)
        self._emit('FxChildUpdate', oldFxChild=ZERO_ADDRESS, newFxChild=gate.fx_child)

    @external("processMessageFromRoot(uint256,address,bytes)")
    def process_message_from_root(
        self,
        ctx: CallContext,
        state_id: int,
        root_message_sender: str,
        data: bytes,
    ) -> None:
        envelope = Envelope(caller=ctx.sender, payload=data, origin_sender=root_message_sender)
        actions_set_id = self._queue_payload(ctx, self._admit(envelope))
        logger.debug(f"State #{state_id} queued as ActionsSet #{actions_set_id}")

    @external("updateFxRootSender(address)")
    def update_fx_root_sender(self, ctx: CallContext, fx_root_sender: str) -> None:
        self._only_self(ctx)
        old, self.config.bridge.fx_root_sender = self.config.bridge.fx_root_sender, fx_root_sender
        self._emit('FxRootSenderUpdate', oldFxRootSender=old, newFxRootSender=fx_root_sender)
        logger.info(f"FxRootSender changed: {old} → {fx_root_sender}")

    @external("updateFxChild(address)")
    def update_fx_child(self, ctx: CallContext, fx_child: str) -> None:
        self._only_self(ctx)
        old, self.config.bridge.fx_child = self.config.bridge.fx_child, fx_child
        self._emit('FxChildUpdate', oldFxChild=old, newFxChild=fx_child)
        logger.info(f"FxChild changed: {old} → {fx_child}")

    @external("getFxRootSender()", returns=("address",), view=True)
    def get_fx_root_sender(self) -> str:
        return self.config.bridge.fx_root_sender

    @external("getFxChild()", returns=("address",), view=True)
    def get_fx_child(self) -> str:
        return self.config.bridge.fx_child


# ══════════════════════════════════════════════════════════════════════
#  L2 ROLLUPS
# ══════════════════════════════════════════════════════════════════════

class L2BridgeExecutor(BridgeExecutorBase, ABC):
    """
    Rollup executors: the L1 governance executor calls ``queue`` directly
    through the rollup's messaging, so the actions set arrives ABI-decoded.
    """

    @abstractmethod
    def _envelope(self, ctx: CallContext, payload: bytes) -> Envelope:
        """Wrap a queued payload with the transport fields the gate checks."""

    @external("queue(address[],uint256[],string[],bytes[],bool[])")
    def queue(
        self,
        ctx: CallContext,
        targets: List[str],
        values: List[int],
        signatures: List[str],
        calldatas: List[bytes],
        with_delegatecalls: List[bool],
    ) -> None:
        payload = encode_actions_set(targets, values, signatures, calldatas, with_delegatecalls)
        self._queue_payload(ctx, self._admit(self._envelope(ctx, payload)))

    @external("updateEthereumGovernanceExecutor(address)")
    def update_ethereum_governance_executor(self, ctx: CallContext, executor: str) -> None:
        self._only_self(ctx)
        old = self.config.bridge.ethereum_governance_executor
        self.config.bridge.ethereum_governance_executor = executor
        self._emit(
            'EthereumGovernanceExecutorUpdate',
            oldEthereumGovernanceExecutor=old,
            newEthereumGovernanceExecutor=executor,
        )
        logger.info(f"Ethereum governance executor changed: {old} → {executor}")

    @external("getEthereumGovernanceExecutor()", returns=("address",), view=True)
    def get_ethereum_governance_executor(self) -> str:
        return self.config.bridge.ethereum_governance_executor

    def _announce_identity(self) -> None:
        self._emit(
            'EthereumGovernanceExecutorUpdate',
            oldEthereumGovernanceExecutor=ZERO_ADDRESS,
            newEthereumGovernanceExecutor=self.config.bridge.ethereum_governance_executor,
        )


class OptimismBridgeExecutor(L2BridgeExecutor):
    """Executor fed by the L2 cross-domain messenger."""

    def __init__(
        self,
        host,
        messenger: str,
        ethereum_governance_executor: str,
        delay: int,
        grace_period: int,
        minimum_delay: int,
        maximum_delay: int,
        guardian: str,
        deployer: str = DEFAULT_DEPLOYER,
    ):
        gate = OptimismGate(
            messenger=messenger,
            ethereum_governance_executor=ethereum_governance_executor,
        )
        super().__init__(
            host, delay, grace_period, minimum_delay, maximum_delay,
            guardian, gate, deployer=deployer,
        )
        self._announce_identity()

    def _envelope(self, ctx: CallContext, payload: bytes) -> Envelope:
        return Envelope(
            caller=ctx.sender,
            payload=payload,
            origin_sender=read_origin(ctx, "xDomainMessageSender()", "address"),
        )

    @external("getMessenger()", returns=("address",), view=True)
    def get_messenger(self) -> str:
        return self.config.bridge.messenger


class ArbitrumBridgeExecutor(L2BridgeExecutor):
    """Executor fed by retryable tickets from the aliased L1 executor."""

    def __init__(
        self,
        host,
        ethereum_governance_executor: str,
        delay: int,
        grace_period: int,
        minimum_delay: int,
        maximum_delay: int,
        guardian: str,
        deployer: str = DEFAULT_DEPLOYER,
    ):
        gate = ArbitrumGate(ethereum_governance_executor=ethereum_governance_executor)
        super().__init__(
            host, delay, grace_period, minimum_delay, maximum_delay,
            guardian, gate, deployer=deployer,
        )
        self._announce_identity()

    def _envelope(self, ctx: CallContext, payload: bytes) -> Envelope:
        return Envelope(caller=ctx.sender, payload=payload)
