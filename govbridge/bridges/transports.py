"""
Local transport endpoints.

In-process stand-ins for the bridge contracts that deliver governance
messages on the destination chain. They reproduce what the executors
observe from each transport: who calls the executor and which origin
fields the transport declares.
"""

from typing import Set

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from ..chain.contract import CallContext, Contract, external
from ..constants import (
    DEFAULT_DEPLOYER,
    DEFAULT_L2_SENDER,
    STATE_SYNC_SYSTEM_ADDRESS,
    ZERO_ADDRESS,
)
from ..crypto.address import apply_l1_to_l2_alias, normalize_address
from ..crypto.encoding import encode_call
from ..crypto.hashing import keccak256
from ..exceptions import Revert
from ..logger import get_logger

logger = get_logger(__name__)


class TransportError(Revert):
    """Base class for transport endpoint reverts."""


class InvalidSender(TransportError):
    pass


class MalformedMessage(TransportError):
    pass


class MessageAlreadyRelayed(TransportError):
    pass


class NotRelaying(TransportError):
    """xDomainMessageSender queried outside of a relay."""


# ══════════════════════════════════════════════════════════════════════
#  ARBITRARY MESSAGE BRIDGE
# ══════════════════════════════════════════════════════════════════════

class AMBMessenger(Contract):
    """
    Destination side of an arbitrary message bridge.

    While a message is delivered, ``messageSender()`` and
    ``messageSourceChainId()`` describe its origin.
    """

    def __init__(self, host, deployer: str = DEFAULT_DEPLOYER):
        super().__init__(host, deployer)
        self._message_sender = ZERO_ADDRESS
        self._source_chain_id = bytes(32)

    @external("messageSender()", returns=("address",), view=True)
    def message_sender(self) -> str:
        return self._message_sender

    @external("messageSourceChainId()", returns=("bytes32",), view=True)
    def message_source_chain_id(self) -> bytes:
        return self._source_chain_id

    @external("setMessageSender(address)")
    def set_message_sender(self, ctx: CallContext, sender: str) -> None:
        self._message_sender = sender

    @external("setMessageSourceChainId(bytes32)")
    def set_message_source_chain_id(self, ctx: CallContext, chain_id: bytes) -> None:
        self._source_chain_id = bytes(chain_id)

    @external("redirect(address,bytes)")
    def redirect(self, ctx: CallContext, target: str, data: bytes) -> None:
        """Call *target* with the currently declared origin."""
        ctx.call(target, data)

    @external("deliver(address,bytes32,address,bytes)")
    def deliver(
        self,
        ctx: CallContext,
        sender: str,
        chain_id: bytes,
        target: str,
        data: bytes,
    ) -> None:
        """Relay one message: declare its origin, call *target*, clear the origin."""
        previous = (self._message_sender, self._source_chain_id)
        self._message_sender, self._source_chain_id = sender, bytes(chain_id)
        ctx.call(target, data)
        self._message_sender, self._source_chain_id = previous
        logger.debug(f"AMB delivered message from {sender} to {target}")


# ══════════════════════════════════════════════════════════════════════
#  POLYGON FX CHILD
# ══════════════════════════════════════════════════════════════════════

class FxChild(Contract):
    """
    Child end of the FxPortal tunnel.

    State-sync data is ``abi.encode(address rootMessageSender, address
    receiver, bytes data)``; the receiver gets
    ``processMessageFromRoot(stateId, rootMessageSender, data)``.
    """

    def __init__(
        self,
        host,
        system_caller: str = STATE_SYNC_SYSTEM_ADDRESS,
        deployer: str = DEFAULT_DEPLOYER,
    ):
        super().__init__(host, deployer)
        self.system_caller = normalize_address(system_caller)

    @external("onStateReceive(uint256,bytes)")
    def on_state_receive(self, ctx: CallContext, state_id: int, data: bytes) -> None:
        if ctx.sender != self.system_caller:
            raise InvalidSender(f"{ctx.sender} is not the state sync system caller")
        try:
            root_sender, receiver, payload = decode(['address', 'address', 'bytes'], data)
        except (DecodingError, ValueError) as exc:
            raise MalformedMessage(str(exc)) from exc
        root_sender = normalize_address(root_sender)
        receiver = normalize_address(receiver)

        ctx.emit('NewFxMessage', rootMessageSender=root_sender, receiver=receiver, data=payload)
        ctx.call(
            receiver,
            encode_call("processMessageFromRoot(uint256,address,bytes)", state_id, root_sender, payload),
        )

    @staticmethod
    def encode_state(root_sender: str, receiver: str, payload: bytes) -> bytes:
        return encode(['address', 'address', 'bytes'], [root_sender, receiver, payload])


# ══════════════════════════════════════════════════════════════════════
#  OPTIMISM L2 MESSENGER
# ══════════════════════════════════════════════════════════════════════

class L2CrossDomainMessenger(Contract):
    """
    L2 side of the Optimism messenger.

    Only the aliased L1 messenger may relay; during a relay
    ``xDomainMessageSender()`` returns the L1 sender of the message.
    """

    def __init__(self, host, l1_messenger: str, deployer: str = DEFAULT_DEPLOYER):
        super().__init__(host, deployer)
        self.l1_messenger = normalize_address(l1_messenger)
        self._x_domain_sender = DEFAULT_L2_SENDER
        self._relayed: Set[bytes] = set()

    @property
    def relayer(self) -> str:
        return apply_l1_to_l2_alias(self.l1_messenger)

    @external("xDomainMessageSender()", returns=("address",), view=True)
    def x_domain_message_sender(self) -> str:
        if self._x_domain_sender == DEFAULT_L2_SENDER:
            raise NotRelaying("xDomainMessageSender is not set")
        return self._x_domain_sender

    @external("relayMessage(address,address,bytes,uint256)")
    def relay_message(
        self,
        ctx: CallContext,
        target: str,
        sender: str,
        message: bytes,
        message_nonce: int,
    ) -> None:
        if ctx.sender != self.relayer:
            raise InvalidSender(f"{ctx.sender} is not the aliased L1 messenger")
        message_hash = keccak256(encode_call(
            "relayMessage(address,address,bytes,uint256)",
            target, sender, message, message_nonce,
        ))
        if message_hash in self._relayed:
            raise MessageAlreadyRelayed('0x' + message_hash.hex())

        self._x_domain_sender = sender
        ctx.call(target, message)
        self._x_domain_sender = DEFAULT_L2_SENDER
        self._relayed.add(message_hash)

        ctx.emit('RelayedMessage', msgHash=message_hash)
