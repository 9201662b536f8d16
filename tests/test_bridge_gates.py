"""
Bridge Admission Test Suite

Coverage:
  - Gate validation order for every transport
  - AMB:      endpoint, chain id, controller; redirect; identity setters
  - Polygon:  FxChild state sync, root sender; identity setters
  - Optimism: aliased L1 messenger relay, xDomain sender, replay protection
  - Arbitrum: aliased Ethereum governance executor
  - Rejected messages leave the queue untouched
"""

import os
import sys

import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govbridge.bridges import (
    AMBBridgeExecutor,
    AMBGate,
    AMBMessenger,
    ArbitrumBridgeExecutor,
    ArbitrumGate,
    FxChild,
    FxPortalGate,
    InvalidSender,
    L2BridgeExecutor,
    L2CrossDomainMessenger,
    MalformedMessage,
    MessageAlreadyRelayed,
    NotRelaying,
    OptimismBridgeExecutor,
    OptimismGate,
    PolygonBridgeExecutor,
    to_bytes32,
)
from govbridge.chain import Host
from govbridge.constants import STATE_SYNC_SYSTEM_ADDRESS
from govbridge.crypto import apply_l1_to_l2_alias, encode_call
from govbridge.executor import (
    ActionsSetState,
    Envelope,
    OnlyCallableByThis,
    UnauthorizedAMB,
    UnauthorizedChainId,
    UnauthorizedChildOrigin,
    UnauthorizedController,
    UnauthorizedEthereumExecutor,
    UnauthorizedMessenger,
    UnauthorizedRootOrigin,
    UnauthorizedTransport,
    encode_actions_set,
)

T0 = 1_700_000_000
DELAY = 50
TIMELOCK = dict(delay=DELAY, grace_period=1000, minimum_delay=1, maximum_delay=100)

CONTROLLER = to_checksum_address("0x" + "c0" * 20)
GUARDIAN = to_checksum_address("0x" + "9a" * 20)
USER = to_checksum_address("0x" + "11" * 20)
RELAYER = to_checksum_address("0x" + "2e" * 20)
ROOT_SENDER = to_checksum_address("0x" + "70" * 20)
L1_MESSENGER = to_checksum_address("0x" + "4d" * 20)
L1_EXECUTOR = to_checksum_address("0x" + "e1" * 20)
QUEUE_SIGNATURE = "queue(address[],uint256[],string[],bytes[],bool[])"


def columns_for(*actions):
    return [list(c) for c in zip(*actions)]


def noop(target, tag=0):
    """A harmless action: a plain transfer of nothing, tagged to stay unique."""
    return (target, 0, "", tag.to_bytes(4, "big"), False)


def self_call(executor, signature, abi_type, argument):
    return (executor.address, 0, signature, encode([abi_type], [argument]), False)


def execute_last(host, executor):
    actions_set_id = executor.get_actions_set_count() - 1
    host.set_timestamp(max(host.timestamp, executor.get_actions_set_by_id(actions_set_id).execution_time))
    return host.transact(USER, executor.execute, actions_set_id)


# ══════════════════════════════════════════════════════════════════════
#  GATES
# ══════════════════════════════════════════════════════════════════════


class TestGates:

    def test_amb_gate_accepts_matching_envelope(self):
        gate = AMBGate(amb=RELAYER, controller=CONTROLLER, chain_id=42)
        envelope = Envelope(RELAYER, b"payload", origin_chain_id=42, origin_sender=CONTROLLER)
        assert gate.validate(envelope) == b"payload"

    def test_amb_gate_check_order(self):
        gate = AMBGate(amb=RELAYER, controller=CONTROLLER, chain_id=42)
        with pytest.raises(UnauthorizedAMB):
            gate.validate(Envelope(USER, b"", origin_chain_id=1, origin_sender=USER))
        with pytest.raises(UnauthorizedChainId):
            gate.validate(Envelope(RELAYER, b"", origin_chain_id=1, origin_sender=USER))
        with pytest.raises(UnauthorizedChainId):
            gate.validate(Envelope(RELAYER, b"", origin_sender=CONTROLLER))
        with pytest.raises(UnauthorizedController):
            gate.validate(Envelope(RELAYER, b"", origin_chain_id=to_bytes32(42), origin_sender=USER))

    def test_fx_portal_gate(self):
        gate = FxPortalGate(fx_child=RELAYER, fx_root_sender=ROOT_SENDER)
        assert gate.validate(Envelope(RELAYER, b"x", origin_sender=ROOT_SENDER)) == b"x"
        with pytest.raises(UnauthorizedChildOrigin):
            gate.validate(Envelope(USER, b"x", origin_sender=ROOT_SENDER))
        with pytest.raises(UnauthorizedRootOrigin):
            gate.validate(Envelope(RELAYER, b"x", origin_sender=USER))

    def test_optimism_gate(self):
        gate = OptimismGate(messenger=RELAYER, ethereum_governance_executor=L1_EXECUTOR)
        assert gate.validate(Envelope(RELAYER, b"x", origin_sender=L1_EXECUTOR)) == b"x"
        with pytest.raises(UnauthorizedMessenger):
            gate.validate(Envelope(USER, b"x", origin_sender=L1_EXECUTOR))
        with pytest.raises(UnauthorizedEthereumExecutor):
            gate.validate(Envelope(RELAYER, b"x", origin_sender=None))

    def test_arbitrum_gate(self):
        gate = ArbitrumGate(ethereum_governance_executor=L1_EXECUTOR)
        assert gate.aliased_sender == apply_l1_to_l2_alias(L1_EXECUTOR)
        assert gate.validate(Envelope(gate.aliased_sender, b"x")) == b"x"
        with pytest.raises(UnauthorizedEthereumExecutor):
            gate.validate(Envelope(L1_EXECUTOR, b"x"))

    def test_error_families(self):
        assert issubclass(UnauthorizedAMB, UnauthorizedTransport)
        assert issubclass(UnauthorizedMessenger, UnauthorizedTransport)
        assert issubclass(UnauthorizedRootOrigin, UnauthorizedController)

    def test_gate_to_dict(self):
        gate = AMBGate(amb=RELAYER.lower(), controller=CONTROLLER, chain_id=1)
        assert gate.to_dict() == {
            "kind": "amb",
            "amb": RELAYER,
            "controller": CONTROLLER,
            "chainId": "0x" + "00" * 31 + "01",
        }

    def test_to_bytes32(self):
        assert to_bytes32(1) == b"\x00" * 31 + b"\x01"
        assert to_bytes32("0x01") == to_bytes32(1)
        with pytest.raises(ValueError):
            to_bytes32(b"\x01" * 33)


# ══════════════════════════════════════════════════════════════════════
#  ARBITRARY MESSAGE BRIDGE
# ══════════════════════════════════════════════════════════════════════


class TestAMB:
    CHAIN_ID = 42

    def setup_method(self):
        self.host = Host(timestamp=T0)
        self.amb = AMBMessenger(self.host)
        self.executor = AMBBridgeExecutor(
            self.host,
            amb=self.amb.address,
            controller=CONTROLLER,
            chain_id=self.CHAIN_ID,
            guardian=GUARDIAN,
            **TIMELOCK,
        )

    def deliver(self, *actions, sender=CONTROLLER, chain_id=CHAIN_ID, amb=None):
        payload = encode_actions_set(*columns_for(*actions))
        return self.host.transact(
            RELAYER,
            (amb or self.amb).deliver,
            sender,
            to_bytes32(chain_id),
            self.executor.address,
            encode_call("processMessageFromAMB(bytes)", payload),
        )

    def test_accepted(self):
        receipt = self.deliver(noop(USER))
        assert receipt.event("ActionsSetQueued")["id"] == 0
        assert self.executor.get_actions_set_count() == 1

    def test_origin_cleared_after_delivery(self):
        self.deliver(noop(USER))
        assert self.amb.message_sender() != CONTROLLER

    def test_unknown_endpoint(self):
        rogue = AMBMessenger(self.host)
        with pytest.raises(UnauthorizedAMB):
            self.deliver(noop(USER), amb=rogue)
        assert self.executor.get_actions_set_count() == 0

    def test_direct_call_is_not_the_endpoint(self):
        payload = encode_actions_set(*columns_for(noop(USER)))
        with pytest.raises(UnauthorizedAMB):
            self.host.transact(CONTROLLER, self.executor.process_message_from_amb, payload)

    def test_wrong_chain(self):
        with pytest.raises(UnauthorizedChainId):
            self.deliver(noop(USER), chain_id=7)
        assert self.executor.get_actions_set_count() == 0

    def test_wrong_controller(self):
        with pytest.raises(UnauthorizedController):
            self.deliver(noop(USER), sender=USER)
        assert self.executor.get_actions_set_count() == 0
        assert self.host.events.filter(name="ActionsSetQueued") == []

    def test_redirect_with_declared_origin(self):
        payload = encode_actions_set(*columns_for(noop(USER)))
        self.host.transact(RELAYER, self.amb.set_message_sender, CONTROLLER)
        self.host.transact(RELAYER, self.amb.set_message_source_chain_id, to_bytes32(self.CHAIN_ID))
        self.host.transact(
            RELAYER,
            self.amb.redirect,
            self.executor.address,
            encode_call("processMessageFromAMB(bytes)", payload),
        )
        assert self.executor.get_actions_set_count() == 1

    def test_identity_getters(self):
        assert self.executor.amb() == self.amb.address
        assert self.executor.controller() == CONTROLLER
        assert self.executor.chain_id() == to_bytes32(self.CHAIN_ID)

    def test_setters_are_self_only(self):
        with pytest.raises(OnlyCallableByThis):
            self.host.transact(GUARDIAN, self.executor.set_controller, USER)

    def test_set_controller(self):
        self.deliver(self_call(self.executor, "setController(address)", "address", USER))
        receipt = execute_last(self.host, self.executor)
        assert receipt.event("ControllerUpdated").args == {
            "oldController": CONTROLLER,
            "newController": USER,
        }
        assert self.executor.controller() == USER
        with pytest.raises(UnauthorizedController):
            self.deliver(noop(USER))
        self.deliver(noop(USER), sender=USER)
        assert self.executor.get_actions_set_count() == 2

    def test_set_chain_id(self):
        self.deliver(self_call(self.executor, "setChainId(bytes32)", "bytes32", to_bytes32(7)))
        execute_last(self.host, self.executor)
        assert self.executor.chain_id() == to_bytes32(7)
        with pytest.raises(UnauthorizedChainId):
            self.deliver(noop(USER))
        self.deliver(noop(USER), chain_id=7)

    def test_set_amb(self):
        replacement = AMBMessenger(self.host)
        self.deliver(self_call(self.executor, "setAmb(address)", "address", replacement.address))
        execute_last(self.host, self.executor)
        assert self.executor.amb() == replacement.address
        with pytest.raises(UnauthorizedAMB):
            self.deliver(noop(USER))
        self.deliver(noop(USER), amb=replacement)


# ══════════════════════════════════════════════════════════════════════
#  POLYGON FX PORTAL
# ══════════════════════════════════════════════════════════════════════


class TestPolygon:

    def setup_method(self):
        self.host = Host(timestamp=T0)
        self.fx_child = FxChild(self.host)
        self.executor = PolygonBridgeExecutor(
            self.host,
            fx_root_sender=ROOT_SENDER,
            fx_child=self.fx_child.address,
            guardian=GUARDIAN,
            **TIMELOCK,
        )

    def sync(self, *actions, root_sender=ROOT_SENDER, state_id=1, caller=STATE_SYNC_SYSTEM_ADDRESS):
        payload = encode_actions_set(*columns_for(*actions))
        data = FxChild.encode_state(root_sender, self.executor.address, payload)
        return self.host.transact(caller, self.fx_child.on_state_receive, state_id, data)

    def test_accepted(self):
        receipt = self.sync(noop(USER))
        message = receipt.event("NewFxMessage")
        assert message["rootMessageSender"] == ROOT_SENDER
        assert message["receiver"] == self.executor.address
        assert receipt.event("ActionsSetQueued")["id"] == 0

    def test_only_state_sync_system_caller(self):
        with pytest.raises(InvalidSender):
            self.sync(noop(USER), caller=USER)

    def test_malformed_state(self):
        with pytest.raises(MalformedMessage):
            self.host.transact(STATE_SYNC_SYSTEM_ADDRESS, self.fx_child.on_state_receive, 1, b"\x01")

    def test_direct_call_rejected(self):
        payload = encode_actions_set(*columns_for(noop(USER)))
        with pytest.raises(UnauthorizedChildOrigin):
            self.host.transact(
                ROOT_SENDER, self.executor.process_message_from_root, 1, ROOT_SENDER, payload
            )
        assert self.executor.get_actions_set_count() == 0

    def test_wrong_root_sender(self):
        with pytest.raises(UnauthorizedRootOrigin):
            self.sync(noop(USER), root_sender=USER)
        assert self.executor.get_actions_set_count() == 0
        assert self.host.events.filter(name="NewFxMessage") == []

    def test_update_fx_root_sender(self):
        self.sync(self_call(self.executor, "updateFxRootSender(address)", "address", USER))
        receipt = execute_last(self.host, self.executor)
        assert receipt.event("FxRootSenderUpdate")["newFxRootSender"] == USER
        assert self.executor.get_fx_root_sender() == USER
        with pytest.raises(UnauthorizedRootOrigin):
            self.sync(noop(USER), state_id=2)
        self.sync(noop(USER), root_sender=USER, state_id=2)

    def test_update_fx_child(self):
        replacement = FxChild(self.host)
        self.sync(self_call(self.executor, "updateFxChild(address)", "address", replacement.address))
        execute_last(self.host, self.executor)
        assert self.executor.get_fx_child() == replacement.address
        with pytest.raises(UnauthorizedChildOrigin):
            self.sync(noop(USER), state_id=2)


# ══════════════════════════════════════════════════════════════════════
#  OPTIMISM
# ══════════════════════════════════════════════════════════════════════


class TestRollupBase:

    def test_requires_transport_envelope(self):
        with pytest.raises(TypeError):
            L2BridgeExecutor(Host(timestamp=T0), guardian=GUARDIAN, **TIMELOCK)

    def test_rollup_executors_are_concrete(self):
        assert not OptimismBridgeExecutor.__abstractmethods__
        assert not ArbitrumBridgeExecutor.__abstractmethods__


class TestOptimism:

    def setup_method(self):
        self.host = Host(timestamp=T0)
        self.messenger = L2CrossDomainMessenger(self.host, l1_messenger=L1_MESSENGER)
        self.executor = OptimismBridgeExecutor(
            self.host,
            messenger=self.messenger.address,
            ethereum_governance_executor=L1_EXECUTOR,
            guardian=GUARDIAN,
            **TIMELOCK,
        )
        self.relayer = apply_l1_to_l2_alias(L1_MESSENGER)

    def relay(self, *actions, sender=L1_EXECUTOR, nonce=0, caller=None):
        message = encode_call(QUEUE_SIGNATURE, *columns_for(*actions))
        return self.host.transact(
            caller or self.relayer,
            self.messenger.relay_message,
            self.executor.address,
            sender,
            message,
            nonce,
        )

    def test_accepted(self):
        receipt = self.relay(noop(USER))
        assert receipt.event("ActionsSetQueued")["id"] == 0
        assert len(receipt.events_named("RelayedMessage")) == 1

    def test_x_domain_sender_outside_relay(self):
        with pytest.raises(NotRelaying):
            self.host.static_call(self.messenger.address, encode_call("xDomainMessageSender()"))

    def test_only_aliased_l1_messenger_relays(self):
        with pytest.raises(InvalidSender):
            self.relay(noop(USER), caller=L1_MESSENGER)

    def test_replay_rejected(self):
        self.relay(noop(USER), nonce=5)
        with pytest.raises(MessageAlreadyRelayed):
            self.relay(noop(USER), nonce=5)
        self.relay(noop(USER), nonce=6)
        assert self.executor.get_actions_set_count() == 2

    def test_wrong_l1_sender(self):
        with pytest.raises(UnauthorizedEthereumExecutor):
            self.relay(noop(USER), sender=USER)
        assert self.executor.get_actions_set_count() == 0

    def test_direct_queue_rejected(self):
        with pytest.raises(UnauthorizedMessenger):
            self.host.transact(L1_EXECUTOR, self.executor.queue, *columns_for(noop(USER)))

    def test_failed_relay_can_be_retried(self):
        with pytest.raises(UnauthorizedEthereumExecutor):
            self.relay(noop(USER), sender=USER)
        self.relay(noop(USER))
        assert self.executor.get_current_state(0) == ActionsSetState.QUEUED

    def test_update_ethereum_governance_executor(self):
        self.relay(self_call(
            self.executor, "updateEthereumGovernanceExecutor(address)", "address", USER,
        ))
        receipt = execute_last(self.host, self.executor)
        assert receipt.event("EthereumGovernanceExecutorUpdate").args == {
            "oldEthereumGovernanceExecutor": L1_EXECUTOR,
            "newEthereumGovernanceExecutor": USER,
        }
        with pytest.raises(UnauthorizedEthereumExecutor):
            self.relay(noop(USER), nonce=1)
        self.relay(noop(USER), sender=USER, nonce=1)

    def test_getters(self):
        assert self.executor.get_messenger() == self.messenger.address
        assert self.executor.get_ethereum_governance_executor() == L1_EXECUTOR


# ══════════════════════════════════════════════════════════════════════
#  ARBITRUM
# ══════════════════════════════════════════════════════════════════════


class TestArbitrum:

    def setup_method(self):
        self.host = Host(timestamp=T0)
        self.executor = ArbitrumBridgeExecutor(
            self.host,
            ethereum_governance_executor=L1_EXECUTOR,
            guardian=GUARDIAN,
            **TIMELOCK,
        )

    def queue(self, *actions, caller=None):
        caller = caller or apply_l1_to_l2_alias(L1_EXECUTOR)
        return self.host.transact(caller, self.executor.queue, *columns_for(*actions))

    def test_aliased_sender_accepted(self):
        receipt = self.queue(noop(USER))
        assert receipt.event("ActionsSetQueued")["executionTime"] == T0 + DELAY

    def test_unaliased_sender_rejected(self):
        with pytest.raises(UnauthorizedEthereumExecutor):
            self.queue(noop(USER), caller=L1_EXECUTOR)
        assert self.executor.get_actions_set_count() == 0

    def test_initial_identity_event(self):
        (event,) = self.host.events.filter(name="EthereumGovernanceExecutorUpdate")
        assert event["newEthereumGovernanceExecutor"] == L1_EXECUTOR

    def test_update_ethereum_governance_executor(self):
        self.queue(self_call(
            self.executor, "updateEthereumGovernanceExecutor(address)", "address", USER,
        ))
        execute_last(self.host, self.executor)
        assert self.executor.get_ethereum_governance_executor() == USER
        with pytest.raises(UnauthorizedEthereumExecutor):
            self.queue(noop(USER))
        self.queue(noop(USER), caller=apply_l1_to_l2_alias(USER))
        assert self.executor.get_actions_set_count() == 2
