"""
GovBridge Admission Gates, one per transport.

  - AMBGate:       arbitrary message bridge (endpoint + chain id + sender)
  - FxPortalGate:  Polygon FxPortal child tunnel (endpoint + root sender)
  - OptimismGate:  L2 messenger predeploy (endpoint + xDomain sender)
  - ArbitrumGate:  retryable tickets (aliased L1 sender only)
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from ..crypto.address import apply_l1_to_l2_alias, normalize_address
from ..executor.admission import AdmissionGate, Envelope
from ..executor.errors import (
    UnauthorizedAMB,
    UnauthorizedChainId,
    UnauthorizedChildOrigin,
    UnauthorizedController,
    UnauthorizedEthereumExecutor,
    UnauthorizedMessenger,
    UnauthorizedRootOrigin,
)


def to_bytes32(value: Union[int, bytes, str]) -> bytes:
    """Chain ids travel as bytes32 over the AMB."""
    if isinstance(value, int):
        return value.to_bytes(32, 'big')
    if isinstance(value, str):
        value = bytes.fromhex(value[2:] if value.startswith('0x') else value)
    value = bytes(value)
    if len(value) > 32:
        raise ValueError(f"Chain id does not fit in 32 bytes: 0x{value.hex()}")
    return value.rjust(32, b'\x00')


# ══════════════════════════════════════════════════════════════════════
#  ARBITRARY MESSAGE BRIDGE
# ══════════════════════════════════════════════════════════════════════

@dataclass
class AMBGate(AdmissionGate):
    """
    Attributes:
        amb:        AMB endpoint on this chain
        controller: governance executor on the origin chain
        chain_id:   origin chain id (bytes32)
    """
    amb: str
    controller: str
    chain_id: bytes

    kind = "amb"

    def __post_init__(self):
        self.amb = normalize_address(self.amb)
        self.controller = normalize_address(self.controller)
        self.chain_id = to_bytes32(self.chain_id)

    def validate(self, envelope: Envelope) -> bytes:
        if envelope.caller != self.amb:
            raise UnauthorizedAMB(f"{envelope.caller} is not the AMB")
        if envelope.origin_chain_id is None or to_bytes32(envelope.origin_chain_id) != self.chain_id:
            raise UnauthorizedChainId(f"Message from chain {envelope.origin_chain_id!r}")
        if envelope.origin_sender != self.controller:
            raise UnauthorizedController(f"{envelope.origin_sender} is not the controller")
        return envelope.payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "amb": self.amb,
            "controller": self.controller,
            "chainId": '0x' + self.chain_id.hex(),
        }


# ══════════════════════════════════════════════════════════════════════
#  POLYGON FX PORTAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class FxPortalGate(AdmissionGate):
    fx_child: str
    fx_root_sender: str

    kind = "polygon"

    def __post_init__(self):
        self.fx_child = normalize_address(self.fx_child)
        self.fx_root_sender = normalize_address(self.fx_root_sender)

    def validate(self, envelope: Envelope) -> bytes:
        if envelope.caller != self.fx_child:
            raise UnauthorizedChildOrigin(f"{envelope.caller} is not FxChild")
        if envelope.origin_sender != self.fx_root_sender:
            raise UnauthorizedRootOrigin(f"{envelope.origin_sender} is not the root sender")
        return envelope.payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "fxChild": self.fx_child,
            "fxRootSender": self.fx_root_sender,
        }


# ══════════════════════════════════════════════════════════════════════
#  OPTIMISM / ARBITRUM
# ══════════════════════════════════════════════════════════════════════

@dataclass
class OptimismGate(AdmissionGate):
    messenger: str
    ethereum_governance_executor: str

    kind = "optimism"

    def __post_init__(self):
        self.messenger = normalize_address(self.messenger)
        self.ethereum_governance_executor = normalize_address(self.ethereum_governance_executor)

    def validate(self, envelope: Envelope) -> bytes:
        if envelope.caller != self.messenger:
            raise UnauthorizedMessenger(f"{envelope.caller} is not the L2 messenger")
        if envelope.origin_sender != self.ethereum_governance_executor:
            raise UnauthorizedEthereumExecutor(
                f"{envelope.origin_sender} is not the Ethereum governance executor"
            )
        return envelope.payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "messenger": self.messenger,
            "ethereumGovernanceExecutor": self.ethereum_governance_executor,
        }


@dataclass
class ArbitrumGate(AdmissionGate):
    ethereum_governance_executor: str

    kind = "arbitrum"

    def __post_init__(self):
        self.ethereum_governance_executor = normalize_address(self.ethereum_governance_executor)

    @property
    def aliased_sender(self) -> str:
        return apply_l1_to_l2_alias(self.ethereum_governance_executor)

    def validate(self, envelope: Envelope) -> bytes:
        if envelope.caller != self.aliased_sender:
            raise UnauthorizedEthereumExecutor(
                f"{envelope.caller} is not the aliased Ethereum governance executor"
            )
        return envelope.payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "ethereumGovernanceExecutor": self.ethereum_governance_executor,
            "aliasedSender": self.aliased_sender,
        }
