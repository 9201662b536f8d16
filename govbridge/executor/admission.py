"""
Admission gate interface.

An executor never looks at transport internals: each deliver entry point
packs what it knows about the inbound message into an :class:`Envelope`
and the configured :class:`AdmissionGate` decides whether the payload may
be queued.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class Envelope:
    """
    An inbound relay message as seen by the executor.

    Attributes:
        caller:          Immediate caller of the deliver entry point
        payload:         Opaque actions set payload
        origin_chain_id: Origin chain id declared by the transport, if any
        origin_sender:   Origin sender declared by the transport, if any
    """
    caller: str
    payload: bytes
    origin_chain_id: Optional[Union[int, bytes]] = None
    origin_sender: Optional[str] = None


class AdmissionGate(ABC):
    """
    Validates the origin of an inbound message.

    Checks run in order: transport endpoint, origin chain id, origin sender.
    A failed check raises an :class:`~govbridge.executor.errors.AdmissionError`
    subclass; nothing is mutated either way.
    """

    kind: str = ""

    @abstractmethod
    def validate(self, envelope: Envelope) -> bytes:
        """Return the payload of an authenticated envelope."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Bridge identity in camelCase form."""
