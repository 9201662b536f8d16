"""
Contract base class and call context.

Contracts are plain Python objects registered with a :class:`Host`. Methods
marked with :func:`external` are reachable through ABI calldata; the host
dispatches on the 4-byte selector of their signature. Non-view externals
receive the :class:`CallContext` of the frame as their first argument.
"""

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from ..constants import DEFAULT_DEPLOYER
from ..crypto.address import normalize_address
from ..crypto.encoding import function_selector, parse_signature
from ..exceptions import InvalidCalldata, NonPayable, UnknownFunction

if TYPE_CHECKING:
    from .host import Host


@dataclass(frozen=True)
class ExternalFunction:
    """ABI description of an externally callable method."""
    signature: str
    name: str
    attribute: str
    input_types: Tuple[str, ...]
    output_types: Tuple[str, ...]
    payable: bool
    view: bool

    @property
    def selector(self) -> bytes:
        return function_selector(self.signature)

    def decode_arguments(self, data: bytes) -> list:
        if not self.input_types:
            return []
        values = decode(list(self.input_types), data)
        return [from_abi(t, v) for t, v in zip(self.input_types, values)]

    def encode_result(self, result: Any) -> bytes:
        if not self.output_types:
            return b''
        values = [result] if len(self.output_types) == 1 else list(result)
        values = [v.to_abi() if hasattr(v, 'to_abi') else v for v in values]
        return encode(list(self.output_types), values)

    def decode_result(self, data: bytes) -> Any:
        """Inverse of :meth:`encode_result`; ``None`` when nothing is returned."""
        if not self.output_types:
            return None
        values = decode(list(self.output_types), data)
        values = [from_abi(t, v) for t, v in zip(self.output_types, values)]
        return values[0] if len(values) == 1 else tuple(values)


def from_abi(abi_type: str, value: Any) -> Any:
    """Convert a decoded ABI value to the form contracts work with."""
    if abi_type == 'address':
        return normalize_address(value)
    if abi_type.endswith(']'):
        inner = abi_type[:abi_type.rindex('[')]
        return [from_abi(inner, v) for v in value]
    return value


def external(
    signature: str,
    returns: Sequence[str] = (),
    payable: bool = False,
    view: bool = False,
) -> Callable:
    """
    Mark a contract method as externally callable.

    Args:
        signature: canonical ABI signature, e.g. ``"updateDelay(uint256)"``
        returns: ABI return types
        payable: accept native value
        view: read-only; called without a CallContext
    """
    name, types = parse_signature(signature)

    def decorator(fn: Callable) -> Callable:
        fn.__external__ = ExternalFunction(
            signature=signature,
            name=name,
            attribute=fn.__name__,
            input_types=tuple(types),
            output_types=tuple(returns),
            payable=payable,
            view=view,
        )
        return fn

    return decorator


@dataclass(frozen=True)
class CallContext:
    """
    The frame a contract function runs in.

    Attributes:
        host:         Host executing the frame
        sender:       Immediate caller (msg.sender)
        this:         Identity whose balance, storage and events are in effect
        value:        Native value passed with the frame
        code_address: Contract whose code runs (differs from ``this`` under delegatecall)
        depth:        Frame depth, 1 for a top-level transaction
    """
    host: "Host"
    sender: str
    this: str
    value: int = 0
    code_address: Optional[str] = None
    depth: int = 1

    @property
    def timestamp(self) -> int:
        return self.host.timestamp

    @property
    def storage(self) -> Dict[Any, Any]:
        """Raw storage of ``this``."""
        return self.host.contract_at(self.this).slots

    def emit(self, name: str, **args: Any) -> None:
        self.host.emit(self.this, name, args)

    def call(self, target: str, data: bytes = b'', value: int = 0) -> bytes:
        return self.host.call(self, target, data, value)

    def delegatecall(self, target: str, data: bytes) -> bytes:
        return self.host.delegatecall(self, target, data)

    def static_call(self, target: str, data: bytes) -> bytes:
        return self.host.static_call(target, data, sender=self.this)


_EXTERNALS: Dict[type, Dict[bytes, ExternalFunction]] = {}


class Contract:
    """
    Base class for host contracts.

    State lives in instance attributes; ``slots`` is the raw key/value
    storage that delegated code writes through ``ctx.storage``. Everything
    except ``host`` and ``address`` is captured by host snapshots.
    """

    _NON_STATE = frozenset({'host', 'address'})

    def __init__(self, host: "Host", deployer: str = DEFAULT_DEPLOYER):
        self.host = host
        self.slots: Dict[Any, Any] = {}
        self.address = host.register(self, deployer)

    @classmethod
    def externals(cls) -> Dict[bytes, ExternalFunction]:
        """Selector table, subclasses overriding their bases."""
        table = _EXTERNALS.get(cls)
        if table is None:
            table = {}
            for klass in reversed(cls.__mro__):
                for value in vars(klass).values():
                    spec = getattr(value, '__external__', None)
                    if spec is not None:
                        table[spec.selector] = spec
            _EXTERNALS[cls] = table
        return table

    def dispatch(self, ctx: CallContext, data: bytes) -> bytes:
        """Route ABI calldata to the matching external."""
        spec = self.externals().get(bytes(data[:4])) if len(data) >= 4 else None
        if spec is None:
            return self.fallback(ctx, data)
        if ctx.value and not spec.payable:
            raise NonPayable(f"{spec.signature} does not accept value")
        try:
            args = spec.decode_arguments(bytes(data[4:]))
        except (DecodingError, ValueError) as exc:
            raise InvalidCalldata(f"{spec.signature}: {exc}") from exc
        fn = getattr(self, spec.attribute)
        result = fn(*args) if spec.view else fn(ctx, *args)
        return spec.encode_result(result)

    def fallback(self, ctx: CallContext, data: bytes) -> bytes:
        raise UnknownFunction(
            f"{type(self).__name__} at {self.address} has no function "
            f"for selector 0x{bytes(data[:4]).hex()}"
        )

    # ── Snapshots ─────────────────────────────────────────────────────

    def export_state(self) -> Dict[str, Any]:
        return {
            k: copy.deepcopy(v)
            for k, v in vars(self).items()
            if k not in self._NON_STATE
        }

    def import_state(self, state: Dict[str, Any]) -> None:
        for k in [k for k in vars(self) if k not in self._NON_STATE]:
            delattr(self, k)
        for k, v in state.items():
            setattr(self, k, copy.deepcopy(v))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.address}>"
