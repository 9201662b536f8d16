"""
Actions set payload codec.

A relayed payload is ``abi.encode(address[] targets, uint256[] values,
string[] signatures, bytes[] calldatas, bool[] withDelegatecalls)``.
"""

from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from ..constants import ACTION_KEY_ABI_TYPES, ACTIONS_SET_ABI_TYPES
from ..crypto.address import normalize_address
from ..crypto.encoding import function_selector
from ..crypto.hashing import keccak256
from .errors import EmptyTargets, InconsistentParamsLength, MalformedActionsSet

ActionsSetFields = Tuple[List[str], List[int], List[str], List[bytes], List[bool]]


def validate_actions_set(
    targets: Sequence[Any],
    values: Sequence[Any],
    signatures: Sequence[Any],
    calldatas: Sequence[Any],
    with_delegatecalls: Sequence[Any],
) -> None:
    """Raise unless all five sequences are non-empty and the same length."""
    if len(targets) == 0:
        raise EmptyTargets()
    n = len(targets)
    if not (
        len(values) == n
        and len(signatures) == n
        and len(calldatas) == n
        and len(with_delegatecalls) == n
    ):
        raise InconsistentParamsLength(
            f"targets={n} values={len(values)} signatures={len(signatures)} "
            f"calldatas={len(calldatas)} withDelegatecalls={len(with_delegatecalls)}"
        )


def decode_actions_set(payload: bytes) -> ActionsSetFields:
    """
    Decode and validate a relayed payload.

    Raises:
        MalformedActionsSet: payload is not the expected ABI tuple
        EmptyTargets / InconsistentParamsLength: see :func:`validate_actions_set`
    """
    try:
        targets, values, signatures, calldatas, flags = decode(
            list(ACTIONS_SET_ABI_TYPES), bytes(payload)
        )
    except (DecodingError, ValueError) as exc:
        raise MalformedActionsSet(str(exc)) from exc

    fields = (
        [normalize_address(t) for t in targets],
        list(values),
        list(signatures),
        [bytes(c) for c in calldatas],
        list(flags),
    )
    validate_actions_set(*fields)
    return fields


def encode_actions_set(
    targets: Sequence[str],
    values: Sequence[int],
    signatures: Sequence[str],
    calldatas: Sequence[bytes],
    with_delegatecalls: Sequence[bool],
) -> bytes:
    """Encode an actions set payload as the controller would."""
    return encode(
        list(ACTIONS_SET_ABI_TYPES),
        [
            list(targets),
            list(values),
            list(signatures),
            list(calldatas),
            list(with_delegatecalls),
        ],
    )


def build_call_data(signature: str, calldata: bytes) -> bytes:
    """Call payload of one action: raw calldata, or selector + calldata."""
    if not signature:
        return bytes(calldata)
    return function_selector(signature) + bytes(calldata)


def hash_action(
    target: str,
    value: int,
    signature: str,
    calldata: bytes,
    execution_time: int,
    with_delegatecall: bool,
) -> bytes:
    """Key an action is recorded under while its set is queued."""
    return keccak256(encode(
        list(ACTION_KEY_ABI_TYPES),
        [target, value, signature, bytes(calldata), execution_time, with_delegatecall],
    ))
