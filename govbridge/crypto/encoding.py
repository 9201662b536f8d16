"""
GovBridge ABI Encoding Module

Contract ABI helpers shared by the execution host and the executor:
function signatures, selectors, call data and return data.
"""

from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector


def split_types(type_list: str) -> List[str]:
    """
    Split a comma separated ABI type list at top level.

    ``"uint256,(address,bool)[],bytes"`` -> ``["uint256", "(address,bool)[]", "bytes"]``
    """
    types: List[str] = []
    depth = 0
    current = ''
    for char in type_list:
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced parentheses in {type_list!r}")
        if char == ',' and depth == 0:
            types.append(current.strip())
            current = ''
            continue
        current += char
    if depth != 0:
        raise ValueError(f"Unbalanced parentheses in {type_list!r}")
    if current.strip():
        types.append(current.strip())
    return types


def parse_signature(signature: str) -> Tuple[str, List[str]]:
    """
    Parse a function signature into its name and argument types.

    Args:
        signature: e.g. ``"updateDelay(uint256)"``

    Returns:
        (name, [types])
    """
    signature = signature.strip()
    if '(' not in signature or not signature.endswith(')'):
        raise ValueError(f"Malformed function signature: {signature!r}")
    name, _, rest = signature.partition('(')
    if not name:
        raise ValueError(f"Malformed function signature: {signature!r}")
    return name, split_types(rest[:-1])


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256(signature)."""
    return function_signature_to_4byte_selector(signature)


def encode_arguments(signature: str, args: Sequence[Any]) -> bytes:
    """ABI-encode *args* against the parameter types of *signature*."""
    _, types = parse_signature(signature)
    if len(types) != len(args):
        raise ValueError(
            f"{signature} takes {len(types)} arguments, got {len(args)}"
        )
    if not types:
        return b''
    return encode(types, list(args))


def encode_call(signature: str, *args: Any) -> bytes:
    """
    Encode function call data (selector + ABI-encoded arguments).

    Args:
        signature: Function signature
        *args: Function arguments

    Returns:
        Encoded call data
    """
    return function_selector(signature) + encode_arguments(signature, args)


def decode_result(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """Decode ABI return data."""
    if not types:
        return ()
    return decode(list(types), data)
