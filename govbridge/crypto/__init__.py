"""
GovBridge Crypto Module

Hashing, address handling and ABI encoding helpers.
"""

from .hashing import keccak256
from .address import (
    apply_l1_to_l2_alias,
    generate_contract_address,
    is_valid_address,
    is_zero_address,
    normalize_address,
    undo_l1_to_l2_alias,
)
from .encoding import (
    decode_result,
    encode_arguments,
    encode_call,
    function_selector,
    parse_signature,
    split_types,
)

__all__ = [
    # Hashing
    "keccak256",
    # Address
    "apply_l1_to_l2_alias",
    "generate_contract_address",
    "is_valid_address",
    "is_zero_address",
    "normalize_address",
    "undo_l1_to_l2_alias",
    # ABI
    "decode_result",
    "encode_arguments",
    "encode_call",
    "function_selector",
    "parse_signature",
    "split_types",
]
