"""
GovBridge Crypto Address Module

Ethereum-style 20-byte addresses:
- EIP-55 checksum normalization
- CREATE contract address derivation
- Arbitrum L1 → L2 sender aliasing
"""

from typing import Any

import rlp
from eth_utils import is_address, to_canonical_address, to_checksum_address

from ..constants import L1_TO_L2_ALIAS_OFFSET, ZERO_ADDRESS
from ..exceptions import InvalidAddressError
from .hashing import keccak256

ADDRESS_SPACE = 1 << 160


def is_valid_address(address: Any) -> bool:
    """
    Check if *address* is a 20-byte hex address (any casing).

    Mixed-case input must carry a valid EIP-55 checksum.
    """
    if not isinstance(address, str):
        return False
    return is_address(address)


def normalize_address(address: Any) -> str:
    """
    Normalize an address to its EIP-55 checksum form.

    Accepts hex strings and 20-byte values.

    Raises:
        InvalidAddressError: if the value is not an address
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != 20:
            raise InvalidAddressError(f"Address must be 20 bytes, got {len(address)}")
        return to_checksum_address(bytes(address))
    if not is_valid_address(address):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def is_zero_address(address: str) -> bool:
    return normalize_address(address) == ZERO_ADDRESS


def generate_contract_address(sender: str, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address
        nonce: Deployer nonce

    Returns:
        Contract address (checksum format)
    """
    sender_bytes = to_canonical_address(normalize_address(sender))
    address_bytes = keccak256(rlp.encode([sender_bytes, nonce]))[-20:]
    return to_checksum_address(address_bytes)


def apply_l1_to_l2_alias(l1_address: str) -> str:
    """
    Address an L1 contract appears as on Arbitrum when it sends a
    retryable ticket.
    """
    value = int(normalize_address(l1_address), 16)
    aliased = (value + L1_TO_L2_ALIAS_OFFSET) % ADDRESS_SPACE
    return to_checksum_address(aliased.to_bytes(20, 'big'))


def undo_l1_to_l2_alias(l2_address: str) -> str:
    """Inverse of :func:`apply_l1_to_l2_alias`."""
    value = int(normalize_address(l2_address), 16)
    original = (value - L1_TO_L2_ALIAS_OFFSET) % ADDRESS_SPACE
    return to_checksum_address(original.to_bytes(20, 'big'))
