#!/usr/bin/env python3
"""
GovBridge CLI

Command-line tools for preparing and inspecting actions set payloads.

Usage:
    govbridge encode <actions_file>
    govbridge decode <payload_hex>
    govbridge hash --target ADDR --execution-time T [--value V] [--signature SIG]
                   [--calldata HEX] [--delegatecall]
    govbridge check-config [config_file]
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from eth_abi.exceptions import EncodingError
from eth_utils import is_hex

from ..config import load_config
from ..crypto.address import normalize_address
from ..crypto.encoding import encode_arguments
from ..exceptions import ConfigurationError, InvalidAddressError
from ..executor.codec import (
    decode_actions_set,
    encode_actions_set,
    hash_action,
    validate_actions_set,
)
from ..executor.errors import DecodeError
from ..executor.types import Action


def parse_hex(value: str, what: str = "value") -> bytes:
    """Decode a 0x-prefixed (or bare) hex string."""
    if not isinstance(value, str):
        raise click.ClickException(f"Invalid hex {what}: expected a string, got {value!r}")
    value = value.strip()
    if value in ("", "0x"):
        return b''
    if not is_hex(value):
        raise click.ClickException(f"Invalid hex {what}: {value!r}")
    body = value[2:] if value.lower().startswith("0x") else value
    if len(body) % 2:
        raise click.ClickException(f"Odd-length hex {what}: {value!r}")
    return bytes.fromhex(body)


def parse_value(raw: Any, what: str = "value") -> int:
    """Native value as a non-negative integer."""
    if isinstance(raw, bool):
        raise click.ClickException(f"Invalid {what}: {raw!r}")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise click.ClickException(f"Invalid {what}: {raw!r}")
    if value < 0:
        raise click.ClickException(f"Invalid {what}: {value} is negative")
    return value


def action_from_json(index: int, entry: Dict[str, Any]) -> Action:
    """
    Build an action from its JSON description.

    Keys: ``target`` (required), ``value``, ``signature``, ``arguments`` or
    ``calldata``, ``delegatecall``.
    """
    if "target" not in entry:
        raise click.ClickException(f"Action {index}: 'target' is required")
    try:
        target = normalize_address(entry["target"])
    except InvalidAddressError as e:
        raise click.ClickException(f"Action {index}: {e}")

    signature = entry.get("signature", "")
    if "arguments" in entry:
        if not signature:
            raise click.ClickException(f"Action {index}: 'arguments' needs a 'signature'")
        try:
            calldata = encode_arguments(signature, entry["arguments"])
        except Exception as e:
            raise click.ClickException(f"Action {index}: cannot encode arguments: {e}")
    else:
        calldata = parse_hex(entry.get("calldata", ""), f"calldata of action {index}")

    value = parse_value(entry.get("value", 0), f"value of action {index}")
    if not isinstance(signature, str):
        raise click.ClickException(f"Action {index}: 'signature' must be a string")

    return Action(
        target=target,
        value=value,
        signature=signature,
        calldata=calldata,
        with_delegatecall=bool(entry.get("delegatecall", False)),
    )


@click.group()
@click.version_option(version="0.1.0", prog_name="govbridge")
def cli():
    """GovBridge Command Line Interface

    Encode, decode and hash cross-chain governance actions sets.
    """
    pass


@cli.command("encode")
@click.argument("actions_file", type=click.Path(exists=True, dir_okay=False))
def encode_cmd(actions_file: str):
    """Encode a JSON list of actions into a relay payload.

    Examples:

        govbridge encode actions.json
    """
    try:
        entries = json.loads(Path(actions_file).read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {actions_file}: {e}")
    if not isinstance(entries, list):
        raise click.ClickException("Actions file must contain a JSON list")

    actions: List[Action] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise click.ClickException(f"Action {i}: expected a JSON object")
        action = action_from_json(i, entry)
        # an executor refuses a set holding the same action twice
        if action in actions:
            raise click.ClickException(
                f"DuplicateAction: action {i} duplicates action {actions.index(action)}"
            )
        actions.append(action)

    columns = (
        [a.target for a in actions],
        [a.value for a in actions],
        [a.signature for a in actions],
        [a.calldata for a in actions],
        [a.with_delegatecall for a in actions],
    )
    try:
        validate_actions_set(*columns)
        payload = encode_actions_set(*columns)
    except DecodeError as e:
        raise click.ClickException(f"{e.error_name}: {e}")
    except (EncodingError, TypeError, ValueError) as e:
        raise click.ClickException(f"Cannot encode actions set: {e}")
    click.echo('0x' + payload.hex())


@cli.command("decode")
@click.argument("payload")
def decode_cmd(payload: str):
    """Decode a relay payload into JSON.

    Examples:

        govbridge decode 0x00000000...
    """
    try:
        fields = decode_actions_set(parse_hex(payload, "payload"))
    except DecodeError as e:
        raise click.ClickException(f"{e.error_name}: {e}")

    actions = [Action(*row) for row in zip(*fields)]
    click.echo(json.dumps([a.to_dict() for a in actions], indent=2))


@cli.command("hash")
@click.option("--target", required=True, help="Call target address")
@click.option("--value", default=0, type=int, show_default=True, help="Native value")
@click.option("--signature", default="", help="Function signature ('' = raw calldata)")
@click.option("--calldata", default="0x", help="Hex-encoded calldata")
@click.option("--execution-time", required=True, type=int, help="Actions set executionTime")
@click.option("--delegatecall", is_flag=True, help="Action uses delegatecall")
def hash_cmd(
    target: str,
    value: int,
    signature: str,
    calldata: str,
    execution_time: int,
    delegatecall: bool,
):
    """Compute the key an action is queued under (see isActionQueued).

    Examples:

        govbridge hash --target 0xabc... --signature "updateDelay(uint256)" --execution-time 1700000000
    """
    try:
        target = normalize_address(target)
    except InvalidAddressError as e:
        raise click.ClickException(str(e))
    value = parse_value(value)
    try:
        key = hash_action(
            target,
            value,
            signature,
            parse_hex(calldata, "calldata"),
            execution_time,
            delegatecall,
        )
    except (EncodingError, TypeError, ValueError) as e:
        raise click.ClickException(f"Cannot hash action: {e}")
    click.echo('0x' + key.hex())


@cli.command("check-config")
@click.argument("config_file", required=False, type=click.Path(dir_okay=False))
def check_config_cmd(config_file: Optional[str]):
    """Load and validate a deployment configuration.

    Examples:

        govbridge check-config govbridge.toml
    """
    try:
        config = load_config(config_file)
        config.validate()
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    click.echo(click.style("✓ Configuration is valid", fg="green"))
    click.echo(json.dumps(config.to_dict(), indent=2))


if __name__ == "__main__":
    cli()
