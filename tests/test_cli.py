"""
CLI Test Suite

Coverage:
  - encode: JSON actions → payload, argument encoding, input errors
  - decode: payload → JSON, malformed payloads
  - hash:   action keys
  - check-config
"""

import json
import os
import sys

import pytest
from click.testing import CliRunner
from eth_abi import encode
from eth_utils import to_checksum_address

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govbridge.cli.actions import cli
from govbridge.executor import decode_actions_set, hash_action

TARGET = to_checksum_address("0x" + "ab" * 20)
GUARDIAN = to_checksum_address("0x" + "9a" * 20)
L1_EXECUTOR = to_checksum_address("0x" + "e1" * 20)

ACTIONS = [
    {
        "target": TARGET.lower(),
        "signature": "updateDelay(uint256)",
        "arguments": [60],
    },
    {
        "target": TARGET,
        "value": 5,
        "calldata": "0xdeadbeef",
        "delegatecall": True,
    },
]


@pytest.fixture
def runner():
    return CliRunner()


def write_json(tmp_path, data, name="actions.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return str(path)


class TestEncode:

    def test_encode_payload(self, runner, tmp_path):
        result = runner.invoke(cli, ["encode", write_json(tmp_path, ACTIONS)])
        assert result.exit_code == 0, result.output
        targets, values, signatures, calldatas, flags = decode_actions_set(
            bytes.fromhex(result.output.strip()[2:])
        )
        assert targets == [TARGET, TARGET]
        assert values == [0, 5]
        assert signatures == ["updateDelay(uint256)", ""]
        assert calldatas == [encode(["uint256"], [60]), bytes.fromhex("deadbeef")]
        assert flags == [False, True]

    def test_encode_then_decode(self, runner, tmp_path):
        payload = runner.invoke(cli, ["encode", write_json(tmp_path, ACTIONS)]).output.strip()
        result = runner.invoke(cli, ["decode", payload])
        assert result.exit_code == 0, result.output
        decoded = json.loads(result.output)
        assert decoded[0]["target"] == TARGET
        assert decoded[0]["calldata"] == "0x" + encode(["uint256"], [60]).hex()
        assert decoded[1]["withDelegatecall"] is True

    @pytest.mark.parametrize("actions,message", [
        ([{"value": 1}], "'target' is required"),
        ([{"target": "0x1234"}], "Action 0"),
        ([{"target": TARGET, "arguments": [1]}], "needs a 'signature'"),
        ([{"target": TARGET, "signature": "f(uint256)", "arguments": ["x"]}], "cannot encode"),
        ([{"target": TARGET, "calldata": "0xabc"}], "Odd-length"),
        ({"target": TARGET}, "JSON list"),
        ([], "EmptyTargets"),
        (["0x" + "ab" * 20], "expected a JSON object"),
        ([{"target": TARGET, "value": -1}], "is negative"),
        ([{"target": TARGET, "value": "abc"}], "Invalid value of action 0"),
        ([{"target": TARGET, "value": 2 ** 256}], "Cannot encode"),
        ([{"target": TARGET, "calldata": 5}], "expected a string"),
        ([{"target": TARGET, "signature": 7}], "'signature' must be a string"),
        ([{"target": TARGET, "value": 1}, {"target": TARGET.lower(), "value": 1}], "DuplicateAction"),
    ])
    def test_invalid_actions(self, runner, tmp_path, actions, message):
        result = runner.invoke(cli, ["encode", write_json(tmp_path, actions)])
        assert result.exit_code == 1
        assert message in result.output

    def test_same_action_with_different_value_is_allowed(self, runner, tmp_path):
        actions = [{"target": TARGET, "value": 1}, {"target": TARGET, "value": 2}]
        result = runner.invoke(cli, ["encode", write_json(tmp_path, actions)])
        assert result.exit_code == 0, result.output

    def test_invalid_json(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{")
        result = runner.invoke(cli, ["encode", str(path)])
        assert result.exit_code != 0
        assert "Invalid JSON" in result.output


class TestDecode:

    def test_garbage_payload(self, runner):
        result = runner.invoke(cli, ["decode", "0x010203"])
        assert result.exit_code != 0
        assert "MalformedActionsSet" in result.output

    def test_not_hex(self, runner):
        result = runner.invoke(cli, ["decode", "0xzz"])
        assert result.exit_code != 0
        assert "Invalid hex" in result.output


class TestHash:

    def test_matches_executor_key(self, runner):
        calldata = encode(["uint256"], [60])
        result = runner.invoke(cli, [
            "hash",
            "--target", TARGET,
            "--signature", "updateDelay(uint256)",
            "--calldata", "0x" + calldata.hex(),
            "--execution-time", "1700000050",
        ])
        assert result.exit_code == 0, result.output
        expected = hash_action(TARGET, 0, "updateDelay(uint256)", calldata, 1_700_000_050, False)
        assert result.output.strip() == "0x" + expected.hex()

    def test_delegatecall_flag(self, runner):
        args = ["hash", "--target", TARGET, "--execution-time", "1"]
        plain = runner.invoke(cli, args).output
        delegated = runner.invoke(cli, args + ["--delegatecall"]).output
        assert plain != delegated

    def test_negative_value(self, runner):
        result = runner.invoke(cli, [
            "hash", "--target", TARGET, "--value", "-1", "--execution-time", "1",
        ])
        assert result.exit_code == 1
        assert "is negative" in result.output
        assert not isinstance(result.exception, ValueError)

    def test_execution_time_out_of_range(self, runner):
        result = runner.invoke(cli, ["hash", "--target", TARGET, "--execution-time", "-1"])
        assert result.exit_code == 1
        assert "Cannot hash action" in result.output

    def test_invalid_target(self, runner):
        result = runner.invoke(cli, ["hash", "--target", "0x12", "--execution-time", "1"])
        assert result.exit_code != 0
        assert "Invalid address" in result.output


class TestCheckConfig:

    def test_valid(self, runner, tmp_path, monkeypatch):
        monkeypatch.delenv("GOVBRIDGE_GUARDIAN", raising=False)
        path = tmp_path / "govbridge.toml"
        path.write_text(
            "[executor]\n"
            "delay = 60\n"
            "minimum_delay = 10\n"
            "maximum_delay = 120\n"
            f'guardian = "{GUARDIAN}"\n'
            "[bridge]\n"
            'kind = "arbitrum"\n'
            f'ethereum_governance_executor = "{L1_EXECUTOR}"\n'
        )
        result = runner.invoke(cli, ["check-config", str(path)])
        assert result.exit_code == 0, result.output
        assert "Configuration is valid" in result.output
        assert L1_EXECUTOR in result.output

    def test_invalid(self, runner, tmp_path, monkeypatch):
        monkeypatch.delenv("GOVBRIDGE_GUARDIAN", raising=False)
        path = tmp_path / "govbridge.toml"
        path.write_text('[executor]\ndelay = 1\nminimum_delay = 10\n')
        result = runner.invoke(cli, ["check-config", str(path)])
        assert result.exit_code != 0
        assert "delay 1 outside" in result.output
