"""
In-process execution host.

Holds the clock, native balances, deployed contracts and the event log,
and runs call frames against them. Every frame is wrapped in a snapshot:
if anything escapes the frame, all of its effects are discarded before
the exception propagates.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..constants import DEFAULT_DEPLOYER, MAX_CALL_DEPTH, ZERO_ADDRESS
from ..crypto.address import generate_contract_address, normalize_address
from ..crypto.encoding import encode_call
from ..exceptions import CallDepthExceeded, InsufficientFunds
from ..logger import get_logger
from .contract import CallContext, Contract
from .events import EventLog, Receipt

logger = get_logger(__name__)


@dataclass
class _Snapshot:
    balances: Dict[str, int]
    nonces: Dict[str, int]
    contracts: Dict[str, Contract]
    states: Dict[str, Dict[str, Any]]
    event_count: int


class Host:
    """
    Serialized execution environment for :class:`Contract` objects.

    One transaction runs at a time. ``transact``/``send`` open the
    top-level frame; contracts open nested frames with ``ctx.call`` and
    ``ctx.delegatecall``.
    """

    def __init__(self, timestamp: Optional[int] = None):
        self._timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self._balances: Dict[str, int] = {}
        self._nonces: Dict[str, int] = {}
        self._contracts: Dict[str, Contract] = {}
        self._snapshots: List[_Snapshot] = []
        self.events = EventLog()

    # ── Clock ─────────────────────────────────────────────────────────

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Time cannot move backwards")
        self._timestamp += int(seconds)
        return self._timestamp

    def set_timestamp(self, timestamp: int) -> int:
        if timestamp < self._timestamp:
            raise ValueError(
                f"Timestamp {timestamp} is before current time {self._timestamp}"
            )
        self._timestamp = int(timestamp)
        return self._timestamp

    # ── Accounts ──────────────────────────────────────────────────────

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def fund(self, address: str, amount: int) -> int:
        """Credit *amount* of native currency to *address* out of thin air."""
        if amount < 0:
            raise ValueError("Amount must be non-negative")
        address = normalize_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount
        return self._balances[address]

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Amount must be non-negative")
        if amount == 0:
            return
        available = self._balances.get(sender, 0)
        if available < amount:
            raise InsufficientFunds(
                f"{sender} has {available}, needs {amount}"
            )
        self._balances[sender] = available - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    # ── Contracts ─────────────────────────────────────────────────────

    def register(self, contract: Contract, deployer: str = DEFAULT_DEPLOYER) -> str:
        """Assign *contract* its CREATE address and make it callable."""
        deployer = normalize_address(deployer)
        nonce = self._nonces.get(deployer, 0)
        address = generate_contract_address(deployer, nonce)
        self._nonces[deployer] = nonce + 1
        self._contracts[address] = contract
        logger.debug(f"Deployed {type(contract).__name__} at {address}")
        return address

    def contract_at(self, address: str) -> Contract:
        address = normalize_address(address)
        try:
            return self._contracts[address]
        except KeyError:
            raise LookupError(f"No contract at {address}") from None

    def is_contract(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    def emit(self, address: str, name: str, args: Dict[str, Any]) -> None:
        event = self.events.append(address, name, args, self._timestamp)
        logger.debug(f"{address} emitted {name} (logIndex={event.index})")

    # ── Snapshots ─────────────────────────────────────────────────────

    def snapshot(self) -> int:
        """Capture current state; returns an id for :meth:`revert`/:meth:`commit`."""
        self._snapshots.append(_Snapshot(
            balances=dict(self._balances),
            nonces=dict(self._nonces),
            contracts=dict(self._contracts),
            states={a: c.export_state() for a, c in self._contracts.items()},
            event_count=len(self.events),
        ))
        return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> None:
        """Restore the state captured by *snapshot_id* and drop later snapshots."""
        snap = self._snapshots[snapshot_id]
        self._balances = dict(snap.balances)
        self._nonces = dict(snap.nonces)
        self._contracts = dict(snap.contracts)
        for address, state in snap.states.items():
            self._contracts[address].import_state(state)
        self.events.truncate(snap.event_count)
        del self._snapshots[snapshot_id:]

    def commit(self, snapshot_id: int) -> None:
        """Keep the changes made since *snapshot_id*."""
        del self._snapshots[snapshot_id:]

    @contextmanager
    def _frame(self) -> Iterator[None]:
        snapshot_id = self.snapshot()
        try:
            yield
        except Exception:
            self.revert(snapshot_id)
            raise
        self.commit(snapshot_id)

    # ── Transactions ──────────────────────────────────────────────────

    def send(self, sender: str, to: str, data: bytes = b'', value: int = 0) -> Receipt:
        """
        Run a top-level transaction with raw calldata.

        Returns:
            Receipt whose ``return_value`` is the raw return data
        """
        sender = normalize_address(sender)
        to = normalize_address(to)
        start = len(self.events)
        with self._frame():
            output = self._enter(sender, to, data, value, depth=1)
        return Receipt(
            sender=sender,
            to=to,
            return_value=output,
            timestamp=self._timestamp,
            events=self.events.since(start),
        )

    def transact(self, sender: str, function: Callable, *args: Any, value: int = 0) -> Receipt:
        """
        Call an external method of a deployed contract as *sender*.

        Args:
            sender: transaction origin
            function: bound external method, e.g. ``executor.execute``
            *args: ABI arguments
            value: native value attached to the call

        Returns:
            Receipt with the decoded return value
        """
        spec = getattr(function, '__external__', None)
        contract = getattr(function, '__self__', None)
        if spec is None or not isinstance(contract, Contract):
            raise TypeError(f"{function!r} is not an external contract method")
        receipt = self.send(sender, contract.address, encode_call(spec.signature, *args), value)
        receipt.return_value = spec.decode_result(receipt.return_value)
        return receipt

    def _enter(self, sender: str, target: str, data: bytes, value: int, depth: int) -> bytes:
        if depth > MAX_CALL_DEPTH:
            raise CallDepthExceeded(f"Call depth {depth} exceeds {MAX_CALL_DEPTH}")
        self._transfer(sender, target, value)
        contract = self._contracts.get(target)
        if contract is None:
            return b''
        ctx = CallContext(
            host=self,
            sender=sender,
            this=target,
            value=value,
            code_address=target,
            depth=depth,
        )
        return contract.dispatch(ctx, data)

    # ── Nested frames ─────────────────────────────────────────────────

    def call(self, ctx: CallContext, target: str, data: bytes = b'', value: int = 0) -> bytes:
        """Direct sub-call from ``ctx.this`` to *target*, moving *value*."""
        target = normalize_address(target)
        with self._frame():
            return self._enter(ctx.this, target, data, value, depth=ctx.depth + 1)

    def delegatecall(self, ctx: CallContext, target: str, data: bytes) -> bytes:
        """Run *target*'s code with the caller's identity, sender and value."""
        target = normalize_address(target)
        depth = ctx.depth + 1
        if depth > MAX_CALL_DEPTH:
            raise CallDepthExceeded(f"Call depth {depth} exceeds {MAX_CALL_DEPTH}")
        code = self._contracts.get(target)
        if code is None:
            return b''
        delegated = CallContext(
            host=self,
            sender=ctx.sender,
            this=ctx.this,
            value=ctx.value,
            code_address=target,
            depth=depth,
        )
        with self._frame():
            return code.dispatch(delegated, data)

    def static_call(self, target: str, data: bytes, sender: str = ZERO_ADDRESS) -> bytes:
        """Run a call and discard every effect it had."""
        target = normalize_address(target)
        contract = self._contracts.get(target)
        if contract is None:
            return b''
        snapshot_id = self.snapshot()
        try:
            ctx = CallContext(host=self, sender=sender, this=target, code_address=target)
            return contract.dispatch(ctx, data)
        finally:
            self.revert(snapshot_id)
