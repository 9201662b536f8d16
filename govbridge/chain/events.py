"""
Event log and transaction receipts.

Events are append-only. A reverted frame truncates the log back to the
length it had when the frame opened.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class Event:
    """A log entry emitted by a contract."""
    address: str
    name: str
    args: Dict[str, Any]
    timestamp: int
    index: int

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "address": self.address,
            "args": {
                k: ('0x' + v.hex()) if isinstance(v, bytes) else v
                for k, v in self.args.items()
            },
            "timestamp": self.timestamp,
            "logIndex": self.index,
        }


class EventLog:
    """Append-only event store for a host."""

    def __init__(self):
        self._events: List[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def append(self, address: str, name: str, args: Dict[str, Any], timestamp: int) -> Event:
        event = Event(
            address=address,
            name=name,
            args=dict(args),
            timestamp=timestamp,
            index=len(self._events),
        )
        self._events.append(event)
        return event

    def truncate(self, length: int) -> None:
        del self._events[length:]

    def since(self, start: int) -> List[Event]:
        return list(self._events[start:])

    def filter(
        self,
        name: Optional[str] = None,
        address: Optional[str] = None,
    ) -> List[Event]:
        return [
            e for e in self._events
            if (name is None or e.name == name)
            and (address is None or e.address == address)
        ]


@dataclass
class Receipt:
    """Outcome of a committed top-level transaction."""
    sender: str
    to: str
    return_value: Any
    timestamp: int
    events: List[Event] = field(default_factory=list)

    def events_named(self, name: str) -> List[Event]:
        return [e for e in self.events if e.name == name]

    def event(self, name: str) -> Event:
        """The single event called *name*; fails if there is not exactly one."""
        matches = self.events_named(name)
        if len(matches) != 1:
            raise LookupError(f"Expected one {name} event, found {len(matches)}")
        return matches[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.sender,
            "to": self.to,
            "timestamp": self.timestamp,
            "logs": [e.to_dict() for e in self.events],
        }
