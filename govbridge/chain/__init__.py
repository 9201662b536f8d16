"""
GovBridge Chain Module

In-process execution host the executors and transport endpoints run on.
"""

from .contract import CallContext, Contract, ExternalFunction, external
from .events import Event, EventLog, Receipt
from .host import Host

__all__ = [
    "CallContext",
    "Contract",
    "Event",
    "EventLog",
    "ExternalFunction",
    "Host",
    "Receipt",
    "external",
]
