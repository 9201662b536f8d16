"""
GovBridge CLI Module
"""

from .actions import cli

__all__ = ["cli"]
