"""
GovBridge Exceptions

Base exception classes and the reverts raised by the execution host.
"""


class GovBridgeException(Exception):
    """Base exception for GovBridge."""
    pass


class ConfigurationError(GovBridgeException):
    """Configuration error."""
    pass


class InvalidAddressError(GovBridgeException, ValueError):
    """Invalid address format."""
    pass


class Revert(GovBridgeException):
    """
    Raised by contract code to abort the current call frame.

    Every frame the host opens is discarded when a Revert (or any other
    exception) escapes it.
    """

    def __init__(self, message: str = ""):
        super().__init__(message or self.error_name)

    @property
    def error_name(self) -> str:
        """Stable error code (the class name)."""
        return type(self).__name__


class InsufficientFunds(Revert):
    """Value transfer exceeds the sender's balance."""
    pass


class NonPayable(Revert):
    """Value sent to a function that does not accept it."""
    pass


class UnknownFunction(Revert):
    """No function matches the selector and the contract has no fallback."""
    pass


class InvalidCalldata(Revert):
    """Calldata could not be decoded against the function signature."""
    pass


class CallDepthExceeded(Revert):
    """Nested calls went past the host depth limit."""
    pass
