"""Exceptions raised by the Junos session core."""

from __future__ import annotations


class JunosError(RuntimeError):
    """Base exception for Junos session errors."""


class AuthError(JunosError):
    """Raised when no usable credentials are available or the device rejects them."""


class ConnectError(JunosError):
    """Raised when the SSH/NETCONF channel to ``host`` cannot be established or breaks."""

    def __init__(self, host: str, cause: BaseException | str, port: int | None = None) -> None:
        target = host if port is None else f"{host}:{port}"
        super().__init__(f"connecting to {target}: {cause}")
        self.host = host
        self.port = port
        self.cause = cause


class FactsError(JunosError):
    """Raised when get-system-information replies with errors."""


class DecodeError(JunosError):
    """Raised when a reply body does not have the expected shape."""


class CommandError(JunosError):
    """Raised when a single RPC fails."""


class ConfigSetError(JunosError):
    """Raised when loading set/delete lines produced device messages."""


class CommitError(JunosError):
    """Raised on a fatal commit entry.

    ``warnings`` holds the warnings reported before the fatal entry.
    """

    def __init__(self, message: str, warnings: list | None = None) -> None:
        super().__init__(message)
        self.warnings = list(warnings or [])


class LockError(JunosError):
    """Raised when the candidate lock cannot be acquired in time."""


class ClearError(JunosError):
    """Raised when the candidate configuration cannot be cleared."""


class UnlockError(JunosError):
    """Raised when the candidate configuration cannot be unlocked."""


class CloseError(JunosError):
    """Raised when the close-session RPC fails."""
