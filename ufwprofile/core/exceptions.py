"""
Error types raised by profile building, writing, applying and privilege escalation.
"""
from pathlib import Path
from typing import Optional, Union


class UfwProfileError(Exception):
    """Base class for all ufwprofile errors."""


class ProfileValidationError(UfwProfileError, ValueError):
    """A profile field or port entry was rejected. The profile is left unchanged."""

    def __init__(self, value: str, message: str):
        super().__init__(message)
        self.value = value


class BadProtocolError(ProfileValidationError):
    def __init__(self, value: str):
        super().__init__(value, f"Bad protocol {value!r}: expected 'tcp', 'udp' or empty")


class BadPortTokenError(ProfileValidationError):
    def __init__(self, value: str, strict_ranges: bool = False):
        expected = "<low>:<high>" if strict_ranges else "<port> or <low>:<high>"
        super().__init__(value, f"Bad port {value!r}: expected {expected}")


class InvalidProfileNameError(ProfileValidationError):
    def __init__(self, value: str, reason: str = "name is empty after removing whitespace"):
        super().__init__(value, f"Invalid profile name {value!r}: {reason}")


class InvalidProfileTextError(ProfileValidationError):
    """A title or description would break the one-key-per-line profile format."""

    def __init__(self, field: str, value: str):
        super().__init__(value, f"Invalid profile {field} {value!r}: line breaks are not allowed")
        self.field = field


class ProfileWriteError(UfwProfileError, OSError):
    """Creating, writing or removing a profile file failed."""

    def __init__(self, path: Union[str, Path], operation: str, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to {operation} profile file {self.path}{detail}")


class ApplyError(UfwProfileError):
    """Writing the profile or invoking the firewall tool failed.

    ``step`` is one of ``"write"``, ``"invoke"`` or ``"decode"``.
    """

    def __init__(self, step: str, message: str, returncode: Optional[int] = None):
        super().__init__(f"{step} failed: {message}")
        self.step = step
        self.message = message
        self.returncode = returncode


class EscalationError(UfwProfileError):
    """Claiming root rights or spawning the elevation helper failed."""
