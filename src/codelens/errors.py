"""Error types raised by the code lens core.

Only contract violations and bad option shapes surface as exceptions. Server
failures during list or resolve requests are logged and absorbed by the
coordinators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


class ErrorCode:
    """Constants for machine-readable error codes."""

    INVALID_OPTIONS = "invalid_options"
    SERVER_GONE = "server_gone"
    INTERNAL_ERROR = "internal_error"


@dataclass
class CodeLensError(Exception):
    """Base exception for the code lens core.

    Attributes:
        message: Human-readable error description.
        details: Additional structured information for logs.
    """

    message: str
    details: dict[str, Any] = field(default_factory=dict)

    error_code: ClassVar[str] = ErrorCode.INTERNAL_ERROR

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class InvalidOptionsError(CodeLensError, ValueError):
    """Raised synchronously when an options value has the wrong shape."""

    option: str = ""

    error_code: ClassVar[str] = ErrorCode.INVALID_OPTIONS

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.option:
            self.details.setdefault("option", self.option)


@dataclass
class ServerGoneError(CodeLensError, RuntimeError):
    """Raised when a lens is executed against a server with no live connection.

    This signals a sequencing bug in the caller and is never recovered from.
    """

    server_id: Any = None

    error_code: ClassVar[str] = ErrorCode.SERVER_GONE

    def __post_init__(self) -> None:
        super().__post_init__()
        self.details.setdefault("server_id", self.server_id)


__all__ = [
    "ErrorCode",
    "CodeLensError",
    "InvalidOptionsError",
    "ServerGoneError",
]
