"""Error hierarchy for the fsroutes engine."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "RouteError",
    "ConfigError",
    "ConfigNotFoundError",
    "RouteLoadError",
    "HandlerExportError",
    "EmptyHandlerError",
    "HookError",
    "RouteRegistrationError",
    "ErrorCodes",
]


class RouteError(Exception):
    """Base error for all fsroutes errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigError(RouteError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class ConfigNotFoundError(RouteError):
    """Raised when a configured file or directory does not exist."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"The directory or file '{config_path}' does not exist.",
            details={"config_path": config_path},
            **kwargs,
        )

    @property
    def config_path(self) -> str:
        """The path that could not be found."""
        return self.details["config_path"]


class RouteLoadError(RouteError):
    """Raised when a route file raises while it is being imported."""

    def __init__(self, file_path: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="ROUTE_LOAD_ERROR",
            message=f"Failed to load route file '{file_path}': {reason}",
            details={"file_path": file_path, "reason": reason},
            **kwargs,
        )


class HandlerExportError(RouteError):
    """Raised when a route file exports a ``router`` that is not a Router."""

    def __init__(self, file_path: str, found: str, **kwargs: Any) -> None:
        super().__init__(
            code="HANDLER_EXPORT_INVALID",
            message=f"The `router` export of a route must be a Router, got {found}. Found at: {file_path}",
            details={"file_path": file_path, "found": found},
            **kwargs,
        )


class EmptyHandlerError(RouteError):
    """Raised in strict mode when a route file provides no usable handler."""

    def __init__(self, file_path: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="HANDLER_EMPTY",
            message=f"Route handler at {file_path} is empty: {reason}",
            details={"file_path": file_path, "reason": reason},
            **kwargs,
        )


class HookError(RouteError):
    """Raised when a registration hook fails or returns an invalid value."""

    def __init__(self, hook: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="HOOK_FAILED",
            message=f"`{hook}` {reason}",
            details={"hook": hook, "reason": reason},
            **kwargs,
        )


class RouteRegistrationError(RouteError):
    """Raised in strict mode when a single route fails, aborting the run."""

    def __init__(self, file_path: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="ROUTE_REGISTRATION_FAILED",
            message=f"Failed to register route for file '{file_path}': {reason}",
            details={"file_path": file_path, "reason": reason},
            **kwargs,
        )

    @property
    def file_path(self) -> str:
        """The route file that failed."""
        return self.details["file_path"]


class ErrorCodes:
    """All fsroutes error codes as constants.

    Example:
        if error.code == ErrorCodes.ROUTE_LOAD_ERROR:
            handle_broken_file()
    """

    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    ROUTE_LOAD_ERROR = "ROUTE_LOAD_ERROR"
    HANDLER_EXPORT_INVALID = "HANDLER_EXPORT_INVALID"
    HANDLER_EMPTY = "HANDLER_EMPTY"
    HOOK_FAILED = "HOOK_FAILED"
    ROUTE_REGISTRATION_FAILED = "ROUTE_REGISTRATION_FAILED"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
