"""Exceptions used in mondrian-cli.

The base exception class is :class:`.MondrianCliError`. Errors are split into
two families:

* :class:`UserError` – raised before any request is made, caused by the input
  (names, builder state, configuration). The user can fix them.
* :class:`InternalError` – raised while talking to the server or reading its
  responses.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "MondrianCliError",
    "UserError",
    "InternalError",
    "ConfigurationError",
    "NamingConventionError",
    "ValidationError",
    "UrlConstructionError",
    "TransportError",
    "ParseError",
    "NoSuchCubeError",
]


class MondrianCliError(Exception):
    """Base exception with context preservation."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def add_context(self, key: str, value: Any) -> MondrianCliError:
        """Fluent interface for adding context."""
        self.context[key] = value
        return self

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class UserError(MondrianCliError):
    """Superclass for all errors caused by the user input. Users can fix the
    error."""

    error_type = "user_error"


class InternalError(MondrianCliError):
    """Superclass for all errors that happened on the server side or while
    reading the server responses."""

    error_type = "internal_error"


class ConfigurationError(UserError):
    """Raised when a required setting (base url, secret) is missing."""

    error_type = "configuration_error"


class NamingConventionError(UserError):
    """Raised when a qualified name can not be built from its segments."""

    error_type = "naming_convention_error"

    def __init__(self, message: str, segments: list[str] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.segments = list(segments) if segments is not None else []
        if segments is not None:
            self.add_context("segments", self.segments)


class ValidationError(UserError):
    """Raised when the accumulated query state is not a valid request."""

    error_type = "validation_error"

    def __init__(
        self, message: str, *, field: str | None = None, value: Any = None, **kwargs
    ):
        super().__init__(message, **kwargs)
        self.field = field
        if field:
            self.add_context("field", field)
        if value is not None:
            self.add_context("value", value)


class UrlConstructionError(UserError):
    """Raised when the base address is not a usable absolute URL."""

    error_type = "url_construction_error"

    def __init__(self, message: str, url: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.url = url
        if url is not None:
            self.add_context("url", url)


class TransportError(InternalError):
    """Raised on a non-success response or a connection failure.

    `status` is ``None`` when no response was received at all.
    """

    error_type = "transport_error"

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status: int | None = None,
        body: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.url = url
        self.status = status
        self.body = body
        if status is not None:
            self.add_context("status", status)
        if url is not None:
            self.add_context("url", url)


class ParseError(InternalError):
    """Raised when a response body does not have the expected shape."""

    error_type = "parse_error"

    def __init__(self, message: str, *, path: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
        if path:
            self.add_context("field", path)


class NoSuchCubeError(UserError):
    """Raised when an unknown cube is requested."""

    error_type = "missing_object"

    def __init__(self, message: str, name: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.name = name
