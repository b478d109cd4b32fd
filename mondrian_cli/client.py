"""
HTTP client for the Mondrian REST server.

The client only moves text: it fetches the URL of a request and returns the
response body, or raises :class:`TransportError` with the error message the
server sent. Requests are issued one at a time, without retries.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
from pydantic import BaseModel, Field, ValidationError

from .errors import TransportError
from .logging import get_logger, mask_secret
from .metadata import (
    CubeDescription,
    CubeDescriptions,
    Members,
    parse_cube_description,
    parse_cube_descriptions,
    parse_members,
)
from .query import (
    CatalogRequest,
    DescribeRequest,
    FlushRequest,
    LevelName,
    MembersRequest,
    QueryBuilder,
    Request,
    build_request,
    normalize_base_url,
)
from .settings import DEFAULT_TIMEOUT

__all__ = [
    "Client",
    "extract_remote_error",
    "structured_error",
    "unstructured_error",
    "REMOTE_ERROR_EXTRACTORS",
]

UNSTRUCTURED_ERROR_LINES = 2


class RemoteError(BaseModel):
    """Error body sent by the server for failed queries."""

    error: list[str] = Field(..., min_length=1)


def structured_error(body: str) -> str | None:
    """Message of a ``{"error": [message, ...]}`` body."""
    try:
        return RemoteError.model_validate_json(body).error[0]
    except ValidationError:
        return None


def unstructured_error(body: str) -> str | None:
    """First lines of a plain text body, such as a server stack trace."""
    lines = body.splitlines()[:UNSTRUCTURED_ERROR_LINES]
    text = "\n".join(lines).strip()
    return text or None


# Tried in order, the first extractor returning a message wins
REMOTE_ERROR_EXTRACTORS: tuple[Callable[[str], str | None], ...] = (
    structured_error,
    unstructured_error,
)


def extract_remote_error(body: str) -> str | None:
    """Return the error message contained in a non-success response body."""
    if not body:
        return None

    for extractor in REMOTE_ERROR_EXTRACTORS:
        message = extractor(body)
        if message is not None:
            return message

    return None


class Client:
    """
    Client bound to one server base address.

    Args:
        base_url: Server base address, e.g. ``http://localhost:5000``
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport, used to mock the server in tests

    Raises:
        UrlConstructionError: If `base_url` is malformed.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 transport: httpx.BaseTransport | None = None):
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout
        self.logger = get_logger()
        self.http = httpx.Client(timeout=timeout, transport=transport)

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def query(self) -> QueryBuilder:
        """Return a query builder bound to the server address."""
        return QueryBuilder(self.base_url)

    def fetch(self, url: str, secret: str | None = None) -> str:
        """
        Fetch `url` and return the response body.

        Args:
            url: Absolute URL to fetch
            secret: Value to mask wherever the URL is logged or reported

        Raises:
            TransportError: On connection failure or a non-success status.
        """
        public_url = mask_secret(url, secret)
        self.logger.debug("mondrian request: %s", public_url)

        try:
            response = self.http.get(url)
        except httpx.HTTPError as e:
            raise TransportError(
                f"Request failed: {mask_secret(str(e), secret)}", url=public_url
            ) from e

        if not response.is_success:
            body = response.text
            message = extract_remote_error(body) or response.reason_phrase
            raise TransportError(
                f"Server error {response.status_code}: {message}",
                url=public_url,
                status=response.status_code,
                body=body,
            )

        return response.text

    def execute(self, request: Request | QueryBuilder) -> str:
        """Fetch the body of a request shape or of a configured builder."""
        if isinstance(request, QueryBuilder):
            request = request.request()
        return self.fetch(request.url(self.base_url))

    def catalog(self) -> CubeDescriptions:
        return parse_cube_descriptions(self.execute(CatalogRequest()))

    def cube(self, name: str) -> CubeDescription:
        request = build_request(DescribeRequest, cube=name)
        return parse_cube_description(self.execute(request))

    def members(self, cube: str, level: LevelName | str) -> Members:
        if isinstance(level, str):
            level = LevelName.parse(level)
        request = build_request(MembersRequest, cube=cube, level=level)
        return parse_members(self.execute(request))

    def flush(self, secret: str) -> None:
        """Ask the server to flush its schema and caches."""
        request = build_request(FlushRequest, secret=secret)
        self.fetch(request.url(self.base_url), secret=secret)
        self.logger.info("server at %s flushed", self.base_url)
