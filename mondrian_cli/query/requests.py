"""
Pydantic models of the requests understood by the Mondrian REST server.

Every request is one of a closed set of shapes, each knowing how to render
itself as a URL relative to the server base address:

- :class:`CatalogRequest` – description of all cubes (``cubes/``)
- :class:`DescribeRequest` – description of one cube (``cubes/<cube>/``)
- :class:`MembersRequest` – members of one level of a cube
- :class:`AggregateRequest` – aggregation query (``cubes/<cube>/aggregate.<fmt>``)
- :class:`FlushRequest` – administrative schema and cache flush

Invalid combinations (an aggregate without measures, members without a cube)
can not be constructed.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel, ConfigDict, Field, InstanceOf, field_validator

from ..errors import UrlConstructionError
from .names import Cut, Drilldown, LevelName, Measure, Property

__all__ = [
    "ResponseFormat",
    "CatalogRequest",
    "DescribeRequest",
    "MembersRequest",
    "AggregateRequest",
    "FlushRequest",
    "Request",
    "normalize_base_url",
]

PATH_SEPARATOR = "/"

# Parameter names are part of the server protocol
DRILLDOWN_PARAM = "drilldown[]"
MEASURES_PARAM = "measures[]"
CUT_PARAM = "cut[]"
PROPERTIES_PARAM = "properties[]"
FLAG_PARAMS = ("debug", "parents", "nonempty", "distinct", "sparse")
SECRET_PARAM = "secret"


class ResponseFormat(str, Enum):
    """Formats of the aggregate response, used as the aggregate URL suffix."""

    JSON = "json"
    JSON_RECORDS = "jsonrecords"
    CSV = "csv"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "").replace("_", "")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


def normalize_base_url(base_url: str) -> str:
    """
    Validate the server base address and make it end with exactly one `/`.

    Raises:
        UrlConstructionError: If the address is not an absolute http(s) URL.
    """
    if not isinstance(base_url, str) or not base_url.strip():
        raise UrlConstructionError("Base url must not be empty", url=base_url)

    base_url = base_url.strip()

    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise UrlConstructionError(f"Invalid base url: {e}", url=base_url) from e

    if url.scheme not in ("http", "https") or not url.host:
        raise UrlConstructionError(
            "Base url must be an absolute http or https url", url=base_url
        )

    if url.query or url.fragment:
        raise UrlConstructionError(
            "Base url must not have a query or a fragment", url=base_url
        )

    return base_url.rstrip(PATH_SEPARATOR) + PATH_SEPARATOR


def _join(base_url: str, *segments: str, trailing_slash: bool = False) -> str:
    path = PATH_SEPARATOR.join(quote(segment, safe="") for segment in segments)
    url = normalize_base_url(base_url) + path
    if trailing_slash:
        url += PATH_SEPARATOR
    return url


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


class BaseRequest(BaseModel):
    """Base class for all request shapes."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def url(self, base_url: str) -> str:
        raise NotImplementedError


class CubeRequestMixin(BaseModel):
    cube: str = Field(..., description="Name of the cube")

    @field_validator("cube")
    @classmethod
    def validate_cube(cls, v: str) -> str:
        """Validate that cube name is a non-empty string."""
        if not v.strip():
            raise ValueError("cube name must be a non-empty string")
        return v


class CatalogRequest(BaseRequest):
    """Description of every cube on the server."""

    kind: Literal["catalog"] = "catalog"

    def url(self, base_url: str) -> str:
        return _join(base_url, "cubes", trailing_slash=True)


class DescribeRequest(CubeRequestMixin, BaseRequest):
    """Description of a single cube."""

    kind: Literal["describe"] = "describe"

    def url(self, base_url: str) -> str:
        return _join(base_url, "cubes", self.cube, trailing_slash=True)


class MembersRequest(CubeRequestMixin, BaseRequest):
    """Members of a cube level."""

    kind: Literal["members"] = "members"
    level: InstanceOf[LevelName] = Field(..., description="Level to list")

    def url(self, base_url: str) -> str:
        return _join(
            base_url,
            "cubes",
            self.cube,
            "dimensions",
            self.level.dimension,
            "hierarchies",
            self.level.hierarchy,
            "levels",
            self.level.level,
            "members",
        )


class AggregateRequest(CubeRequestMixin, BaseRequest):
    """Aggregation of measures grouped by drilldowns, restricted by cuts."""

    kind: Literal["aggregate"] = "aggregate"
    drilldowns: tuple[InstanceOf[Drilldown], ...] = Field(..., min_length=1)
    measures: tuple[InstanceOf[Measure], ...] = Field(..., min_length=1)
    cuts: tuple[InstanceOf[Cut], ...] = ()
    properties: tuple[InstanceOf[Property], ...] = ()
    debug: bool = False
    parents: bool = False
    nonempty: bool = False
    distinct: bool = False
    sparse: bool = False
    format: ResponseFormat = ResponseFormat.JSON

    def query_params(self) -> list[tuple[str, str]]:
        """Query parameters in protocol order, repeated keys in insertion
        order."""
        params = [(DRILLDOWN_PARAM, str(d)) for d in self.drilldowns]
        params += [(MEASURES_PARAM, str(m)) for m in self.measures]
        params += [(CUT_PARAM, str(c)) for c in self.cuts]
        params += [(PROPERTIES_PARAM, str(p)) for p in self.properties]
        params += [(flag, _bool_text(getattr(self, flag))) for flag in FLAG_PARAMS]
        return params

    def url(self, base_url: str) -> str:
        path = _join(base_url, "cubes", self.cube, f"aggregate.{self.format.value}")
        query = urlencode(self.query_params(), safe="[]", quote_via=quote)
        return f"{path}?{query}"


class FlushRequest(BaseRequest):
    """Request to flush the server schema and caches."""

    kind: Literal["flush"] = "flush"
    secret: str = Field(..., min_length=1, repr=False)

    def url(self, base_url: str) -> str:
        query = urlencode([(SECRET_PARAM, self.secret)], quote_via=quote)
        return f"{_join(base_url, 'flush')}?{query}"


Request = CatalogRequest | DescribeRequest | MembersRequest | AggregateRequest
