"""
Query module for the Mondrian REST client.

Qualified names of schema objects, the typed request shapes and the chained
builder producing them.
"""

from .builder import QueryBuilder, build_request, query
from .names import Cut, Drilldown, LevelName, Measure, Property
from .requests import (
    AggregateRequest,
    CatalogRequest,
    DescribeRequest,
    FlushRequest,
    MembersRequest,
    Request,
    ResponseFormat,
    normalize_base_url,
)

__all__ = [
    "QueryBuilder",
    "query",
    "build_request",
    "Cut",
    "Drilldown",
    "LevelName",
    "Measure",
    "Property",
    "AggregateRequest",
    "CatalogRequest",
    "DescribeRequest",
    "FlushRequest",
    "MembersRequest",
    "Request",
    "ResponseFormat",
    "normalize_base_url",
]
