"""
Chained query builder for the Mondrian REST server.

The builder accumulates the query intent and is finalized with
:meth:`QueryBuilder.request` (the typed request shape) or
:meth:`QueryBuilder.url`. Finalizing does no I/O and can be repeated.

Example::

    url = (
        query("http://localhost:5000")
        .cube("Sales")
        .drilldown("Geography.State")
        .measure("Quantity")
        .cut("Date.Year.2016,2017")
        .url()
    )
"""

from __future__ import annotations

from collections.abc import Iterable

import pydantic

from ..errors import ValidationError
from .names import Cut, Drilldown, LevelName, Measure, Property
from .requests import (
    AggregateRequest,
    CatalogRequest,
    DescribeRequest,
    MembersRequest,
    Request,
    ResponseFormat,
    normalize_base_url,
)

__all__ = ["QueryBuilder", "query", "build_request"]


def build_request(request_class, **fields):
    """Construct `request_class`, raising :class:`ValidationError` for fields
    it does not accept."""
    try:
        return request_class(**fields)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(loc) for loc in error["loc"])
        raise ValidationError(f"Invalid {field}: {error['msg']}",
                              field=field) from e


class QueryBuilder:
    """
    Mutable accumulator of query parameters bound to a server base address.

    Every setter returns the builder. Names may be given as name objects or
    as text in the loose dotted form (``"Geography.State"``).
    """

    def __init__(self, base_url: str):
        self.base_url = base_url
        self.cube_name: str | None = None
        self.members_level: LevelName | None = None
        self.drilldown_list: list[Drilldown] = []
        self.measure_list: list[Measure] = []
        self.cut_list: list[Cut] = []
        self.property_list: list[Property] = []
        self.flags: dict[str, bool] = {
            "debug": False,
            "parents": False,
            "nonempty": False,
            "distinct": False,
            "sparse": False,
        }
        self.response_format = ResponseFormat.JSON

    def __repr__(self) -> str:
        return f"<QueryBuilder(base_url={self.base_url!r}, cube={self.cube_name!r})>"

    # Setters

    def cube(self, cube_name: str) -> QueryBuilder:
        self.cube_name = cube_name
        return self

    def members(self, level: LevelName | str) -> QueryBuilder:
        """Request the members of `level` instead of an aggregate."""
        if isinstance(level, str):
            level = LevelName.parse(level)
        self.members_level = level
        return self

    def drilldown(self, drilldown: Drilldown | LevelName | str) -> QueryBuilder:
        if isinstance(drilldown, str):
            drilldown = Drilldown.parse(drilldown)
        elif isinstance(drilldown, LevelName):
            drilldown = Drilldown(drilldown)
        self.drilldown_list.append(drilldown)
        return self

    def drilldowns(self, drilldowns: Iterable[Drilldown | LevelName | str]) -> QueryBuilder:
        for drilldown in drilldowns:
            self.drilldown(drilldown)
        return self

    def measure(self, measure: Measure | str) -> QueryBuilder:
        if isinstance(measure, str):
            measure = Measure.parse(measure)
        self.measure_list.append(measure)
        return self

    def measures(self, measures: Iterable[Measure | str]) -> QueryBuilder:
        for measure in measures:
            self.measure(measure)
        return self

    def cut(self, cut: Cut | str) -> QueryBuilder:
        if isinstance(cut, str):
            cut = Cut.parse(cut)
        self.cut_list.append(cut)
        return self

    def cuts(self, cuts: Iterable[Cut | str]) -> QueryBuilder:
        for cut in cuts:
            self.cut(cut)
        return self

    def property(self, property_: Property | str) -> QueryBuilder:
        if isinstance(property_, str):
            property_ = Property.parse(property_)
        self.property_list.append(property_)
        return self

    def properties(self, properties: Iterable[Property | str]) -> QueryBuilder:
        for property_ in properties:
            self.property(property_)
        return self

    def debug(self, debug: bool = True) -> QueryBuilder:
        self.flags["debug"] = debug
        return self

    def parents(self, parents: bool = True) -> QueryBuilder:
        self.flags["parents"] = parents
        return self

    def nonempty(self, nonempty: bool = True) -> QueryBuilder:
        self.flags["nonempty"] = nonempty
        return self

    def distinct(self, distinct: bool = True) -> QueryBuilder:
        self.flags["distinct"] = distinct
        return self

    def sparse(self, sparse: bool = True) -> QueryBuilder:
        self.flags["sparse"] = sparse
        return self

    def format(self, response_format: ResponseFormat | str) -> QueryBuilder:
        try:
            self.response_format = ResponseFormat(response_format)
        except ValueError as e:
            raise ValidationError(
                f"Unknown response format '{response_format}'",
                field="format",
                value=response_format,
            ) from e
        return self

    # Finalizers

    def has_query_fields(self) -> bool:
        return bool(
            self.drilldown_list
            or self.measure_list
            or self.cut_list
            or self.property_list
        )

    def request(self) -> Request:
        """
        Validate the accumulated state and return the request it describes.

        Returns:
            One of CatalogRequest, DescribeRequest, MembersRequest or
            AggregateRequest.

        Raises:
            ValidationError: If the state mixes request kinds or misses a
                required field.
        """
        if self.members_level is not None:
            if not self.cube_name:
                raise ValidationError("members request requires a cube name",
                                      field="cube")
            if self.has_query_fields():
                raise ValidationError(
                    "members request must not include query parameters",
                    field="members",
                    value=str(self.members_level),
                )
            return build_request(MembersRequest, cube=self.cube_name,
                               level=self.members_level)

        if not self.cube_name:
            if self.has_query_fields():
                raise ValidationError("cube name is required for query",
                                      field="cube")
            return CatalogRequest()

        if not self.has_query_fields():
            return build_request(DescribeRequest, cube=self.cube_name)

        if not self.drilldown_list or not self.measure_list:
            raise ValidationError(
                "aggregate query requires at least one drilldown and one measure",
                field="drilldown" if not self.drilldown_list else "measures",
            ).add_context("cube", self.cube_name)

        return build_request(
            AggregateRequest,
            cube=self.cube_name,
            drilldowns=tuple(self.drilldown_list),
            measures=tuple(self.measure_list),
            cuts=tuple(self.cut_list),
            properties=tuple(self.property_list),
            format=self.response_format,
            **self.flags,
        )

    def url(self) -> str:
        """Return the URL of the request, see :meth:`request`.

        Raises:
            ValidationError: See :meth:`request`.
            UrlConstructionError: If the base address is malformed.
        """
        normalize_base_url(self.base_url)
        return self.request().url(self.base_url)


def query(base_url: str) -> QueryBuilder:
    """Initializer for the builder pattern"""
    return QueryBuilder(base_url)
