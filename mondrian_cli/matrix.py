"""
Schema test matrix.

A cube is tested with the fewest queries that still touch every dimension,
measure and level property once:

- one drilldown per dimension (first real level of its first hierarchy)
  together with all measures,
- one query per level property, drilled down by the property's level,
  together with all measures.

Queries run sequentially. A failed query does not stop the rest of the
queries of its cube, but a failed cube stops the testing of further cubes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from .errors import MondrianCliError
from .logging import get_logger
from .metadata import CubeDescription
from .query import Drilldown, Property, QueryBuilder

__all__ = [
    "Test",
    "generate_test",
    "QueryKind",
    "TestQuery",
    "QueryResult",
    "CubeTestResult",
    "TestRunner",
]


@dataclass(frozen=True)
class Test:
    """Representative drilldowns, measures and properties of one cube."""

    __test__ = False

    name: str
    drilldowns: list[str] = field(default_factory=list)
    measures: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)

    def describe(self) -> str:
        lines = [f"Test Cube: {self.name}"]
        lines.append("  Dimensions, Hierarchies, and Levels:")
        lines += [f"    {drilldown}" for drilldown in self.drilldowns]
        lines.append("  Measures:")
        lines += [f"    {measure}" for measure in self.measures]
        lines.append("  Properties:")
        lines += [f"    {prop}" for prop in self.properties]
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.describe()


def generate_test(cube: CubeDescription) -> Test:
    """Derive the test matrix of `cube`."""
    drilldowns = [dim.hierarchies[0].first_level.full_name
                  for dim in cube.dimensions if dim.hierarchies]

    properties = [full_name
                  for level in cube.levels()
                  for full_name in level.property_full_names()]

    return Test(
        name=cube.name,
        drilldowns=drilldowns,
        measures=cube.measure_names(),
        properties=properties,
    )


class QueryKind(str, Enum):
    DRILLDOWN = "drilldown"
    PROPERTY = "property"


@dataclass(frozen=True)
class TestQuery:
    """One query of the matrix: what it tests and how to build it."""

    __test__ = False

    cube: str
    kind: QueryKind
    name: str

    def configure(self, builder: QueryBuilder, measures: list[str]) -> QueryBuilder:
        """Set up `builder` for this query. Raises naming errors for names
        that can not be parsed."""
        builder.cube(self.cube)

        if self.kind == QueryKind.PROPERTY:
            prop = Property.parse(self.name)
            builder.drilldown(Drilldown(prop.level_name)).property(prop)
        else:
            builder.drilldown(self.name)

        return builder.measures(measures)


@dataclass
class QueryResult:
    query: TestQuery
    url: str | None = None
    error: MondrianCliError | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        status = "ok" if self.passed else f"ERROR: {self.error}"
        return f"{self.query.kind.value} {self.query.name}: {status}"


@dataclass
class CubeTestResult:
    test: Test
    results: list[QueryResult] = field(default_factory=list)

    @property
    def cube(self) -> str:
        return self.test.name

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results)

    @property
    def failures(self) -> list[QueryResult]:
        return [result for result in self.results if not result.passed]

    @property
    def first_error(self) -> MondrianCliError | None:
        failures = self.failures
        return failures[0].error if failures else None


class TestRunner:
    """
    Runs test matrices against a server through `client`.

    Args:
        client: A :class:`mondrian_cli.client.Client`
        on_test: Optional callback called with the matrix of every cube
            before its queries run
        on_result: Optional callback called after every query
    """

    __test__ = False

    def __init__(self, client,
                 on_test: Callable[[Test], None] | None = None,
                 on_result: Callable[[QueryResult], None] | None = None):
        self.client = client
        self.on_test = on_test
        self.on_result = on_result
        self.logger = get_logger()

    def queries(self, test: Test) -> Iterator[TestQuery]:
        for drilldown in test.drilldowns:
            yield TestQuery(test.name, QueryKind.DRILLDOWN, drilldown)
        for prop in test.properties:
            yield TestQuery(test.name, QueryKind.PROPERTY, prop)

    def run_query(self, query: TestQuery, measures: list[str]) -> QueryResult:
        result = QueryResult(query)

        try:
            builder = query.configure(self.client.query(), measures)
            result.url = builder.url()
            self.client.fetch(result.url)
        except MondrianCliError as e:
            e.add_context("cube", query.cube).add_context(query.kind.value, query.name)
            result.error = e
            self.logger.error("test query failed: %s", e)

        if self.on_result:
            self.on_result(result)

        return result

    def run_cube(self, cube: CubeDescription) -> CubeTestResult:
        """Run every query of the cube matrix, failed or not."""
        test = generate_test(cube)
        cube_result = CubeTestResult(test)

        if self.on_test:
            self.on_test(test)

        for query in self.queries(test):
            cube_result.results.append(self.run_query(query, test.measures))

        return cube_result

    def run(self, cubes: Iterable[CubeDescription]) -> list[CubeTestResult]:
        """Test `cubes` in order, stopping after the first failed cube."""
        results = []

        for cube in cubes:
            self.logger.info("testing cube %s", cube.name)
            cube_result = self.run_cube(cube)
            results.append(cube_result)

            if not cube_result.passed:
                self.logger.error("cube %s failed, skipping remaining cubes",
                                  cube.name)
                break

        return results
