"""
Cube descriptions as returned by the ``cubes/`` and ``cubes/<cube>/``
endpoints.

The tree is cube → dimensions → hierarchies → levels → properties, plus the
cube measures and named sets. Every hierarchy starts with the implicit "all"
level when ``has_all`` is set.
"""

from __future__ import annotations

from pydantic import Field

from ..errors import NoSuchCubeError
from ..query.names import LevelName
from .base import SchemaObject, format_annotations, parse_response

__all__ = [
    "Level",
    "Hierarchy",
    "Dimension",
    "Measure",
    "NamedSet",
    "CubeDescription",
    "CubeDescriptions",
    "parse_cube_description",
    "parse_cube_descriptions",
]


class Level(SchemaObject):
    """Hierarchy level with its member properties."""

    full_name: str = Field(..., description="Qualified name, e.g. [Geo].[Geo].[State]")
    depth: int = 0
    caption: str | None = None
    annotations: dict[str, str] = Field(default_factory=dict)
    properties: list[str] = Field(default_factory=list)

    def property_full_names(self) -> list[str]:
        return [f"{self.full_name}.[{prop}]" for prop in self.properties]


class Hierarchy(SchemaObject):
    """Ordered levels of a dimension."""

    has_all: bool = True
    all_member_name: str | None = None
    levels: list[Level] = Field(..., min_length=1)

    @property
    def real_levels(self) -> list[Level]:
        """Levels without the implicit "all" level."""
        if self.has_all:
            return self.levels[1:]
        return list(self.levels)

    @property
    def first_level(self) -> Level:
        """First real level, or the only level there is."""
        levels = self.real_levels
        return levels[0] if levels else self.levels[0]


class Dimension(SchemaObject):
    caption: str | None = None
    type: str | None = None
    annotations: dict[str, str] = Field(default_factory=dict)
    hierarchies: list[Hierarchy] = Field(..., min_length=1)


class Measure(SchemaObject):
    caption: str | None = None
    full_name: str | None = None
    aggregator: str | None = None
    annotations: dict[str, str] = Field(default_factory=dict)


class NamedSet(SchemaObject):
    """Named set of members bound to one level."""

    dimension: str
    hierarchy: str
    level: str
    annotations: dict[str, str] = Field(default_factory=dict)

    @property
    def level_name(self) -> LevelName:
        return LevelName(self.dimension, self.hierarchy, self.level)


class CubeDescription(SchemaObject):
    """
    Description of one cube.

    :meth:`describe` renders the description for humans, the test matrix of
    the cube is created by :func:`mondrian_cli.matrix.generate_test`.
    """

    dimensions: list[Dimension] = Field(default_factory=list)
    measures: list[Measure] = Field(default_factory=list)
    named_sets: list[NamedSet] = Field(default_factory=list)
    annotations: dict[str, str] = Field(default_factory=dict)

    def levels(self) -> list[Level]:
        """All levels of all hierarchies, "all" levels included."""
        return [level
                for dim in self.dimensions
                for hier in dim.hierarchies
                for level in hier.levels]

    def measure_names(self) -> list[str]:
        return [measure.name for measure in self.measures]

    def describe(self) -> str:
        lines = [f"Cube: {self.name}"]
        lines += format_annotations(self.annotations, 2)

        lines.append("  Dimensions, Hierarchies, and Levels:")
        for dim in self.dimensions:
            lines += format_annotations(dim.annotations, 4)
            for hier in dim.hierarchies:
                for level in hier.real_levels:
                    lines.append(f"    {level.full_name}")
                    lines += [f"      {prop} (property)" for prop in level.properties]
                    lines += format_annotations(level.annotations, 6)

        if self.named_sets:
            lines.append("  Named Sets:")
        for named_set in self.named_sets:
            lines += format_annotations(named_set.annotations, 4)
            lines.append(f"    {named_set.name}: {named_set.level_name}")

        lines.append("  Measures:")
        for measure in self.measures:
            lines += format_annotations(measure.annotations, 4)
            if measure.aggregator:
                lines.append(f"    {measure.name} | agg: {measure.aggregator}")
            else:
                lines.append(f"    {measure.name}")

        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.describe()


class CubeDescriptions(SchemaObject):
    """Catalog of all cubes. The catalog itself has no name."""

    name: str = "cubes"
    cubes: list[CubeDescription] = Field(default_factory=list)

    def cube(self, name: str) -> CubeDescription:
        for cube in self.cubes:
            if cube.name == name:
                return cube
        raise NoSuchCubeError(
            f"Unknown cube '{name}'. Available cubes: {', '.join(self.cube_names()) or 'none'}",
            name=name,
        )

    def cube_names(self) -> list[str]:
        return [cube.name for cube in self.cubes]

    def describe(self) -> str:
        return "\n".join(cube.describe() for cube in self.cubes)

    def __str__(self) -> str:
        return self.describe()


def parse_cube_description(text: str | bytes) -> CubeDescription:
    return parse_response(CubeDescription, text)


def parse_cube_descriptions(text: str | bytes) -> CubeDescriptions:
    return parse_response(CubeDescriptions, text)
