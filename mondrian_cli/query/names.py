"""
Fully qualified names of Mondrian schema objects used in queries.

A level is always addressed by its dimension, hierarchy and level name and
serialized in the bracketed member-selector syntax understood by the server::

    [Geography].[Geography].[County]

Drilldowns, cuts and properties wrap such a level name. Names can be parsed
from the loose text form accepted on the command line:

- ``[Dimension].[Hierarchy].[Level]``
- ``Dimension.Hierarchy.Level``
- ``Dimension.Level`` (the hierarchy is named after the dimension)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..errors import NamingConventionError

__all__ = [
    "LevelName",
    "Drilldown",
    "Measure",
    "Cut",
    "Property",
    "split_name",
    "trim_brackets",
]

NAME_SEPARATOR = "."
MEMBER_SEPARATOR = ","
MEMBER_PREFIX = "&"
MEASURES_DIMENSION = "Measures"


def trim_brackets(segment: str) -> str:
    """Strip whitespace and one pair of surrounding brackets, if present."""
    segment = segment.strip()
    if len(segment) >= 2 and segment.startswith("[") and segment.endswith("]"):
        return segment[1:-1]
    return segment


def _split_outside_brackets(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    depth = 0

    for char in text:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth < 0:
                raise NamingConventionError(f"Unbalanced brackets in name '{text}'")

        if char == separator and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)

    if depth != 0:
        raise NamingConventionError(f"Unbalanced brackets in name '{text}'")

    parts.append("".join(current))
    return parts


def split_name(text: str) -> list[str]:
    """
    Split a dotted name into bracket-trimmed segments.

    Dots inside brackets are part of the segment, so ``[Date].[Fiscal.Year]``
    yields ``["Date", "Fiscal.Year"]``.

    Raises:
        NamingConventionError: If the text is empty, has unbalanced brackets
            or contains an empty segment.
    """
    if not text or not text.strip():
        raise NamingConventionError("Name cannot be empty", segments=[])

    segments = [trim_brackets(part) for part in _split_outside_brackets(text, NAME_SEPARATOR)]

    if any(not segment for segment in segments):
        raise NamingConventionError(
            f"Empty segment in name '{text}'", segments=segments
        )

    return segments


@dataclass(frozen=True, slots=True)
class LevelName:
    """Immutable `[dimension].[hierarchy].[level]` reference."""

    dimension: str
    hierarchy: str
    level: str

    def __post_init__(self):
        values = [trim_brackets(v) if isinstance(v, str) else v
                  for v in (self.dimension, self.hierarchy, self.level)]

        if any(not isinstance(v, str) or not v for v in values):
            raise NamingConventionError(
                "Dimension, hierarchy and level names must be non-empty",
                segments=[str(v) for v in values],
            )

        object.__setattr__(self, "dimension", values[0])
        object.__setattr__(self, "hierarchy", values[1])
        object.__setattr__(self, "level", values[2])

    def __str__(self) -> str:
        return f"[{self.dimension}].[{self.hierarchy}].[{self.level}]"

    @classmethod
    def from_segments(cls, segments: Sequence[str]) -> LevelName:
        """
        Create a level name from already split, bracket-trimmed segments.

        Three segments are taken as dimension, hierarchy and level. Two
        segments are dimension and level of the hierarchy named after the
        dimension.

        Raises:
            NamingConventionError: For any other number of segments.
        """
        segments = list(segments)

        if len(segments) == 3:
            return cls(segments[0], segments[1], segments[2])
        elif len(segments) == 2:
            return cls(segments[0], segments[0], segments[1])
        else:
            raise NamingConventionError(
                f"Level name needs 2 or 3 segments, got {len(segments)}",
                segments=segments,
            )

    @classmethod
    def parse(cls, text: str) -> LevelName:
        """Parse ``Dim.Hier.Level``, ``Dim.Level`` or the bracketed forms."""
        return cls.from_segments(split_name(text))


@dataclass(frozen=True, slots=True)
class Drilldown:
    """Level to group the aggregated cells by."""

    level_name: LevelName

    def __str__(self) -> str:
        return str(self.level_name)

    @classmethod
    def from_segments(cls, segments: Sequence[str]) -> Drilldown:
        return cls(LevelName.from_segments(segments))

    @classmethod
    def parse(cls, text: str) -> Drilldown:
        return cls(LevelName.parse(text))


@dataclass(frozen=True, slots=True)
class Measure:
    """Name of an aggregated measure. Measures have no hierarchy."""

    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not trim_brackets(self.name):
            raise NamingConventionError("Measure name must be non-empty",
                                        segments=[str(self.name)])
        object.__setattr__(self, "name", trim_brackets(self.name))

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_segments(cls, segments: Sequence[str]) -> Measure:
        segments = list(segments)
        if len(segments) != 1:
            raise NamingConventionError(
                f"Measure name needs exactly 1 segment, got {len(segments)}",
                segments=segments,
            )
        return cls(segments[0])

    @classmethod
    def parse(cls, text: str) -> Measure:
        """Parse ``Sales``, ``[Sales]`` or ``[Measures].[Sales]``.

        Unbracketed names are taken verbatim, dots included.
        """
        if not text or not text.strip():
            raise NamingConventionError("Measure name must be non-empty", segments=[])

        if "[" not in text:
            return cls(text)

        segments = split_name(text)
        if len(segments) == 2 and segments[0] == MEASURES_DIMENSION:
            segments = segments[1:]
        return cls.from_segments(segments)


@dataclass(frozen=True, slots=True)
class Cut:
    """
    Restriction of a level to one or more members.

    A single member is serialized as ``[D].[H].[L].&[m]``, several members as
    the set ``{[D].[H].[L].&[m1],[D].[H].[L].&[m2]}``.
    """

    level_name: LevelName
    members: tuple[str, ...]

    def __post_init__(self):
        if isinstance(self.members, str):
            members = (self.members,)
        else:
            members = tuple(str(member) for member in self.members)

        if not members:
            raise NamingConventionError(
                f"Cut on '{self.level_name}' needs at least one member",
                segments=[],
            )

        object.__setattr__(self, "members", members)

    def __str__(self) -> str:
        selectors = [f"{self.level_name}.{MEMBER_PREFIX}[{member}]"
                     for member in self.members]

        if len(selectors) == 1:
            return selectors[0]

        return "{" + MEMBER_SEPARATOR.join(selectors) + "}"

    @classmethod
    def from_segments(cls, segments: Sequence[str],
                      members: Iterable[str | int]) -> Cut:
        return cls(LevelName.from_segments(segments), tuple(members))

    @classmethod
    def parse(cls, text: str) -> Cut:
        """
        Parse a cut whose last segment is a comma delimited member list.

        ``Geography.State.1,2,3`` is a cut of ``[Geography].[Geography].[State]``
        to the members 1, 2 and 3. Members may be written as ``&[1]``.
        """
        segments = split_name(text)
        if len(segments) < 2:
            raise NamingConventionError(
                f"Cut '{text}' needs a level name and a member list",
                segments=segments,
            )

        *level_segments, member_segment = segments
        members = [_parse_member(member)
                   for member in _split_outside_brackets(member_segment, MEMBER_SEPARATOR)]

        if any(not member for member in members):
            raise NamingConventionError(
                f"Empty member in cut '{text}'", segments=segments
            )

        return cls.from_segments(level_segments, members)


def _parse_member(text: str) -> str:
    text = text.strip()
    if text.startswith(MEMBER_PREFIX):
        text = text[len(MEMBER_PREFIX):]
    return trim_brackets(text)


@dataclass(frozen=True, slots=True)
class Property:
    """Member property of a level, serialized as ``[D].[H].[L].[property]``."""

    level_name: LevelName
    property: str

    def __post_init__(self):
        if not isinstance(self.property, str) or not trim_brackets(self.property):
            raise NamingConventionError(
                f"Property of '{self.level_name}' must have a name", segments=[]
            )
        object.__setattr__(self, "property", trim_brackets(self.property))

    def __str__(self) -> str:
        return f"{self.level_name}.[{self.property}]"

    @classmethod
    def from_segments(cls, segments: Sequence[str]) -> Property:
        """The last segment is the property name, the rest is the level."""
        segments = list(segments)
        if len(segments) < 3:
            raise NamingConventionError(
                f"Property name needs 3 or 4 segments, got {len(segments)}",
                segments=segments,
            )
        return cls(LevelName.from_segments(segments[:-1]), segments[-1])

    @classmethod
    def parse(cls, text: str) -> Property:
        return cls.from_segments(split_name(text))
