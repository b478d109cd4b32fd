"""
Schema description models of the Mondrian REST server.

Pydantic models of the cube descriptions and level members returned by the
server, parsed once and immutable afterwards.
"""

from .base import SchemaObject, parse_response
from .cube import (
    CubeDescription,
    CubeDescriptions,
    Dimension,
    Hierarchy,
    Level,
    Measure,
    NamedSet,
    parse_cube_description,
    parse_cube_descriptions,
)
from .members import Member, Members, parse_members

__all__ = [
    "SchemaObject",
    "parse_response",
    "CubeDescription",
    "CubeDescriptions",
    "Dimension",
    "Hierarchy",
    "Level",
    "Measure",
    "NamedSet",
    "parse_cube_description",
    "parse_cube_descriptions",
    "Member",
    "Members",
    "parse_members",
]
