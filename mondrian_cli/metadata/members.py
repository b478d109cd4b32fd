"""Level members as returned by the ``.../levels/<level>/members`` endpoint."""

from __future__ import annotations

from pydantic import Field

from .base import SchemaObject, parse_response

__all__ = ["Member", "Members", "parse_members"]


class Member(SchemaObject):
    # Keys are numbers or strings depending on the level
    key: str | int
    full_name: str | None = None
    caption: str | None = None
    is_all_member: bool = Field(False, alias="all_member?")
    is_drillable: bool = Field(False, alias="drillable?")
    depth: int = 0
    num_children: int = 0
    parent_name: str | None = None
    level_name: str | None = None
    children: list[str] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"&{self.key}: {self.name}"


class Members(SchemaObject):
    caption: str | None = None
    members: list[Member] = Field(default_factory=list)

    def describe(self) -> str:
        lines = [f"Members of Level {self.name}:"]
        lines += [str(member) for member in self.members]
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.describe()


def parse_members(text: str | bytes) -> Members:
    return parse_response(Members, text)
