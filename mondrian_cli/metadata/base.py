"""
Base class and parsing helpers for the schema descriptions returned by the
Mondrian REST server.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ParseError

__all__ = ["SchemaObject", "parse_response", "format_annotations"]

T = TypeVar("T", bound=BaseModel)


class SchemaObject(BaseModel):
    """
    Base class for all schema description objects.

    Objects are immutable once parsed. Unknown keys sent by the server are
    ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    name: str = Field(..., description="Object name")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that name is a non-empty string."""
        if not v.strip():
            raise ValueError("name must be a non-empty string")
        return v

    def __str__(self) -> str:
        return self.name


def _error_path(error: dict) -> str:
    return ".".join(str(loc) for loc in error.get("loc", ()))


def parse_response(model_class: type[T], text: str | bytes) -> T:
    """
    Parse a JSON response body into `model_class`.

    Raises:
        ParseError: With the path of the first field that failed, such as
            ``dimensions.0.hierarchies.1.levels``.
    """
    try:
        return model_class.model_validate_json(text)
    except ValidationError as e:
        error = e.errors()[0]
        path = _error_path(error)
        where = f" at '{path}'" if path else ""
        raise ParseError(
            f"Invalid {model_class.__name__} response{where}: {error['msg']}",
            path=path or None,
        ) from e


def format_annotations(annotations: dict[str, str], indent: int) -> list[str]:
    pad = " " * indent
    return [f"{pad}({key}: {value})" for key, value in annotations.items()]
