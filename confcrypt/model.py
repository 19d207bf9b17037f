"""Structured lines of a confcrypt file and the file state built from them."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Union

from confcrypt.exceptions import FileStateInvariantError


class SchemaType(enum.Enum):
    """Primitive value types a schema line may declare."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, name: str) -> SchemaType:
        """Parse a type name as written in a schema line.

        Args:
            name: Type name (case-insensitive, a few common aliases accepted)

        Returns:
            Matching SchemaType

        Raises:
            ValueError: If the name is not a known type
        """
        key = name.strip().lower()
        key = _TYPE_ALIASES.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(
            f"Unknown schema type: {name}. "
            f"Supported types: {', '.join(m.value for m in cls)}"
        )


_TYPE_ALIASES: dict[str, str] = {
    "str": "string",
    "text": "string",
    "integer": "int",
    "double": "float",
    "boolean": "bool",
}


class FileAction(enum.Enum):
    """What an edit does to its line."""

    ADD = "add"
    EDIT = "edit"
    REMOVE = "remove"


@dataclass(frozen=True)
class CommentLine:
    text: str

    @property
    def line_key(self) -> tuple[str, str]:
        return ("comment", self.text)


@dataclass(frozen=True)
class SchemaLine:
    name: str
    type: SchemaType

    @property
    def line_key(self) -> tuple[str, str]:
        return ("schema", self.name)


@dataclass(frozen=True)
class ParameterLine:
    name: str
    value: str

    @property
    def line_key(self) -> tuple[str, str]:
        return ("parameter", self.name)


ConfCryptElement = Union[CommentLine, SchemaLine, ParameterLine]

Edit = tuple[ConfCryptElement, FileAction]


def describe(element: ConfCryptElement) -> str:
    """Short human readable description of an element, used in error messages."""
    if isinstance(element, CommentLine):
        return f"comment '{element.text}'"
    if isinstance(element, SchemaLine):
        return f"schema {element.name} : {element.type}"
    return f"parameter {element.name}"


def lookup(
    lines: Mapping[ConfCryptElement, int], element: ConfCryptElement
) -> list[tuple[ConfCryptElement, int]]:
    """Find every entry of ``lines`` sharing the line key of ``element``."""
    key = element.line_key
    return [(e, n) for e, n in lines.items() if e.line_key == key]


@dataclass(frozen=True)
class Parameter:
    """A parameter joined with its declared schema type, if any."""

    name: str
    value: str
    type: SchemaType | None = None


class FileState:
    """Mapping of each line of a confcrypt file to its 1-based line number.

    A FileState is never mutated after construction; the edit engine builds a
    new one for every edit batch. Construction checks the invariants:

    - line numbers are unique and form exactly ``1..N``
    - no two schema lines (or two parameter lines) share a name

    Violations raise FileStateInvariantError.
    """

    def __init__(self, lines: Mapping[ConfCryptElement, int] | None = None) -> None:
        self._lines: dict[ConfCryptElement, int] = dict(lines or {})
        self._check_invariants()

    @classmethod
    def from_elements(cls, elements: Iterable[ConfCryptElement]) -> FileState:
        """Build a state numbering the given elements 1..N in order."""
        return cls({element: n for n, element in enumerate(elements, start=1)})

    def _check_invariants(self) -> None:
        numbers = sorted(self._lines.values())
        if numbers != list(range(1, len(numbers) + 1)):
            raise FileStateInvariantError(
                f"Line numbers are not contiguous from 1: {numbers}"
            )

        seen: set[tuple[str, str]] = set()
        for element in self._lines:
            if isinstance(element, CommentLine):
                continue
            if element.line_key in seen:
                raise FileStateInvariantError(
                    f"Duplicate {element.line_key[0]} line for '{element.name}'"
                )
            seen.add(element.line_key)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[ConfCryptElement]:
        return iter(self.elements())

    def __contains__(self, element: object) -> bool:
        return element in self._lines

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FileState):
            return self._lines == other._lines
        if isinstance(other, Mapping):
            return self._lines == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        body = ", ".join(f"{line}: {element!r}" for element, line in self.items())
        return f"FileState({{{body}}})"

    def items(self) -> list[tuple[ConfCryptElement, int]]:
        """Return (element, line number) pairs in line order."""
        return sorted(self._lines.items(), key=lambda item: item[1])

    def elements(self) -> list[ConfCryptElement]:
        """Return the elements in line order."""
        return [element for element, _ in self.items()]

    def as_dict(self) -> dict[ConfCryptElement, int]:
        """Return a copy of the underlying element -> line number mapping."""
        return dict(self._lines)

    def line_of(self, element: ConfCryptElement) -> int | None:
        return self._lines.get(element)

    def find_schema(self, name: str) -> SchemaLine | None:
        for element in self._lines:
            if isinstance(element, SchemaLine) and element.name == name:
                return element
        return None

    def find_parameter(self, name: str) -> ParameterLine | None:
        for element in self._lines:
            if isinstance(element, ParameterLine) and element.name == name:
                return element
        return None

    def schemas(self) -> list[SchemaLine]:
        return [e for e in self.elements() if isinstance(e, SchemaLine)]

    def parameters(self) -> list[Parameter]:
        """Return every parameter in line order, joined with its schema type."""
        types = {schema.name: schema.type for schema in self.schemas()}
        return [
            Parameter(e.name, e.value, types.get(e.name))
            for e in self.elements()
            if isinstance(e, ParameterLine)
        ]
