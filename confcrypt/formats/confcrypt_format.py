"""Line format of confcrypt files.

Every non-blank line is one of::

    # a comment
    DB_PASS : string
    DB_PASS = BEGIN<base64>END

Parameter values may also be plain (unencrypted) text, e.g. in a file that
has not been through ``confcrypt encrypt`` yet.
Everything after the single space following ``=`` is the value, including
any trailing whitespace.
"""

from __future__ import annotations

import re

from confcrypt.exceptions import FormatError
from confcrypt.formats.base import ConfigFormat
from confcrypt.model import (
    CommentLine,
    ConfCryptElement,
    FileState,
    ParameterLine,
    SchemaLine,
    SchemaType,
)

_NAME = r"[A-Za-z_][A-Za-z0-9_.\-]*"
NAME_RE = re.compile(_NAME)
_SCHEMA_RE = re.compile(rf"^\s*(?P<name>{_NAME})\s*:\s*(?P<type>\S+)\s*$")
_PARAMETER_RE = re.compile(rf"^\s*(?P<name>{_NAME})\s*= ?(?P<value>.*)$")


def check_name(name: str) -> str:
    """Check that a schema or parameter name can be written to a file.

    Raises:
        FormatError: If the name would not parse back
    """
    if not NAME_RE.fullmatch(name):
        raise FormatError(
            f"Invalid name '{name}': names start with a letter or underscore "
            "and contain only letters, digits, '_', '.' and '-'"
        )
    return name


def parse_line(line: str, line_number: int = 0) -> ConfCryptElement:
    """Parse a single non-blank line.

    Raises:
        FormatError: If the line matches none of the line kinds
    """
    stripped = line.strip()
    if stripped.startswith("#"):
        text = stripped[1:]
        return CommentLine(text[1:] if text.startswith(" ") else text)

    match = _SCHEMA_RE.match(line)
    if match:
        try:
            schema_type = SchemaType.from_string(match.group("type"))
        except ValueError as e:
            raise FormatError(f"Line {line_number}: {e}") from e
        return SchemaLine(match.group("name"), schema_type)

    match = _PARAMETER_RE.match(line)
    if match:
        return ParameterLine(match.group("name"), match.group("value"))

    raise FormatError(f"Line {line_number}: cannot parse '{stripped}'")


def parse(data: str) -> FileState:
    """Parse confcrypt file text into a file state.

    Blank lines are dropped; every other line becomes one element numbered in
    file order.

    Raises:
        FormatError: If a line cannot be parsed or a line is repeated
    """
    elements: list[ConfCryptElement] = []
    seen: set[ConfCryptElement] = set()
    seen_keys: set[tuple[str, str]] = set()

    for line_number, line in enumerate(data.splitlines(), start=1):
        if not line.strip():
            continue

        element = parse_line(line, line_number)
        if element in seen:
            raise FormatError(f"Line {line_number}: duplicate line '{line.strip()}'")
        if not isinstance(element, CommentLine) and element.line_key in seen_keys:
            kind, name = element.line_key
            raise FormatError(f"Line {line_number}: duplicate {kind} '{name}'")

        seen.add(element)
        seen_keys.add(element.line_key)
        elements.append(element)

    return FileState.from_elements(elements)


def to_display_line(element: ConfCryptElement) -> str:
    if isinstance(element, CommentLine):
        return f"# {element.text}"
    if isinstance(element, SchemaLine):
        return f"{element.name} : {element.type}"
    return f"{element.name} = {element.value}"


def render(state: FileState) -> list[str]:
    """Render a file state as display lines in line-number order."""
    return [to_display_line(element) for element in state.elements()]


class ConfCryptFormat(ConfigFormat):
    """confcrypt file format handler."""

    def load(self, data: str) -> FileState:
        """Parse confcrypt file text.

        Args:
            data: File contents

        Returns:
            File state numbering each element by its position

        Raises:
            FormatError: If parsing fails
        """
        return parse(data)

    def dump(self, state: FileState) -> str:
        """Serialize a file state, one element per line.

        Args:
            state: File state

        Returns:
            File contents ending in a newline (empty for an empty state)
        """
        lines = render(state)
        return "\n".join(lines) + "\n" if lines else ""

    def get_extension(self) -> str:
        """Get confcrypt file extension.

        Returns:
            '.econf'
        """
        return ".econf"

    @classmethod
    def detect(cls, data: str) -> bool:
        """Detect if data is a confcrypt file.

        Args:
            data: File contents

        Returns:
            True if data parses and declares at least one schema or parameter
        """
        if not data.strip():
            return False

        try:
            state = parse(data)
        except FormatError:
            return False
        return any(not isinstance(e, CommentLine) for e in state)

    @classmethod
    def get_name(cls) -> str:
        """Get format name.

        Returns:
            'confcrypt'
        """
        return "confcrypt"
