"""Edit engine: applies ordered Add/Edit/Remove edits to a file state.

Edits locate their target line by line key (kind and name), so an Edit
carrying a new value lands on the existing line of the same name. Line
numbers stay unique and contiguous after every step:

- Add appends after the highest line number (line 1 for an empty file)
- Edit keeps the line number of the entry it replaces
- Remove closes the gap by shifting every later line up by one
"""

from __future__ import annotations

from collections.abc import Iterable

from confcrypt.exceptions import (
    FileStateInvariantError,
    MissingLineError,
    WrongFileActionError,
)
from confcrypt.model import (
    CommentLine,
    Edit,
    FileAction,
    FileState,
    describe,
    lookup,
)


def apply_edits(state: FileState, edits: Iterable[Edit]) -> FileState:
    """Apply edits in order and return the resulting file state.

    Each edit sees the state produced by the edits before it. Comment lines
    are never targeted by edits and are skipped.

    Args:
        state: Current file state (left untouched)
        edits: Ordered (element, action) pairs

    Returns:
        New file state with every edit applied

    Raises:
        MissingLineError: If an Edit or Remove targets a line that is not there
        WrongFileActionError: If an Add targets a line that already exists
        FileStateInvariantError: If the state holds two lines with the same key
    """
    lines = state.as_dict()

    for element, action in edits:
        if isinstance(element, CommentLine):
            continue

        matches = lookup(lines, element)

        if not matches:
            if action is not FileAction.ADD:
                raise MissingLineError(describe(element))
            lines[element] = max(lines.values(), default=0) + 1

        elif len(matches) == 1:
            existing, line_number = matches[0]
            if action is FileAction.REMOVE:
                if existing != element:
                    raise MissingLineError(describe(element))
                del lines[existing]
                lines = {
                    e: n - 1 if n > line_number else n for e, n in lines.items()
                }
            elif action is FileAction.EDIT:
                del lines[existing]
                lines[element] = line_number
            else:
                raise WrongFileActionError(
                    f"{describe(element)} already exists at line {line_number}, "
                    "should be an Add of a new line"
                )

        else:
            raise FileStateInvariantError(
                f"{len(matches)} lines share the key {element.line_key!r}"
            )

    return FileState(lines)
