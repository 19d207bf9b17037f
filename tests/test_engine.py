"""Tests for the edit engine."""

import random

import pytest

from confcrypt.engine import apply_edits
from confcrypt.exceptions import (
    FileStateInvariantError,
    MissingLineError,
    WrongFileActionError,
)
from confcrypt.model import (
    CommentLine,
    FileAction,
    FileState,
    ParameterLine,
    SchemaLine,
    SchemaType,
    lookup,
)


@pytest.fixture
def sample_state():
    """A small file: comment, two schema/parameter pairs."""
    return FileState.from_elements(
        [
            CommentLine("database settings"),
            SchemaLine("DB_USER", SchemaType.STRING),
            ParameterLine("DB_USER", "BEGINuserEND"),
            SchemaLine("DB_PASS", SchemaType.STRING),
            ParameterLine("DB_PASS", "BEGINpassEND"),
        ]
    )


def _assert_contiguous(state):
    numbers = sorted(state.as_dict().values())
    assert numbers == list(range(1, len(state) + 1))


def test_remove_parameter_only():
    """Removing the last line leaves the schema line untouched."""
    schema = SchemaLine("DB_PASS", SchemaType.STRING)
    param = ParameterLine("DB_PASS", "BEGINxxxEND")
    state = FileState({schema: 1, param: 2})

    result = apply_edits(state, [(param, FileAction.REMOVE)])

    assert result == {schema: 1}


def test_comment_is_skipped_and_schema_lands_on_line_one():
    """Comment edits are ignored, so the schema becomes line 1."""
    edits = [
        (CommentLine("hi"), FileAction.ADD),
        (SchemaLine("X", SchemaType.INT), FileAction.ADD),
    ]

    result = apply_edits(FileState(), edits)

    assert result == {SchemaLine("X", SchemaType.INT): 1}


def test_comment_remove_is_skipped(sample_state):
    """Removing a comment through the engine is a no-op."""
    result = apply_edits(
        sample_state, [(CommentLine("database settings"), FileAction.REMOVE)]
    )
    assert result == sample_state


def test_add_appends_after_highest_line(sample_state):
    """Add puts new lines after the last one."""
    new_schema = SchemaLine("DB_PORT", SchemaType.INT)
    new_param = ParameterLine("DB_PORT", "BEGINportEND")

    result = apply_edits(
        sample_state,
        [(new_schema, FileAction.ADD), (new_param, FileAction.ADD)],
    )

    assert result.line_of(new_schema) == 6
    assert result.line_of(new_param) == 7
    _assert_contiguous(result)


def test_edit_preserves_position(sample_state):
    """Editing a value keeps its line number."""
    updated = ParameterLine("DB_USER", "BEGINadminEND")

    result = apply_edits(sample_state, [(updated, FileAction.EDIT)])

    assert result.line_of(updated) == 3
    assert ParameterLine("DB_USER", "BEGINuserEND") not in result
    assert len(result) == len(sample_state)


def test_edit_schema_type(sample_state):
    """A schema line can change type in place."""
    updated = SchemaLine("DB_PASS", SchemaType.INT)

    result = apply_edits(sample_state, [(updated, FileAction.EDIT)])

    assert result.line_of(updated) == 4
    assert result.find_schema("DB_PASS") == updated


def test_remove_closes_gap(sample_state):
    """Removing line L shifts lines after L down by one."""
    before = sample_state.as_dict()
    removed = SchemaLine("DB_USER", SchemaType.STRING)

    result = apply_edits(sample_state, [(removed, FileAction.REMOVE)])

    for element, line in before.items():
        if element == removed:
            assert element not in result
        elif line < 2:
            assert result.line_of(element) == line
        else:
            assert result.line_of(element) == line - 1
    _assert_contiguous(result)


def test_add_existing_fails(sample_state):
    """Adding a line that already exists is a WrongFileActionError."""
    with pytest.raises(WrongFileActionError, match="DB_USER"):
        apply_edits(
            sample_state,
            [(ParameterLine("DB_USER", "BEGINuserEND"), FileAction.ADD)],
        )


def test_add_existing_name_with_new_value_fails(sample_state):
    """A name can only appear once, whatever its value."""
    with pytest.raises(WrongFileActionError):
        apply_edits(
            sample_state,
            [(ParameterLine("DB_USER", "BEGINotherEND"), FileAction.ADD)],
        )


@pytest.mark.parametrize("action", [FileAction.EDIT, FileAction.REMOVE])
def test_edit_or_remove_missing_fails(sample_state, action):
    """Edit and Remove need an existing line."""
    with pytest.raises(MissingLineError, match="MISSING"):
        apply_edits(sample_state, [(ParameterLine("MISSING", "x"), action)])


def test_remove_requires_current_content(sample_state):
    """Remove refuses to delete a line whose content has changed."""
    with pytest.raises(MissingLineError):
        apply_edits(
            sample_state,
            [(ParameterLine("DB_USER", "BEGINstaleEND"), FileAction.REMOVE)],
        )


def test_edits_see_previous_edits():
    """Later edits in a batch observe lines created by earlier ones."""
    schema = SchemaLine("A", SchemaType.STRING)
    first = ParameterLine("A", "one")
    second = ParameterLine("A", "two")

    result = apply_edits(
        FileState(),
        [
            (schema, FileAction.ADD),
            (first, FileAction.ADD),
            (second, FileAction.EDIT),
        ],
    )

    assert result == {schema: 1, second: 2}


def test_remove_then_add_reuses_freed_line(sample_state):
    """After a removal the next Add lands right after the new last line."""
    removed = ParameterLine("DB_PASS", "BEGINpassEND")
    added = ParameterLine("DB_PASS", "BEGINnewEND")

    result = apply_edits(
        sample_state, [(removed, FileAction.REMOVE), (added, FileAction.ADD)]
    )

    assert result.line_of(added) == 5


def test_failure_leaves_input_untouched(sample_state):
    """A failing batch raises and the input state is unchanged."""
    before = sample_state.as_dict()

    with pytest.raises(MissingLineError):
        apply_edits(
            sample_state,
            [
                (SchemaLine("DB_USER", SchemaType.STRING), FileAction.REMOVE),
                (ParameterLine("NOPE", ""), FileAction.EDIT),
            ],
        )

    assert sample_state.as_dict() == before


def test_empty_edit_list_returns_equal_state(sample_state):
    assert apply_edits(sample_state, []) == sample_state


def test_lookup_matches_by_kind_and_name(sample_state):
    lines = sample_state.as_dict()

    assert lookup(lines, ParameterLine("DB_PASS", "other")) == [
        (ParameterLine("DB_PASS", "BEGINpassEND"), 5)
    ]
    assert lookup(lines, SchemaLine("DB_PASS", SchemaType.INT)) == [
        (SchemaLine("DB_PASS", SchemaType.STRING), 4)
    ]
    assert lookup(lines, ParameterLine("NOPE", "")) == []


def test_random_edit_sequences_stay_contiguous():
    """Line numbers stay exactly 1..N over many random valid edits."""
    rng = random.Random(42)
    state = FileState.from_elements([CommentLine("header")])

    for step in range(300):
        names = [e.name for e in state if isinstance(e, ParameterLine)]
        choice = rng.choice(["add", "edit", "remove"]) if names else "add"

        if choice == "add":
            element = ParameterLine(f"P{step}", str(step))
            edit = (element, FileAction.ADD)
        elif choice == "edit":
            name = rng.choice(names)
            edit = (ParameterLine(name, f"v{step}"), FileAction.EDIT)
        else:
            edit = (state.find_parameter(rng.choice(names)), FileAction.REMOVE)

        previous_line = state.line_of(state.find_parameter(edit[0].name) or edit[0])
        state = apply_edits(state, [edit])
        _assert_contiguous(state)

        if choice == "edit":
            assert state.line_of(edit[0]) == previous_line


class TestFileStateInvariants:
    """FileState refuses to hold a broken mapping."""

    def test_gap_in_line_numbers(self):
        with pytest.raises(FileStateInvariantError):
            FileState({CommentLine("a"): 1, CommentLine("b"): 3})

    def test_duplicate_line_numbers(self):
        with pytest.raises(FileStateInvariantError):
            FileState({CommentLine("a"): 1, CommentLine("b"): 1})

    def test_not_starting_at_one(self):
        with pytest.raises(FileStateInvariantError):
            FileState({CommentLine("a"): 2})

    def test_duplicate_parameter_names(self):
        with pytest.raises(FileStateInvariantError):
            FileState({ParameterLine("A", "1"): 1, ParameterLine("A", "2"): 2})

    def test_invariant_error_is_not_a_user_error(self):
        from confcrypt.exceptions import ConfCryptError

        assert not issubclass(FileStateInvariantError, ConfCryptError)
