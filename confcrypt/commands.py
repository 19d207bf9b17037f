"""User-facing operations on a confcrypt file state.

Every command takes a CommandContext holding the current file state, the key
the operation needs and the randomness source used for encryption. Commands
build an edit batch, run it through the edit engine and render the result.
Nothing is rendered when any step fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from cryptography.hazmat.primitives.asymmetric import rsa

from confcrypt.crypt import (
    RandFunc,
    decrypt_value,
    encrypt_value,
    is_wrapped,
    unwrap_encrypted_value,
    wrap_encrypted_value,
)
from confcrypt.engine import apply_edits
from confcrypt.exceptions import DecryptionError, MissingLineError
from confcrypt.formats import check_name, render
from confcrypt.model import (
    Edit,
    FileAction,
    FileState,
    ParameterLine,
    SchemaLine,
    SchemaType,
)
from confcrypt.schema import coerce_value

logger = logging.getLogger(__name__)

K = TypeVar("K")


@dataclass
class CommandContext(Generic[K]):
    """Execution context of a single command.

    Attributes:
        state: File state as read from disk
        key: Key the command needs (public, private, or None for delete)
        randfunc: Randomness source for encryption (OS CSPRNG if None)
    """

    state: FileState
    key: K
    randfunc: RandFunc | None = None


@dataclass(frozen=True)
class CommandResult:
    """New file state produced by a command, plus its rendered lines."""

    state: FileState
    lines: list[str]


@dataclass(frozen=True)
class ValidationIssue:
    name: str
    message: str

    def __str__(self) -> str:
        return f"{self.name}: {self.message}"


@dataclass
class ValidationReport:
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def add(self, name: str, message: str) -> None:
        self.issues.append(ValidationIssue(name, message))


def _run(state: FileState, edits: list[Edit]) -> CommandResult:
    logger.debug(f"Applying {len(edits)} edits to {len(state)} lines")
    new_state = apply_edits(state, edits)
    return CommandResult(new_state, render(new_state))


def _decrypt_stored(key: rsa.RSAPrivateKey, name: str, value: str) -> str:
    if value == "":
        return ""
    try:
        return decrypt_value(key, unwrap_encrypted_value(value))
    except DecryptionError as e:
        raise DecryptionError(f"Parameter '{name}': {e}") from e


def _encrypt_stored(
    key: rsa.RSAPublicKey, value: str, randfunc: RandFunc | None
) -> str:
    encrypted = encrypt_value(key, value, randfunc)
    # Blank values stay blank rather than becoming "BEGINEND"
    return wrap_encrypted_value(encrypted) if encrypted else ""


def read(ctx: CommandContext[rsa.RSAPrivateKey]) -> CommandResult:
    """Decrypt every parameter of the file.

    Args:
        ctx: Context holding the private key

    Returns:
        Result whose lines are the fully decrypted file

    Raises:
        DecryptionError: On the first parameter that cannot be decrypted
    """
    edits: list[Edit] = []
    for param in ctx.state.parameters():
        plaintext = _decrypt_stored(ctx.key, param.name, param.value)
        edits.append((ParameterLine(param.name, plaintext), FileAction.EDIT))
    return _run(ctx.state, edits)


def add(
    ctx: CommandContext[rsa.RSAPublicKey],
    name: str,
    value: str,
    schema_type: SchemaType,
) -> CommandResult:
    """Add a new encrypted parameter and its schema line.

    Both lines are appended at the end of the file.

    Raises:
        FormatError: If the name cannot be written to a confcrypt file
        EncryptionError: If the value cannot be encrypted
        WrongFileActionError: If a schema or parameter with that name exists
    """
    check_name(name)
    stored = _encrypt_stored(ctx.key, value, ctx.randfunc)
    edits: list[Edit] = [
        (SchemaLine(name, schema_type), FileAction.ADD),
        (ParameterLine(name, stored), FileAction.ADD),
    ]
    return _run(ctx.state, edits)


def edit(
    ctx: CommandContext[rsa.RSAPublicKey],
    name: str,
    value: str,
    schema_type: SchemaType,
) -> CommandResult:
    """Replace the value (and, if it changed, the type) of an existing parameter.

    The lines keep their positions in the file.

    Raises:
        FormatError: If the name cannot be written to a confcrypt file
        EncryptionError: If the value cannot be encrypted
        MissingLineError: If the parameter or its schema line does not exist
    """
    check_name(name)
    stored = _encrypt_stored(ctx.key, value, ctx.randfunc)
    edits: list[Edit] = []

    schema = ctx.state.find_schema(name)
    if schema is None or schema.type is not schema_type:
        edits.append((SchemaLine(name, schema_type), FileAction.EDIT))
    edits.append((ParameterLine(name, stored), FileAction.EDIT))

    return _run(ctx.state, edits)


def delete(ctx: CommandContext[None], name: str) -> CommandResult:
    """Remove the schema and parameter lines of ``name``.

    Raises:
        MissingLineError: If neither line exists
    """
    edits: list[Edit] = [
        (element, FileAction.REMOVE)
        for element in (ctx.state.find_schema(name), ctx.state.find_parameter(name))
        if element is not None
    ]
    if not edits:
        raise MissingLineError(f"parameter {name}")
    return _run(ctx.state, edits)


def validate(ctx: CommandContext[rsa.RSAPrivateKey]) -> ValidationReport:
    """Check the file without changing it.

    Reports parameters without a schema line, schema lines without a
    parameter, values that are not encrypted or cannot be decrypted, and
    decrypted values that do not conform to their declared type.
    """
    report = ValidationReport()
    parameters = ctx.state.parameters()
    declared = {param.name for param in parameters}

    for param in parameters:
        if param.type is None:
            report.add(param.name, "no schema line declares this parameter")

        if param.value == "":
            continue
        if not is_wrapped(param.value):
            report.add(param.name, "value is not encrypted")
            continue

        try:
            plaintext = _decrypt_stored(ctx.key, param.name, param.value)
        except DecryptionError as e:
            report.add(param.name, str(e))
            continue

        if param.type is not None:
            try:
                coerce_value(param.type, plaintext)
            except ValueError as e:
                report.add(param.name, str(e))

    for schema in ctx.state.schemas():
        if schema.name not in declared:
            report.add(schema.name, "schema line has no parameter")

    logger.debug(f"Validation found {len(report.issues)} issues")
    return report


def encrypt_whole(ctx: CommandContext[rsa.RSAPublicKey]) -> CommandResult:
    """Encrypt every parameter that is still stored in plaintext.

    Raises:
        EncryptionError: On the first value that cannot be encrypted
    """
    edits: list[Edit] = []
    for param in ctx.state.parameters():
        if param.value == "" or is_wrapped(param.value):
            continue
        stored = _encrypt_stored(ctx.key, param.value, ctx.randfunc)
        edits.append((ParameterLine(param.name, stored), FileAction.EDIT))
    return _run(ctx.state, edits)
