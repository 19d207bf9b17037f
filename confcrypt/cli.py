"""Command-line interface for confcrypt."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from confcrypt import keys
from confcrypt.config import ConfCryptFile
from confcrypt.exceptions import ConfCryptError, FileStateInvariantError
from confcrypt.keys import KeyCapability
from confcrypt.model import SchemaType

console = Console()

# Environment variable names
ENV_FILE = "CONFCRYPT_FILE"
ENV_KEY = "CONFCRYPT_KEY"

DEFAULT_FILE = "config.econf"
DEFAULT_KEY = "~/.ssh/id_rsa"

_TYPE_CHOICE = click.Choice([t.value for t in SchemaType], case_sensitive=False)


def _get_file_path(file: str | None) -> Path:
    """Get the confcrypt file path, using the environment or default if not given.

    Args:
        file: User-specified file, or None

    Returns:
        Path to the confcrypt file
    """
    if file:
        return Path(file)

    env_file = os.environ.get(ENV_FILE)
    if env_file:
        return Path(env_file)

    return Path(DEFAULT_FILE)


def _get_key_path(key: str | None) -> Path:
    """Get the private key path, using the environment or default if not given."""
    if key:
        return Path(key).expanduser()

    env_key = os.environ.get(ENV_KEY)
    if env_key:
        return Path(env_key).expanduser()

    return Path(DEFAULT_KEY).expanduser()


def _load_key(key: str | None, capability: KeyCapability):
    return keys.load_rsa_key(_get_key_path(key), capability)


def _fail(message: str, code: int = 1) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(code)


def _open(file: str | None, must_exist: bool = True) -> ConfCryptFile:
    path = _get_file_path(file)
    if must_exist and not path.exists():
        _fail(f"Config file not found: {path}")
    return ConfCryptFile(path)


file_option = click.option(
    "--file",
    "-f",
    type=click.Path(dir_okay=False),
    help=f"confcrypt file (uses ${ENV_FILE} or ./{DEFAULT_FILE} if not specified)",
)
key_option = click.option(
    "--key",
    "-k",
    type=click.Path(dir_okay=False),
    help=f"RSA private key (uses ${ENV_KEY} or {DEFAULT_KEY} if not specified)",
)


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """confcrypt - Config files with individually RSA-encrypted values."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command(name="read")
@file_option
@key_option
def read_command(file: str | None, key: str | None) -> None:
    """Print the file with every value decrypted.

    The file itself is not changed.
    """
    try:
        conf = _open(file)
        private_key = _load_key(key, KeyCapability.PRIVATE)
        for line in conf.read(private_key):
            click.echo(line)
    except FileStateInvariantError as e:
        _fail(f"Internal error: {e}", code=2)
    except ConfCryptError as e:
        _fail(str(e))


@main.command(name="add")
@click.argument("name", required=True)
@click.argument("value", required=False)
@click.option("--type", "-t", "type_name", type=_TYPE_CHOICE, default="string",
              show_default=True, help="Schema type of the value")
@file_option
@key_option
def add_command(
    name: str,
    value: str | None,
    type_name: str,
    file: str | None,
    key: str | None,
) -> None:
    """Add a new encrypted parameter.

    The value is prompted for (hidden) if not given.

    Examples:
        confcrypt add DB_PASS --type string
        confcrypt add DB_PORT 5432 --type int
    """
    try:
        conf = _open(file, must_exist=False)
        public_key = _load_key(key, KeyCapability.PUBLIC)
        if value is None:
            value = click.prompt(f"Value for '{name}'", hide_input=True)
        conf.add(public_key, name, value, SchemaType.from_string(type_name))
        console.print(f"[green]✓[/green] Added {escape(name)} to {conf.path}")
    except FileStateInvariantError as e:
        _fail(f"Internal error: {e}", code=2)
    except ConfCryptError as e:
        _fail(str(e))


@main.command(name="edit")
@click.argument("name", required=True)
@click.argument("value", required=False)
@click.option("--type", "-t", "type_name", type=_TYPE_CHOICE, default=None,
              help="New schema type (keeps the current type if not specified)")
@file_option
@key_option
def edit_command(
    name: str,
    value: str | None,
    type_name: str | None,
    file: str | None,
    key: str | None,
) -> None:
    """Replace the value of an existing parameter in place.

    Examples:
        confcrypt edit DB_PASS
        confcrypt edit DB_PORT 6432 --type int
    """
    try:
        conf = _open(file)
        if type_name is not None:
            schema_type = SchemaType.from_string(type_name)
        else:
            schema = conf.state.find_schema(name)
            schema_type = schema.type if schema else SchemaType.STRING

        public_key = _load_key(key, KeyCapability.PUBLIC)
        if value is None:
            value = click.prompt(f"New value for '{name}'", hide_input=True)
        conf.edit(public_key, name, value, schema_type)
        console.print(f"[green]✓[/green] Updated {escape(name)}")
    except FileStateInvariantError as e:
        _fail(f"Internal error: {e}", code=2)
    except ConfCryptError as e:
        _fail(str(e))


@main.command(name="delete")
@click.argument("name", required=True)
@file_option
@click.confirmation_option(prompt="Are you sure you want to delete this parameter?")
def delete_command(name: str, file: str | None) -> None:
    """Delete a parameter and its schema line."""
    try:
        conf = _open(file)
        conf.delete(name)
        console.print(f"[green]✓[/green] Deleted {escape(name)}")
    except FileStateInvariantError as e:
        _fail(f"Internal error: {e}", code=2)
    except ConfCryptError as e:
        _fail(str(e))


@main.command(name="validate")
@file_option
@key_option
def validate_command(file: str | None, key: str | None) -> None:
    """Check that every parameter decrypts and matches its schema."""
    try:
        conf = _open(file)
        private_key = _load_key(key, KeyCapability.PRIVATE)
        report = conf.validate(private_key)

        if report.is_valid:
            console.print(f"[green]✓[/green] {conf.path} is valid")
            return

        table = Table(title="Validation issues")
        table.add_column("Name", style="cyan")
        table.add_column("Problem", style="red")
        for issue in report.issues:
            table.add_row(escape(issue.name), escape(issue.message))
        console.print(table)
        console.print(f"[red]✗[/red] {len(report.issues)} issue(s) found")
        sys.exit(1)
    except FileStateInvariantError as e:
        _fail(f"Internal error: {e}", code=2)
    except ConfCryptError as e:
        _fail(str(e))


@main.command(name="encrypt")
@file_option
@key_option
def encrypt_command(file: str | None, key: str | None) -> None:
    """Encrypt every parameter that is still stored in plaintext."""
    try:
        conf = _open(file)
        public_key = _load_key(key, KeyCapability.PUBLIC)
        count = conf.encrypt_whole(public_key)
        if count:
            console.print(f"[green]✓[/green] Encrypted {count} parameter(s)")
        else:
            console.print("Nothing to encrypt")
    except FileStateInvariantError as e:
        _fail(f"Internal error: {e}", code=2)
    except ConfCryptError as e:
        _fail(str(e))


@main.command(name="keygen")
@click.option("--output", "-o", type=click.Path(dir_okay=False), required=True,
              help="Where to write the new private key")
@click.option("--bits", "-b", default=keys.DEFAULT_KEY_SIZE, show_default=True,
              type=click.IntRange(min=1024), help="RSA modulus size")
def keygen_command(output: str, bits: int) -> None:
    """Generate a new RSA key in OpenSSH format.

    Examples:
        confcrypt keygen -o ~/.ssh/confcrypt_rsa
    """
    output_path = Path(output).expanduser()
    if output_path.exists():
        _fail(f"{output_path} already exists")

    data = keys.generate_rsa_key(bits)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)

    # Set secure permissions (owner read/write only)
    os.chmod(output_path, 0o600)

    key_pair = keys.unpack_private_rsa_key(data)
    console.print(f"[green]✓[/green] Private key saved to: {output_path}")
    click.echo(keys.public_key_line(key_pair, comment="confcrypt"))
