"""Reading and writing confcrypt files on disk."""

from __future__ import annotations

import logging
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric import rsa

from confcrypt import commands
from confcrypt.commands import CommandContext, CommandResult, ValidationReport
from confcrypt.crypt import RandFunc
from confcrypt.exceptions import FormatError
from confcrypt.formats import ConfCryptFormat
from confcrypt.model import FileState, SchemaType

logger = logging.getLogger(__name__)


class ConfCryptFile:
    """A confcrypt file on disk and the commands that operate on it."""

    def __init__(
        self,
        path: Path | str,
        must_exist: bool = False,
        randfunc: RandFunc | None = None,
    ) -> None:
        """Load a confcrypt file.

        Args:
            path: Path to the file
            must_exist: If False, a missing file is treated as empty
            randfunc: Randomness source used for encryption

        Raises:
            FileNotFoundError: If the file is missing and must_exist is set
            FormatError: If the file cannot be parsed
        """
        self.path = Path(path).expanduser()
        self.randfunc = randfunc
        self._format = ConfCryptFormat()
        self.state = self._load(must_exist)

    def _load(self, must_exist: bool) -> FileState:
        if not self.path.exists():
            if must_exist:
                raise FileNotFoundError(f"Config file not found: {self.path}")
            logger.debug(f"Config file not found, starting empty: {self.path}")
            return FileState()

        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Config file is not valid UTF-8: {e}") from e

        state = self._format.load(text)
        logger.debug(f"Loaded {len(state)} lines from {self.path}")
        return state

    def _save(self, result: CommandResult) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self._format.dump(result.state), encoding="utf-8")

        # Set secure permissions (owner read/write only)
        self.path.chmod(0o600)

        self.state = result.state
        logger.debug(f"Saved {len(result.state)} lines to {self.path}")

    def _context(self, key):
        return CommandContext(self.state, key, self.randfunc)

    def read(self, private_key: rsa.RSAPrivateKey) -> list[str]:
        """Return the decrypted file as display lines. The file is not changed."""
        return commands.read(self._context(private_key)).lines

    def add(
        self,
        public_key: rsa.RSAPublicKey,
        name: str,
        value: str,
        schema_type: SchemaType,
    ) -> None:
        """Add an encrypted parameter and save the file."""
        self._save(commands.add(self._context(public_key), name, value, schema_type))
        logger.info(f"Added parameter '{name}'")

    def edit(
        self,
        public_key: rsa.RSAPublicKey,
        name: str,
        value: str,
        schema_type: SchemaType,
    ) -> None:
        """Replace an existing parameter in place and save the file."""
        self._save(
            commands.edit(self._context(public_key), name, value, schema_type)
        )
        logger.info(f"Edited parameter '{name}'")

    def delete(self, name: str) -> None:
        """Remove a parameter and its schema line and save the file."""
        self._save(commands.delete(self._context(None), name))
        logger.info(f"Deleted parameter '{name}'")

    def validate(self, private_key: rsa.RSAPrivateKey) -> ValidationReport:
        """Validate the file without changing it."""
        return commands.validate(self._context(private_key))

    def encrypt_whole(self, public_key: rsa.RSAPublicKey) -> int:
        """Encrypt every plaintext parameter and save the file.

        Returns:
            Number of parameters that were encrypted
        """
        before = {p.name: p.value for p in self.state.parameters()}
        result = commands.encrypt_whole(self._context(public_key))
        changed = sum(
            1 for p in result.state.parameters() if before.get(p.name) != p.value
        )
        if changed:
            self._save(result)
        logger.info(f"Encrypted {changed} parameters")
        return changed
