"""Exceptions for confcrypt."""

from __future__ import annotations


class ConfCryptError(Exception):
    """Base exception for all user-facing confcrypt errors."""


class KeyUnpackingError(ConfCryptError):
    """Raised when a key file cannot be decoded."""


class NonRSAKeyError(ConfCryptError):
    """Raised when a key file holds a key of an algorithm other than RSA."""

    def __init__(self, algorithm: str | None = None) -> None:
        self.algorithm = algorithm
        detail = f" (got {algorithm})" if algorithm else ""
        super().__init__(f"Only RSA keys are supported{detail}")


class KeyCapabilityError(ConfCryptError):
    """Raised when a key pair cannot supply the requested half."""


class CipherError(ConfCryptError):
    """Base exception for value encryption/decryption failures."""


class EncryptionError(CipherError):
    """Raised when a value cannot be encrypted."""


class DecryptionError(CipherError):
    """Raised when a value cannot be decrypted."""


class FileStateError(ConfCryptError):
    """Base exception for edits that do not apply to the current file."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(description)


class MissingLineError(FileStateError):
    """Raised when an edit targets a line that is not in the file."""

    def __str__(self) -> str:
        return f"Line not found: {self.description}"


class WrongFileActionError(FileStateError):
    """Raised when an edit uses an action that does not fit the line."""

    def __str__(self) -> str:
        return f"Wrong file action: {self.description}"


class FormatError(ConfCryptError):
    """Raised when config text cannot be parsed."""


class FileStateInvariantError(RuntimeError):
    """Internal fault: a file state broke key or line-number uniqueness.

    Not a ConfCryptError: it signals a bug in the parser
    or the edit engine rather than a problem with the user's request.
    """
