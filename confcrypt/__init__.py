"""confcrypt - Config files with individually RSA-encrypted values.

confcrypt manages line-oriented config files holding:
- Comments
- Schema declarations (``NAME : type``)
- Parameters (``NAME = value``) whose values are RSA encrypted
  and framed as ``BEGIN<base64>END``

Edits keep every line in place, so diffs of the file stay meaningful.
"""

from __future__ import annotations

from confcrypt import commands, crypt, keys
from confcrypt.config import ConfCryptFile
from confcrypt.engine import apply_edits
from confcrypt.exceptions import (
    ConfCryptError,
    DecryptionError,
    EncryptionError,
    FileStateInvariantError,
    FormatError,
    KeyCapabilityError,
    KeyUnpackingError,
    MissingLineError,
    NonRSAKeyError,
    WrongFileActionError,
)
from confcrypt.formats import ConfCryptFormat, parse, render
from confcrypt.model import (
    CommentLine,
    FileAction,
    FileState,
    Parameter,
    ParameterLine,
    SchemaLine,
    SchemaType,
)

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "ConfCryptFile",
    "ConfCryptFormat",
    "FileState",
    "CommentLine",
    "SchemaLine",
    "ParameterLine",
    "Parameter",
    "SchemaType",
    "FileAction",
    # Functions
    "apply_edits",
    "parse",
    "render",
    # Modules
    "commands",
    "crypt",
    "keys",
    # Exceptions
    "ConfCryptError",
    "KeyUnpackingError",
    "NonRSAKeyError",
    "KeyCapabilityError",
    "EncryptionError",
    "DecryptionError",
    "MissingLineError",
    "WrongFileActionError",
    "FormatError",
    "FileStateInvariantError",
]
