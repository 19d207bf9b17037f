"""File format handlers for confcrypt."""

from __future__ import annotations

from confcrypt.formats.base import ConfigFormat
from confcrypt.formats.confcrypt_format import (
    NAME_RE,
    ConfCryptFormat,
    check_name,
    parse,
    render,
)

__all__ = [
    "ConfigFormat",
    "ConfCryptFormat",
    "NAME_RE",
    "check_name",
    "parse",
    "render",
]
