# File: schemagen/utils.py
"""
schemagen - Utility Functions & Helpers
=======================================
Identifier normalisation, file I/O, and code-formatting helpers used
throughout the generation pipeline.

- String conversions are decorated with ``@lru_cache(maxsize=None)``: the
  same model and enum names are converted many times per run.
- File writes are atomic (temporary file + rename).
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_WORD_DELIMITER_RE: re.Pattern[str] = re.compile(r"[_\-\s]+")
_CAPITAL_BOUNDARY_RE: re.Pattern[str] = re.compile(r"(?=[A-Z])")

GENERATED_HEADER_LINES: tuple = (
    "/**",
    " * Generated by schemagen",
    " * DO NOT EDIT MANUALLY",
    " */",
)


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


def _capitalize_word(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str, suffix: Optional[str] = None) -> str:
    """
    Convert snake_case, kebab-case, camelCase or PascalCase to PascalCase.

    Examples:
        >>> to_pascal_case("session_model_preference")
        'SessionModelPreference'
        >>> to_pascal_case("userProfile")
        'UserProfile'
        >>> to_pascal_case("PRODUCT_STATUS", "Schema")
        'ProductStatusSchema'

    Idempotent: ``to_pascal_case(to_pascal_case(s)) == to_pascal_case(s)``.
    """
    if not name:
        return name

    words: List[str] = [w for w in _WORD_DELIMITER_RE.split(name) if w]
    pascal: str
    if len(words) > 1:
        pascal = "".join(_capitalize_word(w) for w in words)
    elif not words:
        pascal = ""
    else:
        word: str = words[0]
        camel_words: List[str] = [w for w in _CAPITAL_BOUNDARY_RE.split(word) if w]
        if len(camel_words) > 1:
            pascal = "".join(_capitalize_word(w) for w in camel_words)
        else:
            pascal = word[:1].upper() + word[1:]

    return f"{pascal}{suffix}" if suffix else pascal


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert PascalCase or camelCase to snake_case.

    Examples:
        >>> to_snake_case("ProductTag")
        'product_tag'
        >>> to_snake_case("userProfile")
        'user_profile'
        >>> to_snake_case("user")
        'user'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def branded_id_name(model_name: str) -> str:
    """Name of the branded identifier type of a model (``User`` -> ``UserId``)."""
    return to_pascal_case(model_name, "Id")


@functools.lru_cache(maxsize=None)
def enum_schema_name(enum_name: str) -> str:
    """Name of the runtime schema wrapping an enum (``Role`` -> ``RoleSchema``)."""
    return to_pascal_case(enum_name, "Schema")


# ---------------------------------------------------------------------------
# Code formatting helpers
# ---------------------------------------------------------------------------


def indent_lines(lines: Sequence[str], level: int = 1, size: int = 2) -> List[str]:
    """Indent a list of lines, returning a new list.  Blank lines stay blank."""
    prefix: str = " " * (level * size)
    return [prefix + line if line.strip() else line for line in lines]


def wrap_in_quotes(value: str) -> str:
    """Wrap a string value in double quotes, escaping internals."""
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def file_header() -> str:
    """Deterministic banner placed at the top of every generated file."""
    return "\n".join(GENERATED_HEADER_LINES)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file in the same directory
    first and then renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")
    byte_count: int = len(encoded)

    if atomic:
        fd: int
        tmp_path: str
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            os.replace(tmp_path, str(path))
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", byte_count, path)
    return byte_count


def read_file(path: Path) -> str:
    """Read a file and return its content as a string."""
    return path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling generation steps.

    Usage:
        with Timer("render types") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.info("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_pascal_case",
    "to_snake_case",
    "branded_id_name",
    "enum_schema_name",
    "indent_lines",
    "wrap_in_quotes",
    "file_header",
    "GENERATED_HEADER_LINES",
    "ensure_directory",
    "write_file",
    "read_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("schemagen.utils loaded - %d public symbols.", len(__all__))
