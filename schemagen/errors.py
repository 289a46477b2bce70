# File: schemagen/errors.py
"""
schemagen - Error Taxonomy
==========================
Every failure the transformation engine can raise.  All of them are terminal
configuration / input errors: the engine performs no I/O of its own, so there
is no transient or retryable class.

They propagate uncaught to the entry point of a run.  The orchestrator records
them in its report and re-raises; the CLI maps them to exit codes.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class SchemaGenError(Exception):
    """Base class for all schemagen errors."""


class MissingIdentifierError(SchemaGenError):
    """A model declares neither a single ``@id`` field nor a composite ``@@id``."""

    def __init__(self, model_name: str) -> None:
        self.model_name: str = model_name
        super().__init__(
            f"Model '{model_name}' has no identifier field "
            f"(@id or @@id required)."
        )


class UndefinedEnumReferenceError(SchemaGenError):
    """A field references an enum that is not part of the schema."""

    def __init__(
        self,
        field_name: str,
        enum_name: Optional[str],
        available: Sequence[str] = (),
    ) -> None:
        self.field_name: str = field_name
        self.enum_name: Optional[str] = enum_name
        self.available: List[str] = sorted(available)
        super().__init__(
            f"Field '{field_name}' references undefined enum '{enum_name}'. "
            f"Available enums: {self.available}"
        )


class UnconfiguredOutputError(SchemaGenError):
    """The invoking host did not supply an output destination."""

    def __init__(self) -> None:
        super().__init__(
            "schemagen: output path not configured.\n"
            'Add "output" to the generator config or pass -o/--output.'
        )


class UnmappableFieldError(SchemaGenError):
    """A relation field was handed to the type mapper (relations are not columns)."""

    def __init__(self, field_name: str, kind: str) -> None:
        self.field_name: str = field_name
        self.kind: str = kind
        super().__init__(
            f"Field '{field_name}' of kind '{kind}' cannot be mapped to a "
            f"column type."
        )


class SchemaLoadError(SchemaGenError, ValueError):
    """The schema document could not be read or does not match the expected shape."""


__all__: List[str] = [
    "SchemaGenError",
    "MissingIdentifierError",
    "UndefinedEnumReferenceError",
    "UnconfiguredOutputError",
    "UnmappableFieldError",
    "SchemaLoadError",
]
