# File: schemagen/classifier.py
"""
schemagen - Field Classification
================================
Semantic classification of field descriptors.

UUID detection uses a strict three-tier priority; the first tier that
applies decides:

1. **Native type.**  An explicit native storage annotation is authoritative:
   ``Uuid`` (any case) means UUID, any other native type means *not* UUID.
2. **Documentation.**  Free text containing ``@db.Uuid``.
3. **Name.**  The names ``id``, ``uuid`` and the suffixes ``_id`` /
   ``_uuid`` (case-insensitive).

Classification ignores the declared kind; the type mapper only renders
String columns as ``Schema.UUID``.

The module also parses ``@customType(<expr>)`` documentation annotations,
which override the default column type of a field.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from schemagen.models import FieldDescriptor, ModelDescriptor

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.classifier")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_UUID_NATIVE_TYPE: str = "uuid"
_UUID_DOC_MARKER: str = "@db.Uuid"

_UUID_NAME_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"^id$", re.IGNORECASE),
    re.compile(r"^.*_id$", re.IGNORECASE),
    re.compile(r"^.*_uuid$", re.IGNORECASE),
    re.compile(r"^uuid$", re.IGNORECASE),
)

_CUSTOM_TYPE_RE: re.Pattern[str] = re.compile(r"@customType\s*\(")
_CUSTOM_TYPE_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Za-z0-9]*$")


# ---------------------------------------------------------------------------
# UUID classification
# ---------------------------------------------------------------------------


def is_uuid_field(field: FieldDescriptor) -> bool:
    """Return True when *field* carries UUID semantics (see module docstring)."""
    if field.native_type is not None:
        return field.native_type.lower() == _UUID_NATIVE_TYPE

    if field.documentation and _UUID_DOC_MARKER in field.documentation:
        return True

    return any(pattern.match(field.name) for pattern in _UUID_NAME_PATTERNS)


# ---------------------------------------------------------------------------
# Field predicates
# ---------------------------------------------------------------------------


def get_field_db_name(field: FieldDescriptor) -> str:
    """Physical column name (respects ``@map``)."""
    return field.db_name or field.name


def is_list_field(field: FieldDescriptor) -> bool:
    return field.is_list


def is_required_field(field: FieldDescriptor) -> bool:
    return field.is_required


def is_id_field(field: FieldDescriptor) -> bool:
    return field.is_id


def has_default_value(field: FieldDescriptor) -> bool:
    return field.has_default_value


def is_generated_field(field: FieldDescriptor) -> bool:
    """Value supplied by the database or client on write (``@default`` / ``@updatedAt``)."""
    return field.has_default_value or field.is_updated_at


def is_schema_field(field: FieldDescriptor) -> bool:
    """Scalar or enum field, i.e. a real column."""
    return not field.is_relation


def filter_schema_fields(
    fields: Sequence[FieldDescriptor],
) -> List[FieldDescriptor]:
    """Columns of a model, sorted by name for deterministic output."""
    return sorted((f for f in fields if is_schema_field(f)), key=lambda f: f.name)


def filter_internal_models(
    models: Sequence[ModelDescriptor],
) -> List[ModelDescriptor]:
    """Drop internal (``_``-prefixed) models and sort the rest by name."""
    return sorted((m for m in models if not m.is_internal), key=lambda m: m.name)


# ---------------------------------------------------------------------------
# @customType annotations
# ---------------------------------------------------------------------------


def extract_type_override(field: FieldDescriptor) -> Optional[str]:
    """
    Extract the expression of a ``@customType(...)`` annotation.

    Parentheses inside the expression must balance, e.g.::

        /// @customType(Schema.String.pipe(Schema.email()))

    Returns None when the field has no annotation.  An unbalanced or invalid
    annotation (neither ``Schema.``-prefixed nor a bare PascalCase
    identifier) is logged as a warning and ignored.
    """
    doc: Optional[str] = field.documentation
    if not doc:
        return None

    match: Optional[re.Match[str]] = _CUSTOM_TYPE_RE.search(doc)
    if match is None:
        return None

    start: int = match.end()
    depth: int = 1
    end: int = start
    for idx in range(start, len(doc)):
        char: str = doc[idx]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                end = idx
                break

    if depth != 0:
        logger.warning(
            "Unbalanced parentheses in @customType for field '%s'; annotation ignored.",
            field.name,
        )
        return None

    expression: str = doc[start:end].strip()
    if not expression.startswith("Schema.") and not is_custom_type_reference(
        expression
    ):
        logger.warning(
            "Invalid @customType for field '%s': %r must start with 'Schema.' "
            "or be a PascalCase type name; annotation ignored.",
            field.name,
            expression,
        )
        return None

    logger.debug("Field '%s' overridden by @customType(%s)", field.name, expression)
    return expression


def is_custom_type_reference(expression: str) -> bool:
    """True for a bare PascalCase identifier such as ``Vector1536``."""
    return bool(_CUSTOM_TYPE_IDENTIFIER_RE.match(expression))


__all__: List[str] = [
    "is_uuid_field",
    "get_field_db_name",
    "is_list_field",
    "is_required_field",
    "is_id_field",
    "has_default_value",
    "is_generated_field",
    "is_schema_field",
    "filter_schema_fields",
    "filter_internal_models",
    "extract_type_override",
    "is_custom_type_reference",
]

logger.debug("schemagen.classifier loaded - %d public symbols.", len(__all__))
