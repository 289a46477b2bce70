# File: schemagen/type_mapper.py
"""
schemagen - Field Type Mapping
==============================
Maps a field descriptor to the Effect Schema expression emitted for its
column.

The mapping has two stages:

**Base type**, first match wins:

    @customType(...) annotation
    own branded identifier   ({Model}Id, when a model name is supplied)
    branded foreign key      ({Target}Id, from the foreign-key map)
    UUID-classified String   (Schema.UUID)
    scalar table             (Schema.String, Schema.Number, ...)
    enum wrapper             ({Enum}Schema)

**Composition**, applied in this fixed order and never collapsed:

    1. list               -> Schema.Array(x)
    2. optional           -> Schema.NullishOr(x)
    3. id with default    -> columnType(x, Schema.Never, Schema.Never)
       other generated    -> generated(x)
    4. @map alias         -> Schema.propertySignature(x).pipe(Schema.fromKey("db"))

Read-only / generated detection sees the pre-alias type, and the alias
wrapper is always outermost.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from schemagen.classifier import (
    extract_type_override,
    get_field_db_name,
    has_default_value,
    is_generated_field,
    is_id_field,
    is_list_field,
    is_required_field,
    is_schema_field,
    is_uuid_field,
)
from schemagen.errors import UndefinedEnumReferenceError, UnmappableFieldError
from schemagen.models import FieldDescriptor, ScalarKind, SchemaDocument
from schemagen.utils import branded_id_name, enum_schema_name, wrap_in_quotes

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.type_mapper")

# ---------------------------------------------------------------------------
# Scalar table
# ---------------------------------------------------------------------------

UUID_SCHEMA: str = "Schema.UUID"
NEVER_SCHEMA: str = "Schema.Never"

SCALAR_TYPE_MAP: Dict[ScalarKind, str] = {
    ScalarKind.STRING: "Schema.String",
    ScalarKind.INT: "Schema.Number",
    ScalarKind.FLOAT: "Schema.Number",
    ScalarKind.BIGINT: "Schema.BigInt",
    ScalarKind.DECIMAL: "Schema.String",  # preserves precision
    ScalarKind.BOOLEAN: "Schema.Boolean",
    ScalarKind.DATETIME: "Schema.DateFromSelf",  # native Date on both sides
    ScalarKind.JSON: "Schema.Unknown",
    ScalarKind.BYTES: "Schema.Uint8Array",
}


# ---------------------------------------------------------------------------
# Base mapping
# ---------------------------------------------------------------------------


def map_scalar_type(field: FieldDescriptor, schema: SchemaDocument) -> str:
    """UUID / scalar-table / enum mapping, without overrides or branding."""
    if field.is_relation:
        raise UnmappableFieldError(field.name, field.kind.value)

    if field.is_enum:
        if not field.enum_name or schema.get_enum(field.enum_name) is None:
            raise UndefinedEnumReferenceError(
                field.name, field.enum_name, schema.enum_names
            )
        return enum_schema_name(field.enum_name)

    if field.kind == ScalarKind.STRING and is_uuid_field(field):
        return UUID_SCHEMA
    return SCALAR_TYPE_MAP[field.kind]


def branded_id_base_type(field: FieldDescriptor, schema: SchemaDocument) -> str:
    """Representation underlying a branded identifier (``Schema.UUID``, ``Schema.Number``, ...)."""
    return map_scalar_type(field, schema)


def map_base_type(
    field: FieldDescriptor,
    schema: SchemaDocument,
    *,
    model_name: Optional[str] = None,
    fk_map: Optional[Mapping[str, str]] = None,
) -> str:
    """Base expression of *field* before any composition wrappers."""
    if not is_schema_field(field):
        raise UnmappableFieldError(field.name, field.kind.value)

    override: Optional[str] = extract_type_override(field)
    if override is not None:
        return override

    if model_name is not None and is_id_field(field):
        return branded_id_name(model_name)

    if fk_map and field.name in fk_map:
        return branded_id_name(fk_map[field.name])

    return map_scalar_type(field, schema)


# ---------------------------------------------------------------------------
# Composition steps
# ---------------------------------------------------------------------------


def apply_list_and_optional(expression: str, field: FieldDescriptor) -> str:
    """Steps 1-2: array, then nullish union."""
    if is_list_field(field):
        expression = f"Schema.Array({expression})"
    if not is_required_field(field):
        expression = f"Schema.NullishOr({expression})"
    return expression


def apply_column_helpers(expression: str, field: FieldDescriptor) -> str:
    """Step 3: read-only identifier or database-generated column."""
    if is_id_field(field) and has_default_value(field):
        return f"columnType({expression}, {NEVER_SCHEMA}, {NEVER_SCHEMA})"
    if is_generated_field(field):
        return f"generated({expression})"
    return expression


def apply_map_directive(expression: str, field: FieldDescriptor) -> str:
    """Step 4: bind the logical name to a differing physical column."""
    column: str = get_field_db_name(field)
    if column != field.name:
        return (
            f"Schema.propertySignature({expression})"
            f".pipe(Schema.fromKey({wrap_in_quotes(column)}))"
        )
    return expression


def build_field_type(
    field: FieldDescriptor,
    schema: SchemaDocument,
    *,
    model_name: Optional[str] = None,
    fk_map: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Full column expression of *field*.

    Args:
        field: Scalar or enum field.
        schema: Schema document, for enum lookups.
        model_name: Declaring model; enables the model's branded identifier
            for its ``@id`` field.
        fk_map: Foreign-key field name to referenced model name.

    Raises:
        UndefinedEnumReferenceError: enum field referencing an unknown enum.
        UnmappableFieldError: *field* is a relation.
    """
    expression: str = map_base_type(
        field, schema, model_name=model_name, fk_map=fk_map
    )
    expression = apply_list_and_optional(expression, field)
    expression = apply_column_helpers(expression, field)
    expression = apply_map_directive(expression, field)
    logger.debug("Mapped %s -> %s", field.name, expression)
    return expression


# ---------------------------------------------------------------------------
# Join-table columns
# ---------------------------------------------------------------------------


def join_column_base_type(kind: ScalarKind, is_uuid: bool) -> str:
    """Raw representation of a join-table column (never branded)."""
    if is_uuid and kind == ScalarKind.STRING:
        return UUID_SCHEMA
    if kind in (ScalarKind.INT, ScalarKind.FLOAT):
        return "Schema.Number"
    if kind == ScalarKind.BIGINT:
        return "Schema.BigInt"
    return "Schema.String"


def build_join_column_type(kind: ScalarKind, is_uuid: bool, column: str) -> str:
    """Read-only join-table column mapped onto physical column ``A`` or ``B``."""
    base: str = join_column_base_type(kind, is_uuid)
    readonly: str = f"columnType({base}, {NEVER_SCHEMA}, {NEVER_SCHEMA})"
    return f"Schema.propertySignature({readonly}).pipe(Schema.fromKey({wrap_in_quotes(column)}))"


__all__: List[str] = [
    "SCALAR_TYPE_MAP",
    "UUID_SCHEMA",
    "map_scalar_type",
    "branded_id_base_type",
    "map_base_type",
    "apply_list_and_optional",
    "apply_column_helpers",
    "apply_map_directive",
    "build_field_type",
    "join_column_base_type",
    "build_join_column_type",
]
