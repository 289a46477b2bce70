# File: schemagen/relations.py
"""
schemagen - Relation Resolution
===============================
Infers the implicit many-to-many join tables of a schema and resolves
foreign-key fields to the models they reference.

An implicit many-to-many relation is declared by two list-valued relation
fields, one on each participating model, that share a relation name and
carry no explicit foreign-key columns.  The database stores it in a join
table named ``_<RelationName>`` with two columns:

* ``A`` holds the identifier of the lexicographically lower model,
* ``B`` holds the identifier of the higher one.

Detection is symmetric: the same relation seen from either side yields one
descriptor.  Self-relations and explicit relations (with foreign-key fields)
never produce a join table.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from schemagen.classifier import is_uuid_field
from schemagen.errors import MissingIdentifierError
from schemagen.models import (
    FieldDescriptor,
    JoinTableDescriptor,
    ModelDescriptor,
    ScalarKind,
    SchemaDocument,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.relations")


# ---------------------------------------------------------------------------
# Identifier lookup
# ---------------------------------------------------------------------------


def get_model_id_field(model: ModelDescriptor) -> FieldDescriptor:
    """
    Return the identifier field of *model*.

    The single ``@id`` field wins; otherwise the first field of the composite
    ``@@id``.  Raises ``MissingIdentifierError`` when neither exists.
    """
    for field in model.fields:
        if field.is_id:
            return field

    if model.primary_key_fields:
        first: Optional[FieldDescriptor] = model.get_field(model.primary_key_fields[0])
        if first is not None:
            return first

    raise MissingIdentifierError(model.name)


def get_single_id_field(model: ModelDescriptor) -> Optional[FieldDescriptor]:
    """The single ``@id`` field, or None for composite / missing identifiers."""
    id_fields: List[FieldDescriptor] = [f for f in model.fields if f.is_id]
    return id_fields[0] if len(id_fields) == 1 else None


# ---------------------------------------------------------------------------
# Implicit many-to-many detection
# ---------------------------------------------------------------------------


def is_implicit_many_to_many_field(field: FieldDescriptor) -> bool:
    """List-valued relation field without explicit foreign-key columns."""
    return (
        field.kind == ScalarKind.RELATION
        and field.is_list
        and not field.relation_from_fields
        and not field.relation_to_fields
    )


def _find_reciprocal_field(
    field: FieldDescriptor, target: ModelDescriptor
) -> Optional[FieldDescriptor]:
    for candidate in target.fields:
        if candidate.relation_name == field.relation_name and candidate.is_list:
            return candidate
    return None


def _build_join_table(
    relation_name: str,
    model: ModelDescriptor,
    target: ModelDescriptor,
) -> JoinTableDescriptor:
    low, high = sorted((model, target), key=lambda m: m.name)
    low_id: FieldDescriptor = get_model_id_field(low)
    high_id: FieldDescriptor = get_model_id_field(high)

    return JoinTableDescriptor(
        table_name=f"_{relation_name}",
        relation_name=relation_name,
        model_a=low.name,
        model_b=high.name,
        column_a_kind=low_id.kind,
        column_b_kind=high_id.kind,
        column_a_is_uuid=is_uuid_field(low_id),
        column_b_is_uuid=is_uuid_field(high_id),
    )


def detect_implicit_many_to_many(
    models: Sequence[ModelDescriptor],
) -> List[JoinTableDescriptor]:
    """
    Infer every implicit many-to-many join table among *models*.

    Returns one descriptor per relation name, sorted by table name.  Raises
    ``MissingIdentifierError`` when a participant has no identifier.
    """
    by_name: Dict[str, ModelDescriptor] = {m.name: m for m in models}
    join_tables: Dict[str, JoinTableDescriptor] = {}

    for model in models:
        for field in model.fields:
            if not is_implicit_many_to_many_field(field):
                continue
            if not field.relation_name or field.relation_name in join_tables:
                continue

            target: Optional[ModelDescriptor] = by_name.get(field.relation_target or "")
            if target is None or target.name == model.name:
                continue

            reciprocal: Optional[FieldDescriptor] = _find_reciprocal_field(field, target)
            if reciprocal is None or not is_implicit_many_to_many_field(reciprocal):
                continue

            join_tables[field.relation_name] = _build_join_table(
                field.relation_name, model, target
            )
            logger.debug(
                "Detected implicit many-to-many %s between %s and %s",
                field.relation_name,
                model.name,
                target.name,
            )

    result: List[JoinTableDescriptor] = sorted(
        join_tables.values(), key=lambda jt: jt.table_name
    )
    logger.info("Detected %d implicit many-to-many join table(s).", len(result))
    return result


def join_tables_for_models(
    join_tables: Iterable[JoinTableDescriptor], model_names: Iterable[str]
) -> List[JoinTableDescriptor]:
    """Join tables with at least one participant among *model_names*."""
    scope = set(model_names)
    return [jt for jt in join_tables if jt.model_a in scope or jt.model_b in scope]


# ---------------------------------------------------------------------------
# Foreign keys
# ---------------------------------------------------------------------------


def build_foreign_key_map(
    model: ModelDescriptor,
    schema: SchemaDocument,
    scope: Optional[Iterable[str]] = None,
) -> Dict[str, str]:
    """
    Map the scalar foreign-key fields of *model* to the model they reference.

    A field qualifies when it is listed in a relation field's
    ``relation_from_fields`` and the matching ``relation_to_fields`` entry is
    the target model's single ``@id`` field.  When *scope* is given, targets
    outside it are left unbranded.
    """
    allowed: Optional[set] = set(scope) if scope is not None else None
    fk_map: Dict[str, str] = {}

    for field in model.fields:
        if field.kind != ScalarKind.RELATION or not field.relation_from_fields:
            continue
        target: Optional[ModelDescriptor] = schema.get_model(field.relation_target or "")
        if target is None:
            continue
        if allowed is not None and target.name not in allowed:
            continue
        target_id: Optional[FieldDescriptor] = get_single_id_field(target)
        if target_id is None:
            continue

        for from_name, to_name in zip(field.relation_from_fields, field.relation_to_fields):
            if to_name == target_id.name and model.get_field(from_name) is not None:
                fk_map[from_name] = target.name

    if fk_map:
        logger.debug("Foreign keys of %s: %s", model.name, fk_map)
    return fk_map


__all__: List[str] = [
    "get_model_id_field",
    "get_single_id_field",
    "is_implicit_many_to_many_field",
    "detect_implicit_many_to_many",
    "join_tables_for_models",
    "build_foreign_key_map",
]
