"""
tests/test_templates.py
Unit tests for schemagen.templates (TemplateGenerator).

Tests cover:
- enums.ts generation (native enums, schema wrappers, empty schemas)
- Model blocks (branded ids, base schemas, operational schemas, type aliases)
- Implicit many-to-many join tables
- The Kysely DB interface
- Imports, ordering and determinism of the full generate_all pipeline
"""

from __future__ import annotations

import copy
import random
from typing import Any, Dict

import pytest

from schemagen.errors import MissingIdentifierError, UndefinedEnumReferenceError
from schemagen.models import EnumDescriptor, GeneratorConfig, SchemaDocument
from schemagen.templates import (
    ENUMS_FILE,
    INDEX_FILE,
    TYPES_FILE,
    GenerationContext,
    TemplateGenerator,
)
from schemagen.utils import file_header


MINIMAL_TYPES_TS: str = """\
/**
 * Generated by schemagen
 * DO NOT EDIT MANUALLY
 */

import { Schema } from "effect";
import { columnType, generated, getSchemas } from "prisma-effect-kysely";

// Item Branded ID
export const ItemId = Schema.Number.pipe(Schema.brand("ItemId"));
export type ItemId = typeof ItemId.Type;

// Item Base Schema
export const _Item = Schema.Struct({
  id: columnType(ItemId, Schema.Never, Schema.Never),
  title: Schema.String,
});

export const Item = getSchemas(_Item);

export type ItemSelect = Schema.Schema.Type<typeof Item.Selectable>;
export type ItemInsert = Schema.Schema.Type<typeof Item.Insertable>;
export type ItemUpdate = Schema.Schema.Type<typeof Item.Updateable>;
export type ItemSelectEncoded = Schema.Schema.Encoded<typeof Item.Selectable>;
export type ItemInsertEncoded = Schema.Schema.Encoded<typeof Item.Insertable>;
export type ItemUpdateEncoded = Schema.Schema.Encoded<typeof Item.Updateable>;

// Kysely Database Interface
export interface DB {
  Item: ItemSelectEncoded;
}
"""


def _build_schema(raw: Dict[str, Any]) -> SchemaDocument:
    return SchemaDocument.model_validate(
        {"models": raw.get("models", []), "enums": raw.get("enums", [])}
    )


def _render(raw: Dict[str, Any]) -> Dict[str, str]:
    schema = _build_schema(raw)
    return TemplateGenerator().generate_all(GenerationContext.build(schema))


# ===========================================================================
# Enums
# ===========================================================================


class TestEnumGeneration:
    def test_enum_block(self) -> None:
        enum = EnumDescriptor(name="Role", values=["ADMIN", {"name": "GUEST", "dbName": "guest_user"}])
        assert TemplateGenerator().generate_enum(enum) == (
            "export enum Role {\n"
            '  ADMIN = "ADMIN",\n'
            '  GUEST = "guest_user",\n'
            "}\n"
            "\n"
            "export const RoleSchema = Schema.Enums(Role);\n"
            "export type RoleType = Schema.Schema.Type<typeof RoleSchema>;"
        )

    def test_enums_sorted_values_in_declaration_order(self, example_schema: SchemaDocument) -> None:
        ctx = GenerationContext.build(example_schema)
        content = TemplateGenerator().generate_enums(ctx)
        assert content.index("export enum PostStatus") < content.index("export enum Role")
        assert content.index("DRAFT") < content.index("PUBLISHED") < content.index("ARCHIVED")
        assert content.startswith(file_header())
        assert 'import { Schema } from "effect";' in content

    def test_no_enums_is_empty_module(self, minimal_schema_dict: Dict[str, Any]) -> None:
        content = _render(minimal_schema_dict)[ENUMS_FILE]
        assert content == file_header() + "\n\nexport {};\n"


# ===========================================================================
# Models
# ===========================================================================


class TestModelGeneration:
    def test_minimal_types_exact(self, minimal_schema_dict: Dict[str, Any]) -> None:
        assert _render(minimal_schema_dict)[TYPES_FILE] == MINIMAL_TYPES_TS

    def test_uuid_branded_id(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        assert 'export const UserId = Schema.UUID.pipe(Schema.brand("UserId"));' in types
        assert "export type UserId = typeof UserId.Type;" in types

    def test_user_base_schema(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        expected = "\n".join(
            [
                "// User Base Schema",
                "export const _User = Schema.Struct({",
                '  createdAt: Schema.propertySignature(generated(Schema.DateFromSelf)).pipe(Schema.fromKey("created_at")),',
                "  email: Schema.String.pipe(Schema.pattern(/@/)),",
                "  id: columnType(UserId, Schema.Never, Schema.Never),",
                "  name: Schema.NullishOr(Schema.String),",
                "  role: generated(RoleSchema),",
                '  updatedAt: Schema.propertySignature(generated(Schema.DateFromSelf)).pipe(Schema.fromKey("updated_at")),',
                "});",
            ]
        )
        assert expected in types

    def test_foreign_key_branded(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        assert '  authorId: Schema.propertySignature(UserId).pipe(Schema.fromKey("author_id")),' in types
        assert "  metadata: Schema.NullishOr(Schema.Unknown)," in types
        assert "  status: PostStatusSchema," in types
        assert "  tags: Schema.Array(Schema.String)," in types

    def test_branded_ids_declared_before_use(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        first_struct = types.index("= Schema.Struct({")
        for brand in ("CategoryId", "PostId", "UserId"):
            declaration = types.index(f"export const {brand} =")
            assert declaration < first_struct
            assert declaration < types.index(f"({brand}")
        assert types.index("export const UserId =") < types.index("authorId: Schema.propertySignature(UserId)")

    def test_branded_ids_sorted(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        assert (
            types.index("// Category Branded ID")
            < types.index("// Post Branded ID")
            < types.index("// User Branded ID")
        )

    def test_relation_fields_not_emitted(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        assert "posts:" not in types
        assert "author:" not in types
        assert "categories:" not in types

    def test_models_sorted(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        assert (
            types.index("// Category Base Schema")
            < types.index("// Post Base Schema")
            < types.index("// User Base Schema")
        )

    def test_composite_id_has_no_brand(self) -> None:
        raw = {
            "models": [
                {
                    "name": "Membership",
                    "primaryKey": ["teamId", "userId"],
                    "fields": [
                        {"name": "teamId", "kind": "Int"},
                        {"name": "userId", "kind": "Int"},
                    ],
                }
            ]
        }
        types = _render(raw)[TYPES_FILE]
        assert "MembershipId" not in types
        assert "export const _Membership = Schema.Struct({" in types

    def test_internal_models_skipped(self, minimal_schema_dict: Dict[str, Any]) -> None:
        minimal_schema_dict["models"].append({"name": "_Migration", "fields": []})
        types = _render(minimal_schema_dict)[TYPES_FILE]
        assert "_Migration" not in types

    def test_missing_identifier(self) -> None:
        raw = {"models": [{"name": "Orphan", "fields": [{"name": "label", "kind": "String"}]}]}
        with pytest.raises(MissingIdentifierError):
            _render(raw)

    def test_undefined_enum(self, minimal_schema_dict: Dict[str, Any]) -> None:
        minimal_schema_dict["models"][0]["fields"].append(
            {"name": "status", "kind": "Enum", "enumName": "Status"}
        )
        with pytest.raises(UndefinedEnumReferenceError):
            _render(minimal_schema_dict)


# ===========================================================================
# Join tables & DB interface
# ===========================================================================


class TestJoinTablesAndDatabase:
    def test_join_table_block(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        expected = "\n".join(
            [
                "// _CategoryToPost Join Table Schema",
                "// Database columns: A (Category), B (Post)",
                "// TypeScript fields: category_id, post_id",
                "export const _CategoryToPost = Schema.Struct({",
                '  category_id: Schema.propertySignature(columnType(Schema.Number, Schema.Never, Schema.Never)).pipe(Schema.fromKey("A")),',
                '  post_id: Schema.propertySignature(columnType(Schema.Number, Schema.Never, Schema.Never)).pipe(Schema.fromKey("B")),',
                "});",
                "",
                "export const CategoryToPost = getSchemas(_CategoryToPost);",
            ]
        )
        assert expected in types
        assert "export type CategoryToPostSelectEncoded" in types

    def test_uuid_join_column(self, many_to_many_schema_dict: Dict[str, Any]) -> None:
        types = _render(many_to_many_schema_dict)[TYPES_FILE]
        assert (
            '  post_id: Schema.propertySignature(columnType(Schema.UUID, Schema.Never, Schema.Never)).pipe(Schema.fromKey("B")),'
            in types
        )

    def test_db_interface(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        expected = "\n".join(
            [
                "// Kysely Database Interface",
                "export interface DB {",
                "  Category: CategorySelectEncoded;",
                "  Post: PostSelectEncoded;",
                "  users: UserSelectEncoded;",
                "  _CategoryToPost: CategoryToPostSelectEncoded;",
                "}",
            ]
        )
        assert types.endswith(expected + "\n")


# ===========================================================================
# Imports, index and determinism
# ===========================================================================


class TestAggregate:
    def test_enum_imports(self, example_schema: SchemaDocument) -> None:
        types = _render_example(example_schema)
        assert 'import { PostStatusSchema, RoleSchema } from "./enums";' in types

    def test_no_enum_import_without_enums(self, minimal_schema_dict: Dict[str, Any]) -> None:
        assert "./enums" not in _render(minimal_schema_dict)[TYPES_FILE]

    def test_runtime_module_configurable(self, minimal_schema_dict: Dict[str, Any]) -> None:
        ctx = GenerationContext.build(_build_schema(minimal_schema_dict))
        gen = TemplateGenerator(GeneratorConfig(runtime_module="@acme/runtime"))
        assert 'from "@acme/runtime";' in gen.generate_types(ctx)

    def test_index(self) -> None:
        assert TemplateGenerator().generate_index() == (
            file_header() + '\n\nexport * from "./enums";\nexport * from "./types";\n'
        )

    def test_generate_all_keys(self, example_schema: SchemaDocument) -> None:
        files = TemplateGenerator().generate_all(GenerationContext.build(example_schema))
        assert list(files) == [ENUMS_FILE, TYPES_FILE, INDEX_FILE]
        assert all(content.endswith("\n") for content in files.values())

    def test_deterministic_under_reordering(self, schema_dict: Dict[str, Any]) -> None:
        first = _render(schema_dict)
        shuffled = copy.deepcopy(schema_dict)
        models = shuffled["models"]
        random.Random(7).shuffle(models)
        for model in models:
            model["fields"] = list(reversed(model["fields"]))
        shuffled["models"] = models
        shuffled["enums"] = list(reversed(schema_dict["enums"]))
        assert _render(shuffled) == first
        assert _render(schema_dict) == first


def _render_example(schema: SchemaDocument) -> str:
    return TemplateGenerator().generate_types(GenerationContext.build(schema))
