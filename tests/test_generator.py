"""
tests/test_generator.py
Integration tests for schemagen.generator.

Tests cover:
- Schema loading from YAML / JSON
- Normalized and DMMF document parsing, generator-block configuration
- The full render -> export pipeline, dry runs and error reporting
- Multi-domain rendering
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Dict

import pytest

from schemagen.errors import (
    MissingIdentifierError,
    SchemaLoadError,
    UnconfiguredOutputError,
)
from schemagen.generator import (
    SchemaGenerator,
    convert_dmmf,
    load_schema_file,
    parse_raw_schema,
)
from schemagen.models import GeneratorConfig, ScalarKind, SchemaDocument


# ===========================================================================
# Loading
# ===========================================================================


class TestLoadSchemaFile:
    def test_yaml(self, schema_yaml_path: pathlib.Path) -> None:
        data = load_schema_file(schema_yaml_path)
        assert {m["name"] for m in data["models"]} == {"User", "Post", "Category"}

    def test_json(self, tmp_path: pathlib.Path, minimal_schema_dict: Dict[str, Any]) -> None:
        path = tmp_path / "schema.json"
        path.write_text(json.dumps(minimal_schema_dict), encoding="utf-8")
        assert load_schema_file(path) == minimal_schema_dict

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_schema_file(tmp_path / "nope.yaml")

    def test_invalid_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SchemaLoadError):
            load_schema_file(path)

    def test_invalid_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("models: [unclosed", encoding="utf-8")
        with pytest.raises(SchemaLoadError):
            load_schema_file(path)

    def test_top_level_must_be_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(SchemaLoadError):
            load_schema_file(path)


# ===========================================================================
# Parsing
# ===========================================================================


class TestParseRawSchema:
    def test_normalized_document(self, schema_dict: Dict[str, Any]) -> None:
        schema, config = parse_raw_schema(schema_dict)
        assert [m.name for m in schema.models] == ["User", "Post", "Category"]
        assert schema.enum_names == ["PostStatus", "Role"]
        assert config.output == "./generated"
        assert config.runtime_module == "prisma-effect-kysely"
        assert config.preview_features == ["prismaSchemaFolder"]

    def test_top_level_config_wins_over_generator(self, schema_dict: Dict[str, Any]) -> None:
        schema_dict["config"] = {"output": "./elsewhere", "multiFileDomains": True}
        _, config = parse_raw_schema(schema_dict)
        assert config.output == "./elsewhere"
        assert config.multi_file_domains is True

    def test_no_schema_found(self) -> None:
        with pytest.raises(SchemaLoadError):
            parse_raw_schema({"config": {"output": "./x"}})

    def test_validation_error_wrapped(self) -> None:
        raw = {"models": [{"name": "Post", "fields": [{"name": "author", "kind": "Relation"}]}]}
        with pytest.raises(SchemaLoadError, match="Schema validation failed"):
            parse_raw_schema(raw)

    def test_dmmf_document(self, dmmf_dict: Dict[str, Any]) -> None:
        schema, config = parse_raw_schema(dmmf_dict)
        user = schema.get_model("User")
        assert user.table_name == "users"
        assert user.get_field("id").native_type == "Uuid"
        assert user.get_field("role").kind == ScalarKind.ENUM
        assert user.get_field("role").enum_name == "Role"
        assert user.get_field("posts").relation_target == "Post"
        assert schema.get_enum("Role").database_values == ["ADMIN", "member"]
        assert config.output == "./generated"
        assert config.runtime_module == "@acme/kysely-runtime"

    def test_dmmf_unsupported_kind(self) -> None:
        datamodel = {
            "models": [{"name": "Geo", "fields": [{"name": "shape", "kind": "unsupported", "type": "geometry"}]}]
        }
        with pytest.raises(SchemaLoadError, match="unsupported kind"):
            convert_dmmf(datamodel)


# ===========================================================================
# Rendering & pipeline
# ===========================================================================


class TestRender:
    def test_render_is_pure_mapping(self, example_schema: SchemaDocument) -> None:
        files = SchemaGenerator().render(example_schema)
        assert list(files) == ["enums.ts", "types.ts", "index.ts"]

    def test_render_is_deterministic(self, example_schema: SchemaDocument) -> None:
        generator = SchemaGenerator()
        assert generator.render(example_schema) == generator.render(example_schema)

    def test_dmmf_end_to_end(self, dmmf_dict: Dict[str, Any]) -> None:
        schema, config = parse_raw_schema(dmmf_dict)
        types = SchemaGenerator().render(schema, config)["types.ts"]
        assert 'from "@acme/kysely-runtime";' in types
        assert 'export const UserId = Schema.UUID.pipe(Schema.brand("UserId"));' in types
        assert '  authorId: Schema.propertySignature(UserId).pipe(Schema.fromKey("author_id")),' in types
        assert "  users: UserSelectEncoded;" in types


class TestGenerate:
    def test_writes_artifacts(self, example_schema: SchemaDocument, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "generated"
        report = SchemaGenerator().generate(example_schema, GeneratorConfig(output=str(out)))
        assert report.success
        assert sorted(p.name for p in out.iterdir()) == ["enums.ts", "index.ts", "types.ts"]
        assert report.total_files == 3
        assert report.total_models == 3
        assert report.total_enums == 2
        assert report.total_join_tables == 1
        assert report.manifest is not None
        assert report.total_bytes == sum(f.size_bytes for f in report.manifest.files)
        assert "SUCCESS" in report.summary()

    def test_rerun_is_byte_identical(self, example_schema: SchemaDocument, tmp_path: pathlib.Path) -> None:
        config = GeneratorConfig(output=str(tmp_path))
        SchemaGenerator().generate(example_schema, config)
        first = (tmp_path / "types.ts").read_bytes()
        SchemaGenerator().generate(example_schema, config)
        assert (tmp_path / "types.ts").read_bytes() == first

    def test_unconfigured_output(self, example_schema: SchemaDocument, tmp_path: pathlib.Path) -> None:
        with pytest.raises(UnconfiguredOutputError):
            SchemaGenerator().generate(example_schema, GeneratorConfig())
        assert list(tmp_path.iterdir()) == []

    def test_dry_run_writes_nothing(self, example_schema: SchemaDocument, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "out"
        report = SchemaGenerator().generate(
            example_schema, GeneratorConfig(output=str(out)), dry_run=True
        )
        assert report.success
        assert report.total_files == 3
        assert not out.exists()

    def test_engine_error_propagates(self, tmp_path: pathlib.Path) -> None:
        schema = SchemaDocument.model_validate(
            {"models": [{"name": "Orphan", "fields": [{"name": "label", "kind": "String"}]}]}
        )
        with pytest.raises(MissingIdentifierError):
            SchemaGenerator().generate(schema, GeneratorConfig(output=str(tmp_path / "out")))
        assert not (tmp_path / "out").exists()

    def test_generate_from_file_override(self, schema_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "override"
        report = SchemaGenerator().generate_from_file(
            schema_yaml_path, {"output": str(out), "runtime_module": None}
        )
        assert report.success
        assert report.output_directory == str(out.resolve())
        assert 'from "prisma-effect-kysely";' in (out / "types.ts").read_text(encoding="utf-8")

    def test_report_to_dict_is_json(self, example_schema: SchemaDocument, tmp_path: pathlib.Path) -> None:
        report = SchemaGenerator().generate(example_schema, GeneratorConfig(output=str(tmp_path)))
        data = json.loads(json.dumps(report.to_dict()))
        assert data["success"] is True
        assert [f["relative_path"] for f in data["files"]] == ["enums.ts", "types.ts", "index.ts"]


# ===========================================================================
# Multi-domain
# ===========================================================================


class TestMultiDomain:
    def test_artifact_paths(self, domain_schema_dict: Dict[str, Any]) -> None:
        schema, _ = parse_raw_schema(domain_schema_dict)
        files = SchemaGenerator().render(schema, GeneratorConfig(multi_file_domains=True))
        assert list(files) == [
            "billing/src/generated/enums.ts",
            "billing/src/generated/types.ts",
            "billing/src/generated/index.ts",
            "identity/src/generated/enums.ts",
            "identity/src/generated/types.ts",
            "identity/src/generated/index.ts",
        ]

    def test_enums_scoped_to_domain(self, domain_schema_dict: Dict[str, Any]) -> None:
        schema, _ = parse_raw_schema(domain_schema_dict)
        files = SchemaGenerator().render(schema, GeneratorConfig(multi_file_domains=True))
        billing_enums = files["billing/src/generated/enums.ts"]
        assert "export enum InvoiceStatus" in billing_enums
        assert "export enum Role" not in billing_enums
        assert "export enum Role" in files["identity/src/generated/enums.ts"]

    def test_cross_domain_foreign_key_unbranded(self, domain_schema_dict: Dict[str, Any]) -> None:
        schema, _ = parse_raw_schema(domain_schema_dict)
        files = SchemaGenerator().render(schema, GeneratorConfig(multi_file_domains=True))
        billing_types = files["billing/src/generated/types.ts"]
        assert "  userId: Schema.UUID," in billing_types
        assert "UserId" not in billing_types

    def test_report_lists_domains(self, domain_schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> None:
        schema, _ = parse_raw_schema(domain_schema_dict)
        config = GeneratorConfig(output=str(tmp_path), multi_file_domains=True)
        report = SchemaGenerator().generate(schema, config)
        assert report.domains == ["billing", "identity"]
        assert (tmp_path / "identity" / "src" / "generated" / "types.ts").is_file()
