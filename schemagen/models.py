# File: schemagen/models.py
"""
schemagen - Core Data Models
============================
Pydantic V2 models describing the normalized schema document consumed by the
transformation engine, the derived join-table descriptors it produces, and the
generator configuration supplied by the host.

Descriptors are immutable (``frozen=True``): they are built once per
generation run from the input document and discarded at the end of it.  Every
derived value is a pure function of these models.

Field names are snake_case; camelCase aliases accept the keys used by the
upstream schema parser (``isList``, ``relationFromFields``, ...).
"""

from __future__ import annotations

import hashlib
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ScalarKind(str, Enum):
    """Declared kind of a field, as reported by the upstream parser."""

    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    BIGINT = "BigInt"
    DECIMAL = "Decimal"
    BYTES = "Bytes"
    JSON = "Json"
    ENUM = "Enum"
    RELATION = "Relation"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_DESCRIPTOR_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=False,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Field / model / enum descriptors
# ---------------------------------------------------------------------------


class FieldDescriptor(BaseModel):
    """
    A single field of a model.

    Scalar and enum fields become columns; relation fields only carry linkage
    metadata (``relation_name``, ``relation_target`` and the explicit
    foreign-key lists) and are never emitted as columns.
    """

    model_config = _DESCRIPTOR_CONFIG

    name: str = Field(..., min_length=1, description="Logical field name.")
    kind: ScalarKind = Field(
        ..., alias="scalarKind", description="Declared scalar kind."
    )
    enum_name: Optional[str] = Field(
        default=None, alias="enumName", description="Referenced enum (kind == Enum)."
    )
    is_list: bool = Field(default=False, alias="isList")
    is_required: bool = Field(default=True, alias="isRequired")
    is_id: bool = Field(default=False, alias="isId")
    is_unique: bool = Field(default=False, alias="isUnique")
    has_default_value: bool = Field(
        default=False,
        alias="hasDefaultValue",
        description="Database or client generated default (@default).",
    )
    is_updated_at: bool = Field(
        default=False, alias="isUpdatedAt", description="Auto-updated (@updatedAt)."
    )
    db_name: Optional[str] = Field(
        default=None, alias="dbName", description="Physical column name (@map)."
    )
    native_type: Optional[str] = Field(
        default=None,
        alias="nativeType",
        description="Native storage type annotation, e.g. 'Uuid' for @db.Uuid.",
    )
    relation_name: Optional[str] = Field(default=None, alias="relationName")
    relation_target: Optional[str] = Field(
        default=None,
        alias="relationTarget",
        description="Target model name (kind == Relation).",
    )
    relation_from_fields: Tuple[str, ...] = Field(
        default=(), alias="relationFromFields"
    )
    relation_to_fields: Tuple[str, ...] = Field(default=(), alias="relationToFields")
    documentation: Optional[str] = Field(
        default=None, description="Free-text documentation (/// comments)."
    )

    @field_validator("native_type", mode="before")
    @classmethod
    def _reduce_native_type(cls, v: Any) -> Any:
        # DMMF reports native types as [name, args]
        if isinstance(v, (list, tuple)):
            return v[0] if v else None
        return v

    @field_validator("relation_from_fields", "relation_to_fields", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return () if v is None else v

    @model_validator(mode="after")
    def _validate_relation_target(self) -> "FieldDescriptor":
        if self.kind == ScalarKind.RELATION and not self.relation_target:
            raise ValueError(
                f"Relation field '{self.name}' is missing 'relation_target'."
            )
        return self

    @computed_field  # type: ignore[misc]
    @property
    def is_relation(self) -> bool:
        return self.kind == ScalarKind.RELATION

    @computed_field  # type: ignore[misc]
    @property
    def is_enum(self) -> bool:
        return self.kind == ScalarKind.ENUM

    def __repr__(self) -> str:
        flags: str = "".join(
            [
                "[]" if self.is_list else "",
                "" if self.is_required else "?",
                " @id" if self.is_id else "",
                " @default" if self.has_default_value else "",
            ]
        )
        return f"<Field {self.name}: {self.kind}{flags}>"


class ModelDescriptor(BaseModel):
    """
    A model (table) of the schema.

    Invariant for non-join models: exactly one field with ``is_id`` or a
    non-empty ``primary_key_fields``.  The engine does not enforce this up
    front; identifier-dependent steps raise ``MissingIdentifierError``.
    """

    model_config = _DESCRIPTOR_CONFIG

    name: str = Field(..., min_length=1, description="Logical model name.")
    db_name: Optional[str] = Field(
        default=None, alias="dbName", description="Physical table name (@@map)."
    )
    fields: Tuple[FieldDescriptor, ...] = Field(default=())
    primary_key_fields: Tuple[str, ...] = Field(
        default=(),
        alias="primaryKey",
        description="Composite identifier field names (@@id).",
    )
    schema_location: Optional[str] = Field(
        default=None,
        alias="schemaLocation",
        description="Schema file the model was declared in (multi-file schemas).",
    )

    _field_map: Dict[str, FieldDescriptor] = PrivateAttr(default_factory=dict)

    @field_validator("primary_key_fields", mode="before")
    @classmethod
    def _unwrap_primary_key(cls, v: Any) -> Any:
        # DMMF reports @@id as {"name": ..., "fields": [...]}
        if v is None:
            return ()
        if isinstance(v, dict):
            return v.get("fields") or ()
        return v

    @model_validator(mode="after")
    def _build_field_map(self) -> "ModelDescriptor":
        self._field_map = {f.name: f for f in self.fields}
        return self

    @computed_field  # type: ignore[misc]
    @property
    def table_name(self) -> str:
        """Physical table name: ``@@map`` alias if present, else the model name."""
        return self.db_name or self.name

    @computed_field  # type: ignore[misc]
    @property
    def is_internal(self) -> bool:
        return self.name.startswith("_")

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        """O(1) field lookup by name."""
        return self._field_map.get(name)

    def __repr__(self) -> str:
        return f"<Model {self.name} ({len(self.fields)} fields)>"


class EnumValueDescriptor(BaseModel):
    """One member of an enum; ``db_name`` is the ``@map`` value stored in the database."""

    model_config = _DESCRIPTOR_CONFIG

    name: str = Field(..., min_length=1)
    db_name: Optional[str] = Field(default=None, alias="dbName")

    @computed_field  # type: ignore[misc]
    @property
    def database_value(self) -> str:
        return self.db_name or self.name


class EnumDescriptor(BaseModel):
    """An enum of the schema."""

    model_config = _DESCRIPTOR_CONFIG

    name: str = Field(..., min_length=1)
    db_name: Optional[str] = Field(default=None, alias="dbName")
    values: Tuple[EnumValueDescriptor, ...] = Field(..., min_length=1)

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_bare_values(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return tuple({"name": item} if isinstance(item, str) else item for item in v)
        return v

    @field_validator("values")
    @classmethod
    def _unique_values(
        cls, v: Tuple[EnumValueDescriptor, ...]
    ) -> Tuple[EnumValueDescriptor, ...]:
        names: List[str] = [item.name for item in v]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate enum values detected: {dupes}")
        return v

    @computed_field  # type: ignore[misc]
    @property
    def database_values(self) -> List[str]:
        return [item.database_value for item in self.values]


# ---------------------------------------------------------------------------
# Schema document - top-level container
# ---------------------------------------------------------------------------


class SchemaDocument(BaseModel):
    """
    The fully resolved schema handed over by the host.

    Referential validity is the upstream parser's responsibility; only
    structural problems (duplicate names) are rejected here.
    """

    model_config = _DESCRIPTOR_CONFIG

    models: Tuple[ModelDescriptor, ...] = Field(default=())
    enums: Tuple[EnumDescriptor, ...] = Field(default=())

    _model_map: Dict[str, ModelDescriptor] = PrivateAttr(default_factory=dict)
    _enum_map: Dict[str, EnumDescriptor] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "SchemaDocument":
        for label, names in (
            ("model", [m.name for m in self.models]),
            ("enum", [e.name for e in self.enums]),
        ):
            if len(names) != len(set(names)):
                dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
                raise ValueError(f"Duplicate {label} names: {dupes}")
        return self

    @model_validator(mode="after")
    def _build_lookup_maps(self) -> "SchemaDocument":
        self._model_map = {m.name: m for m in self.models}
        self._enum_map = {e.name: e for e in self.enums}
        return self

    def get_model(self, name: str) -> Optional[ModelDescriptor]:
        """O(1) model lookup."""
        return self._model_map.get(name)

    def get_enum(self, name: str) -> Optional[EnumDescriptor]:
        """O(1) enum lookup."""
        return self._enum_map.get(name)

    @computed_field  # type: ignore[misc]
    @property
    def enum_names(self) -> List[str]:
        return sorted(self._enum_map)

    def __repr__(self) -> str:
        return f"<SchemaDocument {len(self.models)} models, {len(self.enums)} enums>"


# ---------------------------------------------------------------------------
# Derived descriptors
# ---------------------------------------------------------------------------


class JoinTableDescriptor(BaseModel):
    """
    An implicit many-to-many join table inferred from the model graph.

    ``model_a`` / ``model_b`` are the two participants in lexicographic
    order.  The order decides physical column identity: ``model_a``'s
    identifier lives in column ``A`` and ``model_b``'s in column ``B``.
    """

    model_config = _DESCRIPTOR_CONFIG

    table_name: str = Field(..., description="Physical table name, e.g. '_CategoryToPost'.")
    relation_name: str = Field(..., description="Relation name, e.g. 'CategoryToPost'.")
    model_a: str
    model_b: str
    column_a_kind: ScalarKind
    column_b_kind: ScalarKind
    column_a_is_uuid: bool = False
    column_b_is_uuid: bool = False

    @model_validator(mode="after")
    def _validate_ordering(self) -> "JoinTableDescriptor":
        if not self.model_a < self.model_b:
            raise ValueError(
                f"Join table '{self.table_name}' participants must be in "
                f"lexicographic order, got {self.model_a!r} / {self.model_b!r}."
            )
        return self

    def __repr__(self) -> str:
        return f"<JoinTable {self.table_name} A={self.model_a} B={self.model_b}>"


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class GeneratorConfig(BaseModel):
    """
    Settings supplied by the invoking host (generator block or CLI).

    ``output`` is optional at construction time so that a missing value can be
    reported as ``UnconfiguredOutputError`` before any generation work starts.
    """

    model_config = ConfigDict(
        strict=False,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    output: Optional[str] = Field(
        default=None, description="Output directory for generated artifacts."
    )
    multi_file_domains: bool = Field(
        default=False,
        alias="multiFileDomains",
        description="Emit one artifact set per schema-file domain.",
    )
    runtime_module: str = Field(
        default="prisma-effect-kysely",
        alias="runtimeModule",
        min_length=1,
        description="Module the generated code imports columnType/generated/getSchemas from.",
    )
    preview_features: List[str] = Field(
        default_factory=list, alias="previewFeatures"
    )
    schema_path: Optional[str] = Field(
        default=None,
        alias="schemaPath",
        description="Path of the main schema file (file-based domain detection).",
    )
    clean_output: bool = Field(
        default=False,
        alias="cleanOutput",
        description="Remove previously generated files before writing.",
    )

    @field_validator("output", mode="before")
    @classmethod
    def _blank_output_is_unset(cls, v: Any) -> Any:
        if isinstance(v, dict):
            # generator blocks report output as {"value": ..., "fromEnvVar": ...}
            v = v.get("value")
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("preview_features", mode="before")
    @classmethod
    def _parse_preview_features(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            try:
                parsed: Any = json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
            return parsed if isinstance(parsed, list) else []
        return v


# ---------------------------------------------------------------------------
# Generation output
# ---------------------------------------------------------------------------


class GeneratedArtifact(BaseModel):
    """A single generated text artifact (``enums.ts``, ``types.ts``, ``index.ts``)."""

    model_config = _DESCRIPTOR_CONFIG

    path: str = Field(..., min_length=1, description="Path relative to the output root.")
    content: str = Field(..., description="Full file content.")

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        if not self.content:
            return 0
        return self.content.count("\n") + (0 if self.content.endswith("\n") else 1)

    @computed_field  # type: ignore[misc]
    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))

    @computed_field  # type: ignore[misc]
    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.content.encode("utf-8")).hexdigest()


class GenerationResult(BaseModel):
    """
    Artifacts produced by one rendering pass, in emission order.

    Consumed by the exporter to write files and by the CLI to print
    summary statistics.
    """

    model_config = ConfigDict(strict=False, validate_assignment=True)

    artifacts: List[GeneratedArtifact] = Field(default_factory=list)
    domains: List[str] = Field(
        default_factory=list, description="Domains rendered (multi-domain mode)."
    )

    @computed_field  # type: ignore[misc]
    @property
    def total_files(self) -> int:
        return len(self.artifacts)

    @computed_field  # type: ignore[misc]
    @property
    def total_lines(self) -> int:
        return sum(a.line_count for a in self.artifacts)

    def add_artifact(self, path: str, content: str) -> None:
        self.artifacts.append(GeneratedArtifact(path=path, content=content))

    def as_mapping(self) -> Dict[str, str]:
        """``{relative_path: content}`` in emission order."""
        return {a.path: a.content for a in self.artifacts}

    def __repr__(self) -> str:
        return (
            f"<GenerationResult {self.total_files} files, "
            f"{self.total_lines} lines>"
        )


__all__: List[str] = [
    "ScalarKind",
    "FieldDescriptor",
    "ModelDescriptor",
    "EnumValueDescriptor",
    "EnumDescriptor",
    "SchemaDocument",
    "JoinTableDescriptor",
    "GeneratorConfig",
    "GeneratedArtifact",
    "GenerationResult",
]

logger.debug("schemagen.models loaded - %d public symbols.", len(__all__))
