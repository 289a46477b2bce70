# File: schemagen/templates.py
"""
schemagen - Code Template Engine
================================
Turns a resolved ``GenerationContext`` into the three generated TypeScript
artifacts:

    1. ``enums.ts``  - native enums plus their ``Schema.Enums`` wrappers
    2. ``types.ts``  - branded ids, base / operational schemas and type
       aliases for every model and join table, then the Kysely ``DB``
       interface
    3. ``index.ts``  - re-export manifest

**Ordering contract:** models, enums, join tables and the fields within a
model are emitted in lexicographic order by name, so the output is
byte-identical across runs against an unchanged schema.  Enum *values* keep
their declaration order.

All string assembly uses the ``List[str]`` + ``"\\n".join()`` pattern; the
generator holds no per-run state.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from schemagen.classifier import filter_internal_models, filter_schema_fields
from schemagen.models import (
    EnumDescriptor,
    FieldDescriptor,
    GeneratorConfig,
    JoinTableDescriptor,
    ModelDescriptor,
    ScalarKind,
    SchemaDocument,
)
from schemagen.relations import (
    build_foreign_key_map,
    detect_implicit_many_to_many,
    get_model_id_field,
    get_single_id_field,
    join_tables_for_models,
)
from schemagen.type_mapper import (
    branded_id_base_type,
    build_field_type,
    build_join_column_type,
)
from schemagen.utils import (
    branded_id_name,
    enum_schema_name,
    file_header,
    indent_lines,
    to_pascal_case,
    to_snake_case,
    wrap_in_quotes,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ENUMS_FILE: str = "enums.ts"
TYPES_FILE: str = "types.ts"
INDEX_FILE: str = "index.ts"

_OPERATIONS: Tuple[Tuple[str, str], ...] = (
    ("Select", "Selectable"),
    ("Insert", "Insertable"),
    ("Update", "Updateable"),
)


# ---------------------------------------------------------------------------
# Per-run context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerationContext:
    """
    Descriptor set for one rendering pass.

    ``models`` are the emitted models (internal models removed, sorted by
    name); ``join_tables`` those touching at least one of them; ``enums``
    the enums to declare (sorted by name).
    """

    schema: SchemaDocument
    models: Tuple[ModelDescriptor, ...]
    enums: Tuple[EnumDescriptor, ...]
    join_tables: Tuple[JoinTableDescriptor, ...]

    @classmethod
    def build(
        cls,
        schema: SchemaDocument,
        models: Optional[Sequence[ModelDescriptor]] = None,
        join_tables: Optional[Sequence[JoinTableDescriptor]] = None,
    ) -> "GenerationContext":
        """
        Resolve the context for the whole *schema* or, when *models* is
        given, for that subset (one domain).  In the subset case only the
        enums referenced by those models are declared.
        """
        scoped: List[ModelDescriptor] = filter_internal_models(
            schema.models if models is None else models
        )
        all_join_tables: Sequence[JoinTableDescriptor] = (
            detect_implicit_many_to_many(schema.models)
            if join_tables is None
            else join_tables
        )

        enums: List[EnumDescriptor]
        if models is None:
            enums = list(schema.enums)
        else:
            referenced: Set[str] = {
                f.enum_name
                for m in scoped
                for f in m.fields
                if f.kind == ScalarKind.ENUM and f.enum_name
            }
            enums = [e for e in schema.enums if e.name in referenced]

        return cls(
            schema=schema,
            models=tuple(scoped),
            enums=tuple(sorted(enums, key=lambda e: e.name)),
            join_tables=tuple(
                join_tables_for_models(all_join_tables, (m.name for m in scoped))
            ),
        )

    @property
    def model_names(self) -> List[str]:
        return [m.name for m in self.models]


# ---------------------------------------------------------------------------
# TemplateGenerator class
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless code-generation engine.

    Each ``generate_*`` method returns complete file content; the
    ``GenerationContext`` is passed explicitly to every call.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None) -> None:
        self._config: GeneratorConfig = config or GeneratorConfig()
        logger.debug(
            "TemplateGenerator initialised (runtime_module=%s).",
            self._config.runtime_module,
        )

    # ===================================================================
    # 1. Enums
    # ===================================================================

    def generate_enum(self, enum: EnumDescriptor) -> str:
        """Native enum, its schema wrapper and the derived type."""
        name: str = to_pascal_case(enum.name)
        schema_name: str = enum_schema_name(enum.name)

        lines: List[str] = [f"export enum {name} {{"]
        lines.extend(
            indent_lines(
                [f"{v.name} = {wrap_in_quotes(v.database_value)}," for v in enum.values]
            )
        )
        lines.append("}")
        lines.append("")
        lines.append(f"export const {schema_name} = Schema.Enums({name});")
        lines.append(
            f"export type {name}Type = Schema.Schema.Type<typeof {schema_name}>;"
        )
        return "\n".join(lines)

    def generate_enums(self, ctx: GenerationContext) -> str:
        """Content of ``enums.ts``."""
        lines: List[str] = [file_header(), ""]

        if not ctx.enums:
            lines.append("export {};")
            return "\n".join(lines) + "\n"

        lines.append('import { Schema } from "effect";')
        for enum in ctx.enums:
            lines.append("")
            lines.append(self.generate_enum(enum))

        logger.debug("Rendered %d enum(s).", len(ctx.enums))
        return "\n".join(lines) + "\n"

    # ===================================================================
    # 2. Models
    # ===================================================================

    def generate_branded_id(
        self, model: ModelDescriptor, ctx: GenerationContext
    ) -> Optional[str]:
        """
        Branded identifier of *model*, or None for a composite identifier.

        Raises ``MissingIdentifierError`` when the model has no identifier.
        """
        get_model_id_field(model)  # raises when no identifier at all
        id_field: Optional[FieldDescriptor] = get_single_id_field(model)
        if id_field is None:
            return None

        brand: str = branded_id_name(model.name)
        base: str = branded_id_base_type(id_field, ctx.schema)
        lines: List[str] = [
            f"// {model.name} Branded ID",
            f"export const {brand} = {base}.pipe(Schema.brand({wrap_in_quotes(brand)}));",
            f"export type {brand} = typeof {brand}.Type;",
        ]
        return "\n".join(lines)

    def generate_branded_ids(self, ctx: GenerationContext) -> List[str]:
        """Branded identifiers of every model in scope, ahead of any base schema."""
        blocks: List[str] = []
        for model in ctx.models:
            branded: Optional[str] = self.generate_branded_id(model, ctx)
            if branded is not None:
                blocks.append(branded)
        return blocks

    def generate_base_schema(
        self, model: ModelDescriptor, ctx: GenerationContext
    ) -> str:
        """``_Model = Schema.Struct({...})`` over the model's columns."""
        fk_map: Dict[str, str] = build_foreign_key_map(
            model, ctx.schema, scope=ctx.model_names
        )
        model_name: Optional[str] = (
            model.name if get_single_id_field(model) is not None else None
        )

        field_lines: List[str] = []
        for field in filter_schema_fields(model.fields):
            expression: str = build_field_type(
                field, ctx.schema, model_name=model_name, fk_map=fk_map
            )
            field_lines.append(f"{field.name}: {expression},")

        lines: List[str] = [
            f"// {model.name} Base Schema",
            f"export const _{model.name} = Schema.Struct({{",
        ]
        lines.extend(indent_lines(field_lines))
        lines.append("});")
        return "\n".join(lines)

    def generate_operational_schema(self, base_name: str, name: str) -> str:
        return f"export const {name} = getSchemas({base_name});"

    def generate_type_exports(self, name: str) -> str:
        """``Select`` / ``Insert`` / ``Update`` aliases, decoded then encoded."""
        lines: List[str] = [
            f"export type {name}{alias} = Schema.Schema.Type<typeof {name}.{member}>;"
            for alias, member in _OPERATIONS
        ]
        lines.extend(
            f"export type {name}{alias}Encoded = Schema.Schema.Encoded<typeof {name}.{member}>;"
            for alias, member in _OPERATIONS
        )
        return "\n".join(lines)

    def generate_model_schema(
        self, model: ModelDescriptor, ctx: GenerationContext
    ) -> str:
        """
        Block for one model: base, operational schema and type aliases.

        The branded identifier is emitted separately by
        ``generate_branded_ids`` since foreign keys of other models use it.
        """
        name: str = to_pascal_case(model.name)
        blocks: List[str] = [
            self.generate_base_schema(model, ctx),
            self.generate_operational_schema(f"_{model.name}", name),
            self.generate_type_exports(name),
        ]
        return "\n\n".join(blocks)

    # ===================================================================
    # 3. Join tables
    # ===================================================================

    def generate_join_table_schema(self, join_table: JoinTableDescriptor) -> str:
        """
        Schema for an implicit many-to-many join table.

        Semantic snake_case fields (``category_id``, ``post_id``) map onto
        the physical ``A`` / ``B`` columns.  Both are read-only; rows are
        managed through the relation, never inserted directly.
        """
        column_a: str = f"{to_snake_case(join_table.model_a)}_id"
        column_b: str = f"{to_snake_case(join_table.model_b)}_id"
        base_name: str = join_table.table_name
        name: str = to_pascal_case(join_table.relation_name)

        field_lines: List[str] = [
            f"{column_a}: "
            + build_join_column_type(
                join_table.column_a_kind, join_table.column_a_is_uuid, "A"
            )
            + ",",
            f"{column_b}: "
            + build_join_column_type(
                join_table.column_b_kind, join_table.column_b_is_uuid, "B"
            )
            + ",",
        ]

        lines: List[str] = [
            f"// {join_table.table_name} Join Table Schema",
            f"// Database columns: A ({join_table.model_a}), B ({join_table.model_b})",
            f"// TypeScript fields: {column_a}, {column_b}",
            f"export const {base_name} = Schema.Struct({{",
        ]
        lines.extend(indent_lines(field_lines))
        lines.append("});")

        blocks: List[str] = [
            "\n".join(lines),
            self.generate_operational_schema(base_name, name),
            self.generate_type_exports(name),
        ]
        return "\n\n".join(blocks)

    # ===================================================================
    # 4. DB interface
    # ===================================================================

    def generate_db_interface(self, ctx: GenerationContext) -> str:
        """Kysely ``DB`` interface keyed by physical table name."""
        entries: List[str] = [
            f"{m.table_name}: {to_pascal_case(m.name)}SelectEncoded;"
            for m in ctx.models
        ]
        entries.extend(
            f"{jt.table_name}: {to_pascal_case(jt.relation_name)}SelectEncoded;"
            for jt in ctx.join_tables
        )

        lines: List[str] = ["// Kysely Database Interface", "export interface DB {"]
        lines.extend(indent_lines(entries))
        lines.append("}")
        return "\n".join(lines)

    # ===================================================================
    # 5. types.ts / index.ts
    # ===================================================================

    def generate_types_imports(self, enum_refs: Set[str]) -> str:
        lines: List[str] = [
            'import { Schema } from "effect";',
            "import { columnType, generated, getSchemas } from "
            f"{wrap_in_quotes(self._config.runtime_module)};",
        ]
        if enum_refs:
            lines.append(f'import {{ {", ".join(sorted(enum_refs))} }} from "./enums";')
        return "\n".join(lines)

    def generate_types(self, ctx: GenerationContext) -> str:
        """Content of ``types.ts``."""
        blocks: List[str] = self.generate_branded_ids(ctx)
        for model in ctx.models:
            blocks.append(self.generate_model_schema(model, ctx))
        for join_table in ctx.join_tables:
            blocks.append(self.generate_join_table_schema(join_table))
        blocks.append(self.generate_db_interface(ctx))

        enum_refs: Set[str] = _referenced_enum_schemas(ctx, "\n".join(blocks))

        content: str = "\n\n".join(
            [file_header(), self.generate_types_imports(enum_refs)] + blocks
        )
        logger.debug(
            "Rendered %d model(s), %d join table(s).",
            len(ctx.models),
            len(ctx.join_tables),
        )
        return content + "\n"

    def generate_index(self) -> str:
        """Content of ``index.ts``."""
        lines: List[str] = [
            file_header(),
            "",
            'export * from "./enums";',
            'export * from "./types";',
        ]
        return "\n".join(lines) + "\n"

    # ===================================================================
    # 6. Aggregate generation
    # ===================================================================

    def generate_all(self, ctx: GenerationContext) -> Dict[str, str]:
        """
        Render all three artifacts.

        Returns a dict of file name -> content, in emission order.
        """
        result: Dict[str, str] = {
            ENUMS_FILE: self.generate_enums(ctx),
            TYPES_FILE: self.generate_types(ctx),
            INDEX_FILE: self.generate_index(),
        }
        total_lines: int = sum(content.count("\n") for content in result.values())
        logger.info(
            "Rendered %d files, ~%d lines (%d models, %d enums, %d join tables).",
            len(result),
            total_lines,
            len(ctx.models),
            len(ctx.enums),
            len(ctx.join_tables),
        )
        return result


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _referenced_enum_schemas(ctx: GenerationContext, body: str) -> Set[str]:
    """Enum wrappers (``RoleSchema``) actually used in the rendered body."""
    refs: Set[str] = set()
    for enum in ctx.enums:
        schema_name: str = enum_schema_name(enum.name)
        if re.search(rf"\b{re.escape(schema_name)}\b", body):
            refs.add(schema_name)
    return refs


__all__: List[str] = [
    "ENUMS_FILE",
    "TYPES_FILE",
    "INDEX_FILE",
    "GenerationContext",
    "TemplateGenerator",
]

logger.debug("schemagen.templates loaded.")
