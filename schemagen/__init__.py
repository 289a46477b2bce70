# File: schemagen/__init__.py
"""
schemagen - Effect Schema / Kysely Type Generator
=================================================

Transforms a Prisma-style schema document (models, fields, enums, relations)
into generated TypeScript: Effect Schema definitions with branded
identifiers, implicit many-to-many join tables, and a Kysely ``DB``
interface.

Architecture overview::

    CLI (cli.py) -> SchemaGenerator (generator.py) -> TemplateGenerator (templates.py)
                                                        |
                         relations.py / type_mapper.py / classifier.py
                                                        |
                                          models.py (pydantic descriptors)

Usage::

    # As a library
    from schemagen import SchemaGenerator, SchemaDocument
    files = SchemaGenerator().render(SchemaDocument.model_validate(data))

    # From the command line
    schemagen --schema schema.yaml --output ./generated --verbose
"""

from __future__ import annotations

__version__: str = "1.0.0"

from schemagen.classifier import extract_type_override, is_uuid_field
from schemagen.domains import DomainInfo, detect_domains
from schemagen.errors import (
    MissingIdentifierError,
    SchemaGenError,
    SchemaLoadError,
    UnconfiguredOutputError,
    UndefinedEnumReferenceError,
    UnmappableFieldError,
)
from schemagen.exporters import ArtifactExporter, ExportManifest, ExportResult
from schemagen.generator import (
    GenerationReport,
    SchemaGenerator,
    load_schema_file,
    parse_raw_schema,
)
from schemagen.models import (
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    GeneratedArtifact,
    GenerationResult,
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
)
from schemagen.templates import GenerationContext, TemplateGenerator
from schemagen.type_mapper import build_field_type
from schemagen.utils import Timer, to_pascal_case, to_snake_case

__all__: list[str] = [
    "__version__",
    # Orchestrator
    "SchemaGenerator",
    "GenerationReport",
    "load_schema_file",
    "parse_raw_schema",
    # Models
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
    # Engine
    "is_uuid_field",
    "extract_type_override",
    "detect_implicit_many_to_many",
    "get_model_id_field",
    "build_foreign_key_map",
    "build_field_type",
    "GenerationContext",
    "TemplateGenerator",
    "DomainInfo",
    "detect_domains",
    # Exporters
    "ArtifactExporter",
    "ExportManifest",
    "ExportResult",
    # Errors
    "SchemaGenError",
    "MissingIdentifierError",
    "UndefinedEnumReferenceError",
    "UnconfiguredOutputError",
    "UnmappableFieldError",
    "SchemaLoadError",
    # Utilities
    "Timer",
    "to_pascal_case",
    "to_snake_case",
]
