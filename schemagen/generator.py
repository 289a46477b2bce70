# File: schemagen/generator.py
"""
schemagen - Generation Pipeline (Orchestrator)
==============================================

Connects the phases of a run:

    Schema document -> Relation resolution -> Rendering -> File export

Workflow::

    1. Load the schema document from JSON / YAML (or accept in-memory models).
    2. Parse it into a ``SchemaDocument`` plus ``GeneratorConfig``.  Both the
       normalized format and a raw Prisma DMMF dump are accepted.
    3. Check the output destination (``UnconfiguredOutputError`` otherwise).
    4. Build one ``GenerationContext`` per artifact set (the whole schema, or
       one per domain in multi-domain mode).
    5. Render ``enums.ts`` / ``types.ts`` / ``index.ts`` for each context.
    6. Hand the artifacts to ``ArtifactExporter``.
    7. Return a ``GenerationReport`` with metrics and status.

Error handling:
    - Errors of the transformation engine are recorded in the report,
      logged, and re-raised.  No partial output is considered valid.
    - Export I/O failures are recorded in the report; the run is marked
      failed.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from schemagen.domains import DomainInfo, detect_domains
from schemagen.errors import SchemaGenError, SchemaLoadError, UnconfiguredOutputError
from schemagen.exporters import ArtifactExporter, ExportManifest, ExportResult
from schemagen.models import (
    GenerationResult,
    GeneratorConfig,
    ScalarKind,
    SchemaDocument,
)
from schemagen.relations import detect_implicit_many_to_many
from schemagen.templates import GenerationContext, TemplateGenerator
from schemagen.utils import Timer, read_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Report produced by ``SchemaGenerator.generate()``."""

    success: bool = False
    output_directory: str = ""

    # Metrics
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_models: int = 0
    total_enums: int = 0
    total_join_tables: int = 0
    total_elapsed_seconds: float = 0.0
    domains: List[str] = field(default_factory=list)

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append("=" * 60)
        lines.append("  schemagen - Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Models:           {self.total_models}")
        lines.append(f"  Enums:            {self.total_enums}")
        lines.append(f"  Join tables:      {self.total_join_tables}")
        if self.domains:
            lines.append(f"  Domains:          {', '.join(self.domains)}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append("-" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "+" if step.success else "x"
                lines.append(
                    f"    {icon} {step.step_name:<24s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        for title, errors in (
            ("Generation Errors", self.generation_errors),
            ("Export Errors", self.export_errors),
        ):
            if errors:
                lines.append("-" * 60)
                lines.append(f"  {title} ({len(errors)}):")
                for err in errors:
                    lines.append(f"    x {err}")

        lines.append("=" * 60)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable view of the report."""
        return {
            "success": self.success,
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "total_models": self.total_models,
            "total_enums": self.total_enums,
            "total_join_tables": self.total_join_tables,
            "domains": list(self.domains),
            "generation_errors": list(self.generation_errors),
            "export_errors": list(self.export_errors),
            "files": self.manifest.to_dict()["files"] if self.manifest else [],
        }


# ---------------------------------------------------------------------------
# Schema loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file.  Raises SchemaLoadError on parse errors."""
    try:
        data: Any = json.loads(read_file(path))
    except json.JSONDecodeError as exc:
        raise SchemaLoadError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaLoadError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file.  Raises SchemaLoadError on parse errors."""
    try:
        data: Any = yaml.safe_load(read_file(path))
    except yaml.YAMLError as exc:
        raise SchemaLoadError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaLoadError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a schema document (JSON or YAML), dispatching on the file extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        SchemaLoadError: If the file can't be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise SchemaLoadError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    # YAML is a superset of JSON
    logger.info("Unknown extension '%s', parsing as YAML.", suffix)
    return _load_yaml_file(path)


# ---------------------------------------------------------------------------
# DMMF conversion
# ---------------------------------------------------------------------------

_DMMF_FIELD_KEYS: Tuple[str, ...] = (
    "name",
    "isList",
    "isRequired",
    "isId",
    "isUnique",
    "hasDefaultValue",
    "isUpdatedAt",
    "dbName",
    "nativeType",
    "relationName",
    "relationFromFields",
    "relationToFields",
    "documentation",
)


def _convert_dmmf_field(raw: Dict[str, Any], model_name: str) -> Dict[str, Any]:
    converted: Dict[str, Any] = {k: raw[k] for k in _DMMF_FIELD_KEYS if k in raw}
    kind: Optional[str] = raw.get("kind")
    type_name: Optional[str] = raw.get("type")

    if kind == "scalar":
        converted["kind"] = type_name
    elif kind == "enum":
        converted["kind"] = ScalarKind.ENUM.value
        converted["enumName"] = type_name
    elif kind == "object":
        converted["kind"] = ScalarKind.RELATION.value
        converted["relationTarget"] = type_name
    else:
        raise SchemaLoadError(
            f"Field '{model_name}.{raw.get('name')}' has unsupported kind {kind!r}."
        )
    return converted


def convert_dmmf(datamodel: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a Prisma DMMF ``datamodel`` into the normalized document format.

    Field ``kind`` (``scalar`` / ``enum`` / ``object``) and ``type`` collapse
    into a single ``kind`` plus ``enumName`` / ``relationTarget``.
    """
    models: List[Dict[str, Any]] = []
    for raw_model in datamodel.get("models") or []:
        name: str = raw_model.get("name", "")
        models.append(
            {
                "name": name,
                "dbName": raw_model.get("dbName"),
                "primaryKey": raw_model.get("primaryKey"),
                "schemaLocation": raw_model.get("schemaLocation"),
                "fields": [
                    _convert_dmmf_field(f, name) for f in raw_model.get("fields") or []
                ],
            }
        )

    enums: List[Dict[str, Any]] = [
        {
            "name": raw_enum.get("name"),
            "dbName": raw_enum.get("dbName"),
            "values": [
                {"name": v.get("name"), "dbName": v.get("dbName")}
                for v in raw_enum.get("values") or []
            ],
        }
        for raw_enum in datamodel.get("enums") or []
    ]
    logger.debug("Converted DMMF: %d models, %d enums.", len(models), len(enums))
    return {"models": models, "enums": enums}


# ---------------------------------------------------------------------------
# Raw document parsing
# ---------------------------------------------------------------------------


def _extract_config_data(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Collect generator settings from a ``config`` mapping and / or a Prisma
    style ``generator`` block (``{"output": {"value": ...}, "config": {...}}``).
    """
    config_data: Dict[str, Any] = {}
    generator: Any = raw.get("generator")
    if isinstance(generator, dict):
        config_data.update(generator.get("config") or {})
        if generator.get("output") is not None:
            config_data["output"] = generator["output"]
        if generator.get("previewFeatures") is not None:
            config_data.setdefault("previewFeatures", generator["previewFeatures"])
    if isinstance(raw.get("config"), dict):
        config_data.update(raw["config"])
    if raw.get("schemaPath") and "schemaPath" not in config_data:
        config_data["schemaPath"] = raw["schemaPath"]
    return config_data


def parse_raw_schema(raw: Dict[str, Any]) -> Tuple[SchemaDocument, GeneratorConfig]:
    """
    Parse a raw dictionary (from JSON / YAML) into validated models.

    Accepted layouts:
        - normalized: top-level ``models`` / ``enums``
        - Prisma DMMF: ``datamodel`` (optionally nested under ``dmmf``)

    Settings come from ``config`` and / or ``generator``; absent settings
    take their defaults.

    Raises:
        SchemaLoadError: If no schema is found or validation fails.
    """
    source: Dict[str, Any] = raw.get("dmmf") if isinstance(raw.get("dmmf"), dict) else raw

    schema_data: Dict[str, Any]
    if isinstance(source.get("datamodel"), dict):
        schema_data = convert_dmmf(source["datamodel"])
    elif "models" in raw or "enums" in raw:
        schema_data = {"models": raw.get("models") or [], "enums": raw.get("enums") or []}
    else:
        raise SchemaLoadError(
            "Cannot find a schema in input. "
            "Expected top-level 'models' / 'enums' or a DMMF 'datamodel'."
        )

    try:
        schema: SchemaDocument = SchemaDocument.model_validate(schema_data)
    except ValidationError as exc:
        raise SchemaLoadError(f"Schema validation failed: {exc}") from exc

    try:
        config: GeneratorConfig = GeneratorConfig.model_validate(
            _extract_config_data(raw)
        )
    except ValidationError as exc:
        raise SchemaLoadError(f"Config validation failed: {exc}") from exc

    return schema, config


# ---------------------------------------------------------------------------
# SchemaGenerator - master orchestrator
# ---------------------------------------------------------------------------


class SchemaGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = SchemaGenerator()

        # Pure rendering, no I/O
        files = generator.render(schema)

        # Render and write
        report = generator.generate(schema, GeneratorConfig(output="./generated"))

        # From a file
        report = generator.generate_from_file(Path("schema.yaml"), {"output": "./out"})

    The generator keeps no per-run state and can be reused.
    """

    def __init__(self, *, atomic_writes: bool = True) -> None:
        self._atomic_writes: bool = atomic_writes

    # -----------------------------------------------------------------
    # Pure rendering
    # -----------------------------------------------------------------

    def build_contexts(
        self, schema: SchemaDocument, config: Optional[GeneratorConfig] = None
    ) -> List[Tuple[str, GenerationContext]]:
        """
        Resolve ``(path_prefix, context)`` pairs for a run.

        Single mode yields one context with an empty prefix; multi-domain
        mode one per domain, prefixed ``<domain>/src/generated``.
        """
        config = config or GeneratorConfig()
        if not config.multi_file_domains:
            return [("", GenerationContext.build(schema))]

        join_tables = detect_implicit_many_to_many(schema.models)
        domains: List[DomainInfo] = detect_domains(schema, config.schema_path)
        return [
            (
                domain.output_prefix,
                GenerationContext.build(
                    schema, models=domain.models, join_tables=join_tables
                ),
            )
            for domain in domains
        ]

    def render_result(
        self, schema: SchemaDocument, config: Optional[GeneratorConfig] = None
    ) -> GenerationResult:
        """Render all artifacts into a ``GenerationResult``."""
        config = config or GeneratorConfig()
        return self._render_contexts(self.build_contexts(schema, config), config)

    def _render_contexts(
        self,
        contexts: List[Tuple[str, GenerationContext]],
        config: GeneratorConfig,
    ) -> GenerationResult:
        templates: TemplateGenerator = TemplateGenerator(config)
        result: GenerationResult = GenerationResult()

        for prefix, ctx in contexts:
            if prefix:
                result.domains.append(prefix.split("/", 1)[0])
            for name, content in templates.generate_all(ctx).items():
                result.add_artifact(f"{prefix}/{name}" if prefix else name, content)
        return result

    def render(
        self, schema: SchemaDocument, config: Optional[GeneratorConfig] = None
    ) -> Dict[str, str]:
        """
        Render every artifact.  Pure: no file-system access.

        Returns a dict of relative_path -> content.
        """
        return self.render_result(schema, config).as_mapping()

    # -----------------------------------------------------------------
    # Full pipeline
    # -----------------------------------------------------------------

    def generate(
        self,
        schema: SchemaDocument,
        config: GeneratorConfig,
        *,
        dry_run: bool = False,
    ) -> GenerationReport:
        """
        Render and export.

        Raises:
            UnconfiguredOutputError: ``config.output`` is not set (checked
                before any work).
            SchemaGenError: any error of the transformation engine, after
                it has been recorded in the report.
        """
        pipeline_start: float = time.perf_counter()
        report: GenerationReport = GenerationReport()

        if not config.output:
            error: UnconfiguredOutputError = UnconfiguredOutputError()
            report.generation_errors.append(str(error))
            logger.error("%s", error)
            raise error

        output_dir: Path = Path(config.output)
        report.output_directory = str(output_dir.resolve())

        result: GenerationResult = self._step_render(schema, config, report)

        if dry_run:
            report.total_files = result.total_files
            report.total_lines = result.total_lines
            logger.info("Dry run: %d files not written.", result.total_files)
        else:
            self._step_export(result, config, output_dir, report)

        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        report.success = not report.generation_errors and not report.export_errors
        return report

    def generate_from_file(
        self,
        schema_path: Path,
        config_overrides: Optional[Dict[str, Any]] = None,
        *,
        dry_run: bool = False,
    ) -> GenerationReport:
        """
        Full pipeline: load file -> parse -> render -> export.

        *config_overrides* (e.g. from the CLI) win over settings found in
        the document.  The schema file path is used for file-based domain
        detection unless a ``schema_path`` is configured.
        """
        with Timer("load_schema"):
            raw: Dict[str, Any] = load_schema_file(schema_path)
            schema, config = parse_raw_schema(raw)

        updates: Dict[str, Any] = {
            k: v for k, v in (config_overrides or {}).items() if v is not None
        }
        if config.schema_path is None and "schema_path" not in updates:
            updates["schema_path"] = str(schema_path)
        config = GeneratorConfig.model_validate({**config.model_dump(), **updates})

        logger.info(
            "Loaded %s: %d models, %d enums.",
            schema_path,
            len(schema.models),
            len(schema.enums),
        )
        return self.generate(schema, config, dry_run=dry_run)

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_render(
        self,
        schema: SchemaDocument,
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> GenerationResult:
        with Timer("render") as t:
            try:
                contexts: List[Tuple[str, GenerationContext]] = self.build_contexts(
                    schema, config
                )
                result: GenerationResult = self._render_contexts(contexts, config)
            except SchemaGenError as exc:
                report.generation_errors.append(f"{type(exc).__name__}: {exc}")
                report.step_metrics.append(
                    GenerationStepMetric(
                        step_name="Render",
                        success=False,
                        elapsed_seconds=t.elapsed,
                        detail=str(exc),
                    )
                )
                logger.error("Generation failed: %s", exc)
                raise

        report.total_models = len({m.name for _, c in contexts for m in c.models})
        report.total_enums = len({e.name for _, c in contexts for e in c.enums})
        report.total_join_tables = len(
            {jt.table_name for _, c in contexts for jt in c.join_tables}
        )
        report.domains = list(result.domains)

        detail: str = (
            f"{result.total_files} files, ~{result.total_lines:,} lines, "
            f"{report.total_models} models"
        )
        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Render",
                success=True,
                elapsed_seconds=t.elapsed,
                detail=detail,
            )
        )
        logger.info("Rendering complete: %s in %.3fs.", detail, t.elapsed)
        return result

    def _step_export(
        self,
        result: GenerationResult,
        config: GeneratorConfig,
        output_dir: Path,
        report: GenerationReport,
    ) -> None:
        exporter: ArtifactExporter = ArtifactExporter(
            output_dir,
            clean_before_export=config.clean_output,
            atomic_writes=self._atomic_writes,
        )
        export_result: ExportResult = exporter.export(result)

        report.manifest = export_result.manifest
        report.total_files = export_result.manifest.total_files
        report.total_bytes = export_result.manifest.total_bytes
        report.total_lines = export_result.manifest.total_lines
        report.export_errors.extend(export_result.errors)

        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Export",
                success=export_result.success,
                elapsed_seconds=export_result.elapsed_seconds,
                detail=(
                    f"{export_result.manifest.total_files} files, "
                    f"{export_result.manifest.total_bytes:,} bytes"
                ),
            )
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_schema_file",
    "parse_raw_schema",
    "convert_dmmf",
]

logger.debug("schemagen.generator loaded.")
