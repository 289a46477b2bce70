# File: schemagen/exporters.py
"""
schemagen - Artifact Exporter
=============================
Writes rendered artifacts to the filesystem.

    1. Optionally cleans the output directory (``.git`` entries are kept).
    2. Writes each artifact atomically (temporary file + rename), creating
       parent directories as needed.
    3. Records size, line count and SHA-256 per file in an export manifest.

A failed write is recorded and the remaining artifacts are still written;
each individual file is atomic, so no half-written file is ever left at a
target path.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

from schemagen.models import GenerationResult
from schemagen.utils import Timer, count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.exporters")

_PRESERVED_ENTRIES: frozenset = frozenset({".git", ".gitignore", ".gitkeep"})


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """All files written by one export."""

    output_directory: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert manifest to a JSON-serialisable dictionary."""
        return {
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Outcome of ``ArtifactExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# ArtifactExporter class
# ---------------------------------------------------------------------------


class ArtifactExporter:
    """
    Writes generated artifacts below an output directory.

    Usage::

        exporter = ArtifactExporter(Path("./generated"))
        result = exporter.export({"types.ts": content})

    Not thread-safe; use one exporter per export.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        clean_before_export: bool = False,
        atomic_writes: bool = True,
    ) -> None:
        self._output_dir: Path = Path(output_dir).resolve()
        self._clean_before_export: bool = clean_before_export
        self._atomic_writes: bool = atomic_writes

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "ArtifactExporter initialised: output_dir=%s, atomic=%s.",
            self._output_dir,
            self._atomic_writes,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(
        self, artifacts: Union[GenerationResult, Mapping[str, str]]
    ) -> ExportResult:
        """
        Write *artifacts* (a ``GenerationResult`` or ``{relative_path: content}``).

        Returns an ``ExportResult``; write failures are reported in
        ``errors`` rather than raised.
        """
        files: Mapping[str, str] = (
            artifacts.as_mapping()
            if isinstance(artifacts, GenerationResult)
            else artifacts
        )

        with Timer("export") as timer:
            self._pre_export_cleanup()
            try:
                self._output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                error_msg: str = (
                    f"Cannot create output directory {self._output_dir}: {exc}"
                )
                self._errors.append(error_msg)
                logger.error(error_msg)
            else:
                for rel_path, content in files.items():
                    self._write_artifact(rel_path, content)

        manifest: ExportManifest = self._build_manifest()
        success: bool = not self._errors

        if success:
            logger.info(
                "Export completed: %d files, %d bytes to %s.",
                manifest.total_files,
                manifest.total_bytes,
                self._output_dir,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )

        return ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> None:
        if not self._clean_before_export or not self._output_dir.is_dir():
            return

        logger.info("Cleaning output directory: %s", self._output_dir)
        for item in self._output_dir.iterdir():
            if item.name in _PRESERVED_ENTRIES:
                continue
            try:
                if item.is_dir():
                    shutil.rmtree(item)
                else:
                    item.unlink()
            except OSError as exc:
                warning_msg: str = f"Could not remove {item}: {exc}"
                self._warnings.append(warning_msg)
                logger.warning(warning_msg)

    def _write_artifact(self, rel_path: str, content: str) -> None:
        full_path: Path = self._output_dir / rel_path
        try:
            size_bytes: int = write_file(full_path, content, atomic=self._atomic_writes)
        except OSError as exc:
            error_msg: str = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
            self._errors.append(error_msg)
            logger.error(error_msg)
            return

        self._file_records.append(
            FileRecord(
                relative_path=rel_path,
                absolute_path=str(full_path),
                size_bytes=size_bytes,
                line_count=count_lines(content),
                sha256=sha256_hex(content),
            )
        )
        logger.debug("Exported %s (%d bytes).", rel_path, size_bytes)

    def _build_manifest(self) -> ExportManifest:
        return ExportManifest(
            output_directory=str(self._output_dir),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )


__all__: List[str] = [
    "ArtifactExporter",
    "ExportManifest",
    "ExportResult",
    "FileRecord",
]

logger.debug("schemagen.exporters loaded.")
