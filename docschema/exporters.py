# File: docschema/exporters.py
"""
docschema - Schema Exporter
===========================

Writes the result of a generation run to disk:

    <output>/schema.graphql    composed SDL document
    <output>/manifest.json     checksums, per-type counts, partition patterns

Each file is written atomically (temp file + rename), so re-running the
export over the same directory is always safe.  A failed write is recorded
on the ``ExportResult``; files already written stay in place.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from docschema.models import InferredSchema
from docschema.utils import Timer, count_lines, ensure_directory, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.exporters")

SCHEMA_FILENAME: str = "schema.graphql"
MANIFEST_FILENAME: str = "manifest.json"


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


@dataclass(frozen=True, slots=True)
class TypeSummary:
    """Manifest entry for one inferred root type."""

    type_name: str
    documents_analyzed: int
    fields_analyzed: int
    types_generated: int
    conflicts_resolved: int
    partition_pattern: Optional[Dict[str, Any]] = None

    @classmethod
    def from_schema(cls, schema: InferredSchema) -> "TypeSummary":
        pattern: Optional[Dict[str, Any]] = None
        if schema.partition_key_pattern is not None:
            pattern = schema.partition_key_pattern.model_dump(mode="json")
        return cls(
            type_name=schema.root_type.name,
            documents_analyzed=schema.stats.documents_analyzed,
            fields_analyzed=schema.stats.fields_analyzed,
            types_generated=schema.stats.types_generated,
            conflicts_resolved=schema.stats.conflicts_resolved,
            partition_pattern=pattern,
        )


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """
    Manifest of one export.

    ``schema_sha256`` is stable across runs for identical samples, which
    makes the manifest usable as a change detector in CI.
    """

    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    schema_sha256: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    types: List[TypeSummary] = field(default_factory=list)
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "schema_sha256": self.schema_sha256,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "types": [
                {
                    "type_name": t.type_name,
                    "documents_analyzed": t.documents_analyzed,
                    "fields_analyzed": t.fields_analyzed,
                    "types_generated": t.types_generated,
                    "conflicts_resolved": t.conflicts_resolved,
                    "partition_pattern": t.partition_pattern,
                }
                for t in self.types
            ],
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

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result returned by ``SchemaExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# SchemaExporter
# ---------------------------------------------------------------------------


class SchemaExporter:
    """
    Writes the composed SDL and its manifest into *output_dir*.

    Usage::

        exporter = SchemaExporter(Path("./out"))
        result = exporter.export(sdl, {"File": file_schema})
        if not result.success:
            print(result.errors)
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        atomic_writes: bool = True,
        generate_manifest: bool = True,
    ) -> None:
        self._output_dir: Path = Path(output_dir).resolve()
        self._atomic: bool = atomic_writes
        self._generate_manifest: bool = generate_manifest
        self._file_records: List[FileRecord] = []
        self._errors: List[str] = []

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def export(
        self,
        sdl: str,
        schemas: Mapping[str, InferredSchema],
    ) -> ExportResult:
        """Write ``schema.graphql`` (+ ``manifest.json``) and report."""
        self._file_records = []
        self._errors = []

        with Timer("export") as t:
            try:
                ensure_directory(self._output_dir)
            except OSError as exc:
                self._errors.append(f"Cannot create output directory {self._output_dir}: {exc}")
                logger.error("Cannot create output directory %s: %s", self._output_dir, exc)

            if not self._errors:
                self._write(SCHEMA_FILENAME, sdl)

            manifest: ExportManifest = self._build_manifest(sdl, schemas)
            if self._generate_manifest and not self._errors:
                self._write(MANIFEST_FILENAME, manifest.to_json())
                manifest = self._build_manifest(sdl, schemas)

        if self._errors:
            logger.error("Export finished with %d error(s).", len(self._errors))
        else:
            logger.info(
                "Exported %d file(s) to %s in %.3fs.",
                len(self._file_records),
                self._output_dir,
                t.elapsed,
            )

        return ExportResult(
            success=not self._errors,
            manifest=manifest,
            errors=tuple(self._errors),
            elapsed_seconds=t.elapsed,
        )

    def _write(self, relative_path: str, content: str) -> None:
        target: Path = self._output_dir / relative_path
        try:
            size: int = write_file(target, content, atomic=self._atomic)
        except OSError as exc:
            self._errors.append(f"Failed to write {relative_path}: {exc}")
            logger.error("Failed to write %s: %s", target, exc)
            return
        self._file_records.append(
            FileRecord(
                relative_path=relative_path,
                absolute_path=str(target),
                size_bytes=size,
                line_count=count_lines(content),
                sha256=sha256_hex(content),
            )
        )

    def _build_manifest(
        self,
        sdl: str,
        schemas: Mapping[str, InferredSchema],
    ) -> ExportManifest:
        import docschema

        return ExportManifest(
            generator_version=docschema.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            schema_sha256=sha256_hex(sdl),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            types=[TypeSummary.from_schema(schemas[name]) for name in schemas],
            files=list(self._file_records),
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SCHEMA_FILENAME",
    "MANIFEST_FILENAME",
    "FileRecord",
    "TypeSummary",
    "ExportManifest",
    "ExportResult",
    "SchemaExporter",
]

logger.debug("docschema.exporters loaded — %d public symbols.", len(__all__))
