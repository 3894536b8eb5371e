# File: docschema/generator.py
"""
docschema - Generation Pipeline (Orchestrator)
==============================================

Connects every phase of a run:

    Config → Validation → Sampling → Inference → Schema checks → SDL → Export

Workflow::

    1. Load config from JSON/YAML (or accept a ``DocSchemaConfig``).
    2. Validate the config (validators.validate_config).
    3. Sample each container concurrently (sampler.sample_documents), or
       take pre-recorded samples from a file.
    4. Infer one ``InferredSchema`` per container (inference.py).
    5. Run per-schema and cross-schema checks (validators.validate_full).
    6. Compose the SDL document (composer.SchemaComposer).
    7. Optionally hand off to ``SchemaExporter`` (exporters.py).
    8. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Validation problems are collected and surfaced, never swallowed.
    - A container whose sampling fails is recorded and skipped; the other
      containers still produce types.
    - The final report gives a clear pass/fail verdict.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml
from pydantic import ValidationError as PydanticValidationError

from docschema.composer import SchemaComposer
from docschema.container import ContainerError, DocumentContainer
from docschema.errors import ConfigurationError
from docschema.exporters import ExportManifest, ExportResult, SchemaExporter
from docschema.inference import SchemaInferrer
from docschema.models import ContainerConfig, DocSchemaConfig, InferredSchema
from docschema.resolvers import Resolver, ResolverBuilder, merge_resolver_maps
from docschema.sampler import SampleResult, sample_documents
from docschema.utils import Timer, count_lines
from docschema.validators import ValidationResult, validate_config, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema.generator")

_COMPONENT: str = "generator"


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
    """
    Report produced by ``SchemaGenerator.generate()`` and
    ``generate_from_samples()``.

    ``sdl`` and ``schemas`` hold the artefacts even when nothing is
    exported, so callers can use the generator purely in memory.
    """

    success: bool = False
    output_directory: str = ""

    sdl: str = ""
    schemas: Dict[str, InferredSchema] = field(default_factory=dict)

    # Metrics
    total_documents: int = 0
    total_request_charge: float = 0.0
    total_types: int = 0
    total_sdl_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    skipped_containers: List[str] = field(default_factory=list)

    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  docschema — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:            {status}")
        if self.output_directory:
            lines.append(f"  Output:            {self.output_directory}")
        lines.append(f"  Types inferred:    {len(self.schemas)}")
        lines.append(f"  Documents sampled: {self.total_documents:,}")
        lines.append(f"  Request charge:    {self.total_request_charge:.2f} RU")
        lines.append(f"  SDL types:         {self.total_types}")
        lines.append(f"  SDL lines:         {self.total_sdl_lines:,}")
        lines.append(f"  Total time:        {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections = (
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
            ("Skipped Containers", self.skipped_containers, "⊘"),
        )
        for title, entries, icon in sections:
            if not entries:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(entries)}):")
            for entry in entries:
                lines.append(f"    {icon} {entry}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Config & sample loaders
# ---------------------------------------------------------------------------


def _read_structured_file(path: Path) -> Any:
    """Parse a JSON or YAML file; JSON is tried first for unknown suffixes."""
    if not path.exists():
        raise ConfigurationError(
            f"File not found: {path}", component=_COMPONENT, metadata={"path": str(path)}
        )
    if not path.is_file():
        raise ConfigurationError(
            f"Path is not a file: {path}", component=_COMPONENT, metadata={"path": str(path)}
        )

    text: str = path.read_text(encoding="utf-8")
    suffix: str = path.suffix.lower()

    if suffix == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Invalid JSON in {path}: {exc}", component=_COMPONENT
            ) from exc

    if suffix not in (".yaml", ".yml"):
        logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

    # YAML is a superset of JSON, so this also covers the fallback.
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}", component=_COMPONENT) from exc


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a raw configuration mapping from a JSON or YAML file.

    Raises:
        ConfigurationError: missing file, parse failure or non-mapping root.
    """
    data: Any = _read_structured_file(Path(path))
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top level of {path}, got {type(data).__name__}.",
            component=_COMPONENT,
        )
    logger.info("Loaded config file %s (%d top-level keys).", path, len(data))
    return data


def parse_raw_config(raw: Mapping[str, Any]) -> DocSchemaConfig:
    """
    Validate a raw mapping into a ``DocSchemaConfig``.

    The settings may sit at the top level or under a ``docschema`` / ``config``
    key, so the block can live inside a larger project file.
    """
    data: Any = raw
    for key in ("docschema", "config"):
        if key in raw and isinstance(raw[key], Mapping):
            data = raw[key]
            break
    try:
        return DocSchemaConfig.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ConfigurationError(
            f"Config validation failed: {exc}",
            component=_COMPONENT,
            metadata={"errors": exc.error_count()},
        ) from exc


def load_samples_file(path: Path) -> Dict[str, List[Any]]:
    """
    Load recorded sample documents.

    Accepted shapes:
        - ``{"<container or type name>": [doc, ...], ...}``
        - ``[doc, ...]``, stored under the key ``""`` and used when the
          config declares exactly one container.
    """
    data: Any = _read_structured_file(Path(path))
    if isinstance(data, list):
        return {"": data}
    if isinstance(data, dict) and all(isinstance(v, list) for v in data.values()):
        logger.info(
            "Loaded samples for %d container(s) from %s.", len(data), path
        )
        return {str(k): v for k, v in data.items()}
    raise ConfigurationError(
        f"Samples file {path} must hold a list of documents or a mapping of "
        f"container name to document list.",
        component=_COMPONENT,
    )


def _samples_for(
    container: ContainerConfig,
    samples: Mapping[str, Sequence[Any]],
    single: bool,
) -> Optional[Sequence[Any]]:
    if container.name in samples:
        return samples[container.name]
    if container.type_name in samples:
        return samples[container.type_name]
    if single and "" in samples:
        return samples[""]
    return None


def _array_fields(schema: Optional[InferredSchema]) -> List[str]:
    return schema.array_field_names if schema is not None else []


# ---------------------------------------------------------------------------
# SchemaGenerator: master orchestrator
# ---------------------------------------------------------------------------


class SchemaGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = SchemaGenerator()

        # Live containers
        report = await generator.generate({"files": container}, config)

        # Recorded samples
        report = generator.generate_from_samples({"files": docs}, config,
                                                 output_dir=Path("./out"))
        print(report.summary())

    The generator is reusable: create once, call generate() many times.
    """

    def __init__(
        self,
        *,
        strict_validation: bool = True,
        fail_on_warnings: bool = False,
    ) -> None:
        """
        Args:
            strict_validation: Abort before inference when the config has errors.
            fail_on_warnings:  Treat validation warnings as errors.
        """
        self._strict_validation: bool = strict_validation
        self._fail_on_warnings: bool = fail_on_warnings

        logger.debug(
            "SchemaGenerator initialised: strict=%s, fail_on_warnings=%s.",
            strict_validation,
            fail_on_warnings,
        )

    # -----------------------------------------------------------------
    # Public: live containers
    # -----------------------------------------------------------------

    async def generate(
        self,
        containers: Mapping[str, DocumentContainer],
        config: DocSchemaConfig,
        output_dir: Optional[Path] = None,
    ) -> GenerationReport:
        """Sample every configured container, then run the shared pipeline."""
        report: GenerationReport = GenerationReport()
        start: float = time.perf_counter()

        if not self._step_validate_config(config, report) and self._strict_validation:
            return self._finalise_report(report, time.perf_counter() - start)

        samples: Dict[str, List[Any]] = await self._step_sample(containers, config, report)
        self._run_pipeline(samples, config, output_dir, report)
        return self._finalise_report(report, time.perf_counter() - start)

    # -----------------------------------------------------------------
    # Public: recorded samples
    # -----------------------------------------------------------------

    def generate_from_samples(
        self,
        samples: Mapping[str, Sequence[Any]],
        config: DocSchemaConfig,
        output_dir: Optional[Path] = None,
    ) -> GenerationReport:
        """Run the pipeline over documents that were sampled elsewhere."""
        report: GenerationReport = GenerationReport()
        start: float = time.perf_counter()

        if not self._step_validate_config(config, report) and self._strict_validation:
            return self._finalise_report(report, time.perf_counter() - start)

        single: bool = len(config.containers) == 1
        resolved: Dict[str, List[Any]] = {}
        for container in config.containers:
            docs: Optional[Sequence[Any]] = _samples_for(container, samples, single)
            if docs is None:
                report.skipped_containers.append(f"{container.name}: no samples provided")
                logger.warning("No samples provided for container '%s'.", container.name)
                continue
            resolved[container.name] = list(docs)[: container.sample_size]
            report.total_documents += len(resolved[container.name])

        self._run_pipeline(resolved, config, output_dir, report)
        return self._finalise_report(report, time.perf_counter() - start)

    # -----------------------------------------------------------------
    # Public: resolvers
    # -----------------------------------------------------------------

    @staticmethod
    def build_resolvers(
        containers: Mapping[str, DocumentContainer],
        config: DocSchemaConfig,
        schemas: Optional[Mapping[str, InferredSchema]] = None,
    ) -> Dict[str, Dict[str, Resolver]]:
        """
        Merged ``{"Query": ..., "Mutation": ...}`` map for every configured container.

        *schemas* (``report.schemas``) names the array fields of each type;
        without it no field accepts an ``ArrayOperation``.
        """
        schemas = schemas or {}
        maps: List[Dict[str, Dict[str, Resolver]]] = []
        for container_config in config.containers:
            container: Optional[DocumentContainer] = containers.get(container_config.name)
            if container is None:
                raise ConfigurationError(
                    f"No container bound for '{container_config.name}'.",
                    component=_COMPONENT,
                    metadata={"container": container_config.name},
                )
            builder: ResolverBuilder = ResolverBuilder(
                container,
                container_config.type_name,
                container_config.partition_key_path,
                config.resolve_operations(container_config),
                array_fields=_array_fields(schemas.get(container_config.type_name)),
                max_batch_size=config.max_batch_size,
                default_list_limit=config.default_list_limit,
                max_list_limit=config.max_list_limit,
            )
            maps.append(builder.build_resolver_map())
        return merge_resolver_maps(maps)

    # -----------------------------------------------------------------
    # Internal: shared pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        samples: Mapping[str, List[Any]],
        config: DocSchemaConfig,
        output_dir: Optional[Path],
        report: GenerationReport,
    ) -> None:
        self._step_infer(samples, config, report)
        if not report.schemas:
            report.generation_errors.append("No types were inferred — nothing to compose.")
            return

        if not self._step_validate_schemas(config, report) and self._strict_validation:
            return

        self._step_compose(config, report)

        if output_dir is not None:
            self._step_export(Path(output_dir), report)

    # -----------------------------------------------------------------
    # Pipeline step: config validation
    # -----------------------------------------------------------------

    def _record_validation(
        self,
        result: ValidationResult,
        report: GenerationReport,
        step_name: str,
        elapsed: float,
    ) -> bool:
        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.warning_count:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(GenerationStepMetric(
            step_name=step_name,
            success=result.is_valid,
            elapsed_seconds=elapsed,
            detail=detail,
        ))

        if result.has_errors:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return False
        if result.warning_count:
            for warn in result.warnings:
                logger.warning("  ⚠ %s", warn)
            if self._fail_on_warnings:
                return False
        return True

    def _step_validate_config(self, config: DocSchemaConfig, report: GenerationReport) -> bool:
        with Timer("validate_config") as t:
            result: ValidationResult = validate_config(config)
        return self._record_validation(result, report, "Validate Config", t.elapsed)

    # -----------------------------------------------------------------
    # Pipeline step: sampling
    # -----------------------------------------------------------------

    async def _step_sample(
        self,
        containers: Mapping[str, DocumentContainer],
        config: DocSchemaConfig,
        report: GenerationReport,
    ) -> Dict[str, List[Any]]:
        bound: List[ContainerConfig] = []
        for container_config in config.containers:
            if container_config.name not in containers:
                report.skipped_containers.append(f"{container_config.name}: no container bound")
                logger.warning("No container bound for '%s'.", container_config.name)
                continue
            bound.append(container_config)

        with Timer("sampling") as t:
            outcomes: List[Any] = await asyncio.gather(
                *(
                    sample_documents(
                        containers[c.name],
                        c.sample_size,
                        c.sampling_strategy,
                        seed=c.seed,
                        partition_key_path=c.partition_key_path,
                    )
                    for c in bound
                ),
                return_exceptions=True,
            )

        samples: Dict[str, List[Any]] = {}
        for container_config, outcome in zip(bound, outcomes):
            if isinstance(outcome, (ContainerError, ValueError)):
                report.skipped_containers.append(f"{container_config.name}: {outcome}")
                logger.error("Sampling '%s' failed: %s", container_config.name, outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            result: SampleResult = outcome
            samples[container_config.name] = result.documents
            report.total_documents += len(result.documents)
            report.total_request_charge += result.request_charge
            logger.info("Sampled '%s': %s", container_config.name, result.summary())

        report.step_metrics.append(GenerationStepMetric(
            step_name="Sample Containers",
            success=len(samples) == len(bound),
            elapsed_seconds=t.elapsed,
            detail=f"{report.total_documents} document(s), {report.total_request_charge:.2f} RU",
        ))
        return samples

    # -----------------------------------------------------------------
    # Pipeline step: inference
    # -----------------------------------------------------------------

    def _step_infer(
        self,
        samples: Mapping[str, List[Any]],
        config: DocSchemaConfig,
        report: GenerationReport,
    ) -> None:
        inferrer: SchemaInferrer = SchemaInferrer(config.inference)
        with Timer("inference") as t:
            for container_config in config.containers:
                if container_config.name not in samples:
                    continue
                report.schemas[container_config.type_name] = inferrer.infer(
                    samples[container_config.name],
                    container_config.type_name,
                    partition_key_path=container_config.partition_key_path,
                )

        nested: int = sum(len(s.nested_types) for s in report.schemas.values())
        report.step_metrics.append(GenerationStepMetric(
            step_name="Infer Types",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(report.schemas)} root type(s), {nested} nested type(s)",
        ))

    # -----------------------------------------------------------------
    # Pipeline step: schema validation
    # -----------------------------------------------------------------

    def _step_validate_schemas(self, config: DocSchemaConfig, report: GenerationReport) -> bool:
        with Timer("validate_schemas") as t:
            result: ValidationResult = validate_full(report.schemas, config, include_config=False)
        return self._record_validation(result, report, "Validate Schemas", t.elapsed)

    # -----------------------------------------------------------------
    # Pipeline step: SDL composition
    # -----------------------------------------------------------------

    def _step_compose(self, config: DocSchemaConfig, report: GenerationReport) -> None:
        with Timer("compose") as t:
            composer: SchemaComposer = SchemaComposer(system_fields=config.system_fields)
            for container_config in config.containers:
                schema: Optional[InferredSchema] = report.schemas.get(container_config.type_name)
                if schema is None:
                    continue
                composer.add(
                    schema,
                    config.resolve_operations(container_config),
                    container_config.exclude_fields,
                )
            report.sdl = composer.compose()

        report.total_types = sum(
            1
            for line in report.sdl.splitlines()
            if line.startswith(("type ", "input ", "enum ", "scalar "))
        )
        report.total_sdl_lines = count_lines(report.sdl)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Compose SDL",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{report.total_types} definition(s), {report.total_sdl_lines} line(s)",
        ))

    # -----------------------------------------------------------------
    # Pipeline step: export
    # -----------------------------------------------------------------

    def _step_export(self, output_dir: Path, report: GenerationReport) -> None:
        exporter: SchemaExporter = SchemaExporter(output_dir)
        result: ExportResult = exporter.export(report.sdl, report.schemas)

        report.output_directory = str(exporter.output_dir)
        report.export_errors.extend(result.errors)
        report.manifest = result.manifest
        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=result.success,
            elapsed_seconds=result.elapsed_seconds,
            detail=f"{result.manifest.total_files} file(s), {result.manifest.total_bytes:,} bytes",
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors
            or report.generation_errors
            or report.export_errors
            or (self._fail_on_warnings and report.validation_warnings)
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_config_file",
    "load_samples_file",
    "parse_raw_config",
]

logger.debug("docschema.generator loaded — %d public symbols.", len(__all__))
