# File: docschema/__init__.py
"""
docschema — GraphQL Schema Inference for Document Stores
========================================================

Samples schemaless JSON documents from a partitioned document store, infers
a typed GraphQL schema from them, derives the full create/read/update/delete
operation surface (inputs, payloads, batch variants, array operations) and
builds the runtime resolvers that enforce optimistic concurrency and
soft-delete rules.

Architecture overview::

    ┌──────────────┐     ┌─────────────────┐     ┌────────────────┐
    │  CLI / Entry │────▶│ SchemaGenerator │────▶│ SchemaComposer │
    │   (cli.py)   │     │ (generator.py)  │     │ (composer.py)  │
    └──────────────┘     └────────┬────────┘     └───────┬────────┘
                                  │                      │
                  ┌───────────────┼──────────┐     ┌─────┴─────┐
                  ▼               ▼          ▼     ▼           ▼
             ┌─────────┐   ┌───────────┐ ┌─────────┐ ┌──────┐ ┌───────┐
             │ sampler │   │ inference │ │exporters│ │ sdl  │ │inputs │
             └────┬────┘   └─────┬─────┘ └─────────┘ └──────┘ └───────┘
                  ▼              ▼
             ┌─────────┐   ┌─────────┐        ┌───────────┐  ┌───────────┐
             │container│   │ unifier │        │ resolvers │─▶│ array_ops │
             └─────────┘   └─────────┘        └───────────┘  └───────────┘

Usage::

    from docschema import DocSchemaConfig, SchemaGenerator
    report = SchemaGenerator().generate_from_samples({"files": docs}, config)
    print(report.sdl)

    # From the command line
    docschema -c docschema.yaml -s samples.json -o ./schema
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from docschema.array_ops import apply_array_operation
from docschema.composer import SchemaComposer, compose_schema
from docschema.container import DocumentContainer, InMemoryContainer
from docschema.errors import (
    ConcurrencyConflictError,
    ConfigurationError,
    ConflictError,
    DocSchemaError,
    NotFoundError,
    ValidationError,
)
from docschema.exporters import ExportManifest, ExportResult, SchemaExporter
from docschema.generator import (
    GenerationReport,
    SchemaGenerator,
    load_config_file,
    load_samples_file,
    parse_raw_config,
)
from docschema.inference import SchemaInferrer, infer_schema
from docschema.inputs import InputTypeGenerator, generate_input_sdl, generate_payload_sdl
from docschema.models import (
    ArrayOperation,
    ArrayOperationType,
    ContainerConfig,
    DocSchemaConfig,
    InferenceConfig,
    InferredSchema,
    OperationConfig,
    OperationKind,
    SamplingStrategy,
)
from docschema.resolvers import ResolverBuilder
from docschema.sampler import SampleResult, sample_documents
from docschema.sdl import render_output_types
from docschema.validators import ValidationResult, validate_config, validate_full

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "SchemaGenerator",
    "GenerationReport",
    "load_config_file",
    "load_samples_file",
    "parse_raw_config",
    # Models
    "ArrayOperation",
    "ArrayOperationType",
    "ContainerConfig",
    "DocSchemaConfig",
    "InferenceConfig",
    "InferredSchema",
    "OperationConfig",
    "OperationKind",
    "SamplingStrategy",
    # Inference & rendering
    "SchemaInferrer",
    "infer_schema",
    "sample_documents",
    "SampleResult",
    "render_output_types",
    "InputTypeGenerator",
    "generate_input_sdl",
    "generate_payload_sdl",
    "SchemaComposer",
    "compose_schema",
    # Runtime
    "DocumentContainer",
    "InMemoryContainer",
    "ResolverBuilder",
    "apply_array_operation",
    # Validation & errors
    "validate_config",
    "validate_full",
    "ValidationResult",
    "DocSchemaError",
    "ValidationError",
    "NotFoundError",
    "ConcurrencyConflictError",
    "ConflictError",
    "ConfigurationError",
    # Export
    "SchemaExporter",
    "ExportManifest",
    "ExportResult",
]
