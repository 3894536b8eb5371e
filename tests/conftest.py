"""
tests/conftest.py
Shared fixtures for the docschema test suite.

No external mocking libraries are used: resolver and sampler tests run
against ``InMemoryContainer``, and file I/O happens inside pytest's
tmp_path directories.
"""

from __future__ import annotations

import copy
import json
import pathlib
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

import pytest
import yaml

from docschema.container import InMemoryContainer
from docschema.inference import infer_schema
from docschema.models import InferredSchema, OperationConfig
from docschema.resolvers import ResolverBuilder


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
CONFIG_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "docschema_example.yaml"

FIXED_NOW: datetime = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------


_FILE_DOCUMENTS: List[Dict[str, Any]] = [
    {
        "id": "f1",
        "tenantId": "acme/eu",
        "name": "report.pdf",
        "size": 1024,
        "tags": ["finance", "q1"],
        "metadata": {"author": "kim", "pages": 12},
        "downloads": 3,
    },
    {
        "id": "f2",
        "tenantId": "acme/us",
        "name": "photo.png",
        "size": 2048,
        "tags": [],
        "metadata": {"author": "lee"},
        "downloads": 0,
        "checksum": None,
    },
    {
        "id": "f3",
        "tenantId": "globex/eu/hr",
        "name": "notes.txt",
        "size": 12.5,
        "tags": ["hr"],
        "metadata": {"author": "sam", "pages": 1},
        "downloads": 7,
        "checksum": "abc123",
    },
]


@pytest.fixture()
def file_documents() -> List[Dict[str, Any]]:
    """Three heterogeneous File documents; deep-copied per test."""
    return copy.deepcopy(_FILE_DOCUMENTS)


@pytest.fixture()
def file_schema(file_documents: List[Dict[str, Any]]) -> InferredSchema:
    return infer_schema(file_documents, "File", partition_key_path="/tenantId")


# ---------------------------------------------------------------------------
# Container & resolver fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture()
def container(file_documents: List[Dict[str, Any]]) -> InMemoryContainer:
    store = InMemoryContainer("files", "/tenantId")
    store.load(file_documents)
    return store


@pytest.fixture()
def builder(
    container: InMemoryContainer, fixed_clock: Callable[[], datetime]
) -> ResolverBuilder:
    return ResolverBuilder(
        container,
        "File",
        "/tenantId",
        OperationConfig(),
        array_fields=["tags"],
        max_batch_size=5,
        clock=fixed_clock,
    )


@pytest.fixture()
def resolvers(builder: ResolverBuilder) -> Dict[str, Dict[str, Any]]:
    return builder.build_resolver_map()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_config() -> Dict[str, Any]:
    """Load docschema_example.yaml once per session."""
    assert CONFIG_EXAMPLE_PATH.exists(), (
        f"Reference config not found at {CONFIG_EXAMPLE_PATH}."
    )
    with open(CONFIG_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def minimal_config_dict() -> Dict[str, Any]:
    """One container, default operations."""
    return {
        "containers": [
            {
                "name": "files",
                "type_name": "File",
                "partition_key_path": "/tenantId",
                "sample_size": 50,
                "sampling_strategy": "top",
            }
        ]
    }


@pytest.fixture()
def config_yaml_path(minimal_config_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "docschema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(minimal_config_dict, fh, default_flow_style=False)
    return path


@pytest.fixture()
def samples_json_path(file_documents: List[Dict[str, Any]], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "samples.json"
    path.write_text(json.dumps({"files": file_documents}), encoding="utf-8")
    return path
