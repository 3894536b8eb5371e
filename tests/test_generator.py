"""
tests/test_generator.py
Integration tests for docschema.generator, docschema.exporters and the CLI.

Tests cover:
- Config / samples loading from JSON and YAML
- generate_from_samples() and async generate() over InMemoryContainer
- Strict validation, fail-on-warnings and skipped containers
- Export of schema.graphql + manifest.json
- build_resolvers() wiring
- cli_main() exit codes
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from docschema.cli import (
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)
from docschema.container import InMemoryContainer
from docschema.errors import ConfigurationError
from docschema.exporters import MANIFEST_FILENAME, SCHEMA_FILENAME, SchemaExporter
from docschema.generator import (
    SchemaGenerator,
    load_config_file,
    load_samples_file,
    parse_raw_config,
)
from docschema.models import DocSchemaConfig, InferredSchema
from docschema.utils import sha256_hex


# ===========================================================================
# Loaders
# ===========================================================================


class TestLoaders:
    def test_yaml_config(self, config_yaml_path: pathlib.Path) -> None:
        raw = load_config_file(config_yaml_path)
        assert raw["containers"][0]["name"] == "files"

    def test_json_config(self, minimal_config_dict: Dict[str, Any], tmp_path: pathlib.Path) -> None:
        path = tmp_path / "docschema.json"
        path.write_text(json.dumps(minimal_config_dict), encoding="utf-8")
        assert parse_raw_config(load_config_file(path)).containers[0].type_name == "File"

    def test_unknown_suffix_falls_back_to_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "docschema.conf"
        path.write_text("containers:\n  - name: files\n    type_name: File\n", encoding="utf-8")
        assert load_config_file(path)["containers"][0]["type_name"] == "File"

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigurationError, match="File not found"):
            load_config_file(tmp_path / "nope.yaml")

    def test_invalid_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config_file(path)

    def test_non_mapping_root(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Expected a mapping"):
            load_config_file(path)

    def test_nested_config_block(self, minimal_config_dict: Dict[str, Any]) -> None:
        config = parse_raw_config({"docschema": minimal_config_dict, "other": 1})
        assert isinstance(config, DocSchemaConfig)

    def test_invalid_config_raises(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            parse_raw_config({"containers": []})
        assert excinfo.value.component == "generator"
        assert excinfo.value.metadata["errors"] >= 1

    def test_samples_shapes(self, samples_json_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        assert len(load_samples_file(samples_json_path)["files"]) == 3

        flat = tmp_path / "flat.json"
        flat.write_text(json.dumps([{"id": "a"}]), encoding="utf-8")
        assert load_samples_file(flat) == {"": [{"id": "a"}]}

        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"files": 3}), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_samples_file(bad)


# ===========================================================================
# Pipeline from recorded samples
# ===========================================================================


class TestGenerateFromSamples:
    def test_in_memory_run(
        self, minimal_config_dict: Dict[str, Any], file_documents: List[Dict[str, Any]]
    ) -> None:
        config = DocSchemaConfig(**minimal_config_dict)
        report = SchemaGenerator().generate_from_samples({"files": file_documents}, config)

        assert report.success, report.summary()
        assert list(report.schemas) == ["File"]
        assert report.total_documents == 3
        assert "type File {" in report.sdl
        assert "type Mutation {" in report.sdl
        assert report.total_types > 10
        assert report.total_sdl_lines == report.sdl.count("\n")
        assert report.output_directory == ""
        assert [s.step_name for s in report.step_metrics] == [
            "Validate Config",
            "Infer Types",
            "Validate Schemas",
            "Compose SDL",
        ]

    def test_samples_by_type_name_or_flat_list(
        self, minimal_config_dict: Dict[str, Any], file_documents: List[Dict[str, Any]]
    ) -> None:
        config = DocSchemaConfig(**minimal_config_dict)
        generator = SchemaGenerator()
        by_type = generator.generate_from_samples({"File": file_documents}, config)
        flat = generator.generate_from_samples({"": file_documents}, config)
        assert by_type.sdl == flat.sdl

    def test_sample_size_truncates(
        self, minimal_config_dict: Dict[str, Any], file_documents: List[Dict[str, Any]]
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["containers"][0]["sample_size"] = 1
        report = SchemaGenerator().generate_from_samples(
            {"files": file_documents}, DocSchemaConfig(**raw)
        )
        assert report.total_documents == 1
        assert report.schemas["File"].stats.documents_analyzed == 1

    def test_missing_samples_fail(self, minimal_config_dict: Dict[str, Any]) -> None:
        config = DocSchemaConfig(**minimal_config_dict)
        report = SchemaGenerator().generate_from_samples({"other": []}, config)
        assert not report.success
        assert report.skipped_containers == ["files: no samples provided"]
        assert report.generation_errors
        assert "FAILED" in report.summary()

    def test_strict_validation_stops_early(
        self, minimal_config_dict: Dict[str, Any], file_documents: List[Dict[str, Any]]
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["containers"][0]["type_name"] = "Query"
        config = DocSchemaConfig(**raw)

        strict = SchemaGenerator().generate_from_samples({"files": file_documents}, config)
        assert not strict.success
        assert strict.sdl == ""
        assert any("TYPE_NAME_RESERVED" in e for e in strict.validation_errors)

        lenient = SchemaGenerator(strict_validation=False).generate_from_samples(
            {"files": file_documents}, config
        )
        assert lenient.sdl
        assert not lenient.success

    def test_fail_on_warnings(
        self, minimal_config_dict: Dict[str, Any], file_documents: List[Dict[str, Any]]
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["containers"][0]["type_name"] = "file"
        config = DocSchemaConfig(**raw)

        assert SchemaGenerator().generate_from_samples({"files": file_documents}, config).success
        report = SchemaGenerator(fail_on_warnings=True).generate_from_samples(
            {"files": file_documents}, config
        )
        assert not report.success
        assert report.validation_warnings

    def test_exclusions_flow_into_sdl(
        self, minimal_config_dict: Dict[str, Any], file_documents: List[Dict[str, Any]]
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["containers"][0]["exclude_fields"] = ["downloads"]
        raw["operations"] = {"exclude": ["delete"]}
        report = SchemaGenerator().generate_from_samples(
            {"files": file_documents}, DocSchemaConfig(**raw)
        )
        create_block = report.sdl.split("input CreateFileInput {")[1].split("}")[0]
        assert "downloads" not in create_block
        assert "deleteFile(" not in report.sdl


# ===========================================================================
# Pipeline over live containers
# ===========================================================================


class TestGenerateFromContainers:
    @pytest.mark.asyncio
    async def test_generate(
        self, minimal_config_dict: Dict[str, Any], container: InMemoryContainer
    ) -> None:
        config = DocSchemaConfig(**minimal_config_dict)
        report = await SchemaGenerator().generate({"files": container}, config)
        assert report.success, report.summary()
        assert report.total_documents == 3
        assert report.total_request_charge == 1.0
        assert report.schemas["File"].partition_key_pattern.kind == "hierarchical"
        assert report.step_metrics[1].step_name == "Sample Containers"

    @pytest.mark.asyncio
    async def test_unbound_container_is_skipped(
        self, minimal_config_dict: Dict[str, Any], container: InMemoryContainer
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["containers"].append({"name": "users", "type_name": "User", "sampling_strategy": "top"})
        report = await SchemaGenerator().generate({"files": container}, DocSchemaConfig(**raw))
        assert report.success
        assert report.skipped_containers == ["users: no container bound"]
        assert list(report.schemas) == ["File"]

    @pytest.mark.asyncio
    async def test_stored_system_fields_stay_out_of_inputs(
        self, minimal_config_dict: Dict[str, Any], container: InMemoryContainer
    ) -> None:
        config = DocSchemaConfig(**minimal_config_dict)
        report = await SchemaGenerator().generate({"files": container}, config)
        file_block = report.sdl.split("type File {")[1].split("}")[0]
        assert "  _etag: String!" in file_block
        assert "  _ts: Int!" in file_block
        create_block = report.sdl.split("input CreateFileInput {")[1].split("}")[0]
        assert "_etag" not in create_block
        assert "_ts" not in create_block


class TestBuildResolvers:
    @pytest.mark.asyncio
    async def test_wires_every_container(
        self, minimal_config_dict: Dict[str, Any], container: InMemoryContainer
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["containers"].append({"name": "users", "type_name": "User", "partition_key_path": "/id"})
        users = InMemoryContainer("users", "/id")
        resolvers = SchemaGenerator.build_resolvers(
            {"files": container, "users": users}, DocSchemaConfig(**raw)
        )
        assert {"file", "files", "user", "users"} <= set(resolvers["Query"])
        created = await resolvers["Mutation"]["createUser"](None, {"input": {"email": "a@b.c"}})
        assert created["data"]["email"] == "a@b.c"
        assert len(users) == 1

    def test_unbound_container_raises(self, minimal_config_dict: Dict[str, Any]) -> None:
        with pytest.raises(ConfigurationError, match="No container bound"):
            SchemaGenerator.build_resolvers({}, DocSchemaConfig(**minimal_config_dict))

    @pytest.mark.asyncio
    async def test_inferred_array_fields_take_array_operations(
        self,
        minimal_config_dict: Dict[str, Any],
        container: InMemoryContainer,
        file_documents: List[Dict[str, Any]],
    ) -> None:
        config = DocSchemaConfig(**minimal_config_dict)
        report = SchemaGenerator().generate_from_samples({"files": file_documents}, config)
        resolvers = SchemaGenerator.build_resolvers({"files": container}, config, report.schemas)
        update = resolvers["Mutation"]["updateFile"]

        payload = await update(
            None,
            {"id": "f1", "partitionKey": "acme/eu", "input": {"tags": {"type": "append", "value": ["x"]}}},
        )
        assert payload["data"]["tags"][-1] == "x"

        payload = await update(
            None,
            {"id": "f1", "partitionKey": "acme/eu", "input": {"metadata": {"type": "pdf"}}},
        )
        assert payload["data"]["metadata"] == {"type": "pdf"}

    def test_config_limits_reach_builders(
        self, minimal_config_dict: Dict[str, Any], container: InMemoryContainer
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["operations"] = {"include": ["read", "create"]}
        resolvers = SchemaGenerator.build_resolvers({"files": container}, DocSchemaConfig(**raw))
        assert set(resolvers["Mutation"]) == {"createFile"}


# ===========================================================================
# Export
# ===========================================================================


class TestExport:
    def test_writes_schema_and_manifest(
        self,
        minimal_config_dict: Dict[str, Any],
        file_documents: List[Dict[str, Any]],
        tmp_path: pathlib.Path,
    ) -> None:
        out = tmp_path / "out"
        report = SchemaGenerator().generate_from_samples(
            {"files": file_documents}, DocSchemaConfig(**minimal_config_dict), output_dir=out
        )
        assert report.success, report.summary()
        assert report.output_directory == str(out.resolve())

        sdl = (out / SCHEMA_FILENAME).read_text(encoding="utf-8")
        assert sdl == report.sdl

        manifest = json.loads((out / MANIFEST_FILENAME).read_text(encoding="utf-8"))
        assert manifest["schema_sha256"] == sha256_hex(sdl)
        assert manifest["types"][0]["type_name"] == "File"
        assert manifest["types"][0]["partition_pattern"]["kind"] == "hierarchical"
        assert [f["relative_path"] for f in manifest["files"]] == [SCHEMA_FILENAME]

        assert report.manifest.total_files == 2
        assert report.step_metrics[-1].step_name == "Export to Filesystem"

    def test_rerun_is_idempotent(self, file_schema: InferredSchema, tmp_path: pathlib.Path) -> None:
        exporter = SchemaExporter(tmp_path / "out")
        first = exporter.export("type File {\n  id: String!\n}\n", {"File": file_schema})
        second = exporter.export("type File {\n  id: String!\n}\n", {"File": file_schema})
        assert first.success and second.success
        assert first.manifest.schema_sha256 == second.manifest.schema_sha256
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == [
            MANIFEST_FILENAME,
            SCHEMA_FILENAME,
        ]

    def test_without_manifest(self, file_schema: InferredSchema, tmp_path: pathlib.Path) -> None:
        result = SchemaExporter(tmp_path, generate_manifest=False).export("scalar JSON\n", {"File": file_schema})
        assert result.success
        assert not (tmp_path / MANIFEST_FILENAME).exists()
        assert result.manifest.total_files == 1

    def test_unwritable_target_is_reported(
        self, file_schema: InferredSchema, tmp_path: pathlib.Path
    ) -> None:
        blocker = tmp_path / "taken"
        blocker.write_text("not a directory", encoding="utf-8")
        result = SchemaExporter(blocker).export("scalar JSON\n", {"File": file_schema})
        assert not result.success
        assert result.errors
        assert result.manifest.total_files == 0


# ===========================================================================
# CLI
# ===========================================================================


class TestCli:
    def test_validate_only(self, config_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(config_yaml_path), "--validate-only", "-q"])
        assert excinfo.value.code == EXIT_SUCCESS
        assert "Config Validation Report" in capsys.readouterr().out

    def test_validate_only_reports_errors(
        self, minimal_config_dict: Dict[str, Any], tmp_path: pathlib.Path
    ) -> None:
        raw = copy.deepcopy(minimal_config_dict)
        raw["containers"][0]["type_name"] = "Mutation"
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump(raw), encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(path), "--validate-only", "-q"])
        assert excinfo.value.code == EXIT_VALIDATION_ERROR

    def test_missing_config(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(tmp_path / "missing.yaml"), "-q"])
        assert excinfo.value.code == EXIT_INPUT_ERROR

    def test_samples_required(self, config_yaml_path: pathlib.Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(config_yaml_path), "-o", "out", "-q"])
        assert excinfo.value.code == EXIT_INPUT_ERROR

    def test_output_required_without_dry_run(
        self, config_yaml_path: pathlib.Path, samples_json_path: pathlib.Path
    ) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(config_yaml_path), "-s", str(samples_json_path), "-q"])
        assert excinfo.value.code == EXIT_INPUT_ERROR

    def test_dry_run_prints_sdl(
        self,
        config_yaml_path: pathlib.Path,
        samples_json_path: pathlib.Path,
        capsys: pytest.CaptureFixture,
    ) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(config_yaml_path), "-s", str(samples_json_path), "--dry-run"])
        assert excinfo.value.code == EXIT_SUCCESS
        captured = capsys.readouterr()
        assert captured.out.startswith("scalar JSON\n")
        assert "Generation Report" in captured.err

    def test_full_generation(
        self,
        config_yaml_path: pathlib.Path,
        samples_json_path: pathlib.Path,
        tmp_path: pathlib.Path,
    ) -> None:
        out = tmp_path / "schema"
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(config_yaml_path), "-s", str(samples_json_path), "-o", str(out), "-q"])
        assert excinfo.value.code == EXIT_SUCCESS
        assert (out / SCHEMA_FILENAME).is_file()
        assert (out / MANIFEST_FILENAME).is_file()

    def test_bad_samples_file(self, config_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        bad = tmp_path / "samples.json"
        bad.write_text("{not json", encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            cli_main(["-c", str(config_yaml_path), "-s", str(bad), "--dry-run", "-q"])
        assert excinfo.value.code == EXIT_INPUT_ERROR
