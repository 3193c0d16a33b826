"""Tests for the form-sync CLI."""

import json
import shutil
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from form_sync import __version__
from form_sync.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def form_sync_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config at a temporary home."""
    home = tmp_path / "home"
    monkeypatch.setenv("FORM_SYNC_HOME", str(home))
    monkeypatch.delenv("FORM_SYNC_REGISTRY", raising=False)
    return home


def write_records(path: Path, records: list[dict]) -> Path:
    path.write_text("".join(json.dumps(record) + "\n" for record in records))
    return path


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestInit:
    """Tests for the init command."""

    def test_copies_registry_and_writes_config(
        self, tmp_path: Path, project_root: Path, form_sync_home: Path
    ) -> None:
        result = runner.invoke(app, ["init", "--from", str(project_root)])

        assert result.exit_code == 0, result.output
        destination = form_sync_home / "registry" / "form-registry"
        assert (destination / "forms" / "album" / "1-0-0.json").exists()

        config = yaml.safe_load((form_sync_home / "config.yaml").read_text())
        assert config["default_registry_path"] == str(destination)

    def test_existing_registry_needs_force(self, project_root: Path) -> None:
        assert runner.invoke(app, ["init", "--from", str(project_root)]).exit_code == 0

        again = runner.invoke(app, ["init", "--from", str(project_root)])
        forced = runner.invoke(app, ["init", "--from", str(project_root), "--force"])

        assert again.exit_code == 1
        assert "--force" in again.output
        assert forced.exit_code == 0

    def test_missing_source(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["init", "--from", str(tmp_path / "nowhere")])

        assert result.exit_code == 1


class TestForms:
    """Tests for the forms command."""

    def test_lists_forms_and_versions(self, registry_path: Path) -> None:
        result = runner.invoke(app, ["forms", "--registry", str(registry_path)])

        assert result.exit_code == 0, result.output
        assert "album 1.0.0, 1.1.0" in result.output
        assert "contact 1.0.0" in result.output

    def test_uses_initialized_registry(self, project_root: Path) -> None:
        """Test that forms falls back to the registry written by init."""
        runner.invoke(app, ["init", "--from", str(project_root)])

        result = runner.invoke(app, ["forms"])

        assert result.exit_code == 0, result.output
        assert "contact" in result.output

    def test_empty_registry(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["forms", "-r", str(tmp_path)])

        assert result.exit_code == 1


class TestRun:
    """Tests for the run command."""

    def test_processes_records(self, tmp_path: Path, registry_path: Path) -> None:
        """Test one result line per record plus diagnostics."""
        input_path = write_records(
            tmp_path / "in.jsonl",
            [
                {
                    "submission_id": "s1",
                    "model": {"name": "Ada", "email": "ada@example.com", "age": 36, "subscribed": False},
                    "params": {"age": "37"},
                },
                {"submission_id": "s2", "params": {"name": "", "email": "x"}},
            ],
        )
        output_path = tmp_path / "out.jsonl"
        diagnostics_path = tmp_path / "diag.jsonl"

        result = runner.invoke(
            app,
            [
                "run",
                "--in", str(input_path),
                "--out", str(output_path),
                "--form", "contact",
                "--registry", str(registry_path),
                "--diagnostics", str(diagnostics_path),
            ],
        )

        assert result.exit_code == 0, result.output
        lines = [json.loads(line) for line in output_path.read_text().splitlines()]
        assert [line["submission_id"] for line in lines] == ["s1", "s2"]
        assert lines[0]["valid"] is True
        assert lines[0]["model"]["age"] == 37
        assert "diagnostics" not in lines[0]
        assert lines[1]["valid"] is False
        assert set(lines[1]["errors"]) == {"name", "email"}

        diagnostics = [json.loads(line) for line in diagnostics_path.read_text().splitlines()]
        assert [d["status"] for d in diagnostics] == ["success", "failed"]

    def test_no_sync(self, tmp_path: Path, registry_path: Path) -> None:
        input_path = write_records(
            tmp_path / "in.jsonl",
            [{"model": {"name": "Ada", "email": "a@b.c", "age": None, "subscribed": False}, "params": {"name": "Bob"}}],
        )
        output_path = tmp_path / "out.jsonl"

        result = runner.invoke(
            app,
            [
                "run", "-i", str(input_path), "-o", str(output_path),
                "--form", "contact", "-r", str(registry_path), "--no-sync",
            ],
        )

        assert result.exit_code == 0, result.output
        line = json.loads(output_path.read_text())
        assert line["values"]["name"] == "Bob"
        assert line["model"]["name"] == "Ada"

    def test_registry_from_environment(
        self, tmp_path: Path, registry_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FORM_SYNC_REGISTRY", str(registry_path))
        input_path = write_records(tmp_path / "in.jsonl", [{"params": {"title": "A", "artist": {"name": "B"}}}])
        output_path = tmp_path / "out.jsonl"

        result = runner.invoke(
            app, ["run", "-i", str(input_path), "-o", str(output_path), "--form", "album"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(output_path.read_text())["valid"] is True

    def test_missing_accessor_counts_as_failed(self, tmp_path: Path, registry_path: Path) -> None:
        """Test that a record whose model lacks fields is skipped."""
        input_path = write_records(
            tmp_path / "in.jsonl", [{"model": {"name": "Ada"}, "params": {}}]
        )
        output_path = tmp_path / "out.jsonl"

        result = runner.invoke(
            app,
            ["run", "-i", str(input_path), "-o", str(output_path), "--form", "contact", "-r", str(registry_path)],
        )

        assert result.exit_code == 0
        assert "Failed" in result.output
        assert output_path.read_text() == ""

    def test_malformed_records_do_not_stop_the_run(self, tmp_path: Path, registry_path: Path) -> None:
        """Test that bad params and bad models are reported per record."""
        input_path = write_records(
            tmp_path / "in.jsonl",
            [
                {"submission_id": "bad-params", "params": ["junk"]},
                {
                    "submission_id": "bad-model",
                    "model": {"title": "A", "genre": "rock", "released_on": None, "artist": None, "songs": 5},
                    "params": {},
                },
                {"submission_id": "ok", "params": {"title": "A", "artist": {"name": "B"}}},
            ],
        )
        output_path = tmp_path / "out.jsonl"

        result = runner.invoke(
            app,
            ["run", "-i", str(input_path), "-o", str(output_path), "--form", "album", "-r", str(registry_path)],
        )

        assert result.exit_code == 0, result.output
        lines = [json.loads(line) for line in output_path.read_text().splitlines()]
        assert [(line["submission_id"], line["valid"]) for line in lines] == [("bad-params", False), ("ok", True)]
        assert "Failed" in result.output

    def test_invalid_json(self, tmp_path: Path, registry_path: Path) -> None:
        input_path = tmp_path / "in.jsonl"
        input_path.write_text("{not json\n")

        result = runner.invoke(
            app,
            ["run", "-i", str(input_path), "-o", str(tmp_path / "out.jsonl"), "--form", "contact", "-r", str(registry_path)],
        )

        assert result.exit_code == 1

    def test_unknown_form(self, tmp_path: Path, registry_path: Path) -> None:
        input_path = write_records(tmp_path / "in.jsonl", [{"params": {}}])

        result = runner.invoke(
            app,
            ["run", "-i", str(input_path), "-o", str(tmp_path / "out.jsonl"), "--form", "survey", "-r", str(registry_path)],
        )

        assert result.exit_code == 1

    def test_missing_input(self, tmp_path: Path, registry_path: Path) -> None:
        result = runner.invoke(
            app,
            ["run", "-i", str(tmp_path / "none.jsonl"), "-o", str(tmp_path / "out.jsonl"), "--form", "contact", "-r", str(registry_path)],
        )

        assert result.exit_code == 1


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_spec(self, registry_path: Path, form_schema_path: Path) -> None:
        spec = registry_path / "forms" / "album" / "1-1-0.json"

        result = runner.invoke(app, ["validate", str(spec), "--schema", str(form_schema_path)])

        assert result.exit_code == 0, result.output

    def test_invalid_spec(self, tmp_path: Path, registry_path: Path, form_schema_path: Path) -> None:
        spec = tmp_path / "1-0-0.json"
        shutil.copy(registry_path / "forms" / "contact" / "1-0-0.json", spec)
        data = json.loads(spec.read_text())
        data["fields"][0]["validates"]["uniqueness"] = True
        spec.write_text(json.dumps(data))

        result = runner.invoke(app, ["validate", str(spec), "-s", str(form_schema_path)])

        assert result.exit_code == 1
        assert "Invalid" in result.output

    def test_missing_spec(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
