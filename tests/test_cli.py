"""
Tests for the click command line interface.
"""

import io
import json
import logging
import zipfile

import pytest
import yaml
from click.testing import CliRunner

from cli.extract import cli
from tests.conftest import build_orders_job


@pytest.fixture(autouse=True)
def restore_root_level():
    """The CLI sets the root logger level; put it back after each test."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def orders_file(tmp_path):
    path = tmp_path / "orders.dsx"
    path.write_text(build_orders_job(), encoding="utf-8")
    return path


class TestAnalyze:

    def test_json_output(self, runner, orders_file):
        result = runner.invoke(cli, ["analyze", "--source", str(orders_file), "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["data"]["name"] == "OrdersCopy"
        assert data["validation"] == {"valid": True, "issues": []}
        assert "tokenUsage" not in data

    def test_json_with_token_count(self, runner, orders_file):
        result = runner.invoke(cli, ["analyze", "-s", str(orders_file), "-f", "json", "--token-count"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["tokenUsage"]["total"] == data["data"]["metadata"]["tokenCount"]

    def test_yaml_output(self, runner, orders_file):
        result = runner.invoke(cli, ["analyze", "-s", str(orders_file), "-f", "yaml"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.stdout)
        assert data["data"]["sources"][0]["name"] == "Src_Orders"

    def test_table_output(self, runner, orders_file):
        result = runner.invoke(cli, ["analyze", "-s", str(orders_file)])
        assert result.exit_code == 0, result.output
        assert "OrdersCopy" in result.output
        assert "Data Flow" in result.output
        assert "No validation issues" in result.output

    def test_context_output(self, runner, orders_file):
        result = runner.invoke(cli, ["analyze", "-s", str(orders_file), "--context"])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("## DataStage Job: OrdersCopy")

    def test_missing_source(self, runner, tmp_path):
        result = runner.invoke(cli, ["analyze", "-s", str(tmp_path / "nope.dsx")])
        assert result.exit_code != 0


class TestValidate:

    def test_valid_job(self, runner, orders_file):
        result = runner.invoke(cli, ["validate", "-s", str(orders_file)])
        assert result.exit_code == 0, result.output
        assert "No validation issues" in result.output

    def test_invalid_job_exits_non_zero(self, runner, tmp_path):
        path = tmp_path / "empty.dsx"
        path.write_text("")
        result = runner.invoke(cli, ["validate", "-s", str(path)])
        assert result.exit_code == 1
        assert "Missing job name" in result.output


class TestExtract:

    def test_writes_zip(self, runner, tmp_path, orders_file):
        other = tmp_path / "other.dsx"
        other.write_text(build_orders_job("OtherCopy"), encoding="utf-8")
        output = tmp_path / "out.zip"

        result = runner.invoke(cli, ["extract", "-s", str(orders_file), "-s", str(other), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "Extraction complete" in result.output
        with zipfile.ZipFile(io.BytesIO(output.read_bytes())) as zf:
            assert sorted(zf.namelist()) == ["OrdersCopy.json", "OtherCopy.json"]

    def test_corrupt_archive_is_reported_and_skipped(self, runner, tmp_path, orders_file):
        broken = tmp_path / "broken.zip"
        broken.write_bytes(b"not a zip")
        output = tmp_path / "out.zip"

        result = runner.invoke(cli, ["extract", "-s", str(orders_file), "-s", str(broken), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "Could not read broken.zip" in result.output
        with zipfile.ZipFile(output) as zf:
            assert zf.namelist() == ["OrdersCopy.json"]

    def test_no_documents(self, runner, tmp_path):
        (tmp_path / "notes.txt").write_text("nothing here")
        result = runner.invoke(cli, ["extract", "-s", str(tmp_path), "-o", str(tmp_path / "out.zip")])
        assert result.exit_code != 0
        assert "No .dsx files found" in result.output


class TestConfigCommands:

    def test_show(self, runner):
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "Extraction Settings" in result.output
        assert "datastage_jobs.zip" in result.output

    def test_validate_bundled(self, runner):
        result = runner.invoke(cli, ["config", "validate"])
        assert result.exit_code == 0, result.output
        assert "Configuration is valid" in result.output

    def test_validate_invalid(self, runner, tmp_path):
        (tmp_path / "extraction_config.yaml").write_text("settings:\n  processing:\n    chars_per_token: 0\n")
        result = runner.invoke(cli, ["-c", str(tmp_path), "config", "validate"])
        assert result.exit_code != 0
        assert "Configuration is invalid" in result.output

    def test_show_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["-c", str(tmp_path), "config", "show"])
        assert result.exit_code != 0


class TestLogging:

    def _write_config(self, tmp_path, level):
        (tmp_path / "extraction_config.yaml").write_text(f"settings:\n  logging:\n    level: {level}\n")

    def test_root_level_follows_config(self, runner, tmp_path):
        self._write_config(tmp_path, "warning")
        result = runner.invoke(cli, ["-c", str(tmp_path), "config", "validate"])
        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.WARNING

    def test_verbose_overrides_config(self, runner, tmp_path):
        self._write_config(tmp_path, "ERROR")
        result = runner.invoke(cli, ["-c", str(tmp_path), "-v", "config", "validate"])
        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.DEBUG

    def test_missing_config_uses_default_level(self, runner, tmp_path):
        runner.invoke(cli, ["-c", str(tmp_path), "config", "show"])
        assert logging.getLogger().level == logging.INFO
