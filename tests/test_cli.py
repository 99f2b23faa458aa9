"""
Tests for CLI commands — detect, install, uninstall, serve, and global options.
"""

import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from gpuboot.core.errors import PrivilegeError
from gpuboot.core.services.prereq.execution.environment import MemoryEnvironmentStore
from gpuboot.main import cli


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    content = textwrap.dedent(f"""\
        install_dir: {tmp_path / "llama.cpp"}
        toolkit_root: {tmp_path / "CUDA"}
        cache_dir: {tmp_path / "cache"}
    """)
    path = tmp_path / "gpuboot.yml"
    path.write_text(content)
    return path


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "llama.cpp" in result.output
        for command in ("install", "uninstall", "serve", "detect"):
            assert command in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path):
        path = tmp_path / "gpuboot.yml"
        path.write_text("- not a mapping\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(path), "detect"])
        assert result.exit_code == 1
        assert "Expected a YAML mapping" in result.output


class TestDetectCommand:
    def _invoke(self, config_file: Path, *args: str):
        runner = CliRunner()
        with patch("gpuboot.core.use_cases.detect.default_store",
                   return_value=MemoryEnvironmentStore()):
            return runner.invoke(cli, ["--config", str(config_file), "detect", *args])

    def test_json(self, config_file: Path):
        result = self._invoke(config_file, "--arch", "61", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["hardware"]["source"] == "override"
        assert data["policy"]["exact"] == "12.4"
        assert data["toolkits"] == []
        assert "cuda-toolkit" in data["missing"]

    def test_text(self, config_file: Path):
        result = self._invoke(config_file, "--arch", "86")
        assert result.exit_code == 0
        assert "CUDA architecture:  86" in result.output
        assert ">= 12.4" in result.output
        assert "cuda-toolkit" in result.output


class TestInstallCommand:
    def test_privilege_error_exits_one_with_log_location(self, config_file: Path, tmp_path):
        runner = CliRunner()
        with patch("gpuboot.core.use_cases.install.ensure_elevated",
                   side_effect=PrivilegeError("Administrator rights are required.")):
            result = runner.invoke(cli, ["--config", str(config_file), "install"])
        assert result.exit_code == 1
        assert "Administrator rights are required." in result.output
        assert str(tmp_path / "gpuboot.log") in result.output

    def test_forwards_options(self, config_file: Path):
        runner = CliRunner()
        with patch("gpuboot.core.use_cases.install.run_install") as run:
            run.return_value.report.all_satisfied = True
            run.return_value.toolkit = None
            run.return_value.build_dir = None
            result = runner.invoke(
                cli, ["--config", str(config_file), "install", "--arch", "75", "--prereqs-only"],
            )
        assert result.exit_code == 0
        kwargs = run.call_args.kwargs
        assert kwargs["arch_override"] == 75
        assert kwargs["prereqs_only"] is True
        assert "already satisfied" in result.output


class TestUninstallCommand:
    def test_keep_prerequisites(self, config_file: Path, tmp_path: Path):
        (tmp_path / "llama.cpp" / "src").mkdir(parents=True)
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--config", str(config_file), "uninstall", "--keep-prerequisites", "--yes"],
        )
        assert result.exit_code == 0
        assert not (tmp_path / "llama.cpp").exists()

    def test_confirmation_declined(self, config_file: Path, tmp_path: Path):
        (tmp_path / "llama.cpp").mkdir()
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--config", str(config_file), "uninstall", "--keep-prerequisites"], input="n\n",
        )
        assert result.exit_code == 1
        assert (tmp_path / "llama.cpp").exists()


class TestServeCommand:
    def test_not_built(self, config_file: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(config_file), "serve", "--no-browser"])
        assert result.exit_code == 1
        assert "gpuboot install" in result.output
