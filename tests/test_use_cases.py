"""
Tests for the install, detect, uninstall and serve use cases.
"""

import http.client
import urllib.error
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gpuboot.core.errors import NoMatchingToolkit, PrivilegeError, ServerError
from gpuboot.core.models.toolkit import ToolkitInstallation
from gpuboot.core.services.prereq.orchestration.resolver import ResolutionReport
from gpuboot.core.use_cases.detect import run_detect
from gpuboot.core.use_cases.install import run_install
from gpuboot.core.use_cases.serve import is_healthy, run_serve
from gpuboot.core.use_cases.uninstall import run_uninstall

_INSTALL = "gpuboot.core.use_cases.install"
_UNINSTALL = "gpuboot.core.use_cases.uninstall"
_SERVE = "gpuboot.core.use_cases.serve"


@pytest.fixture
def toolkit(tmp_path: Path) -> ToolkitInstallation:
    root = tmp_path / "CUDA" / "v12.4"
    return ToolkitInstallation(major=12, minor=4, root=root, executable=root / "bin" / "nvcc")


class TestInstall:
    def test_requires_elevation_first(self, snapshot, config):
        with patch(f"{_INSTALL}.ensure_elevated", side_effect=PrivilegeError("no admin")), \
             patch(f"{_INSTALL}.resolve_requirements") as resolve:
            with pytest.raises(PrivilegeError):
                run_install(config, arch_override=86, snapshot=snapshot)
        resolve.assert_not_called()

    def test_prereqs_only(self, snapshot, config, toolkit):
        with patch(f"{_INSTALL}.ensure_elevated"), \
             patch(f"{_INSTALL}.resolve_requirements", return_value=ResolutionReport()), \
             patch(f"{_INSTALL}.select_for_build", return_value=toolkit), \
             patch(f"{_INSTALL}.import_msvc_environment") as msvc, \
             patch(f"{_INSTALL}.fetch_source") as fetch:
            result = run_install(config, arch_override=61, prereqs_only=True, snapshot=snapshot)
        msvc.assert_not_called()
        fetch.assert_not_called()
        assert result.policy.exact == "12.4"
        assert result.toolkit == toolkit
        assert result.build_dir is None

    def test_full_run(self, snapshot, config, toolkit):
        with patch(f"{_INSTALL}.ensure_elevated"), \
             patch(f"{_INSTALL}.resolve_requirements", return_value=ResolutionReport()) as resolve, \
             patch(f"{_INSTALL}.select_for_build", return_value=toolkit), \
             patch(f"{_INSTALL}.import_msvc_environment") as msvc, \
             patch(f"{_INSTALL}.fetch_source", return_value="cloned"), \
             patch(f"{_INSTALL}.build_project", return_value=config.build_dir) as build:
            result = run_install(config, arch_override=86, snapshot=snapshot)
        requirements = resolve.call_args[0][0]
        assert [r.name for r in requirements][-1] == "cuda-toolkit"
        msvc.assert_called_once_with(snapshot)
        profile = build.call_args[0][2]
        assert profile.cuda_architecture == "86"
        assert result.policy.exact is None
        data = result.to_dict()
        assert data["source"] == "cloned"
        assert data["toolkit"]["version"] == "12.4"

    def test_no_matching_toolkit_stops_before_build(self, snapshot, config):
        with patch(f"{_INSTALL}.ensure_elevated"), \
             patch(f"{_INSTALL}.resolve_requirements", return_value=ResolutionReport()), \
             patch(f"{_INSTALL}.fetch_source") as fetch:
            with pytest.raises(NoMatchingToolkit):
                run_install(config, arch_override=86, snapshot=snapshot)
        fetch.assert_not_called()


class TestDetect:
    def test_reports_without_installing(self, snapshot, config, make_toolkit):
        make_toolkit(config.toolkit_root, "12.4")
        make_toolkit(config.toolkit_root, "12.6")
        result = run_detect(config, arch_override=61, snapshot=snapshot)
        assert result.profile.source == "override"
        assert result.policy.exact == "12.4"
        assert result.selected.version_str == "12.4"
        assert [t.version_str for t in result.toolkits] == ["12.6", "12.4"]
        assert result.requirements["cuda-toolkit"] is True
        assert result.requirements["git"] is False
        assert "git" in result.missing
        assert result.to_dict()["selected_toolkit"]["version"] == "12.4"

    def test_undetected_gpu(self, snapshot, config):
        with patch("gpuboot.core.services.prereq.detection.hardware.detect_compute_capability",
                   return_value=None):
            result = run_detect(config, snapshot=snapshot)
        assert result.profile.cuda_architecture == "all-major"
        assert result.policy.exact is None
        assert result.selected is None


class TestUninstall:
    def test_keep_prerequisites(self, config):
        config.source_dir.mkdir(parents=True)
        with patch(f"{_UNINSTALL}.ensure_elevated") as elevated, \
             patch(f"{_UNINSTALL}.remove_requirement") as remove:
            result = run_uninstall(config, remove_prerequisites=False)
        assert result.project_removed
        assert not config.install_dir.exists()
        elevated.assert_not_called()
        remove.assert_not_called()

    def test_reverse_order(self, snapshot, config):
        order = []

        def fake_remove(req, snap, cfg):
            order.append(req.name)
            return req.name != "ninja"

        with patch(f"{_UNINSTALL}.ensure_elevated"), \
             patch(f"{_UNINSTALL}.remove_requirement", side_effect=fake_remove):
            result = run_uninstall(config, snapshot=snapshot)
        assert order == ["cuda-toolkit", "ninja", "vs-build-tools", "cmake", "git"]
        assert result.skipped == ["ninja"]
        assert not result.project_removed

    def test_requires_elevation(self, config):
        with patch(f"{_UNINSTALL}.ensure_elevated", side_effect=PrivilegeError("no admin")):
            with pytest.raises(PrivilegeError):
                run_uninstall(config)


class TestServe:
    def _built(self, config) -> Path:
        exe = config.build_dir / "bin" / "llama-server"
        exe.parent.mkdir(parents=True)
        exe.write_text("")
        model = config.models_dir / "model.gguf"
        model.parent.mkdir(parents=True)
        model.write_bytes(b"GGUF")
        return exe

    def test_not_built(self, config):
        with pytest.raises(ServerError, match="gpuboot install"):
            run_serve(config, model_url="https://x/model.gguf")

    def test_ready_then_browser(self, config):
        exe = self._built(config)
        proc = MagicMock()
        proc.poll.return_value = None
        proc.wait.return_value = 0
        ready = []
        with patch(f"{_SERVE}.subprocess.Popen", return_value=proc) as popen, \
             patch(f"{_SERVE}.is_healthy", return_value=True), \
             patch(f"{_SERVE}.webbrowser.open") as browser, \
             patch(f"{_SERVE}.download_file") as download:
            result = run_serve(
                config, model_url="https://x/model.gguf", port=9090, on_ready=ready.append,
            )
        download.assert_not_called()
        cmd = popen.call_args[0][0]
        assert cmd[0] == str(exe)
        assert cmd[cmd.index("--port") + 1] == "9090"
        browser.assert_called_once_with("http://127.0.0.1:9090")
        assert ready == ["http://127.0.0.1:9090"]
        assert result.returncode == 0

    def test_no_browser(self, config):
        self._built(config)
        proc = MagicMock()
        proc.poll.return_value = None
        proc.wait.return_value = 0
        with patch(f"{_SERVE}.subprocess.Popen", return_value=proc), \
             patch(f"{_SERVE}.is_healthy", return_value=True), \
             patch(f"{_SERVE}.webbrowser.open") as browser:
            run_serve(config, model_url="https://x/model.gguf", open_browser=False)
        browser.assert_not_called()

    def test_server_exits_early(self, config):
        self._built(config)
        proc = MagicMock()
        proc.poll.return_value = 1
        proc.returncode = 1
        with patch(f"{_SERVE}.subprocess.Popen", return_value=proc), \
             patch(f"{_SERVE}.is_healthy", return_value=False):
            with pytest.raises(ServerError, match="exited with code 1"):
                run_serve(config, model_url="https://x/model.gguf")

    def test_health_timeout_terminates_server(self, config):
        self._built(config)
        proc = MagicMock()
        proc.poll.return_value = None
        with patch(f"{_SERVE}.subprocess.Popen", return_value=proc), \
             patch(f"{_SERVE}.is_healthy", return_value=False):
            with pytest.raises(ServerError, match="did not answer"):
                run_serve(config, model_url="https://x/model.gguf", health_timeout=0)
        proc.terminate.assert_called_once()

    def test_model_download(self, config):
        self._built(config)
        proc = MagicMock()
        proc.poll.return_value = None
        proc.wait.return_value = 0
        with patch(f"{_SERVE}.subprocess.Popen", return_value=proc), \
             patch(f"{_SERVE}.is_healthy", return_value=True), \
             patch(f"{_SERVE}.webbrowser.open"), \
             patch(f"{_SERVE}.download_file",
                   side_effect=lambda url, dest, **kw: dest) as download:
            result = run_serve(config, model_url="https://x/other.gguf")
        assert download.call_args[0][1] == config.models_dir / "other.gguf"
        assert result.model == config.models_dir / "other.gguf"


class TestHealthCheck:
    def test_answering_server(self):
        resp = MagicMock(status=200)
        resp.__enter__.return_value = resp
        with patch(f"{_SERVE}.urllib.request.urlopen", return_value=resp):
            assert is_healthy("http://127.0.0.1:8080")

    def test_connection_refused(self):
        with patch(f"{_SERVE}.urllib.request.urlopen",
                   side_effect=urllib.error.URLError("refused")):
            assert not is_healthy("http://127.0.0.1:8080")

    def test_half_started_server(self):
        with patch(f"{_SERVE}.urllib.request.urlopen",
                   side_effect=http.client.BadStatusLine("")):
            assert not is_healthy("http://127.0.0.1:8080")


class TestInstallOnProvisionedMachine:
    def test_rerun_performs_zero_installs(self, tmp_path, snapshot, config,
                                          make_executable, make_toolkit):
        tools = tmp_path / "tools"
        for name in ("git", "cmake", "ninja"):
            make_executable(tools, name)
        snapshot.prepend_path(str(tools))
        make_toolkit(config.toolkit_root, "12.6")

        with patch(f"{_INSTALL}.ensure_elevated"), \
             patch("gpuboot.core.services.prereq.orchestration.requirement_set.has_msvc",
                   return_value=True), \
             patch("gpuboot.core.services.prereq.orchestration.resolver.install") as install:
            first = run_install(config, arch_override=86, prereqs_only=True, snapshot=snapshot)
            second = run_install(config, arch_override=86, prereqs_only=True, snapshot=snapshot)

        install.assert_not_called()
        for result in (first, second):
            assert result.report.all_satisfied
            assert result.report.already_satisfied == [
                "git", "cmake", "vs-build-tools", "ninja", "cuda-toolkit",
            ]
            assert result.toolkit.version_str == "12.6"
        bin_dir = str(config.toolkit_root / "v12.6" / "bin")
        assert snapshot.path_entries().count(bin_dir) == 1
