"""
Tests for prerequisite resolution and toolkit selection.
"""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gpuboot.core.errors import (
    InstallFailure,
    InstallVerificationTimeout,
    NoMatchingToolkit,
    RequirementOrderError,
)
from gpuboot.core.models.requirement import STRATEGY_WINGET, Requirement
from gpuboot.core.models.toolkit import ToolkitPolicy
from gpuboot.core.services.prereq.execution.polling import wait_until
from gpuboot.core.services.prereq.execution.subprocess_runner import CommandResult
from gpuboot.core.services.prereq.orchestration.requirement_set import build_requirements
from gpuboot.core.services.prereq.orchestration.resolver import resolve_requirements
from gpuboot.core.services.prereq.orchestration.toolkit_select import (
    choose_toolkit,
    select_for_build,
)

_RES = "gpuboot.core.services.prereq.orchestration.resolver"


def _req(name: str, test, **kw) -> Requirement:
    return Requirement(name=name, test=test, strategy=STRATEGY_WINGET, **kw)


class TestWaitUntil:
    def test_predicate_checked_once_with_zero_timeout(self):
        calls = []
        wait_until(lambda: calls.append(1) or True, timeout=0, interval=0, what="x")
        assert calls == [1]

    def test_timeout(self):
        ticks = iter([0.0, 0.5, 1.0, 1.5, 2.0, 2.5])
        retries = MagicMock()
        with pytest.raises(InstallVerificationTimeout) as exc:
            wait_until(
                lambda: False, timeout=1.0, interval=0.5, what="cmake",
                on_retry=retries, clock=lambda: next(ticks), sleep=lambda s: None,
            )
        assert exc.value.requirement == "cmake"
        assert retries.call_count >= 1

    def test_eventually_true(self):
        answers = iter([False, False, True])
        wait_until(lambda: next(answers), timeout=10, interval=0, what="git", sleep=lambda s: None)


class TestResolve:
    def test_provisioned_machine_performs_zero_installs(self, snapshot, config):
        reqs = [_req("git", lambda: True), _req("cmake", lambda: True)]
        with patch(f"{_RES}.install") as install:
            report = resolve_requirements(reqs, snapshot, config)
        install.assert_not_called()
        assert report.all_satisfied
        assert report.already_satisfied == ["git", "cmake"]

    def test_installs_only_missing(self, snapshot, config):
        state = {"cmake": False}

        def fake_install(req, snap, cfg):
            state[req.name] = True
            return "winget"

        reqs = [_req("git", lambda: True), _req("cmake", lambda: state["cmake"])]
        with patch(f"{_RES}.install", side_effect=fake_install) as install:
            report = resolve_requirements(reqs, snapshot, config)
        assert install.call_count == 1
        assert report.installed == [("cmake", "winget")]
        assert report.to_dict()["installed"] == [{"name": "cmake", "strategy": "winget"}]

    def test_clean_installer_exit_is_not_enough(self, snapshot, config):
        reqs = [_req("cmake", lambda: False, verify_timeout=0.0)]
        with patch(f"{_RES}.install", return_value="winget"):
            with pytest.raises(InstallVerificationTimeout):
                resolve_requirements(reqs, snapshot, config)

    def test_first_failure_stops_the_run(self, snapshot, config):
        later = MagicMock(return_value=True)
        reqs = [_req("git", lambda: False), _req("cmake", later)]
        with patch(f"{_RES}.install", side_effect=InstallFailure("git", "winget", 1)):
            with pytest.raises(InstallFailure):
                resolve_requirements(reqs, snapshot, config)
        later.assert_not_called()

    def test_bad_order_rejected_before_any_probe(self, snapshot, config):
        probe = MagicMock(return_value=True)
        reqs = [
            _req("cuda-toolkit", probe, depends_on=("vs-build-tools",)),
            _req("vs-build-tools", probe),
        ]
        with pytest.raises(RequirementOrderError):
            resolve_requirements(reqs, snapshot, config)
        probe.assert_not_called()

    def test_verify_command_failure(self, snapshot, config):
        state = {"git": False}

        def fake_install(req, snap, cfg):
            state["git"] = True
            return "winget"

        reqs = [_req("git", lambda: state["git"], verify_command=("git", "--version"))]
        with patch(f"{_RES}.install", side_effect=fake_install), \
             patch(f"{_RES}.run_command", return_value=CommandResult(returncode=1, stderr="bad")):
            with pytest.raises(InstallFailure) as exc:
                resolve_requirements(reqs, snapshot, config)
        assert exc.value.strategy == "verify"

    def test_progress_callback(self, snapshot, config):
        state = {"git": False}

        def fake_install(req, snap, cfg):
            state["git"] = True
            return "winget"

        lines = []
        with patch(f"{_RES}.install", side_effect=fake_install):
            resolve_requirements(
                [_req("git", lambda: state["git"])], snapshot, config, progress=lines.append,
            )
        assert lines == ["Installing git...", "Installed git (winget)"]


class TestRequirementSet:
    def test_order_and_dependencies(self, snapshot, config):
        reqs = build_requirements(config, ToolkitPolicy(floor="12.4"), snapshot)
        names = [r.name for r in reqs]
        assert names == ["git", "cmake", "vs-build-tools", "ninja", "cuda-toolkit"]
        assert names.index("vs-build-tools") < names.index("cuda-toolkit")

    def test_floor_policy_is_unpinned(self, snapshot, config):
        cuda = build_requirements(config, ToolkitPolicy(floor="12.4"), snapshot)[-1]
        assert cuda.version is None
        assert cuda.fallback is None

    def test_exact_policy_pins_with_vendor_fallback(self, snapshot, config):
        cuda = build_requirements(config, ToolkitPolicy(floor="12.4", exact="12.4"), snapshot)[-1]
        assert cuda.version == "12.4"
        assert cuda.fallback == "vendor"
        assert cuda.download_url.endswith("cuda_12.4.1_551.78_windows.exe")
        assert "nvcc_12.4" in cuda.components

    def test_toolkit_predicate_follows_policy(self, snapshot, config, make_toolkit):
        make_toolkit(config.toolkit_root, "12.6")
        floor = build_requirements(config, ToolkitPolicy(floor="12.4"), snapshot)[-1]
        exact = build_requirements(config, ToolkitPolicy(floor="12.4", exact="12.4"), snapshot)[-1]
        assert floor.test()
        assert not exact.test()

    def test_executable_predicates_read_snapshot(self, tmp_path: Path, snapshot, config,
                                                 make_executable):
        git = build_requirements(config, ToolkitPolicy(floor="12.4"), snapshot)[0]
        assert not git.test()
        make_executable(tmp_path / "git" / "cmd", "git")
        snapshot.prepend_path(str(tmp_path / "git" / "cmd"))
        assert git.test()


class TestToolkitSelect:
    def test_choose_highest_over_floor(self, tmp_path, make_toolkit):
        from gpuboot.core.services.prereq.detection.toolkit_scan import scan_toolkits

        make_toolkit(tmp_path, "12.4", "nvcc")
        make_toolkit(tmp_path, "12.6", "nvcc")
        found = scan_toolkits(tmp_path, "nvcc")
        assert choose_toolkit(found, ToolkitPolicy(floor="12.4")).version_str == "12.6"
        assert choose_toolkit(found, ToolkitPolicy(floor="12.4", exact="12.4")).version_str == "12.4"
        assert choose_toolkit(found, ToolkitPolicy(floor="13.0")) is None

    def test_select_exports_environment(self, tmp_path, snapshot, make_toolkit):
        make_toolkit(tmp_path, "12.4", "nvcc")
        root = make_toolkit(tmp_path, "12.6", "nvcc")

        chosen = select_for_build(ToolkitPolicy(floor="12.4"), snapshot, tmp_path, "nvcc")

        assert chosen.root == root
        assert snapshot.get("CUDA_PATH") == str(root)
        assert snapshot.get("CUDA_PATH_V12_6") == str(root)
        assert snapshot.path_entries()[0] == str(root / "bin")

    def test_select_twice_prepends_once(self, tmp_path, snapshot, make_toolkit):
        make_toolkit(tmp_path, "12.6", "nvcc")
        policy = ToolkitPolicy(floor="12.4")
        select_for_build(policy, snapshot, tmp_path, "nvcc")
        select_for_build(policy, snapshot, tmp_path, "nvcc")
        bin_dir = str(tmp_path / "v12.6" / "bin")
        assert snapshot.path.split(os.pathsep).count(bin_dir) == 1

    def test_no_match(self, tmp_path, snapshot, make_toolkit):
        make_toolkit(tmp_path, "12.6", "nvcc")
        with pytest.raises(NoMatchingToolkit) as exc:
            select_for_build(ToolkitPolicy(floor="12.4", exact="12.4"), snapshot, tmp_path, "nvcc")
        assert exc.value.found == ["12.6"]
        assert "exactly 12.4" in str(exc.value)
        assert snapshot.get("CUDA_PATH") is None
