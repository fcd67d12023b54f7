# SPDX-License-Identifier: MIT
"""Tests for fbbridge.executor."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from fbbridge.core.action import ActionType, BuildAction, FileItem
from fbbridge.executor import execute_actions
from fbbridge.fbuild import BuildResult

CL = "C:/Program Files/Microsoft Visual Studio/VC/bin/cl.exe"


def compile_action() -> BuildAction:
    return BuildAction(
        ActionType.COMPILE,
        CL,
        '/c /Fo"D:\\obj\\a.cpp.obj" "D:\\src\\a.cpp"',
        produced_items=(FileItem("D:\\obj\\a.cpp.obj", 0),),
    )


class TestExecuteActions:
    def test_generates_then_runs(self, tmp_path: Path) -> None:
        bff = tmp_path / "fbuild.bff"
        project = BuildAction(ActionType.BUILD_PROJECT, "msbuild.exe", "App.sln")

        with patch(
            "fbbridge.executor.run_fbuild", return_value=BuildResult.SUCCEEDED
        ) as run:
            report = execute_actions(
                [compile_action(), project], bff, environ={}, working_dir=tmp_path
            )

        assert report.succeeded
        assert report.local_actions == [project]
        assert report.generation is not None
        assert report.generation.node_names == ["Action_0"]
        assert bff.exists()
        run.assert_called_once()
        assert run.call_args.args[0] == bff
        assert run.call_args.kwargs["working_dir"] == tmp_path

    def test_fbuild_result_passed_through(self, tmp_path: Path) -> None:
        with patch(
            "fbbridge.executor.run_fbuild", return_value=BuildResult.UNAVAILABLE
        ):
            report = execute_actions([compile_action()], tmp_path / "x.bff", environ={})

        assert report.result is BuildResult.UNAVAILABLE
        assert not report.succeeded

    def test_cycle_fails_without_running(self, tmp_path: Path, caplog) -> None:
        """Test that a cyclic graph is reported as FAILED, not raised."""
        actions = [
            BuildAction(
                ActionType.COMPILE, CL, prerequisite_items=(FileItem("b", 1),)
            ),
            BuildAction(
                ActionType.COMPILE, CL, prerequisite_items=(FileItem("a", 0),)
            ),
        ]
        with patch("fbbridge.executor.run_fbuild") as run:
            report = execute_actions(actions, tmp_path / "x.bff", environ={})

        assert report.result is BuildResult.FAILED
        assert report.generation is None
        run.assert_not_called()
        assert "Cannot order actions" in caplog.text

    def test_generation_error_fails(self, tmp_path: Path) -> None:
        output = tmp_path / "x.bff"
        output.mkdir()
        with patch("fbbridge.executor.run_fbuild") as run:
            report = execute_actions([compile_action()], output, environ={})

        assert report.result is BuildResult.FAILED
        run.assert_not_called()
