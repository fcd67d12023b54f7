# SPDX-License-Identifier: MIT
"""Tests for fbbridge CLI."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from fbbridge.cli import EXIT_FAILURE, EXIT_SUCCESS, EXIT_UNAVAILABLE, main, setup_logging
from fbbridge.executor import ExecutionReport
from fbbridge.fbuild import BuildResult


@pytest.fixture
def actions_file(tmp_path: Path) -> Path:
    path = tmp_path / "actions.json"
    path.write_text(
        json.dumps(
            {
                "actions": [
                    {
                        "type": "Compile",
                        "command_path": "C:/Microsoft Visual Studio/bin/cl.exe",
                        "command_arguments": '/c /Fo"D:\\obj\\a.obj" "D:\\src\\a.cpp"',
                        "prerequisites": ["D:\\src\\a.cpp"],
                        "produced": ["D:\\obj\\a.obj"],
                    },
                    {
                        "type": "BuildProject",
                        "command_path": "msbuild.exe",
                        "status": "App.sln",
                    },
                ]
            }
        )
    )
    return path


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_normal(self) -> None:
        """Test normal logging setup."""
        # Just ensure it doesn't crash
        setup_logging(verbose=False, debug=False)

    def test_setup_logging_verbose(self) -> None:
        setup_logging(verbose=True, debug=False)

    def test_setup_logging_debug(self) -> None:
        setup_logging(verbose=False, debug=True)


class TestGenerateCommand:
    def test_generate(self, tmp_path: Path, actions_file: Path, capsys) -> None:
        output = tmp_path / "out" / "fbuild.bff"

        assert main(["generate", str(actions_file), "-o", str(output)]) == EXIT_SUCCESS

        assert "ObjectList('Action_0')" in output.read_text()
        assert "local: App.sln" in capsys.readouterr().out

    def test_missing_actions_file(self, tmp_path: Path) -> None:
        code = main(["generate", str(tmp_path / "missing.json")])
        assert code == EXIT_FAILURE

    def test_invalid_config(self, tmp_path: Path, actions_file: Path) -> None:
        config = tmp_path / "fbbridge.json"
        config.write_text('{"unknown": 1}')

        code = main(["generate", str(actions_file), "--config", str(config)])

        assert code == EXIT_FAILURE


class TestBuildCommand:
    @pytest.mark.parametrize(
        ("result", "code"),
        [
            (BuildResult.SUCCEEDED, EXIT_SUCCESS),
            (BuildResult.FAILED, EXIT_FAILURE),
            (BuildResult.UNAVAILABLE, EXIT_UNAVAILABLE),
        ],
    )
    def test_exit_codes(
        self, tmp_path: Path, actions_file: Path, result: BuildResult, code: int
    ) -> None:
        with patch(
            "fbbridge.cli.execute_actions", return_value=ExecutionReport(result)
        ):
            assert main(["build", str(actions_file), "-o", str(tmp_path / "x.bff")]) == code

    def test_options_reach_settings(self, tmp_path: Path, actions_file: Path) -> None:
        with patch(
            "fbbridge.cli.execute_actions",
            return_value=ExecutionReport(BuildResult.SUCCEEDED),
        ) as execute:
            main(
                [
                    "build",
                    str(actions_file),
                    "--no-dist",
                    "--cache",
                    "readonly",
                    "--cache-path",
                    "//server/cache",
                    "--fbuild",
                    "D:/tools/fbuild.exe",
                    "-C",
                    str(tmp_path),
                ]
            )

        settings = execute.call_args.args[2]
        assert settings.enable_distribution is False
        assert settings.enable_caching is True
        assert settings.cache_mode.value == "readonly"
        assert settings.cache_path == "//server/cache"
        assert settings.fbuild_executable == "D:/tools/fbuild.exe"
        assert execute.call_args.kwargs["working_dir"] == str(tmp_path)


class TestCLICommands:
    """Tests for running the CLI as a module."""

    def test_help(self) -> None:
        result = subprocess.run(
            [sys.executable, "-m", "fbbridge", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "fbbridge" in result.stdout
        assert "generate" in result.stdout
        assert "build" in result.stdout

    def test_version(self) -> None:
        result = subprocess.run(
            [sys.executable, "-m", "fbbridge", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "0.1.0" in result.stdout

    def test_no_command(self) -> None:
        assert main([]) == EXIT_FAILURE
