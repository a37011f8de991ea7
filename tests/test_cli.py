# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
End-to-End CLI Tests

These tests run cli.py in a subprocess, the way a user invokes it.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent

CHAIN_YAML = """\
callbacks:
  - callback: "builtins:str.upper"
  - callback: "builtins:str.strip"
    priority: 10000
filters:
  - name: strip_tags
    options:
      allowTags: img
      allowAttribs: id
    priority: 10100
"""


def run_cli_command(args, home, stdin=None, timeout=30):
    """Run a CLI command and return exit code, stdout, stderr."""
    env = dict(os.environ, HOME=str(home))
    cmd = [sys.executable, str(PROJECT_ROOT / "cli.py")] + args
    result = subprocess.run(
        cmd,
        input=stdin,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=str(home),
        env=env,
    )
    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def chain_file(tmp_path):
    path = tmp_path / "chain.yaml"
    path.write_text(CHAIN_YAML, encoding="utf-8")
    return str(path)


class TestRun:
    """Test run command"""

    def test_input_option(self, home, chain_file):
        code, stdout, stderr = run_cli_command(
            ["run", chain_file, "--input", '<a name="foo"> abc </a><img id="bar" />'], home
        )
        assert code == 0, stderr
        assert stdout.strip() == 'ABC <IMG ID="BAR" />'

    def test_stdin_lines(self, home, chain_file):
        code, stdout, stderr = run_cli_command(["run", chain_file], home, stdin="<b> one </b>\n two\n")
        assert code == 0, stderr
        assert stdout.splitlines() == ["ONE", "TWO"]

    def test_invalid_chain_file(self, home, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("filters:\n  - name: no_such_filter\n", encoding="utf-8")

        code, stdout, stderr = run_cli_command(["run", str(path), "--input", "x"], home)
        assert code == 1
        assert "Unknown filter" in stderr

    def test_strict_flag(self, home, tmp_path):
        path = tmp_path / "extra.yaml"
        path.write_text("filters: []\nextras: 1\n", encoding="utf-8")

        code, stdout, stderr = run_cli_command(["run", str(path), "-i", "x"], home)
        assert code == 0
        assert stdout.strip() == "x"
        assert "extras" in stderr

        code, _, stderr = run_cli_command(["run", str(path), "--strict", "-i", "x"], home)
        assert code == 1
        assert "Unknown chain configuration keys" in stderr


class TestValidateCommand:
    """Test validate command"""

    def test_lists_entries_in_order(self, home, chain_file):
        code, stdout, stderr = run_cli_command(["validate", chain_file], home)
        assert code == 0, stderr
        assert "Chain is valid" in stdout

        lines = [line for line in stdout.splitlines() if line.startswith("  [")]
        assert len(lines) == 3
        assert "StripTags" in lines[0]
        assert "10100" in lines[0]

    def test_reports_validation_errors(self, home, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("filters:\n  - options: {}\n", encoding="utf-8")

        code, _, stderr = run_cli_command(["validate", str(path)], home)
        assert code == 1
        assert "Validation failed" in stderr
        assert "filters.0.name" in stderr


class TestInspectionCommands:
    """Test list and schema commands"""

    def test_list(self, home):
        code, stdout, _ = run_cli_command(["list"], home)
        assert code == 0
        assert "string_trim (trim)" in stdout
        assert "strip_tags" in stdout

    def test_schema_stdout(self, home):
        code, stdout, _ = run_cli_command(["schema"], home)
        assert code == 0
        assert json.loads(stdout)["title"] == "Filterbox Chain"

    def test_schema_file(self, home, tmp_path):
        output = tmp_path / "chain.schema.json"
        code, stdout, _ = run_cli_command(["schema", "-o", str(output)], home)
        assert code == 0
        assert "Schema generated" in stdout
        assert json.loads(output.read_text(encoding="utf-8"))["title"] == "Filterbox Chain"

    def test_version(self, home):
        code, stdout, _ = run_cli_command(["--version"], home)
        assert code == 0
        assert "1.0.0" in stdout


class TestSettings:
    """Test global options and settings files"""

    def test_log_level_option(self, home, chain_file):
        code, stdout, stderr = run_cli_command(["--log-level", "debug", "run", chain_file, "-i", "x"], home)
        assert code == 0
        assert stdout.strip() == "X"
        assert "filterbox.cli - DEBUG" in stderr

    def test_invalid_settings_file(self, home, tmp_path, chain_file):
        settings = tmp_path / "settings.yaml"
        settings.write_text("observability:\n  log_level: LOUD\n", encoding="utf-8")

        code, _, stderr = run_cli_command(["--settings", str(settings), "run", chain_file, "-i", "x"], home)
        assert code == 1
        assert "Invalid settings" in stderr

    def test_home_settings_file(self, home, chain_file):
        (home / ".filterbox").mkdir()
        (home / ".filterbox" / "config.yaml").write_text(
            "observability:\n  log_level: DEBUG\n", encoding="utf-8"
        )

        code, _, stderr = run_cli_command(["run", chain_file, "-i", "x"], home)
        assert code == 0
        assert "DEBUG" in stderr

    def test_file_logging(self, home, tmp_path, chain_file):
        settings = tmp_path / "settings.yaml"
        settings.write_text(
            f"paths:\n  log_dir: '{tmp_path / 'logs'}'\nobservability:\n  file_logging: true\n",
            encoding="utf-8",
        )

        code, _, stderr = run_cli_command(["--settings", str(settings), "run", chain_file, "-i", "x"], home)
        assert code == 0, stderr
        log_file = tmp_path / "logs" / "filterbox.log"
        assert "Writing logs to" in log_file.read_text(encoding="utf-8")
