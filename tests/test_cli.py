"""Tests for the devtoolbox command line and the bundled plugins."""

from unittest.mock import patch

import pytest

from devtoolbox.cli import main as cli
from devtoolbox.cli import render
from devtoolbox.constants import BUNDLED_PLUGINS_DIR
from devtoolbox.runtime import build_runtime
from devtoolbox.tools.types import RegistryConfig
from tests.conftest import write_plugin_dir


@pytest.fixture
def run_cli(tmp_path, monkeypatch):
    """Run the CLI against the bundled plugins with state under tmp_path."""
    monkeypatch.setattr(render.console, "width", 200)
    search_paths = [(BUNDLED_PLUGINS_DIR, "bundled"), (tmp_path / "extra", "test")]

    def make_runtime():
        return build_runtime(
            search_paths=search_paths,
            config_file=tmp_path / "config.json",
            data_dir=tmp_path / "data",
            registry_config=RegistryConfig(),
        )

    def run(*argv):
        with patch.object(cli, "setup_logging"), patch.object(cli, "build_runtime", make_runtime):
            return cli.main(list(argv))

    return run


class TestPluginsCommands:
    def test_list(self, run_cli, capsys):
        assert run_cli("plugins", "list") == 0
        out = capsys.readouterr().out
        assert "hello-world" in out
        assert "tool-registry-demo" in out

    def test_info(self, run_cli, capsys):
        assert run_cli("plugins", "info", "hello-world") == 0
        assert "Hello World Plugin" in capsys.readouterr().out

    def test_info_unknown(self, run_cli):
        assert run_cli("plugins", "info", "ghost") == 1

    def test_disable_then_enable(self, run_cli, capsys):
        assert run_cli("plugins", "disable", "hello-world") == 0
        run_cli("commands")
        assert "goodbye" not in capsys.readouterr().out

        assert run_cli("plugins", "enable", "hello-world") == 0
        run_cli("commands")
        assert "goodbye" in capsys.readouterr().out

    def test_doctor_passes(self, run_cli, capsys):
        assert run_cli("plugins", "doctor") == 0
        assert "All checks passed" in capsys.readouterr().out

    def test_doctor_reports_cycle(self, run_cli, tmp_path, capsys):
        write_plugin_dir(tmp_path / "extra", "x", dependencies=["y"])
        write_plugin_dir(tmp_path / "extra", "y", dependencies=["x"])
        assert run_cli("plugins", "doctor") == 1
        assert "Dependency cycle" in capsys.readouterr().out

    def test_cycle_reported_as_error(self, run_cli, tmp_path, capsys):
        write_plugin_dir(tmp_path / "extra", "x", dependencies=["y"])
        write_plugin_dir(tmp_path / "extra", "y", dependencies=["x"])
        assert run_cli("plugins", "list") == 1
        assert "PLUGIN_LOAD_FAILED" in capsys.readouterr().out


class TestRunCommand:
    def test_hello(self, run_cli, capsys):
        assert run_cli("run", "hello", "--name", "Tester") == 0
        assert "Hello, Tester!" in capsys.readouterr().out

    def test_goodbye_default_name(self, run_cli, capsys):
        assert run_cli("run", "goodbye") == 0
        assert "Goodbye, World!" in capsys.readouterr().out

    def test_unknown_command(self, run_cli, capsys):
        assert run_cli("run", "nope") == 1
        assert "Unknown command" in capsys.readouterr().out


class TestToolsCommands:
    def test_list_by_category(self, run_cli, capsys):
        assert run_cli("tools", "list", "-c", "file") == 0
        out = capsys.readouterr().out
        assert "file-counter" in out
        assert "json-formatter" not in out

    def test_info(self, run_cli, capsys):
        assert run_cli("tools", "info", "case-converter") == 0
        assert "String Case Converter" in capsys.readouterr().out

    def test_run_case_converter(self, run_cli, capsys):
        assert run_cli("tools", "run", "case-converter", "hello world", "--case=title") == 0
        assert "Hello World" in capsys.readouterr().out

    def test_run_file_counter(self, run_cli, tmp_path, capsys):
        target = tmp_path / "count-me"
        (target / "nested").mkdir(parents=True)
        (target / "a.txt").write_text("a")
        (target / "nested" / "b.txt").write_text("b")

        assert run_cli("tools", "run", "file-counter", str(target)) == 0
        assert '"fileCount": 2' in capsys.readouterr().out

    def test_run_validation_failure(self, run_cli, capsys):
        assert run_cli("tools", "run", "json-formatter") == 1
        assert "JSON string is required" in capsys.readouterr().out

    def test_stats(self, run_cli, capsys):
        assert run_cli("tools", "stats") == 0
        assert "Total tools" in capsys.readouterr().out


def test_split_tool_args():
    assert cli.split_tool_args(["text", "--case=upper", "--flag"]) == (
        ["text", "--flag"], {"case": "upper"}
    )


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()
