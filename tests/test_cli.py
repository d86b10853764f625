"""
Tests for the command line interface.
"""

from typer.testing import CliRunner

from wabot import __version__
from wabot.cli.commands import app

from conftest import BUNDLED_PLUGINS_DIR

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_calc():
    result = runner.invoke(app, ["calc", "2", "+", "3", "*", "4"])
    assert result.exit_code == 0
    assert "14" in result.output


def test_calc_error():
    result = runner.invoke(app, ["calc", "1", "/", "0"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_plugins_list(tmp_path, monkeypatch):
    monkeypatch.setattr("wabot.config.loader.get_data_dir", lambda: tmp_path)
    result = runner.invoke(app, ["plugins", "list", "--plugins", str(BUNDLED_PLUGINS_DIR)])
    assert result.exit_code == 0
    assert "Plugins" in result.output
