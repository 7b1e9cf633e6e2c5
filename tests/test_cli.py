"""Smoke tests for the developer CLI."""

from typer.testing import CliRunner

from mealmate import __version__
from mealmate.main import app

runner = CliRunner()


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_health(self):
        result = runner.invoke(app, ["health"])

        assert result.exit_code == 0
        assert "Configuration loaded" in result.output
        assert "Recipe provider key configured" in result.output
