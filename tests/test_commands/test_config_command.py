"""Tests for the ``vaultoidc config`` command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from vaultoidc.commands.config import config_app
from vaultoidc.config import load_settings, save_settings, settings_path
from vaultoidc.models import Settings


def _build_config_app() -> typer.Typer:
    app = typer.Typer(name="vaultoidc", no_args_is_help=True, add_completion=False)

    @app.callback()
    def _callback() -> None:
        """vaultoidc -- OIDC login for Vault."""

    app.add_typer(config_app, name="config")
    return app


@pytest.fixture
def app() -> typer.Typer:
    return _build_config_app()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _plain_output(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NO_COLOR", "1")


class TestConfigShow:
    def test_show_defaults(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0, result.output
        assert "address\thttps://127.0.0.1:8200" in result.output
        assert "port\t8250" in result.output
        assert str(settings_path()) in result.output

    def test_show_saved_values(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        save_settings(Settings(role="dev"))

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0, result.output
        assert "role\tdev" in result.output

    def test_show_invalid_file(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        settings_path().write_text("{broken", encoding="utf-8")

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 2
        assert "Invalid settings" in result.output


class TestConfigSet:
    def test_set_string(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "address", "https://vault.example.com:8200"])

        assert result.exit_code == 0, result.output
        assert load_settings().address == "https://vault.example.com:8200"

    def test_set_port_coerced(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "port", "8400"])

        assert result.exit_code == 0, result.output
        assert load_settings().port == 8400
        assert json.loads(settings_path().read_text())["port"] == 8400

    def test_set_none_clears(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        save_settings(Settings(role="dev"))

        result = runner.invoke(app, ["config", "set", "role", "none"])

        assert result.exit_code == 0, result.output
        assert load_settings().role is None

    def test_unknown_key(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "token", "hvs.secret"])

        assert result.exit_code == 2
        assert "Unknown setting" in result.output
        assert not settings_path().exists()

    def test_invalid_value(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "port", "99999"])

        assert result.exit_code == 2
        assert "Validation error" in result.output
        assert load_settings().port == 8250


class TestConfigReset:
    def test_reset_force(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        save_settings(Settings(role="dev", port=8400))

        result = runner.invoke(app, ["config", "reset", "--force"])

        assert result.exit_code == 0, result.output
        assert load_settings() == Settings()

    def test_reset_declined(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        save_settings(Settings(role="dev"))

        result = runner.invoke(app, ["config", "reset"], input="n\n")

        assert result.exit_code == 0
        assert "Aborted." in result.output
        assert load_settings().role == "dev"

    def test_reset_confirmed(self, runner: CliRunner, app: typer.Typer, isolated_config: Path) -> None:
        save_settings(Settings(role="dev"))

        result = runner.invoke(app, ["config", "reset"], input="y\n")

        assert result.exit_code == 0, result.output
        assert load_settings().role is None
