"""Tests for the top-level entry point: version, logging setup, error exits."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vaultoidc import __version__
from vaultoidc import app as app_module
from vaultoidc.exceptions import CaptureError, ExchangeError


@pytest.fixture
def quiet_main(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep :func:`main` from touching signal handlers or the command table."""
    monkeypatch.setattr(app_module, "_setup_signal_handlers", lambda: None)
    monkeypatch.setattr(app_module, "register_commands", lambda: None)
    monkeypatch.setenv("NO_COLOR", "1")


def test_version_flag() -> None:
    result = CliRunner().invoke(app_module.app, ["--version"])
    assert result.exit_code == 0
    assert f"vaultoidc {__version__}" in result.output


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        logger = logging.getLogger("vaultoidc")
        app_module._configure_logging(True)
        app_module._configure_logging(True)

        from rich.logging import RichHandler

        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG

        app_module._configure_logging(False)
        assert logger.level == logging.WARNING
        for handler in handlers:
            logger.removeHandler(handler)


class TestMain:
    @pytest.mark.parametrize(
        "exc, code",
        [(ExchangeError("HTTP 400: invalid code"), 3), (CaptureError("cancelled"), 5)],
    )
    def test_known_errors_exit_with_their_code(
        self,
        quiet_main: None,
        monkeypatch: pytest.MonkeyPatch,
        capfd: pytest.CaptureFixture[str],
        exc: Exception,
        code: int,
    ) -> None:
        def _raise() -> None:
            raise exc

        monkeypatch.setattr(app_module, "app", _raise)

        with pytest.raises(SystemExit) as exc_info:
            app_module.main()

        assert exc_info.value.code == code
        assert f"Error: {exc}" in capfd.readouterr().err

    def test_unexpected_error_writes_crash_log(
        self,
        quiet_main: None,
        isolated_config: Path,
        monkeypatch: pytest.MonkeyPatch,
        capfd: pytest.CaptureFixture[str],
    ) -> None:
        def _raise() -> None:
            raise RuntimeError("kaboom")

        monkeypatch.setattr(app_module, "app", _raise)

        with pytest.raises(SystemExit) as exc_info:
            app_module.main()

        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "vaultoidc" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "kaboom" in logs[0].read_text()
        assert str(logs[0]) in capfd.readouterr().err

    def test_keyboard_interrupt_exits_130(
        self, quiet_main: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _raise() -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(app_module, "app", _raise)

        with pytest.raises(SystemExit) as exc_info:
            app_module.main()

        assert exc_info.value.code == 130
