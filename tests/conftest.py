"""Shared test fixtures for vaultoidc.

Provides isolated config environments, free loopback ports, a scripted
in-memory backend, and a helper that plays the browser's part by sending
the OIDC redirect to a running listener. These fixtures are discovered by
pytest automatically.
"""

from __future__ import annotations

import socket
import time
from collections.abc import Callable
from http.client import HTTPConnection
from pathlib import Path
from typing import Any, Optional

import pytest

from vaultoidc.client.base import LoginBackend
from vaultoidc.models import AuthInfo
from vaultoidc.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at *tmp_path* and clears every environment
    variable the settings resolver reads.
    """
    monkeypatch.setattr("vaultoidc.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "VAULT_ADDR",
        "VAULT_NAMESPACE",
        "VAULT_SKIP_VERIFY",
        "VAULTOIDC_MOUNT",
        "VAULTOIDC_ROLE",
        "VAULTOIDC_PORT",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# Loopback helpers
# ---------------------------------------------------------------------------


def find_free_port() -> int:
    """Find a free TCP port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def free_port() -> int:
    return find_free_port()


@pytest.fixture
def free_port_factory() -> Callable[[], int]:
    return find_free_port


def _send_redirect(port: int, path: str, method: str = "GET") -> tuple[int, str]:
    """Send one request to the local listener and return (status, body)."""
    conn = HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request(method, path)
        response = conn.getresponse()
        return response.status, response.read().decode("utf-8")
    finally:
        conn.close()


@pytest.fixture
def send_redirect() -> Callable[..., tuple[int, str]]:
    """Play the browser: deliver a redirect to a listener that is already running."""
    return _send_redirect


@pytest.fixture
def send_redirect_when_listening() -> Callable[..., tuple[int, str]]:
    """Deliver a redirect, retrying until something listens on the port.

    For commands that start the listener themselves while the test is
    blocked inside them.
    """

    def _send(port: int, path: str, timeout: float = 5.0) -> tuple[int, str]:
        deadline = time.monotonic() + timeout
        while True:
            try:
                return _send_redirect(port, path)
            except ConnectionRefusedError:
                if time.monotonic() > deadline:
                    raise
                time.sleep(0.05)

    return _send


def port_is_free(port: int) -> bool:
    """Return True if a listening socket can be bound to *port* right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind(("127.0.0.1", port))
            s.listen(1)
        except OSError:
            return False
    return True


# ---------------------------------------------------------------------------
# Scripted backend
# ---------------------------------------------------------------------------


class FakeBackend(LoginBackend):
    """In-memory :class:`LoginBackend` that records every call.

    Args:
        auth_url: URL returned from :meth:`oidc_auth_url`.
        token: ``client_token`` of the returned auth info.
        auth_url_error: Raised from :meth:`oidc_auth_url` when set.
        exchange_error: Raised from :meth:`oidc_callback` when set.
    """

    def __init__(
        self,
        auth_url: str = "https://idp.example/authorize?client_id=vault",
        token: str = "s.test-token",
        auth_url_error: Optional[Exception] = None,
        exchange_error: Optional[Exception] = None,
    ) -> None:
        self.auth_url = auth_url
        self.token = token
        self.auth_url_error = auth_url_error
        self.exchange_error = exchange_error
        self.auth_url_calls: list[dict[str, Any]] = []
        self.exchange_calls: list[dict[str, Any]] = []

    def oidc_auth_url(
        self, mount: str, redirect_uri: str, role: Optional[str] = None
    ) -> str:
        self.auth_url_calls.append(
            {"mount": mount, "redirect_uri": redirect_uri, "role": role}
        )
        if self.auth_url_error is not None:
            raise self.auth_url_error
        return self.auth_url

    def oidc_callback(self, mount: str, state: str, nonce: str, code: str) -> AuthInfo:
        self.exchange_calls.append(
            {"mount": mount, "state": state, "nonce": nonce, "code": code}
        )
        if self.exchange_error is not None:
            raise self.exchange_error
        return AuthInfo(client_token=self.token, policies=["default"])

    # Lets the fake stand in for VaultClient in command tests.
    def __enter__(self) -> FakeBackend:
        return self

    def __exit__(self, *args: object) -> None:
        pass


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    """Factory for a :class:`FakeBackend` with custom responses or errors."""
    return FakeBackend


@pytest.fixture
def is_port_free() -> Callable[[int], bool]:
    return port_is_free
