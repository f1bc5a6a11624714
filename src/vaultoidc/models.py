"""Canonical Pydantic models shared across all vaultoidc modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Handshake models** -- values that flow through one OIDC login:
    :class:`LoginConfig`, :class:`RedirectTarget`, :class:`CapturedParams`.

**Backend models** -- shapes returned by the secrets backend:
    :class:`AuthURLResponse` and :class:`AuthInfo`.

**Settings** -- user defaults persisted as JSON in the config directory:
    :class:`Settings`.

Handshake models are frozen: a login configuration or a captured redirect
never changes after it is created.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PORT = 8250
"""Port used by the Vault CLI for its OIDC redirect listener."""

DEFAULT_MOUNT = "oidc"
"""Default mount path of the OIDC auth method."""

CALLBACK_PATH = "/oidc/callback"
"""Path component of the redirect URL registered with the provider."""

BIND_HOST = "127.0.0.1"
"""Loopback address the redirect listener binds to."""

REDIRECT_HOST = "localhost"
"""Hostname used in the redirect URL sent to the backend."""


# --- Handshake ---


class LoginConfig(BaseModel):
    """Caller-supplied options for one OIDC login.

    Example::

        LoginConfig()                       # port 8250, backend default role
        LoginConfig(port=8400, role="dev")
    """

    model_config = ConfigDict(frozen=True)

    port: Optional[int] = Field(
        default=None,
        ge=1,
        le=65535,
        description="Local redirect port; must match the provider's registered redirect URI",
    )
    role: Optional[str] = Field(
        default=None, description="Backend role; the backend's default role when unset"
    )

    @property
    def effective_port(self) -> int:
        """The configured port, or :data:`DEFAULT_PORT`."""
        return self.port or DEFAULT_PORT


class RedirectTarget(BaseModel):
    """Where the authorization server sends the browser back to.

    The redirect URL uses ``localhost`` while the listener binds
    ``127.0.0.1``. Authorization servers commonly allow-list the
    ``localhost`` form, and the Vault CLI registers exactly
    ``http://localhost:8250/oidc/callback``, so the two are kept apart.
    """

    model_config = ConfigDict(frozen=True)

    scheme: str = "http"
    host: str = REDIRECT_HOST
    port: int = DEFAULT_PORT
    path: str = CALLBACK_PATH

    @classmethod
    def for_config(cls, config: LoginConfig) -> RedirectTarget:
        return cls(port=config.effective_port)

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def url(self) -> str:
        """Full redirect URL passed to the backend."""
        return f"{self.base_url}{self.path}"

    @property
    def bind_address(self) -> tuple[str, int]:
        return (BIND_HOST, self.port)


class CapturedParams(BaseModel):
    """The three values the authorization server appends to the redirect.

    Missing values are empty strings, never an error: providers differ in
    which of them they send (``nonce`` in particular is optional).
    """

    model_config = ConfigDict(frozen=True)

    code: str = ""
    nonce: str = ""
    state: str = ""


# --- Backend ---


class AuthURLResponse(BaseModel):
    """The ``data`` block of the backend's authorization URL response."""

    model_config = ConfigDict(extra="allow")

    auth_url: str = ""


class AuthInfo(BaseModel):
    """The ``auth`` block returned by a successful token exchange.

    Fields not declared here are preserved in ``model_extra`` so newer
    backends do not break parsing.
    """

    model_config = ConfigDict(extra="allow")

    client_token: str
    accessor: str = ""
    policies: list[str] = Field(default_factory=list)
    token_policies: list[str] = Field(default_factory=list)
    identity_policies: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    lease_duration: int = 0
    renewable: bool = False
    entity_id: str = ""
    token_type: str = ""
    orphan: bool = False


# --- Settings ---


class Settings(BaseModel):
    """User-wide defaults persisted at ``~/.config/vaultoidc/config.json``.

    Loaded and saved by :func:`~vaultoidc.config.load_settings` and
    :func:`~vaultoidc.config.save_settings`. Fields here have the lowest
    precedence; see :func:`~vaultoidc.config.resolve_settings` for the
    full chain.
    """

    address: str = Field(
        default="https://127.0.0.1:8200", description="Base URL of the Vault server"
    )
    namespace: Optional[str] = Field(
        default=None, description="Vault Enterprise namespace"
    )
    mount: str = Field(default=DEFAULT_MOUNT, description="Mount path of the OIDC auth method")
    role: Optional[str] = Field(default=None, description="Default OIDC role")
    port: int = Field(
        default=DEFAULT_PORT, ge=1, le=65535, description="Local redirect listener port"
    )
    timeout: int = Field(default=30, ge=1, description="Backend request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify the backend's TLS certificate")
