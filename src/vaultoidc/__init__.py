"""vaultoidc -- Interactive OpenID Connect login for Vault-style secrets backends.

The package performs the browser-based OIDC handshake a secrets-management
client needs before it can talk to the backend: it asks the backend for a
provider authorization URL, listens on a local loopback port for the OAuth2
redirect, and exchanges the captured ``code`` / ``state`` / ``nonce`` for a
token.

Typical library usage::

    from vaultoidc import LoginConfig, OIDCLogin, VaultClient

    with VaultClient("https://vault.example.com:8200") as client:
        with OIDCLogin(LoginConfig(role="dev")).login(client, "oidc") as pending:
            print(f"Visit {pending.url}")
            auth = pending.callback(client, "oidc")

Modules:
    app: Typer application and console-script entry point.
    login: The two-phase handshake and its redirect listener.
    client: Backend interface and the httpx-based Vault client.
    models: Pydantic models shared across the package.
    config: XDG-aware settings persistence and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"

from vaultoidc.client import LoginBackend, VaultClient  # noqa: E402
from vaultoidc.login import OIDCCallback, OIDCLogin  # noqa: E402
from vaultoidc.models import AuthInfo, CapturedParams, LoginConfig  # noqa: E402

__all__ = [
    "__version__",
    "AuthInfo",
    "CapturedParams",
    "LoginBackend",
    "LoginConfig",
    "OIDCCallback",
    "OIDCLogin",
    "VaultClient",
]
