"""Login command -- run the browser-based OIDC login against Vault.

Provides ``vaultoidc login``. The command requests an authorization URL,
prints it (and opens it in the browser unless ``--no-browser``), waits for
the provider to redirect back to the local listener, and prints the
resulting auth info on stdout.

Typical workflow::

    vaultoidc login --role dev
    export VAULT_TOKEN=$(vaultoidc login --role dev --token-only)

The token is printed, never stored.
"""

from __future__ import annotations

import threading
import webbrowser
from typing import Optional

import typer

from vaultoidc.output import (
    error,
    format_response,
    info,
    login_url,
    print_data,
    success,
    suggest,
    warning,
)


def _open_browser(url: str) -> threading.Thread:
    """Open *url* in a daemon thread so a slow browser launch never blocks the wait."""

    def _open() -> None:
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as exc:
            warning(f"Could not launch a browser ({exc}); open the URL above manually.")
            return
        if not opened:
            warning("No browser available; open the URL above manually.")

    thread = threading.Thread(target=_open, name="open-browser", daemon=True)
    thread.start()
    return thread


def login_command(
    mount: Optional[str] = typer.Option(
        None, "--mount", "-m", help="Mount path of the OIDC auth method [default: oidc]."
    ),
    role: Optional[str] = typer.Option(
        None, "--role", "-r", help="Vault role to log in with."
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        min=1,
        max=65535,
        help="Local redirect port; must match the role's allowed_redirect_uris [default: 8250].",
    ),
    address: Optional[str] = typer.Option(
        None, "--address", "-a", help="Vault server address (overrides VAULT_ADDR)."
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", help="Vault Enterprise namespace."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the URL without opening a browser."
    ),
    token_only: bool = typer.Option(
        False, "--token-only", help="Print only the client token on stdout."
    ),
) -> None:
    """Log in to Vault through an OIDC provider in your browser.

    Args:
        mount: Mount path override.
        role: Role override.
        port: Redirect port override.
        address: Vault address override.
        namespace: Namespace override.
        no_browser: Skip launching the browser.
        token_only: Print only ``client_token``.

    Raises:
        typer.Exit: With the failing error's exit code.

    Example::

        vaultoidc login --role dev --port 8250
    """
    from vaultoidc.client import VaultClient
    from vaultoidc.config import resolve_settings
    from vaultoidc.exceptions import ExchangeError, SetupError, VaultOIDCError
    from vaultoidc.login import OIDCLogin
    from vaultoidc.models import LoginConfig

    try:
        settings = resolve_settings(
            mount=mount, role=role, port=port, address=address, namespace=namespace
        )
        config = LoginConfig(port=settings.port, role=settings.role)

        with VaultClient(
            settings.address,
            namespace=settings.namespace,
            timeout=settings.timeout,
            verify_ssl=settings.verify_ssl,
        ) as client:
            with OIDCLogin(config).login(client, settings.mount) as pending:
                if no_browser:
                    info("Complete the login via your OIDC provider. Open this URL:")
                else:
                    info("Complete the login via your OIDC provider. Launching browser to:")
                login_url(pending.url)
                if not no_browser:
                    _open_browser(pending.url)
                info("Waiting for OIDC authentication to complete...")
                auth = pending.callback(client, settings.mount)
    except VaultOIDCError as exc:
        error(str(exc))
        if isinstance(exc, SetupError):
            suggest("Check the Vault address and that the redirect port is free.")
        elif isinstance(exc, ExchangeError):
            suggest("Authorization codes are single-use; run 'vaultoidc login' again.")
        raise typer.Exit(code=exc.exit_code) from None

    if token_only:
        print_data(auth.client_token)
        return

    success("Success! You are now authenticated.")
    format_response(auth.model_dump(mode="json"))
