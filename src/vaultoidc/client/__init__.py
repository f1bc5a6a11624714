"""Backend clients for vaultoidc.

Classes:
    :class:`LoginBackend` -- the interface the login handshake calls.
    :class:`VaultClient` -- :mod:`httpx` implementation for Vault's OIDC
    auth method.

Example::

    from vaultoidc.client import VaultClient

    with VaultClient("https://vault.example.com:8200") as client:
        url = client.oidc_auth_url("oidc", "http://localhost:8250/oidc/callback")
"""

from vaultoidc.client.base import LoginBackend
from vaultoidc.client.vault import VaultClient

__all__ = ["LoginBackend", "VaultClient"]
