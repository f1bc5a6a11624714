"""Backend interface the login handshake talks to.

:class:`LoginBackend` names the two operations an OIDC login needs from the
secrets backend. The handshake never inspects the wire format; it only
calls these methods and lets their exceptions through unchanged.

See Also:
    :class:`vaultoidc.client.vault.VaultClient` for the HTTP implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from vaultoidc.models import AuthInfo


class LoginBackend(ABC):
    """The backend side of an OIDC login."""

    @abstractmethod
    def oidc_auth_url(
        self,
        mount: str,
        redirect_uri: str,
        role: Optional[str] = None,
    ) -> str:
        """Return the provider authorization URL the user must visit.

        Args:
            mount: Mount path of the OIDC auth method.
            redirect_uri: Where the provider should send the browser back.
            role: Backend role, or ``None`` for the backend's default.

        Raises:
            AuthURLError: If the backend refuses or cannot be reached.
        """
        ...

    @abstractmethod
    def oidc_callback(
        self,
        mount: str,
        state: str,
        nonce: str,
        code: str,
    ) -> AuthInfo:
        """Exchange the values captured from the redirect for a token.

        Raises:
            ExchangeError: If the backend rejects them or cannot be reached.
        """
        ...
