"""Abstract base classes for two-phase login methods.

Interactive logins cannot finish in a single call: the user has to do
something (visit a URL, approve a push) between starting the login and
receiving a token. The two types here split that into phases:

- :class:`LoginMethod` -- configuration plus :meth:`~LoginMethod.login`,
  which starts the flow and returns a pending :class:`LoginCallback`
  without blocking.
- :class:`LoginCallback` -- what the caller shows the user
  (:attr:`~LoginCallback.url`) and :meth:`~LoginCallback.callback`, which
  blocks until the flow completes and returns the backend's
  :class:`~vaultoidc.models.AuthInfo`.

Callbacks are context managers: leaving the ``with`` block abandons a flow
that was never completed and releases whatever it holds.

See Also:
    :mod:`vaultoidc.login.oidc` for the OIDC implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from vaultoidc.client.base import LoginBackend
from vaultoidc.models import AuthInfo


class LoginCallback(ABC):
    """A login that has been started and is waiting for the user.

    Attributes:
        url: What the user must visit to continue the login.
    """

    url: str

    @abstractmethod
    def callback(
        self,
        client: LoginBackend,
        mount: str,
        timeout: Optional[float] = None,
    ) -> AuthInfo:
        """Wait for the user to finish and exchange the result for a token.

        Args:
            client: Backend used to complete the login.
            mount: Mount path of the auth method on the backend.
            timeout: Seconds to wait for the user, or ``None`` to wait
                until the login completes or is cancelled.

        Returns:
            The backend's auth info for the new token.
        """
        ...

    def cancel(self) -> None:
        """Abandon the login and release any held resources.

        The default implementation holds nothing and does nothing.
        """

    def __enter__(self) -> LoginCallback:
        return self

    def __exit__(self, *args: Any) -> None:
        self.cancel()


class LoginMethod(ABC):
    """A login mechanism that needs user interaction between two calls."""

    @property
    @abstractmethod
    def method(self) -> str:
        """Return the auth method name (e.g. ``"oidc"``)."""
        ...

    @abstractmethod
    def login(self, client: LoginBackend, mount: str) -> LoginCallback:
        """Start the login and return without waiting for the user.

        Args:
            client: Backend used to start the login.
            mount: Mount path of the auth method on the backend.

        Returns:
            The pending callback.
        """
        ...
