"""OIDC browser login -- authorization URL, redirect capture, code exchange.

This module provides :class:`OIDCLogin`, the two-phase handshake used by the
Vault CLI's ``vault login -method=oidc``:

1. :meth:`OIDCLogin.login` asks the backend for the provider's
   authorization URL, starts a :class:`~vaultoidc.login.listener.RedirectListener`
   on the redirect port, and returns an :class:`OIDCCallback` immediately.
2. The caller shows :attr:`OIDCCallback.url` to the user.
3. :meth:`OIDCCallback.callback` blocks until the browser is redirected
   back, then exchanges the captured ``state``, ``nonce`` and ``code`` for a
   token.

Nothing is retried. An authorization code is single-use, so a failed
exchange means starting over from :meth:`OIDCLogin.login`.

See Also:
    :class:`vaultoidc.login.base.LoginMethod` for the base interface.
"""

from __future__ import annotations

import logging
import threading
import weakref
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from vaultoidc.client.base import LoginBackend
from vaultoidc.exceptions import CaptureError, HandshakeConsumedError
from vaultoidc.login.base import LoginCallback, LoginMethod
from vaultoidc.login.listener import RedirectListener
from vaultoidc.models import AuthInfo, CapturedParams, LoginConfig, RedirectTarget

logger = logging.getLogger(__name__)


class OIDCCallback(LoginCallback):
    """A pending OIDC handshake.

    Owns the redirect listener started by :meth:`OIDCLogin.login`. The
    captured parameters can be consumed once; call :meth:`cancel` (or use
    the instance as a context manager) to release the port if the handshake
    is abandoned. Dropping the last reference without either still stops the
    listener once the instance is garbage collected.

    Args:
        handle: Future resolved with the redirect's parameters.
        url: Authorization URL the user must visit.
        listener: The listener behind *handle*, stopped on :meth:`cancel`.
    """

    def __init__(
        self,
        handle: Future[CapturedParams],
        url: str,
        listener: Optional[RedirectListener] = None,
    ) -> None:
        self.handle = handle
        self.url = url
        self._listener = listener
        self._consumed = False
        self._lock = threading.Lock()
        if listener is not None:
            # Must not reference self, or the instance is never collected.
            weakref.finalize(self, listener.stop, False)

    def callback(
        self,
        client: LoginBackend,
        mount: str,
        timeout: Optional[float] = None,
    ) -> AuthInfo:
        """Wait for the browser redirect and exchange it for a token.

        Args:
            client: Backend that performs the code exchange.
            mount: Mount path of the OIDC auth method.
            timeout: Seconds to wait for the redirect. ``None`` (the default)
                waits until the redirect arrives or the handshake is
                cancelled.

        Returns:
            The backend's auth info for the new token.

        Raises:
            HandshakeConsumedError: If called a second time.
            CaptureError: If the listener failed, was cancelled, or no
                redirect arrived within *timeout*.
            ExchangeError: If the backend rejects the captured values
                (raised by the backend, passed through unchanged).
        """
        with self._lock:
            if self._consumed:
                raise HandshakeConsumedError(
                    "This OIDC login has already been completed; start a new login"
                )
            self._consumed = True

        try:
            params = self.handle.result(timeout=timeout)
        except CaptureError:
            raise
        except FutureTimeoutError as exc:
            raise CaptureError(
                f"No OIDC redirect received within {timeout:g} seconds"
            ) from exc
        except CancelledError as exc:
            raise CaptureError("OIDC login was cancelled") from exc
        except Exception as exc:
            raise CaptureError(f"OIDC redirect listener failed: {exc}") from exc
        finally:
            self.cancel()

        logger.debug("Exchanging OIDC authorization code on mount '%s'", mount)
        return client.oidc_callback(mount, params.state, params.nonce, params.code)

    def cancel(self) -> None:
        """Stop the redirect listener and release its port."""
        if self._listener is not None:
            self._listener.stop()

    def __enter__(self) -> OIDCCallback:
        return self


class OIDCLogin(LoginMethod):
    """Log in through an OIDC provider in the user's browser.

    Args:
        config: Redirect port and backend role. Defaults to port 8250 and
            the backend's default role.

    Example::

        pending = OIDCLogin(LoginConfig(role="dev")).login(client, "oidc")
        print(f"Complete the login at {pending.url}")
        auth = pending.callback(client, "oidc")
    """

    def __init__(self, config: Optional[LoginConfig] = None) -> None:
        self.config = config or LoginConfig()

    @property
    def method(self) -> str:
        return "oidc"

    def login(self, client: LoginBackend, mount: str) -> OIDCCallback:
        """Request an authorization URL and start listening for the redirect.

        The authorization URL is requested before the port is bound, so a
        backend failure leaves no listener behind. Returns as soon as the
        listener is running.

        Args:
            client: Backend that issues the authorization URL.
            mount: Mount path of the OIDC auth method.

        Returns:
            The pending :class:`OIDCCallback`.

        Raises:
            SetupError: If the redirect port cannot be bound.
            AuthURLError: If the backend refuses the request (raised by the
                backend, passed through unchanged).
        """
        target = RedirectTarget.for_config(self.config)
        logger.debug("Requesting OIDC authorization URL with redirect %s", target.url)
        auth_url = client.oidc_auth_url(mount, target.url, self.config.role)

        listener = RedirectListener(target.bind_address, target.base_url)
        handle = listener.start()
        return OIDCCallback(handle=handle, url=auth_url, listener=listener)
