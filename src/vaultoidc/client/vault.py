"""HTTP client for Vault's OIDC auth endpoints.

This module provides :class:`VaultClient`, a :class:`~vaultoidc.client.base.LoginBackend`
backed by :class:`httpx.Client`. It speaks the two endpoints the OIDC login
needs:

* ``POST /v1/auth/{mount}/oidc/auth_url`` -- returns ``data.auth_url``.
* ``GET /v1/auth/{mount}/oidc/callback`` -- exchanges ``state``, ``nonce``
  and ``code`` for the ``auth`` block of a new token.

Requests are never retried. A second attempt at the callback endpoint with
the same code can only fail, and the authorization URL request is cheap for
the user to repeat.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from vaultoidc.client.base import LoginBackend
from vaultoidc.exceptions import ApiError, AuthURLError, ExchangeError
from vaultoidc.models import AuthInfo, AuthURLResponse

logger = logging.getLogger(__name__)


class VaultClient(LoginBackend):
    """Synchronous client for the Vault OIDC auth method.

    Must be used as a context manager so the underlying connection pool is
    closed.

    Args:
        address: Base URL of the Vault server (``https://vault:8200``).
        token: Optional token sent as ``X-Vault-Token``. Not needed to log in.
        namespace: Optional Vault Enterprise namespace.
        timeout: Request timeout in seconds.
        verify_ssl: Verify the server's TLS certificate.
        transport: Optional httpx transport, mainly for tests.

    Example::

        with VaultClient("https://vault.example.com:8200") as client:
            url = client.oidc_auth_url("oidc", "http://localhost:8250/oidc/callback")
    """

    def __init__(
        self,
        address: str,
        token: Optional[str] = None,
        namespace: Optional[str] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._address = address.rstrip("/")
        self._token = token
        self._namespace = namespace
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> VaultClient:
        self._client = httpx.Client(
            base_url=self._address,
            headers=self._default_headers(),
            timeout=self._timeout,
            verify=self._verify_ssl,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    @property
    def address(self) -> str:
        return self._address

    # ------------------------------------------------------------------ #
    # OIDC endpoints
    # ------------------------------------------------------------------ #

    def oidc_auth_url(
        self,
        mount: str,
        redirect_uri: str,
        role: Optional[str] = None,
    ) -> str:
        """Request the provider authorization URL for *redirect_uri*.

        Args:
            mount: Mount path of the OIDC auth method (e.g. ``oidc``).
            redirect_uri: Redirect URL registered with the provider.
            role: Vault role; omitted from the request when ``None``.

        Returns:
            The authorization URL.

        Raises:
            AuthURLError: On HTTP errors, transport failures, a malformed
                response, or an empty ``auth_url`` (Vault's answer when
                *redirect_uri* is not in the role's allowed redirect URIs).
        """
        payload: dict[str, Any] = {"redirect_uri": redirect_uri}
        if role:
            payload["role"] = role

        body = self._request(
            "POST",
            f"/v1/auth/{_clean_mount(mount)}/oidc/auth_url",
            AuthURLError,
            json=payload,
        )
        try:
            data = AuthURLResponse.model_validate(body.get("data") or {})
        except ValidationError as exc:
            raise AuthURLError(f"Malformed authorization URL response: {exc}") from exc

        if not data.auth_url:
            raise AuthURLError(
                f"Vault returned no authorization URL; check that {redirect_uri} "
                "is in the role's allowed_redirect_uris"
            )
        return data.auth_url

    def oidc_callback(
        self,
        mount: str,
        state: str,
        nonce: str,
        code: str,
    ) -> AuthInfo:
        """Exchange the captured redirect values for a token.

        Args:
            mount: Mount path of the OIDC auth method.
            state: ``state`` from the redirect.
            nonce: ``nonce`` from the redirect (may be empty).
            code: ``code`` from the redirect.

        Returns:
            The ``auth`` block of the response.

        Raises:
            ExchangeError: On HTTP errors, transport failures, or a response
                without an ``auth`` block.
        """
        body = self._request(
            "GET",
            f"/v1/auth/{_clean_mount(mount)}/oidc/callback",
            ExchangeError,
            params={"state": state, "nonce": nonce, "code": code},
        )
        auth = body.get("auth")
        if not isinstance(auth, dict):
            raise ExchangeError("Vault response to the OIDC callback has no 'auth' block")
        try:
            return AuthInfo.model_validate(auth)
        except ValidationError as exc:
            raise ExchangeError(f"Malformed auth block in OIDC callback response: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _default_headers(self) -> dict[str, str]:
        headers = {"X-Vault-Request": "true", "Accept": "application/json"}
        if self._namespace:
            headers["X-Vault-Namespace"] = self._namespace
        if self._token:
            headers["X-Vault-Token"] = self._token
        return headers

    def _request(
        self,
        method: str,
        path: str,
        error_cls: type[ApiError],
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Every failure is raised as *error_cls* so callers see the error
        category of the endpoint they called.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        logger.debug("%s %s%s", method, self._address, path)
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise error_cls(f"Cannot reach Vault at {self._address}: {exc}") from exc

        if response.status_code >= 400:
            errors = _extract_errors(response)
            detail = "; ".join(errors) if errors else response.reason_phrase
            raise error_cls(
                f"HTTP {response.status_code} from {path}: {detail}",
                status_code=response.status_code,
                errors=errors,
            )

        if response.status_code == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            raise error_cls(f"Invalid JSON from {path}: {exc}") from exc
        if not isinstance(body, dict):
            raise error_cls(f"Unexpected response from {path}: expected a JSON object")
        return body


def _clean_mount(mount: str) -> str:
    return mount.strip("/")


def _extract_errors(response: httpx.Response) -> list[str]:
    """Return Vault's ``errors`` list from an error response, if any."""
    try:
        detail = response.json()
    except ValueError:
        text = response.text.strip()
        return [text[:200]] if text else []
    if isinstance(detail, dict) and isinstance(detail.get("errors"), list):
        return [str(e) for e in detail["errors"]]
    return []
