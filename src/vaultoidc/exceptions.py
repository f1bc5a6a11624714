"""Exception hierarchy for vaultoidc.

All exceptions inherit from :class:`VaultOIDCError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`vaultoidc.exit_codes`.
The top-level error handler in :func:`vaultoidc.app.main` catches
``VaultOIDCError`` and exits with the appropriate code.

None of these are retried internally. Every failure ends the handshake and
the caller decides whether to start over from ``login``.

Subclass hierarchy::

    VaultOIDCError                (exit 1)
    +-- ConfigError               (exit 2)
    +-- SetupError                (exit 4)
    |   +-- AuthURLError          (exit 4, also an ApiError)
    +-- CaptureError              (exit 5)
    |   +-- HandshakeConsumedError
    +-- ApiError                  (exit 6)
        +-- AuthURLError
        +-- ExchangeError         (exit 3)
"""

from __future__ import annotations

from typing import Optional

from vaultoidc.exit_codes import (
    EXIT_BACKEND_ERROR,
    EXIT_CAPTURE_FAILURE,
    EXIT_EXCHANGE_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SETUP_FAILURE,
)


class VaultOIDCError(Exception):
    """Base exception for all vaultoidc errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(VaultOIDCError):
    """Raised for configuration problems (invalid JSON, bad values, unknown keys)."""

    exit_code = EXIT_INVALID_USAGE


class SetupError(VaultOIDCError):
    """Raised synchronously from ``login`` when the handshake cannot start.

    When this is raised no listening socket is left behind.
    """

    exit_code = EXIT_SETUP_FAILURE


class CaptureError(VaultOIDCError):
    """Raised from ``callback`` when no redirect was captured.

    Covers a crashed listener thread and a handshake cancelled before the
    browser came back.
    """

    exit_code = EXIT_CAPTURE_FAILURE


class HandshakeConsumedError(CaptureError):
    """Raised when ``callback`` is invoked a second time on the same handshake."""


class ApiError(VaultOIDCError):
    """Raised when the backend answers with an error or cannot be reached.

    Args:
        message: Human-readable error description.
        status_code: HTTP status returned by the backend, ``None`` for
            transport failures.
        errors: The backend's own error strings, verbatim.
    """

    exit_code = EXIT_BACKEND_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[list[str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []


class AuthURLError(ApiError, SetupError):
    """Raised when the backend refuses to produce an authorization URL."""

    exit_code = EXIT_SETUP_FAILURE


class ExchangeError(ApiError):
    """Raised when the backend rejects the captured code, state or nonce.

    OIDC authorization codes are single-use, so this is never retried.
    """

    exit_code = EXIT_EXCHANGE_FAILURE
