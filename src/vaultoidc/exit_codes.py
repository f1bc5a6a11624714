"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure class of the login handshake and is
referenced by the corresponding :class:`~vaultoidc.exceptions.VaultOIDCError`
subclass. Shell wrappers can inspect the exit code to decide whether a fresh
login attempt makes sense without parsing stderr.

Example::

    $ vaultoidc login --role dev
    $ echo $?
    3   # EXIT_EXCHANGE_FAILURE -- the backend rejected the authorization code
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or configuration."""

EXIT_EXCHANGE_FAILURE = 3
"""The backend rejected the captured code, state or nonce."""

EXIT_SETUP_FAILURE = 4
"""The handshake could not start (port in use, authorization URL request failed)."""

EXIT_CAPTURE_FAILURE = 5
"""The redirect listener failed or was cancelled before a redirect arrived."""

EXIT_BACKEND_ERROR = 6
"""The backend returned an error outside the handshake endpoints."""

EXIT_CANCELLED = 130
"""The user interrupted the command (Ctrl-C)."""
