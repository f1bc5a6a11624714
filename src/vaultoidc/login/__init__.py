"""Interactive login methods.

Exports:
    :class:`LoginMethod`, :class:`LoginCallback` -- the two-phase interface.
    :class:`OIDCLogin`, :class:`OIDCCallback` -- browser-based OIDC login.
    :class:`RedirectListener` -- the one-shot loopback listener it uses.
"""

from vaultoidc.login.base import LoginCallback, LoginMethod
from vaultoidc.login.listener import RedirectListener
from vaultoidc.login.oidc import OIDCCallback, OIDCLogin

__all__ = [
    "LoginCallback",
    "LoginMethod",
    "OIDCCallback",
    "OIDCLogin",
    "RedirectListener",
]
