"""Built-in CLI commands for vaultoidc.

Modules:
    login: ``vaultoidc login`` -- the browser-based OIDC login.
    config: ``vaultoidc config`` -- view and modify saved settings.
"""
