"""Config commands -- view and modify the saved settings.

Provides the ``vaultoidc config`` sub-command group for reading, updating
and resetting :class:`~vaultoidc.models.Settings`. Saved values are the
lowest-precedence defaults; environment variables and flags still win.
"""

from __future__ import annotations

import typer

from vaultoidc.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the saved settings.

    Example::

        vaultoidc config show
        vaultoidc --json config show
    """
    from vaultoidc.config import load_settings, settings_path
    from vaultoidc.exceptions import ConfigError

    try:
        settings = load_settings()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Settings file: {settings_path()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting name (e.g. 'address', 'role', 'port')."),
    value: str = typer.Argument(help="Value to set; 'none' clears an optional setting."),
) -> None:
    """Set a saved setting.

    The value is validated against :class:`~vaultoidc.models.Settings`
    before saving, so ``port`` must be an integer and ``verify_ssl`` a
    boolean.

    Raises:
        typer.Exit: With code 2 for an unknown key or an invalid value.

    Example::

        vaultoidc config set address https://vault.example.com:8200
        vaultoidc config set role dev
        vaultoidc config set port 8400
    """
    from vaultoidc.config import load_settings, save_settings
    from vaultoidc.exceptions import ConfigError
    from vaultoidc.models import Settings

    try:
        settings = load_settings()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    data = settings.model_dump(mode="json")
    if key not in data:
        error(f"Unknown setting: {key}")
        raise typer.Exit(code=2)

    data[key] = None if value.lower() in ("none", "null") else value

    try:
        new_settings = Settings.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_settings(new_settings)
    success(f"Set {key} = {getattr(new_settings, key)}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset saved settings to defaults.

    Example::

        vaultoidc config reset --force
    """
    from vaultoidc.config import save_settings
    from vaultoidc.models import Settings

    if not force:
        confirmed = typer.confirm("Reset all settings to defaults?", default=False)
        if not confirmed:
            info("Aborted.")
            raise typer.Exit()

    save_settings(Settings())
    success("Settings reset to defaults.")
