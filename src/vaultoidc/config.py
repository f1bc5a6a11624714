"""Settings persistence with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for vaultoidc:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.vaultoidc/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Settings file** -- A single :class:`~vaultoidc.models.Settings` JSON
  file holding defaults (Vault address, mount, role, redirect port).
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, and the settings file into the effective
  configuration.

Tokens are never written here; the login prints them and forgets them.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from vaultoidc.exceptions import ConfigError
from vaultoidc.models import Settings

_APP_NAME = "vaultoidc"
_CONFIG_FILENAME = "config.json"

# Environment variable -> Settings field. VAULT_* names match the Vault CLI.
_ENV_FIELDS = {
    "VAULT_ADDR": "address",
    "VAULT_NAMESPACE": "namespace",
    "VAULT_SKIP_VERIFY": "verify_ssl",
    "VAULTOIDC_MOUNT": "mount",
    "VAULTOIDC_ROLE": "role",
    "VAULTOIDC_PORT": "port",
}

_TRUE_VALUES = ("1", "true", "yes", "on")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/vaultoidc/`` (default ``~/.config/vaultoidc/``).
    On macOS/Windows: ``~/.vaultoidc/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/vaultoidc/`` (default ``~/.local/share/vaultoidc/``).
    On macOS/Windows: ``~/.vaultoidc/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings file ---


def settings_path() -> Path:
    """Path to the settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load settings from the config directory.

    Returns:
        The deserialised :class:`~vaultoidc.models.Settings`, or defaults
        when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or invalid values.
    """
    path = settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist settings atomically to disk."""
    data = settings.model_dump(mode="json")
    _atomic_write(settings_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, field in _ENV_FIELDS.items():
        value = os.environ.get(var)
        if not value:
            continue
        if var == "VAULT_SKIP_VERIFY":
            overrides[field] = value.strip().lower() not in _TRUE_VALUES
        else:
            overrides[field] = value
    return overrides


def resolve_settings(**cli_overrides: Any) -> Settings:
    """Resolve the effective settings.

    Precedence (high to low):
        1. CLI flags (keyword arguments; ``None`` means "not given")
        2. Environment variables (``VAULT_ADDR``, ``VAULT_NAMESPACE``,
           ``VAULT_SKIP_VERIFY``, ``VAULTOIDC_MOUNT``, ``VAULTOIDC_ROLE``,
           ``VAULTOIDC_PORT``)
        3. Settings file (``~/.config/vaultoidc/config.json``)
        4. Defaults

    Args:
        **cli_overrides: Settings field names mapped to flag values.

    Returns:
        A validated :class:`~vaultoidc.models.Settings`.

    Raises:
        ConfigError: If a field name is unknown or a merged value is invalid.
    """
    unknown = set(cli_overrides) - set(Settings.model_fields)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

    data = load_settings().model_dump()
    data.update(_env_overrides())
    data.update({k: v for k, v in cli_overrides.items() if v is not None})

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
