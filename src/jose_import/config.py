"""Project configuration: ``config.toml`` and the webhook environment.

``config.toml`` is parsed with ``tomllib`` and written with ``tomli_w``.
Secrets are never stored in it; it only names the environment variables
that hold them.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

import tomli_w

from jose_import.models import AppConfig

CONFIG_FILE = "config.toml"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(root: Path) -> AppConfig:
    """Load ``config.toml`` from *root* and return an :class:`AppConfig`.

    Missing sections and keys fall back to the :class:`AppConfig` defaults.

    Args:
        root: Project root directory containing ``config.toml``.

    Returns:
        A fully-populated :class:`AppConfig` instance.

    Raises:
        FileNotFoundError: If ``config.toml`` does not exist.
    """
    data = _read_toml(root / CONFIG_FILE)
    defaults = AppConfig()

    general = data.get("general", {})
    llm = data.get("llm", {})
    webhook = data.get("webhook", {})

    return AppConfig(
        data_file=general.get("data_file", defaults.data_file),
        default_user=general.get("default_user", defaults.default_user),
        llm_provider=llm.get("provider", defaults.llm_provider),
        llm_model=llm.get("model", defaults.llm_model),
        llm_api_key_env=llm.get("api_key_env", defaults.llm_api_key_env),
        llm_timeout=float(llm.get("timeout", defaults.llm_timeout)),
        webhook_secret_env=webhook.get("secret_env", defaults.webhook_secret_env),
        webhook_user_id_env=webhook.get("user_id_env", defaults.webhook_user_id_env),
    )


def save_config(root: Path, config: AppConfig) -> Path:
    """Write *config* to ``config.toml`` under *root*, replacing the file.

    Returns:
        Path to the written file.
    """
    payload = {
        "general": {
            "data_file": config.data_file,
            "default_user": config.default_user,
        },
        "llm": {
            "provider": config.llm_provider,
            "model": config.llm_model,
            "api_key_env": config.llm_api_key_env,
            "timeout": config.llm_timeout,
        },
        "webhook": {
            "secret_env": config.webhook_secret_env,
            "user_id_env": config.webhook_user_id_env,
        },
    }
    path = root / CONFIG_FILE
    path.write_text(tomli_w.dumps(payload), encoding="utf-8")
    return path


def initialize(target_dir: Path, default_user: str = "") -> Path:
    """Create *target_dir* and a default ``config.toml`` inside it.

    Idempotent: an existing ``config.toml`` is **not** overwritten.

    Args:
        target_dir: The directory in which to create the project.
        default_user: User id the CLI falls back to when ``--user`` is
            omitted.

    Returns:
        Path to ``config.toml``.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / CONFIG_FILE
    if not path.exists():
        save_config(target_dir, AppConfig(default_user=default_user))
    return path


def webhook_settings(config: AppConfig) -> tuple[str, str]:
    """Read the webhook secret and target user id from the environment.

    Returns:
        ``(secret, user_id)``; either may be an empty string when unset.
    """
    return (
        os.environ.get(config.webhook_secret_env, ""),
        os.environ.get(config.webhook_user_id_env, ""),
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_toml(path: Path) -> dict:
    """Read and parse a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)
