"""Tests for jose_import.config -- loading, saving, and initialization."""

from pathlib import Path
from unittest.mock import patch

import pytest

from jose_import.config import initialize, load_config, save_config, webhook_settings
from jose_import.models import AppConfig


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for loading config.toml into an AppConfig."""

    def test_loads_default_config(self, tmp_path: Path):
        """Default config.toml produced by initialize() is loadable."""
        initialize(tmp_path)
        config = load_config(tmp_path)

        assert config == AppConfig()

    def test_custom_config(self, tmp_path: Path):
        """A hand-crafted config.toml loads with the correct values."""
        (tmp_path / "config.toml").write_text(
            """\
[general]
data_file = "dados/jose.json"
default_user = "ana"

[llm]
provider = "none"
timeout = 5

[webhook]
secret_env = "JOSE_SECRET"
""",
            encoding="utf-8",
        )
        config = load_config(tmp_path)

        assert config.data_file == "dados/jose.json"
        assert config.default_user == "ana"
        assert config.llm_provider == "none"
        assert config.llm_timeout == 5.0
        assert config.webhook_secret_env == "JOSE_SECRET"
        # Missing keys keep their defaults
        assert config.llm_model == "gemini-2.5-flash"
        assert config.webhook_user_id_env == "WEBHOOK_USER_ID"

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        (tmp_path / "config.toml").write_text("", encoding="utf-8")
        assert load_config(tmp_path) == AppConfig()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)


# ---------------------------------------------------------------------------
# save_config / initialize
# ---------------------------------------------------------------------------


class TestSaveConfig:
    def test_round_trip(self, tmp_path: Path):
        config = AppConfig(default_user="ana", llm_provider="none", llm_timeout=12.5)
        save_config(tmp_path, config)
        assert load_config(tmp_path) == config


class TestInitialize:
    def test_creates_directory_and_config(self, tmp_path: Path):
        target = tmp_path / "novo"
        path = initialize(target, default_user="ana")
        assert path == target / "config.toml"
        assert load_config(target).default_user == "ana"

    def test_does_not_overwrite(self, tmp_path: Path):
        initialize(tmp_path, default_user="ana")
        initialize(tmp_path, default_user="bia")
        assert load_config(tmp_path).default_user == "ana"


class TestWebhookSettings:
    def test_reads_named_variables(self):
        config = AppConfig(webhook_secret_env="S", webhook_user_id_env="U")
        with patch.dict("os.environ", {"S": "segredo", "U": "user-1"}):
            assert webhook_settings(config) == ("segredo", "user-1")

    def test_unset_is_empty(self):
        config = AppConfig(webhook_secret_env="S_UNSET", webhook_user_id_env="U_UNSET")
        with patch.dict("os.environ", {}, clear=True):
            assert webhook_settings(config) == ("", "")
