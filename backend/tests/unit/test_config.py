"""
应用配置单元测试
"""

import json

import pytest

from app.config import DEFAULTS, AppConfig


class TestAppConfig:
    """测试 AppConfig"""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = AppConfig(config_path=str(tmp_path / "missing.json"))

        assert config.owner_username == "me"
        assert config.backup_filename_prefix == "stock-entries"
        assert config.notice_dismiss_seconds == 5
        assert config.cors_origins == DEFAULTS["cors_origins"]

    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "app_config.json"
        path.write_text(json.dumps({"owner_username": "trader", "notice_dismiss_seconds": 8}), encoding="utf-8")

        config = AppConfig(config_path=str(path))

        assert config.owner_username == "trader"
        assert config.notice_dismiss_seconds == 8
        assert config.backup_filename_prefix == "stock-entries"

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"backup_filename_prefix": "journal"}), encoding="utf-8")
        monkeypatch.setenv("APP_CONFIG_PATH", str(path))

        assert AppConfig().backup_filename_prefix == "journal"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError):
            AppConfig(config_path=str(path)).owner_username
