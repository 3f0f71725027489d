"""应用配置模块

从 JSON 配置文件加载应用级设置，配置文件路径可通过 APP_CONFIG_PATH 环境变量覆盖。
数据库路径单独由 DATABASE_PATH 环境变量控制（见 app.db.init_db）。
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List

DEFAULTS: Dict[str, Any] = {
    "owner_username": "me",
    "backup_filename_prefix": "stock-entries",
    "notice_dismiss_seconds": 5,
    "cors_origins": ["http://localhost:5173", "http://127.0.0.1:5173"],
}


class AppConfig:
    """应用配置类，负责加载配置文件并提供带默认值的读取接口"""

    def __init__(self, config_path: str = None):
        """初始化配置，延迟加载配置文件

        Args:
            config_path: 配置文件路径，为 None 时依次使用 APP_CONFIG_PATH 环境变量
                和 backend/app_config.json
        """
        if config_path is None:
            default_path = Path(__file__).parent.parent / "app_config.json"
            config_path = os.environ.get("APP_CONFIG_PATH", str(default_path))
        self.config_path = config_path
        self._loaded_config = None

    def _load_config(self) -> Dict[str, Any]:
        """加载配置文件

        配置文件不存在时使用默认值

        Returns:
            合并默认值后的配置字典

        Raises:
            ValueError: JSON 格式错误
        """
        if self._loaded_config is None:
            loaded: Dict[str, Any] = {}
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
            except FileNotFoundError:
                loaded = {}
            except json.JSONDecodeError as e:
                raise ValueError(f"配置文件 JSON 格式错误 ({self.config_path}): {e}") from e
            self._loaded_config = {**DEFAULTS, **loaded}

        return self._loaded_config

    def get(self, key: str) -> Any:
        return self._load_config().get(key, DEFAULTS.get(key))

    @property
    def owner_username(self) -> str:
        return str(self.get("owner_username"))

    @property
    def backup_filename_prefix(self) -> str:
        return str(self.get("backup_filename_prefix"))

    @property
    def notice_dismiss_seconds(self) -> int:
        """校验提示自动消失的秒数"""
        return int(self.get("notice_dismiss_seconds"))

    @property
    def cors_origins(self) -> List[str]:
        return list(self.get("cors_origins") or [])


# 全局配置实例
app_config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置的便捷函数"""
    return app_config
