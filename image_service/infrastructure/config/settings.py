"""Configuration Management - Infrastructure Layer"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ...domain.errors import ConfigurationError

CONFIG_PATH_ENV = "IMAGE_SERVICE_CONFIG"


@dataclass
class ProviderConfig:
    """图像提供商配置"""
    api_key: str = ""
    base_url: str = ""
    enabled: bool = True
    default_model: Optional[str] = None
    priority: Optional[int] = None
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    """日志配置"""
    level: str = "INFO"
    format: str = "text"


@dataclass
class Settings:
    """应用配置"""
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    external_providers: List[str] = field(default_factory=list)

    def provider(self, name: str) -> ProviderConfig:
        """按名称获取提供商配置（不区分大小写），缺失时返回默认值"""
        wanted = name.lower()
        for key, config in self.providers.items():
            if key.lower() == wanted:
                return config
        return ProviderConfig()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """加载配置

        Args:
            config_path: 配置文件路径（可选）

        Returns:
            配置对象

        Raises:
            ConfigurationError: YAML 无法解析
        """
        # 1. 确定配置文件路径
        if config_path is None:
            env_path = os.getenv(CONFIG_PATH_ENV)
            if env_path:
                config_path = Path(env_path)
            else:
                # 默认路径：项目根目录/config/config.yaml
                project_root = Path(__file__).parent.parent.parent.parent
                config_path = project_root / "config" / "config.yaml"

        # 2. 加载 YAML 配置
        config_data: Dict[str, Any] = {}
        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid configuration file {config_path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")

        # 3. 解析提供商配置（支持环境变量覆盖）
        providers = {}
        providers_data = config_data.get("providers") or {}
        for provider_name, provider_data in providers_data.items():
            provider_data = provider_data or {}
            api_key_env = f"{provider_name.upper()}_API_KEY"
            api_key = os.getenv(api_key_env, provider_data.get("api_key", ""))

            providers[provider_name] = ProviderConfig(
                api_key=api_key or "",
                base_url=provider_data.get("base_url", ""),
                enabled=provider_data.get("enabled", True),
                default_model=provider_data.get("default_model"),
                priority=provider_data.get("priority"),
                options=provider_data.get("options") or {},
            )

        # 4. 解析日志配置
        logging_data = config_data.get("logging") or {}
        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_data.get("level", "INFO")),
            format=logging_data.get("format", "text"),
        )

        return cls(
            providers=providers,
            logging=logging_config,
            external_providers=list(config_data.get("external_providers") or []),
        )


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """加载配置的便捷函数"""
    return Settings.load(config_path)
