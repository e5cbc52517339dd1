"""Configuration Infrastructure"""

from .settings import Settings, ProviderConfig, LoggingConfig, load_settings

__all__ = ["Settings", "ProviderConfig", "LoggingConfig", "load_settings"]
