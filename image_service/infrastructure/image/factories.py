"""Built-in Provider Factories - Infrastructure Layer"""

import logging
import os
from typing import Any, Optional

from ...domain.errors import ConfigurationError
from ...domain.entity.provider import ProviderMetadata, ProviderRequirements
from ...domain.repository.image_provider import ImageProvider
from ...domain.repository.provider_factory import ProviderFactory
from .google_image_provider import GOOGLE_CAPABILITIES, GoogleImageProvider
from .mock_image_provider import MOCK_CAPABILITIES, MockImageProvider
from .openai_image_provider import OPENAI_CAPABILITIES, OpenAIImageProvider

logger = logging.getLogger(__name__)


class _ApiKeyProviderFactory(ProviderFactory):
    """需要 API Key 的提供商工厂公共逻辑

    The key comes from ``providers.<config_key>.api_key`` in the settings
    or, failing that, from ``env_var``.
    """

    config_key = ""
    env_var = ""

    def __init__(self, metadata: ProviderMetadata):
        self._metadata = metadata

    @property
    def name(self) -> str:
        return self._metadata.name

    def get_metadata(self) -> ProviderMetadata:
        return self._metadata

    def can_create(self, context: Any) -> bool:
        try:
            return bool(self._api_key(context))
        except Exception as e:
            logger.debug(f"Availability check for '{self.name}' failed: {e}")
            return False

    def _provider_config(self, context: Any):
        if context is None or not hasattr(context, "provider"):
            return None
        return context.provider(self.config_key)

    def _api_key(self, context: Any) -> str:
        config = self._provider_config(context)
        if config is not None and not config.enabled:
            return ""
        configured = config.api_key if config is not None else ""
        return configured or os.getenv(self.env_var, "")

    def _require_api_key(self, context: Any) -> str:
        api_key = self._api_key(context)
        if not api_key:
            raise ConfigurationError(
                f"{self.name} API key not found. Set {self.env_var} environment variable "
                f"or providers.{self.config_key}.api_key in configuration."
            )
        return api_key


class OpenAIProviderFactory(_ApiKeyProviderFactory):
    """OpenAI 提供商工厂"""

    config_key = "openai"
    env_var = "OPENAI_API_KEY"

    def __init__(self, priority: Optional[int] = None):
        super().__init__(ProviderMetadata(
            name="OpenAI",
            description="OpenAI image generation provider supporting DALL-E 3, DALL-E 2 and GPT Image models",
            capabilities=OPENAI_CAPABILITIES,
            requirements=ProviderRequirements(
                required_environment_variables=(self.env_var,),
                required_dependencies=("openai",),
                optional_dependencies=("httpx",),
            ),
            priority=100 if priority is None else priority,
        ))

    def create(self, context: Any) -> ImageProvider:
        api_key = self._require_api_key(context)
        config = self._provider_config(context)
        return OpenAIImageProvider(
            api_key=api_key,
            base_url=config.base_url if config is not None else None,
            default_model=config.default_model if config is not None else None,
        )


class GoogleProviderFactory(_ApiKeyProviderFactory):
    """Google Imagen 提供商工厂"""

    config_key = "google"
    env_var = "GOOGLE_API_KEY"

    def __init__(self, priority: Optional[int] = None):
        super().__init__(ProviderMetadata(
            name="Google",
            description="Google image generation provider supporting Imagen 3 and Imagen 2 models",
            capabilities=GOOGLE_CAPABILITIES,
            requirements=ProviderRequirements(
                required_environment_variables=(self.env_var,),
                required_dependencies=("httpx",),
            ),
            priority=90 if priority is None else priority,
        ))

    def create(self, context: Any) -> ImageProvider:
        api_key = self._require_api_key(context)
        config = self._provider_config(context)
        return GoogleImageProvider(
            api_key=api_key,
            base_url=config.base_url if config is not None else None,
            default_model=config.default_model if config is not None else None,
        )


class MockProviderFactory(ProviderFactory):
    """模拟提供商工厂，仅在配置中显式启用时可用"""

    def __init__(self, priority: Optional[int] = None):
        self._metadata = ProviderMetadata(
            name="Mock",
            description="Deterministic in-process provider for tests and local development",
            capabilities=MOCK_CAPABILITIES,
            requirements=ProviderRequirements(required_configuration_sections=("providers.mock",)),
            priority=10 if priority is None else priority,
        )

    @property
    def name(self) -> str:
        return self._metadata.name

    def get_metadata(self) -> ProviderMetadata:
        return self._metadata

    def can_create(self, context: Any) -> bool:
        try:
            providers = getattr(context, "providers", None) or {}
            return any(key.lower() == "mock" and cfg.enabled for key, cfg in providers.items())
        except Exception:
            return False

    def create(self, context: Any) -> ImageProvider:
        if not self.can_create(context):
            raise ConfigurationError("Mock provider is not enabled in configuration")
        return MockImageProvider()
