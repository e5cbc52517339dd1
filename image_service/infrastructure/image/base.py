"""Image Provider Base - Infrastructure Layer"""

import logging
from abc import abstractmethod
from typing import List, Optional

from ...domain.entity.image import (
    CanonicalRequest,
    ImageGenerationResponse,
    ImageOperation,
    MessageRole,
)
from ...domain.entity.provider import ProviderCapabilities
from ...domain.repository.image_provider import ImageProvider

logger = logging.getLogger(__name__)


class UnsupportedOperationError(NotImplementedError):
    """提供商不支持该操作"""
    pass


class ImageProviderBase(ImageProvider):
    """图像提供商公共实现

    Subclasses implement ``generate_image`` and override the other
    operations they declare in their capabilities.
    """

    def __init__(self, capabilities: ProviderCapabilities):
        self._capabilities = capabilities

    def get_capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    def supports_operation(self, operation: ImageOperation) -> bool:
        return self._capabilities.supports(operation)

    @abstractmethod
    async def generate_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        pass

    async def generate_image_from_conversation(
        self, request: CanonicalRequest
    ) -> ImageGenerationResponse:
        """默认实现：把对话压平成单条提示词后走普通生成"""
        flattened = CanonicalRequest(
            operation=ImageOperation.GENERATE,
            prompt=flatten_conversation(request),
            messages=request.messages,
            images=request.images,
            parameters=request.parameters,
            additional_parameters=request.additional_parameters,
            provider=request.provider,
        )
        logger.debug(f"{self.name}: conversation flattened into a single prompt")
        return await self.generate_image(flattened)

    async def edit_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        raise UnsupportedOperationError(f"{self.name} does not support image editing")

    async def create_variation(self, request: CanonicalRequest) -> ImageGenerationResponse:
        raise UnsupportedOperationError(f"{self.name} does not support image variations")

    def model_or_default(self, requested: Optional[str] = None) -> str:
        model = requested or self._capabilities.default_model
        if not model:
            raise ValueError(f"{self.name} has no default model configured")
        return model


def flatten_conversation(request: CanonicalRequest) -> str:
    """Join system and user turns into one prompt, ending with the request prompt."""
    parts: List[str] = [
        m.text for m in request.messages
        if m.text and m.role in (MessageRole.SYSTEM, MessageRole.USER)
    ]
    if request.prompt and (not parts or parts[-1] != request.prompt):
        parts.append(request.prompt)
    return "\n".join(parts)
