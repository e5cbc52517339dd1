"""Mock Image Provider - Infrastructure Layer"""

import base64
import hashlib

from ...domain.entity.image import (
    CanonicalRequest,
    GeneratedImage,
    ImageGenerationResponse,
    ImageOperation,
    utc_now,
)
from ...domain.entity.provider import ProviderCapabilities
from .base import ImageProviderBase

MOCK_CAPABILITIES = ProviderCapabilities(
    example_models=("mock-image",),
    supported_operations=frozenset(ImageOperation),
    default_model="mock-image",
    accepts_custom_models=True,
    supports_multi_modal_input=True,
    features={"deterministic": True},
)


class MockImageProvider(ImageProviderBase):
    """模拟图像提供商，用于测试和本地开发"""

    def __init__(self):
        super().__init__(MOCK_CAPABILITIES)

    @property
    def name(self) -> str:
        return "Mock"

    async def generate_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        return self._respond(request)

    async def generate_image_from_conversation(
        self, request: CanonicalRequest
    ) -> ImageGenerationResponse:
        return self._respond(request)

    async def edit_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        return self._respond(request)

    async def create_variation(self, request: CanonicalRequest) -> ImageGenerationResponse:
        return self._respond(request)

    def _respond(self, request: CanonicalRequest) -> ImageGenerationResponse:
        model = self.model_or_default(request.parameters.model)
        images = []
        for index in range(request.parameters.number_of_images):
            # Same request, same bytes
            seed = f"{request.operation.value}:{request.prompt}:{index}".encode("utf-8")
            digest = hashlib.sha256(seed).digest()
            images.append(GeneratedImage(
                base64_data=base64.b64encode(digest).decode("ascii"),
                revised_prompt=f"Mock image for: {request.prompt}" if request.prompt else None,
            ))
        return ImageGenerationResponse(
            images=images,
            model=model,
            provider=self.name,
            created_at=utc_now(),
            raw_metadata={"mock": True},
        )
