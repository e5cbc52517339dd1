"""Google Imagen Provider - Infrastructure Layer"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

import httpx

from ...domain.entity import image_models
from ...domain.entity.image import (
    CanonicalRequest,
    GeneratedImage,
    ImageGenerationResponse,
    ImageOperation,
    utc_now,
)
from ...domain.entity.provider import ProviderCapabilities
from ...domain.service.validation import parse_size
from .base import ImageProviderBase

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

GOOGLE_CAPABILITIES = ProviderCapabilities(
    example_models=(
        image_models.GOOGLE_IMAGEN_3,
        image_models.GOOGLE_IMAGEN_2,
        image_models.GOOGLE_IMAGEN_3_FAST,
    ),
    supported_operations=frozenset({ImageOperation.GENERATE}),
    default_model=image_models.GOOGLE_DEFAULT,
    accepts_custom_models=True,
    supports_multi_modal_input=False,
    features={
        "supportsAspectRatio": True,
        "maxImages": 4,
        "supportedLanguages": ["en", "es", "fr", "de", "it", "pt", "hi", "ja", "ko", "zh"],
    },
)

# Imagen takes aspect ratios rather than pixel sizes
_ASPECT_RATIOS = {
    "1:1": 1.0,
    "3:4": 3 / 4,
    "4:3": 4 / 3,
    "9:16": 9 / 16,
    "16:9": 16 / 9,
}


class GoogleImageProvider(ImageProviderBase):
    """Google Imagen 提供商实现 (REST predict 接口)"""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        default_model: Optional[str] = None,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        capabilities = GOOGLE_CAPABILITIES
        if default_model:
            capabilities = replace(capabilities, default_model=default_model)
        super().__init__(capabilities)
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "Google"

    async def generate_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """生成图像"""
        model = self.model_or_default(request.parameters.model)

        parameters: Dict[str, Any] = {"sampleCount": request.parameters.number_of_images}
        aspect_ratio = aspect_ratio_for(request.parameters.size)
        if aspect_ratio:
            parameters["aspectRatio"] = aspect_ratio
        parameters.update(request.additional_parameters)

        payload = {
            "instances": [{"prompt": request.prompt}],
            "parameters": parameters,
        }
        headers = {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }

        logger.debug(f"Imagen predict: model={model}, samples={parameters['sampleCount']}")
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self._base_url}/models/{model}:predict",
                headers=headers,
                json=payload,
            )
            response.raise_for_status()
            data = response.json()

        images: List[GeneratedImage] = []
        for prediction in data.get("predictions", []):
            encoded = prediction.get("bytesBase64Encoded")
            if encoded:
                images.append(GeneratedImage(base64_data=encoded))

        if not images:
            raise RuntimeError("Imagen returned no images (prompt may have been filtered)")

        return ImageGenerationResponse(
            images=images,
            model=model,
            provider=self.name,
            created_at=utc_now(),
            raw_metadata={"aspectRatio": parameters.get("aspectRatio", "1:1")},
        )


def aspect_ratio_for(size: Optional[str]) -> Optional[str]:
    """把 WIDTHxHEIGHT 映射到最接近的 Imagen 宽高比"""
    parsed = parse_size(size)
    if parsed is None:
        return None
    ratio = parsed[0] / parsed[1]
    return min(_ASPECT_RATIOS, key=lambda name: abs(_ASPECT_RATIOS[name] - ratio))
