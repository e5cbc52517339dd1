"""OpenAI Image Provider - Infrastructure Layer"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

import httpx
from openai import AsyncOpenAI

from ...domain.entity import image_models
from ...domain.entity.image import (
    CanonicalRequest,
    GeneratedImage,
    ImageGenerationResponse,
    ImageOperation,
    ImageReference,
    ImageRole,
    utc_now,
)
from ...domain.entity.provider import ProviderCapabilities
from .base import ImageProviderBase, flatten_conversation

logger = logging.getLogger(__name__)

OPENAI_CAPABILITIES = ProviderCapabilities(
    example_models=(
        image_models.OPENAI_DALL_E_3,
        image_models.OPENAI_DALL_E_2,
        image_models.OPENAI_GPT_IMAGE_1,
    ),
    supported_operations=frozenset({
        ImageOperation.GENERATE,
        ImageOperation.GENERATE_FROM_CONVERSATION,
        ImageOperation.EDIT,
        ImageOperation.VARIATION,
    }),
    default_model=image_models.OPENAI_DEFAULT,
    accepts_custom_models=True,
    supports_multi_modal_input=True,
    max_conversation_images=16,
    features={
        "supportsQuality": True,
        "supportsStyle": True,
        "maxImages": image_models.MAX_IMAGES_PER_REQUEST,
        "supportedSizes": list(image_models.OPENAI_SIZES),
    },
)

# gpt-image models take low/medium/high instead of standard/hd
_GPT_IMAGE_QUALITY = {
    image_models.QUALITY_STANDARD: "medium",
    image_models.QUALITY_HD: "high",
}


class OpenAIImageProvider(ImageProviderBase):
    """OpenAI 图像生成提供商实现 (DALL-E / GPT Image)"""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        default_model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """初始化 OpenAI 图像提供商

        Args:
            api_key: API 密钥
            base_url: API 基础 URL（可选，兼容接口）
            default_model: 默认模型（可选）
            client: 预先构造的客户端（测试用）
        """
        capabilities = OPENAI_CAPABILITIES
        if default_model:
            capabilities = _with_default_model(capabilities, default_model)
        super().__init__(capabilities)
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
        )

    @property
    def name(self) -> str:
        return "OpenAI"

    async def generate_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """生成图像"""
        model = self.model_or_default(request.parameters.model)
        kwargs = self._generation_options(model, request)

        response = await self._client.images.generate(
            model=model,
            prompt=request.prompt,
            **kwargs,
        )
        return self._to_response(response, model)

    async def generate_image_from_conversation(
        self, request: CanonicalRequest
    ) -> ImageGenerationResponse:
        """对话生成：有参考图时走 gpt-image-1 多图编辑，否则压平成提示词"""
        references = [
            image for image in request.images_with_role(ImageRole.REFERENCE) if image.data
        ]
        if not references:
            return await super().generate_image_from_conversation(request)

        model = request.parameters.model or image_models.OPENAI_GPT_IMAGE_1
        limit = self._capabilities.max_conversation_images
        if limit is not None and len(references) > limit:
            logger.warning(f"Conversation carries {len(references)} images, using the last {limit}")
            references = references[-limit:]

        files = [await self._load_image(ref, f"reference_{i}") for i, ref in enumerate(references)]
        kwargs: Dict[str, Any] = {"n": request.parameters.number_of_images}
        if request.parameters.size:
            kwargs["size"] = request.parameters.size

        response = await self._client.images.edit(
            model=model,
            image=files,
            prompt=flatten_conversation(request),
            **kwargs,
        )
        return self._to_response(response, model)

    async def edit_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """编辑图像"""
        model = request.parameters.model or image_models.OPENAI_DALL_E_2
        source = request.first_image(ImageRole.INPUT)
        mask = request.first_image(ImageRole.MASK)

        kwargs: Dict[str, Any] = {"n": request.parameters.number_of_images}
        if request.parameters.size:
            kwargs["size"] = request.parameters.size
        if mask is not None:
            kwargs["mask"] = await self._load_image(mask, "mask")
        if not _is_gpt_image(model):
            kwargs["response_format"] = "url"

        response = await self._client.images.edit(
            model=model,
            image=await self._load_image(source, "image"),
            prompt=request.prompt,
            **kwargs,
        )
        return self._to_response(response, model)

    async def create_variation(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """生成图像变体（仅 DALL-E 2 支持）"""
        model = request.parameters.model or image_models.OPENAI_DALL_E_2
        source = request.first_image(ImageRole.INPUT)

        kwargs: Dict[str, Any] = {
            "n": request.parameters.number_of_images,
            "response_format": "url",
        }
        if request.parameters.size:
            kwargs["size"] = request.parameters.size

        response = await self._client.images.create_variation(
            model=model,
            image=await self._load_image(source, "image"),
            **kwargs,
        )
        return self._to_response(response, model)

    def _generation_options(self, model: str, request: CanonicalRequest) -> Dict[str, Any]:
        params = request.parameters
        options: Dict[str, Any] = {"n": params.number_of_images}
        if params.size:
            options["size"] = params.size

        if _is_gpt_image(model):
            if params.quality:
                options["quality"] = _GPT_IMAGE_QUALITY.get(params.quality.lower(), params.quality)
        else:
            options["response_format"] = params.response_format or "url"
            if params.quality:
                options["quality"] = params.quality.lower()
            if params.style and model == image_models.OPENAI_DALL_E_3:
                options["style"] = params.style.lower()

        for key, value in request.additional_parameters.items():
            options.setdefault(key, value)
        return options

    async def _load_image(self, reference: ImageReference, stem: str) -> Tuple[str, bytes, str]:
        """把图像引用转换为 SDK 接受的 (文件名, 字节, MIME) 元组"""
        if reference.is_url:
            async with httpx.AsyncClient(timeout=60.0) as client:
                response = await client.get(reference.data)
                response.raise_for_status()
                content = response.content
                mime_type = response.headers.get("content-type", "image/png").split(";")[0]
        else:
            content = reference.decode()
            mime_type = reference.resolved_mime_type()
        extension = mime_type.split("/")[-1] if "/" in mime_type else "png"
        return f"{stem}.{extension}", content, mime_type

    def _to_response(self, response: Any, model: str) -> ImageGenerationResponse:
        images: List[GeneratedImage] = [
            GeneratedImage(
                url=getattr(item, "url", None),
                base64_data=getattr(item, "b64_json", None),
                revised_prompt=getattr(item, "revised_prompt", None),
            )
            for item in (response.data or [])
        ]
        return ImageGenerationResponse(
            images=images,
            model=model,
            provider=self.name,
            created_at=utc_now(),
        )


def _is_gpt_image(model: str) -> bool:
    return model.lower().startswith("gpt-image")


def _with_default_model(capabilities: ProviderCapabilities, model: str) -> ProviderCapabilities:
    return replace(capabilities, default_model=model)
