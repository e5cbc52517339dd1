"""Image Tools - Infrastructure Layer

Tool-facing surface over the dispatcher. Image methods return the serialized
response or ``{"error": message}``; ``list_providers`` returns a list.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from ...application.usecase.image_generation import ImageGenerationUseCase
from ...application.usecase.list_providers import ListProvidersUseCase
from ...domain.entity import image_models
from ...domain.entity.image_request import (
    ConversationMessage,
    ConversationalImageGenerationRequest,
    ImageEditRequest,
    ImageGenerationRequest,
    ImageVariationRequest,
)
from ...domain.errors import ImageServiceError, ValidationError
from ...domain.service.validation import (
    check_image,
    check_number_of_images,
    check_quality_and_style,
    check_size,
    raise_if_errors,
)

logger = logging.getLogger(__name__)

ConversationInput = Union[str, List[Dict[str, Any]]]


class ImageTools:
    """图像生成工具集"""

    def __init__(
        self,
        use_case: ImageGenerationUseCase,
        list_use_case: Optional[ListProvidersUseCase] = None,
    ):
        self._use_case = use_case
        self._list_use_case = list_use_case

    async def generate_image(
        self,
        prompt: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        style: Optional[str] = None,
        number_of_images: int = 1,
    ) -> Dict[str, Any]:
        """Generate images from a text prompt."""
        try:
            errors: List[str] = []
            if not prompt or not prompt.strip():
                errors.append("Prompt is required")
            check_number_of_images(number_of_images, errors)
            check_quality_and_style(quality, style, errors)
            check_size(size, errors)
            raise_if_errors(errors)

            request = ImageGenerationRequest(
                prompt=prompt,
                model=model,
                size=size,
                quality=quality,
                style=style,
                number_of_images=number_of_images,
                provider=provider,
            )
            response = await self._use_case.generate(request)
            return response.to_dict()
        except Exception as e:
            return _error_result("generate_image", e)

    async def generate_image_from_conversation(
        self,
        conversation: ConversationInput,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        style: Optional[str] = None,
        number_of_images: int = 1,
    ) -> Dict[str, Any]:
        """Generate images from a multi-turn, multi-modal conversation.

        ``conversation`` is a JSON array string or a list of dicts with
        ``role``, ``text`` and optional ``images``.
        """
        try:
            messages = parse_conversation(conversation)

            errors: List[str] = []
            check_number_of_images(number_of_images, errors)
            check_quality_and_style(quality, style, errors)
            check_size(size, errors)
            raise_if_errors(errors)

            request = ConversationalImageGenerationRequest(
                conversation=messages,
                model=model,
                size=size,
                quality=quality,
                style=style,
                number_of_images=number_of_images,
                provider=provider,
            )
            response = await self._use_case.generate_from_conversation(request)
            return response.to_dict()
        except Exception as e:
            return _error_result("generate_image_from_conversation", e)

    async def edit_image(
        self,
        image: str,
        prompt: str,
        mask: Optional[str] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        size: Optional[str] = None,
        number_of_images: int = 1,
    ) -> Dict[str, Any]:
        """Edit an image, optionally restricted by a mask."""
        try:
            errors: List[str] = []
            check_image(image, "Image", errors)
            if not prompt or not prompt.strip():
                errors.append("Prompt is required")
            if mask:
                check_image(mask, "Mask", errors)
            check_number_of_images(number_of_images, errors)
            check_size(size, errors)
            raise_if_errors(errors)

            request = ImageEditRequest(
                image=image,
                prompt=prompt,
                mask=mask,
                model=model,
                size=size,
                number_of_images=number_of_images,
                provider=provider,
            )
            response = await self._use_case.edit(request)
            return response.to_dict()
        except Exception as e:
            return _error_result("edit_image", e)

    async def create_variation(
        self,
        image: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        size: Optional[str] = None,
        number_of_images: int = 1,
    ) -> Dict[str, Any]:
        """Create variations of an image."""
        try:
            errors: List[str] = []
            check_image(image, "Image", errors)
            check_number_of_images(number_of_images, errors)
            check_size(size, errors)
            raise_if_errors(errors)

            request = ImageVariationRequest(
                image=image,
                model=model,
                size=size,
                number_of_images=number_of_images,
                provider=provider,
            )
            response = await self._use_case.create_variation(request)
            return response.to_dict()
        except Exception as e:
            return _error_result("create_variation", e)

    async def list_providers(self) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """List registered providers; a dict with an error key on failure."""
        if self._list_use_case is None:
            return {"error": "Provider listing is not configured"}
        try:
            return self._list_use_case.execute()
        except Exception as e:
            return _error_result("list_providers", e)


def parse_conversation(conversation: ConversationInput) -> List[ConversationMessage]:
    """解析对话参数（JSON 字符串或字典列表）

    Raises:
        ValidationError: not valid JSON, not an array, or empty
    """
    if isinstance(conversation, str):
        if not conversation.strip():
            raise ValidationError("Conversation is required")
        try:
            conversation = json.loads(conversation)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid conversation JSON: {e.msg}") from e

    if not isinstance(conversation, list):
        raise ValidationError("Conversation must be a JSON array of messages")
    if not conversation:
        raise ValidationError("Conversation must contain at least one message")

    messages = []
    for index, item in enumerate(conversation):
        if not isinstance(item, dict):
            raise ValidationError(f"Conversation message {index} must be an object")
        messages.append(ConversationMessage.from_dict(item))
    return messages


def _error_result(tool_name: str, error: Exception) -> Dict[str, Any]:
    if isinstance(error, ImageServiceError):
        logger.warning(f"{tool_name} failed: {error}")
    else:
        logger.error(f"Unexpected error in {tool_name}: {error}", exc_info=True)
    return {"error": str(error) or type(error).__name__}


def _image_arguments(required: bool) -> Dict[str, Any]:
    return {
        "type": "string",
        "description": "Image as base64, a data URL, or an HTTP(S) URL"
        + ("" if required else " (optional)"),
    }


_COMMON_PROPERTIES: Dict[str, Any] = {
    "provider": {
        "type": "string",
        "description": "Provider name (optional, auto-selected if omitted)",
    },
    "model": {"type": "string", "description": "Model name (optional)"},
    "size": {
        "type": "string",
        "description": f"Image size as WIDTHxHEIGHT, e.g. '{image_models.SIZE_1024}'",
    },
    "number_of_images": {
        "type": "integer",
        "minimum": 1,
        "maximum": image_models.MAX_IMAGES_PER_REQUEST,
        "default": 1,
    },
}

_QUALITY_STYLE_PROPERTIES: Dict[str, Any] = {
    "quality": {"type": "string", "enum": list(image_models.QUALITIES)},
    "style": {"type": "string", "enum": list(image_models.STYLES)},
}


def tool_definitions() -> List[Dict[str, Any]]:
    """工具描述（名称、说明、JSON Schema 参数）"""
    return [
        {
            "name": "generate_image",
            "description": "Generate images from a text prompt",
            "parameters": {
                "type": "object",
                "properties": {
                    "prompt": {"type": "string", "description": "Text description of the image"},
                    **_COMMON_PROPERTIES,
                    **_QUALITY_STYLE_PROPERTIES,
                },
                "required": ["prompt"],
            },
        },
        {
            "name": "generate_image_from_conversation",
            "description": "Generate images from a multi-turn conversation with optional images",
            "parameters": {
                "type": "object",
                "properties": {
                    "conversation": {
                        "type": ["string", "array"],
                        "description": "Messages with role, text and optional images",
                    },
                    **_COMMON_PROPERTIES,
                    **_QUALITY_STYLE_PROPERTIES,
                },
                "required": ["conversation"],
            },
        },
        {
            "name": "edit_image",
            "description": "Edit an image from a prompt, optionally with a mask",
            "parameters": {
                "type": "object",
                "properties": {
                    "image": _image_arguments(True),
                    "prompt": {"type": "string", "description": "Description of the edit"},
                    "mask": _image_arguments(False),
                    **_COMMON_PROPERTIES,
                },
                "required": ["image", "prompt"],
            },
        },
        {
            "name": "create_variation",
            "description": "Create variations of an image",
            "parameters": {
                "type": "object",
                "properties": {
                    "image": _image_arguments(True),
                    **_COMMON_PROPERTIES,
                },
                "required": ["image"],
            },
        },
        {
            "name": "list_providers",
            "description": "List image providers with availability and capabilities",
            "parameters": {"type": "object", "properties": {}},
        },
    ]
