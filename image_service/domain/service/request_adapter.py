"""Request Adapters Domain Service - Domain Layer

Each adapter converts one source request shape into a CanonicalRequest.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..entity.image import (
    CanonicalMessage,
    CanonicalRequest,
    ImageOperation,
    ImageParameters,
    ImageReference,
    ImageRole,
    InlineImage,
    MessageRole,
    decode_image_data,
)
from ..entity.image_request import (
    ConversationalImageGenerationRequest,
    ImageContent,
    ImageEditRequest,
    ImageGenerationRequest,
    ImageVariationRequest,
)
from ..errors import ValidationError

logger = logging.getLogger(__name__)


class RequestAdapter(ABC):
    """请求适配器接口"""

    operation: ImageOperation

    def adapt(self, source: Any) -> CanonicalRequest:
        """转换为规范化请求

        Raises:
            ValidationError: source is None
        """
        if source is None:
            raise ValidationError(f"Request for operation '{self.operation.value}' is required")
        return self._adapt(source)

    @abstractmethod
    def _adapt(self, source: Any) -> CanonicalRequest:
        pass


class GenerationRequestAdapter(RequestAdapter):
    """文本生成请求适配器：提示词原样传递"""

    operation = ImageOperation.GENERATE

    def _adapt(self, source: ImageGenerationRequest) -> CanonicalRequest:
        return CanonicalRequest(
            operation=self.operation,
            prompt=source.prompt,
            messages=[CanonicalMessage(role=MessageRole.USER, text=source.prompt)],
            parameters=ImageParameters(
                model=source.model,
                size=source.size,
                quality=source.quality,
                style=source.style,
                number_of_images=source.number_of_images,
            ),
            additional_parameters=_copy_parameters(source.additional_parameters),
            provider=source.provider,
        )


class ConversationalRequestAdapter(RequestAdapter):
    """对话请求适配器

    The prompt is the text of the last user message; every embedded image
    becomes a reference entry, and decodable images are also attached to
    their message so multi-modal backends can consume them directly.
    """

    operation = ImageOperation.GENERATE_FROM_CONVERSATION

    def _adapt(self, source: ConversationalImageGenerationRequest) -> CanonicalRequest:
        messages = []
        images = []
        prompt = ""

        for source_message in source.conversation or []:
            role = MessageRole.parse(source_message.role)
            message = CanonicalMessage(role=role, text=source_message.text or "")

            for content in source_message.images or []:
                images.append(_reference_from_content(content))
                inline = _inline_from_content(content)
                if inline is not None:
                    message.images.append(inline)

            messages.append(message)
            if role == MessageRole.USER:
                prompt = message.text

        return CanonicalRequest(
            operation=self.operation,
            prompt=prompt,
            messages=messages,
            images=images,
            parameters=ImageParameters(
                model=source.model,
                size=source.size,
                quality=source.quality,
                style=source.style,
                number_of_images=source.number_of_images,
            ),
            additional_parameters=_copy_parameters(source.additional_parameters),
            provider=source.provider,
        )


class EditRequestAdapter(RequestAdapter):
    """图像编辑请求适配器：源图与蒙版分别记录"""

    operation = ImageOperation.EDIT

    def _adapt(self, source: ImageEditRequest) -> CanonicalRequest:
        images = [ImageReference(data=source.image, role=ImageRole.INPUT)]
        if source.mask:
            images.append(ImageReference(data=source.mask, role=ImageRole.MASK))

        return CanonicalRequest(
            operation=self.operation,
            prompt=source.prompt,
            messages=[CanonicalMessage(role=MessageRole.USER, text=source.prompt)],
            images=images,
            parameters=ImageParameters(
                model=source.model,
                size=source.size,
                number_of_images=source.number_of_images,
            ),
            additional_parameters=_copy_parameters(source.additional_parameters),
            provider=source.provider,
        )


class VariationRequestAdapter(RequestAdapter):
    """图像变体请求适配器：只有源图，没有提示词"""

    operation = ImageOperation.VARIATION

    def _adapt(self, source: ImageVariationRequest) -> CanonicalRequest:
        return CanonicalRequest(
            operation=self.operation,
            prompt="",
            images=[ImageReference(data=source.image, role=ImageRole.INPUT)],
            parameters=ImageParameters(
                model=source.model,
                size=source.size,
                number_of_images=source.number_of_images,
            ),
            additional_parameters=_copy_parameters(source.additional_parameters),
            provider=source.provider,
        )


_ADAPTERS: Dict[ImageOperation, RequestAdapter] = {
    ImageOperation.GENERATE: GenerationRequestAdapter(),
    ImageOperation.GENERATE_FROM_CONVERSATION: ConversationalRequestAdapter(),
    ImageOperation.EDIT: EditRequestAdapter(),
    ImageOperation.VARIATION: VariationRequestAdapter(),
}


def adapter_for(operation: ImageOperation) -> RequestAdapter:
    """获取指定操作的适配器"""
    return _ADAPTERS[operation]


def _copy_parameters(parameters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return dict(parameters) if parameters else {}


def _reference_from_content(content: ImageContent) -> ImageReference:
    return ImageReference(
        data=content.url or content.base64_data or "",
        mime_type=content.mime_type,
        caption=content.caption,
        role=ImageRole.REFERENCE,
    )


def _inline_from_content(content: ImageContent) -> Optional[InlineImage]:
    if content.base64_data:
        try:
            data = decode_image_data(content.base64_data)
        except ValidationError:
            logger.debug("Skipping inline attachment for undecodable conversation image")
        else:
            return InlineImage(mime_type=content.mime_type or "image/png", data=data)
    if content.url:
        return InlineImage(mime_type=content.mime_type or "image/*", url=content.url)
    return None
