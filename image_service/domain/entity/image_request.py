"""Image Request Entities - Domain Layer

Source request shapes accepted by the request adapters, one per operation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ImageContent:
    """对话中嵌入的图像"""

    url: Optional[str] = None
    base64_data: Optional[str] = None
    mime_type: Optional[str] = None
    caption: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageContent":
        return cls(
            url=data.get("url"),
            base64_data=data.get("base64Data", data.get("base64_data", data.get("base64"))),
            mime_type=data.get("mimeType", data.get("mime_type")),
            caption=data.get("caption"),
        )


@dataclass
class ConversationMessage:
    """对话消息（角色为原始字符串）"""

    role: Optional[str] = "user"
    text: Optional[str] = None
    images: List[ImageContent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationMessage":
        images = data.get("images") or []
        return cls(
            role=data.get("role"),
            text=data.get("text", data.get("content")),
            images=[ImageContent.from_dict(image) for image in images],
        )


@dataclass
class ImageGenerationRequest:
    """文本生成图像请求"""

    prompt: str
    model: Optional[str] = None
    size: Optional[str] = None
    quality: Optional[str] = None
    style: Optional[str] = None
    number_of_images: int = 1
    provider: Optional[str] = None
    additional_parameters: Optional[Dict[str, Any]] = None


@dataclass
class ConversationalImageGenerationRequest:
    """多轮、多模态对话生成图像请求"""

    conversation: List[ConversationMessage]
    model: Optional[str] = None
    size: Optional[str] = None
    quality: Optional[str] = None
    style: Optional[str] = None
    number_of_images: int = 1
    provider: Optional[str] = None
    additional_parameters: Optional[Dict[str, Any]] = None


@dataclass
class ImageEditRequest:
    """图像编辑请求"""

    image: str
    prompt: str
    mask: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    number_of_images: int = 1
    provider: Optional[str] = None
    additional_parameters: Optional[Dict[str, Any]] = None


@dataclass
class ImageVariationRequest:
    """图像变体请求"""

    image: str
    model: Optional[str] = None
    size: Optional[str] = None
    number_of_images: int = 1
    provider: Optional[str] = None
    additional_parameters: Optional[Dict[str, Any]] = None
