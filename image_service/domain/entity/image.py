"""Image Entities - Domain Layer"""

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import ValidationError


class ImageOperation(str, Enum):
    """图像操作类型"""

    GENERATE = "generate"
    GENERATE_FROM_CONVERSATION = "generate_from_conversation"
    EDIT = "edit"
    VARIATION = "variation"


class MessageRole(str, Enum):
    """对话消息角色"""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def parse(cls, token: Optional[str]) -> "MessageRole":
        """Map a role token to a role; anything unrecognized is a user message."""
        if token:
            try:
                return cls(token.strip().lower())
            except ValueError:
                pass
        return cls.USER


class ImageRole(str, Enum):
    """图像在请求中的用途"""

    REFERENCE = "reference"
    INPUT = "input"
    MASK = "mask"


@dataclass
class InlineImage:
    """Image content attached directly to a message.

    Exactly one of ``data`` (decoded bytes) or ``url`` is set.
    """

    mime_type: str = "image/png"
    data: Optional[bytes] = None
    url: Optional[str] = None


@dataclass
class CanonicalMessage:
    """规范化的对话消息"""

    role: MessageRole
    text: str = ""
    images: List[InlineImage] = field(default_factory=list)


@dataclass
class ImageReference:
    """规范化的图像引用（URL 或 base64）"""

    data: str
    mime_type: Optional[str] = None
    caption: Optional[str] = None
    role: ImageRole = ImageRole.REFERENCE

    @property
    def is_url(self) -> bool:
        return self.data.startswith(("http://", "https://"))

    @property
    def is_data_url(self) -> bool:
        return self.data.startswith("data:")

    def decode(self) -> bytes:
        """Return the raw image bytes for base64 or data-URL content.

        Raises:
            ValidationError: content is a remote URL or not valid base64
        """
        if self.is_url:
            raise ValidationError(f"Image reference is a URL, not inline data: {self.data[:64]}")
        return decode_image_data(self.data)

    def resolved_mime_type(self) -> str:
        if self.mime_type:
            return self.mime_type
        if self.is_data_url:
            header = self.data[5:].split(",", 1)[0]
            return header.split(";", 1)[0] or "image/png"
        return "image/png"


@dataclass
class ImageParameters:
    """图像生成参数"""

    model: Optional[str] = None
    size: Optional[str] = None
    quality: Optional[str] = None
    style: Optional[str] = None
    number_of_images: int = 1
    response_format: Optional[str] = None


@dataclass
class CanonicalRequest:
    """规范化图像请求（所有操作共享的形状）"""

    operation: ImageOperation = ImageOperation.GENERATE
    prompt: str = ""
    messages: List[CanonicalMessage] = field(default_factory=list)
    images: List[ImageReference] = field(default_factory=list)
    parameters: ImageParameters = field(default_factory=ImageParameters)
    additional_parameters: Dict[str, Any] = field(default_factory=dict)
    provider: Optional[str] = None

    def images_with_role(self, role: ImageRole) -> List[ImageReference]:
        return [image for image in self.images if image.role == role]

    def first_image(self, role: ImageRole) -> Optional[ImageReference]:
        matches = self.images_with_role(role)
        return matches[0] if matches else None


@dataclass
class GeneratedImage:
    """生成的单张图像"""

    url: Optional[str] = None
    base64_data: Optional[str] = None
    revised_prompt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.url:
            result["url"] = self.url
        if self.base64_data:
            result["base64"] = self.base64_data
        if self.revised_prompt:
            result["revisedPrompt"] = self.revised_prompt
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedImage":
        return cls(
            url=data.get("url"),
            base64_data=data.get("base64"),
            revised_prompt=data.get("revisedPrompt"),
        )


@dataclass
class ImageGenerationResponse:
    """图像生成响应实体"""

    images: List[GeneratedImage] = field(default_factory=list)
    model: str = ""
    provider: str = ""
    created_at: Optional[datetime] = None
    raw_metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape returned by the tool surface."""
        result: Dict[str, Any] = {
            "images": [image.to_dict() for image in self.images],
            "model": self.model,
            "provider": self.provider,
            "createdAt": format_timestamp(self.created_at) if self.created_at else None,
        }
        if self.raw_metadata:
            result["metadata"] = self.raw_metadata
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageGenerationResponse":
        created_at = data.get("createdAt")
        return cls(
            images=[GeneratedImage.from_dict(item) for item in data.get("images", [])],
            model=data.get("model", ""),
            provider=data.get("provider", ""),
            created_at=parse_timestamp(created_at) if created_at else None,
            raw_metadata=data.get("metadata"),
        )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def decode_image_data(data: str) -> bytes:
    """Decode base64 or ``data:image/...;base64,`` content into bytes."""
    payload = data
    if payload.startswith("data:"):
        if "," not in payload:
            raise ValidationError("Malformed data URL: missing payload")
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image is not valid base64 data: {e}")
