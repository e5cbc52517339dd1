"""Request Validation Domain Service - Domain Layer"""

import base64
import binascii
import re
from typing import List, Optional, Tuple

from ..entity import image_models
from ..entity.image import CanonicalRequest, ImageOperation, ImageRole
from ..errors import ValidationError

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def parse_size(size: Optional[str]) -> Optional[Tuple[int, int]]:
    """解析 WIDTHxHEIGHT 格式的尺寸，无效时返回 None"""
    if not size:
        return None
    match = _SIZE_PATTERN.match(size)
    if not match:
        return None
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        return None
    return width, height


def is_valid_quality(quality: str) -> bool:
    return quality.lower() in image_models.QUALITIES


def is_valid_style(style: str) -> bool:
    return style.lower() in image_models.STYLES


def is_valid_image_format(image: str) -> bool:
    """Accept data URLs, http(s) URLs and bare base64."""
    if not image or not image.strip():
        return False
    if image.startswith(("http://", "https://")):
        return True
    payload = image
    if image.lower().startswith("data:image/"):
        if "," not in image:
            return False
        payload = image.split(",", 1)[1]
        if not payload:
            return False
    try:
        base64.b64decode(payload, validate=True)
        return True
    except (binascii.Error, ValueError):
        return False


def check_number_of_images(number_of_images: int, errors: List[str]) -> None:
    if number_of_images < 1 or number_of_images > image_models.MAX_IMAGES_PER_REQUEST:
        errors.append(
            f"NumberOfImages must be between 1 and {image_models.MAX_IMAGES_PER_REQUEST}"
        )


def check_size(size: Optional[str], errors: List[str]) -> None:
    if size and parse_size(size) is None:
        errors.append(
            f"Size must be in format 'WIDTHxHEIGHT' (e.g., '1024x1024'), got '{size}'"
        )


def check_quality_and_style(
    quality: Optional[str], style: Optional[str], errors: List[str]
) -> None:
    if quality and not is_valid_quality(quality):
        errors.append(f"Quality must be 'standard' or 'hd', got '{quality}'")
    if style and not is_valid_style(style):
        errors.append(f"Style must be 'vivid' or 'natural', got '{style}'")


def check_image(image: Optional[str], field_name: str, errors: List[str]) -> None:
    if not image or not image.strip():
        errors.append(f"{field_name} is required")
    elif not is_valid_image_format(image):
        errors.append(f"{field_name} must be a valid base64 encoded image, data URL, or HTTP URL")


def raise_if_errors(errors: List[str]) -> None:
    if errors:
        raise ValidationError("; ".join(errors), errors)


def validate_canonical_request(request: CanonicalRequest) -> None:
    """调度前校验规范化请求

    Enum tokens (quality, style) are not checked here; backends may accept
    their own vocabulary and the tool surface enforces the public one.

    Raises:
        ValidationError: the request cannot be dispatched
    """
    errors: List[str] = []
    check_number_of_images(request.parameters.number_of_images, errors)
    check_size(request.parameters.size, errors)

    if request.operation in (ImageOperation.GENERATE, ImageOperation.EDIT):
        if not request.prompt or not request.prompt.strip():
            errors.append("Prompt is required")

    if request.operation == ImageOperation.GENERATE_FROM_CONVERSATION and not request.messages:
        errors.append("Conversation must contain at least one message")

    if request.operation in (ImageOperation.EDIT, ImageOperation.VARIATION):
        inputs = request.images_with_role(ImageRole.INPUT)
        if not inputs:
            errors.append("Image is required")
        for image in inputs:
            check_image(image.data, "Image", errors)
        for mask in request.images_with_role(ImageRole.MASK):
            check_image(mask.data, "Mask", errors)

    raise_if_errors(errors)
