import pytest

from image_service.domain.entity.image import (
    CanonicalMessage,
    CanonicalRequest,
    ImageOperation,
    ImageParameters,
    ImageReference,
    ImageRole,
    MessageRole,
)
from image_service.domain.errors import ValidationError
from image_service.domain.service.validation import (
    is_valid_image_format,
    parse_size,
    validate_canonical_request,
)


@pytest.mark.parametrize("size, parsed", [
    ("1024x1024", (1024, 1024)),
    ("1792X1024", (1792, 1024)),
    (" 512 x 512 ", (512, 512)),
    ("0x512", None),
    ("1024", None),
    ("axb", None),
    (None, None),
])
def test_parse_size(size, parsed):
    assert parse_size(size) == parsed


@pytest.mark.parametrize("image, valid", [
    ("data:image/png;base64,aGVsbG8=", True),
    ("https://example.com/a.png", True),
    ("http://example.com/a.png", True),
    ("aGVsbG8=", True),
    ("ftp://example.com/a.png", False),
    ("", False),
    ("not base64!", False),
    ("data:image/png;base64,%%%%", False),
    ("data:image/png;base64,", False),
    ("data:image/png;base64", False),
])
def test_is_valid_image_format(image, valid):
    assert is_valid_image_format(image) is valid


def test_collects_every_error():
    request = CanonicalRequest(
        prompt="",
        parameters=ImageParameters(size="big", number_of_images=0),
    )

    with pytest.raises(ValidationError) as exc_info:
        validate_canonical_request(request)

    assert len(exc_info.value.errors) == 3


def test_edit_requires_input_image():
    request = CanonicalRequest(
        operation=ImageOperation.EDIT,
        prompt="x",
        images=[ImageReference(data="aGVsbG8=", role=ImageRole.MASK)],
    )

    with pytest.raises(ValidationError) as exc_info:
        validate_canonical_request(request)

    assert exc_info.value.errors == ["Image is required"]


def test_variation_needs_no_prompt():
    request = CanonicalRequest(
        operation=ImageOperation.VARIATION,
        images=[ImageReference(data="aGVsbG8=", role=ImageRole.INPUT)],
    )

    validate_canonical_request(request)


def test_conversation_needs_messages_not_prompt():
    request = CanonicalRequest(
        operation=ImageOperation.GENERATE_FROM_CONVERSATION,
        messages=[CanonicalMessage(role=MessageRole.ASSISTANT, text="hi")],
    )

    validate_canonical_request(request)


def test_unknown_quality_is_left_to_backends():
    request = CanonicalRequest(prompt="x", parameters=ImageParameters(quality="medium"))

    validate_canonical_request(request)


def test_edit_checks_input_and_mask_payloads():
    request = CanonicalRequest(
        operation=ImageOperation.EDIT,
        prompt="x",
        images=[
            ImageReference(data="!!!not-an-image!!!", role=ImageRole.INPUT),
            ImageReference(data="data:image/png;base64,%%%%", role=ImageRole.MASK),
        ],
    )

    with pytest.raises(ValidationError) as exc_info:
        validate_canonical_request(request)

    assert len(exc_info.value.errors) == 2
    assert exc_info.value.errors[0].startswith("Image must be")
    assert exc_info.value.errors[1].startswith("Mask must be")


def test_variation_checks_input_payload():
    request = CanonicalRequest(
        operation=ImageOperation.VARIATION,
        images=[ImageReference(data="   ", role=ImageRole.INPUT)],
    )

    with pytest.raises(ValidationError) as exc_info:
        validate_canonical_request(request)

    assert exc_info.value.errors == ["Image is required"]
