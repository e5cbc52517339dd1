import base64
from datetime import datetime, timezone

import pytest

from image_service.domain.entity.image import (
    GeneratedImage,
    ImageGenerationResponse,
    ImageReference,
    MessageRole,
    format_timestamp,
)
from image_service.domain.entity.image_request import ConversationMessage
from image_service.domain.errors import ValidationError


def test_response_round_trip():
    created = datetime(2024, 5, 6, 7, 8, 9, 123000, tzinfo=timezone.utc)
    response = ImageGenerationResponse(
        images=[
            GeneratedImage(url="https://example.com/a.png", revised_prompt="a fox, oil painting"),
            GeneratedImage(base64_data="aGVsbG8="),
        ],
        model="dall-e-3",
        provider="OpenAI",
        created_at=created,
        raw_metadata={"aspectRatio": "1:1"},
    )

    data = response.to_dict()
    restored = ImageGenerationResponse.from_dict(data)

    assert data["createdAt"] == "2024-05-06T07:08:09.123000Z"
    assert data["images"][0] == {"url": "https://example.com/a.png", "revisedPrompt": "a fox, oil painting"}
    assert data["images"][1] == {"base64": "aGVsbG8="}
    assert restored.images == response.images
    assert restored.model == "dall-e-3"
    assert restored.provider == "OpenAI"
    assert restored.created_at == created
    assert restored.raw_metadata == {"aspectRatio": "1:1"}


def test_metadata_omitted_when_empty():
    data = ImageGenerationResponse(model="m", provider="p").to_dict()

    assert "metadata" not in data
    assert data["createdAt"] is None


def test_naive_timestamp_is_treated_as_utc():
    assert format_timestamp(datetime(2024, 1, 1, 0, 0, 0)) == "2024-01-01T00:00:00Z"


@pytest.mark.parametrize("token, role", [
    ("system", MessageRole.SYSTEM),
    ("User", MessageRole.USER),
    (" ASSISTANT ", MessageRole.ASSISTANT),
    ("tool", MessageRole.USER),
    ("", MessageRole.USER),
    (None, MessageRole.USER),
])
def test_message_role_parse(token, role):
    assert MessageRole.parse(token) == role


def test_image_reference_decodes_data_url():
    payload = base64.b64encode(b"pixels").decode("ascii")
    reference = ImageReference(data=f"data:image/jpeg;base64,{payload}")

    assert reference.is_data_url
    assert reference.decode() == b"pixels"
    assert reference.resolved_mime_type() == "image/jpeg"


def test_image_reference_url_cannot_be_decoded():
    reference = ImageReference(data="https://example.com/a.png")

    assert reference.is_url
    with pytest.raises(ValidationError):
        reference.decode()


def test_conversation_message_accepts_content_key():
    message = ConversationMessage.from_dict({
        "role": "user",
        "content": "hello",
        "images": [{"base64Data": "aGVsbG8=", "mimeType": "image/png", "caption": "c"}],
    })

    assert message.text == "hello"
    assert message.images[0].base64_data == "aGVsbG8="
    assert message.images[0].mime_type == "image/png"
    assert message.images[0].caption == "c"
