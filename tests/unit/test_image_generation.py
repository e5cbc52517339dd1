import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from image_service.application.usecase.image_generation import ImageGenerationUseCase
from image_service.application.usecase.list_providers import ListProvidersUseCase
from image_service.domain.entity.image import (
    GeneratedImage,
    ImageGenerationResponse,
    ImageOperation,
)
from image_service.domain.entity.image_request import (
    ConversationMessage,
    ConversationalImageGenerationRequest,
    ImageEditRequest,
    ImageGenerationRequest,
    ImageVariationRequest,
)
from image_service.domain.errors import (
    NoProviderAvailableError,
    ProviderExecutionError,
    ProviderNotFoundError,
    ValidationError,
)
from image_service.domain.service.image_router import ImageRouter
from image_service.infrastructure.provider.registry import InMemoryProviderRegistry

ALL_OPERATIONS = tuple(ImageOperation)


def _use_case(*factories):
    registry = InMemoryProviderRegistry(factories)
    return ImageGenerationUseCase(ImageRouter(registry))


@pytest.mark.asyncio
async def test_generate_routes_to_highest_priority(make_factory):
    # Setup
    a = make_factory("A", priority=100)
    b = make_factory("B", priority=200)
    use_case = _use_case(a, b)

    # Execute
    response = await use_case.generate(ImageGenerationRequest(prompt="a red fox"))

    # Verify
    assert response.provider == "B"
    b.provider.generate_image.assert_called_once()
    a.provider.generate_image.assert_not_called()
    assert a.create_calls == 0
    canonical = b.provider.generate_image.call_args[0][0]
    assert canonical.prompt == "a red fox"
    assert canonical.operation == ImageOperation.GENERATE


@pytest.mark.asyncio
async def test_missing_provider_and_timestamp_are_stamped(make_factory):
    factory = make_factory("Stamp")
    factory.provider.generate_image = AsyncMock(return_value=ImageGenerationResponse(
        images=[GeneratedImage(url="https://example.com/1.png")],
        model="m",
    ))
    use_case = _use_case(factory)

    before = datetime.now(timezone.utc)
    response = await use_case.generate(ImageGenerationRequest(prompt="x"))

    assert response.provider == "Stamp"
    assert response.created_at is not None
    assert response.created_at >= before
    assert response.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_provider_supplied_values_are_kept(make_factory):
    created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    factory = make_factory("Outer")
    factory.provider.generate_image = AsyncMock(return_value=ImageGenerationResponse(
        images=[GeneratedImage(base64_data="aGVsbG8=")], model="m", provider="Inner", created_at=created,
    ))
    use_case = _use_case(factory)

    response = await use_case.generate(ImageGenerationRequest(prompt="x"))

    assert response.provider == "Inner"
    assert response.created_at == created


@pytest.mark.asyncio
async def test_provider_failure_is_wrapped(make_factory):
    factory = make_factory("Flaky")
    cause = RuntimeError("quota exceeded")
    factory.provider.generate_image = AsyncMock(side_effect=cause)
    use_case = _use_case(factory)

    with pytest.raises(ProviderExecutionError) as exc_info:
        await use_case.generate(ImageGenerationRequest(prompt="x"))

    assert exc_info.value.provider_name == "Flaky"
    assert "quota exceeded" in str(exc_info.value)
    assert exc_info.value.__cause__ is cause
    # no retry
    assert factory.provider.generate_image.call_count == 1


@pytest.mark.asyncio
async def test_cancellation_propagates(make_factory):
    factory = make_factory("Slow")
    factory.provider.generate_image = AsyncMock(side_effect=asyncio.CancelledError())
    use_case = _use_case(factory)

    with pytest.raises(asyncio.CancelledError):
        await use_case.generate(ImageGenerationRequest(prompt="x"))


@pytest.mark.asyncio
async def test_empty_result_is_a_provider_failure(make_factory):
    factory = make_factory("Empty")
    factory.provider.generate_image = AsyncMock(return_value=ImageGenerationResponse(model="m"))
    use_case = _use_case(factory)

    with pytest.raises(ProviderExecutionError) as exc_info:
        await use_case.generate(ImageGenerationRequest(prompt="x"))

    assert exc_info.value.provider_name == "Empty"
    assert "returned no images" in str(exc_info.value)


@pytest.mark.asyncio
async def test_service_errors_from_provider_are_wrapped(make_factory):
    factory = make_factory("Strict")
    cause = ValidationError("Image is not valid base64 data")
    factory.provider.generate_image = AsyncMock(side_effect=cause)
    use_case = _use_case(factory)

    with pytest.raises(ProviderExecutionError) as exc_info:
        await use_case.generate(ImageGenerationRequest(prompt="x"))

    assert exc_info.value.__cause__ is cause
    assert "Image is not valid base64 data" in str(exc_info.value)


@pytest.mark.asyncio
async def test_provider_execution_error_is_not_rewrapped(make_factory):
    factory = make_factory("Nested")
    original = ProviderExecutionError("Upstream", "rate limited")
    factory.provider.generate_image = AsyncMock(side_effect=original)
    use_case = _use_case(factory)

    with pytest.raises(ProviderExecutionError) as exc_info:
        await use_case.generate(ImageGenerationRequest(prompt="x"))

    assert exc_info.value is original


@pytest.mark.asyncio
async def test_malformed_edit_images_never_reach_provider(make_factory):
    factory = make_factory("Editor", operations=ALL_OPERATIONS)
    use_case = _use_case(factory)

    with pytest.raises(ValidationError):
        await use_case.edit(ImageEditRequest(image="!!!not-an-image!!!", prompt="x"))
    with pytest.raises(ValidationError) as exc_info:
        await use_case.edit(ImageEditRequest(image="aGVsbG8=", prompt="x", mask="data:image/png;base64,%%%%"))
    with pytest.raises(ValidationError):
        await use_case.create_variation(ImageVariationRequest(image="data:image/png;base64,"))

    assert any(e.startswith("Mask") for e in exc_info.value.errors)
    assert factory.create_calls == 0
    factory.provider.edit_image.assert_not_called()
    factory.provider.create_variation.assert_not_called()


@pytest.mark.asyncio
async def test_validation_happens_before_selection(make_factory):
    factory = make_factory("A")
    use_case = _use_case(factory)

    with pytest.raises(ValidationError):
        await use_case.generate(ImageGenerationRequest(prompt="x", number_of_images=11))
    with pytest.raises(ValidationError):
        await use_case.generate(ImageGenerationRequest(prompt="   "))
    with pytest.raises(ValidationError):
        await use_case.generate(ImageGenerationRequest(prompt="x", size="big"))

    assert factory.create_calls == 0


@pytest.mark.asyncio
async def test_selection_errors_propagate(make_factory):
    use_case = _use_case(make_factory("A"))

    with pytest.raises(ProviderNotFoundError):
        await use_case.generate(ImageGenerationRequest(prompt="x", provider="Zorp"))
    with pytest.raises(NoProviderAvailableError):
        await use_case.edit(ImageEditRequest(image="aGVsbG8=", prompt="x"))


@pytest.mark.asyncio
async def test_each_operation_calls_matching_provider_method(make_factory):
    factory = make_factory("All", operations=ALL_OPERATIONS)
    use_case = _use_case(factory)
    provider = factory.provider

    await use_case.generate_from_conversation(ConversationalImageGenerationRequest(
        conversation=[ConversationMessage(role="user", text="draw")],
    ))
    await use_case.edit(ImageEditRequest(image="aGVsbG8=", prompt="edit"))
    await use_case.create_variation(ImageVariationRequest(image="aGVsbG8="))

    provider.generate_image_from_conversation.assert_called_once()
    provider.edit_image.assert_called_once()
    provider.create_variation.assert_called_once()
    provider.generate_image.assert_not_called()
    assert factory.create_calls == 3


@pytest.mark.asyncio
async def test_empty_conversation_is_rejected(make_factory):
    use_case = _use_case(make_factory("All", operations=ALL_OPERATIONS))

    with pytest.raises(ValidationError):
        await use_case.generate_from_conversation(
            ConversationalImageGenerationRequest(conversation=[])
        )


def test_list_providers_reports_availability(make_factory):
    registry = InMemoryProviderRegistry([
        make_factory("A", priority=5),
        make_factory("B", available=False),
    ])

    providers = ListProvidersUseCase(registry).execute()

    assert [p["name"] for p in providers] == ["A", "B"]
    assert providers[0]["available"] is True
    assert providers[1]["available"] is False
    assert providers[0]["priority"] == 5
    assert providers[0]["capabilities"]["supportedOperations"] == ["generate"]
