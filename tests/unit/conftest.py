import pytest
from typing import Any, Callable, Iterable, Optional
from unittest.mock import AsyncMock, MagicMock

from image_service.domain.entity.image import GeneratedImage, ImageGenerationResponse, ImageOperation
from image_service.domain.entity.provider import ProviderCapabilities, ProviderMetadata
from image_service.domain.repository.provider_factory import ProviderFactory


class StubFactory(ProviderFactory):
    """Factory with fixed metadata that hands out one shared provider mock."""

    def __init__(
        self,
        name: str,
        priority: int = 100,
        operations: Iterable[ImageOperation] = (ImageOperation.GENERATE,),
        models: Iterable[str] = (),
        accepts_custom_models: bool = True,
        available: bool = True,
        provider: Optional[Any] = None,
    ):
        self._metadata = ProviderMetadata(
            name=name,
            description=f"{name} test provider",
            capabilities=ProviderCapabilities(
                example_models=tuple(models),
                supported_operations=frozenset(operations),
                accepts_custom_models=accepts_custom_models,
            ),
            priority=priority,
        )
        self.available = available
        self.provider = provider or _provider_mock(name)
        self.create_calls = 0

    @property
    def name(self) -> str:
        return self._metadata.name

    def get_metadata(self) -> ProviderMetadata:
        return self._metadata

    def can_create(self, context: Any) -> bool:
        return self.available

    def create(self, context: Any):
        self.create_calls += 1
        return self.provider


def _provider_mock(name: str) -> MagicMock:
    provider = MagicMock()
    provider.name = name
    response = ImageGenerationResponse(
        images=[GeneratedImage(url=f"https://{name.lower()}.example.com/1.png")],
        model=f"{name.lower()}-model",
    )
    for method in ("generate_image", "generate_image_from_conversation", "edit_image", "create_variation"):
        setattr(provider, method, AsyncMock(return_value=response))
    return provider


@pytest.fixture
def make_factory() -> Callable[..., StubFactory]:
    return StubFactory
