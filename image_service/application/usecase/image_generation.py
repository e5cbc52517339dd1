"""Image Generation Use Case - Application Layer"""

import logging
from typing import Any, Awaitable, Callable, Dict

from ...domain.entity.image import (
    CanonicalRequest,
    ImageGenerationResponse,
    ImageOperation,
    utc_now,
)
from ...domain.entity.image_request import (
    ConversationalImageGenerationRequest,
    ImageEditRequest,
    ImageGenerationRequest,
    ImageVariationRequest,
)
from ...domain.errors import ProviderExecutionError
from ...domain.repository.image_provider import ImageProvider
from ...domain.service.image_router import ImageRouter
from ...domain.service.request_adapter import adapter_for
from ...domain.service.validation import validate_canonical_request

logger = logging.getLogger(__name__)


class ImageGenerationUseCase:
    """图像生成用例（调度器）

    编排：适配 → 选择 → 实例化 → 执行 → 规范化

    Provider failures are wrapped in ProviderExecutionError and never
    retried: remote calls are billed and not idempotent. Provider instances
    are not cached; factories may cache internally.
    """

    def __init__(self, image_router: ImageRouter, context: Any = None):
        """初始化用例

        Args:
            image_router: 提供商选择策略
            context: 传递给工厂 create 的上下文（服务配置）
        """
        self._image_router = image_router
        self._context = context

    async def generate(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        """文本生成图像"""
        return await self.execute(adapter_for(ImageOperation.GENERATE).adapt(request))

    async def generate_from_conversation(
        self, request: ConversationalImageGenerationRequest
    ) -> ImageGenerationResponse:
        """对话生成图像"""
        adapter = adapter_for(ImageOperation.GENERATE_FROM_CONVERSATION)
        return await self.execute(adapter.adapt(request))

    async def edit(self, request: ImageEditRequest) -> ImageGenerationResponse:
        """编辑图像"""
        return await self.execute(adapter_for(ImageOperation.EDIT).adapt(request))

    async def create_variation(self, request: ImageVariationRequest) -> ImageGenerationResponse:
        """图像变体"""
        return await self.execute(adapter_for(ImageOperation.VARIATION).adapt(request))

    async def execute(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """执行规范化请求

        Raises:
            ValidationError: 请求无效
            ProviderNotFoundError: 显式提供商不可用
            NoProviderAvailableError: 没有合适的提供商
            ProviderExecutionError: 提供商调用失败
        """
        # 1. 校验请求
        validate_canonical_request(request)

        # 2. 选择提供商
        factory = self._image_router.select(request)

        # 3. 创建提供商实例
        provider = factory.create(self._context)

        # 4. 调用对应操作
        logger.info(
            f"Dispatching {request.operation.value} to provider '{factory.name}' "
            f"(model={request.parameters.model or 'default'}, n={request.parameters.number_of_images})"
        )
        operation = _operation_method(provider, request.operation)
        try:
            response = await operation(request)
        except ProviderExecutionError:
            raise
        except Exception as e:
            logger.error(f"Provider '{factory.name}' failed on {request.operation.value}: {e}")
            raise ProviderExecutionError(factory.name, str(e) or type(e).__name__) from e

        if not response.images:
            logger.error(f"Provider '{factory.name}' returned no images for {request.operation.value}")
            raise ProviderExecutionError(factory.name, "returned no images")

        # 5. 补全响应
        if not response.provider:
            response.provider = factory.name
        if response.created_at is None:
            response.created_at = utc_now()

        logger.info(
            f"Provider '{response.provider}' returned {len(response.images)} image(s) "
            f"with model '{response.model}'"
        )
        return response


def _operation_method(
    provider: ImageProvider, operation: ImageOperation
) -> Callable[[CanonicalRequest], Awaitable[ImageGenerationResponse]]:
    methods: Dict[ImageOperation, Callable[[CanonicalRequest], Awaitable[ImageGenerationResponse]]] = {
        ImageOperation.GENERATE: provider.generate_image,
        ImageOperation.GENERATE_FROM_CONVERSATION: provider.generate_image_from_conversation,
        ImageOperation.EDIT: provider.edit_image,
        ImageOperation.VARIATION: provider.create_variation,
    }
    return methods[operation]
