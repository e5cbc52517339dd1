"""Image Provider Repository Interface - Domain Layer"""

from abc import ABC, abstractmethod

from ..entity.image import CanonicalRequest, ImageGenerationResponse, ImageOperation
from ..entity.provider import ProviderCapabilities


class ImageProvider(ABC):
    """图像生成提供商接口

    定义在领域层，实现在基础设施层。调度器只通过能力声明与之交互，
    从不检查具体类型。

    Cancellation follows asyncio: cancelling the awaiting task aborts the
    local wait, but a request already sent to the backend may still complete
    and be billed.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """提供商名称"""
        pass

    @abstractmethod
    async def generate_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """根据文本提示生成图像

        Args:
            request: 规范化请求

        Returns:
            图像生成响应
        """
        pass

    @abstractmethod
    async def generate_image_from_conversation(
        self, request: CanonicalRequest
    ) -> ImageGenerationResponse:
        """根据多轮对话生成图像"""
        pass

    @abstractmethod
    async def edit_image(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """编辑图像（可选蒙版）"""
        pass

    @abstractmethod
    async def create_variation(self, request: CanonicalRequest) -> ImageGenerationResponse:
        """生成图像变体"""
        pass

    @abstractmethod
    def supports_operation(self, operation: ImageOperation) -> bool:
        """检查是否支持指定操作"""
        pass

    @abstractmethod
    def get_capabilities(self) -> ProviderCapabilities:
        """返回能力声明"""
        pass
