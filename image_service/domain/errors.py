"""Image Service Errors - Domain Layer"""

from typing import List, Optional


class ImageServiceError(Exception):
    """图像服务错误基类"""
    pass


class ValidationError(ImageServiceError):
    """请求参数无效，在调度之前抛出"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class ProviderNotFoundError(ImageServiceError):
    """显式指定的提供商不存在或不可用"""

    def __init__(self, provider_name: str, available: Optional[List[str]] = None):
        self.provider_name = provider_name
        self.available = available or []
        listing = ", ".join(self.available) or "none"
        super().__init__(
            f"Provider '{provider_name}' not found. Available providers: {listing}"
        )


class NoProviderAvailableError(ImageServiceError):
    """没有提供商满足请求的操作或模型"""
    pass


class ConfigurationError(ImageServiceError):
    """初始化阶段的配置错误（重复注册、前置条件永久缺失）"""
    pass


class ProviderExecutionError(ImageServiceError):
    """远程调用失败，不会自动重试"""

    def __init__(self, provider_name: str, message: str):
        self.provider_name = provider_name
        super().__init__(f"Provider '{provider_name}' failed: {message}")


class LoadError(ImageServiceError):
    """外部提供商加载失败"""

    def __init__(self, locator: str, message: str):
        self.locator = locator
        super().__init__(f"Failed to load providers from '{locator}': {message}")
