"""Provider Factory Repository Interface - Domain Layer"""

from abc import ABC, abstractmethod
from typing import Any

from ..entity.provider import ProviderMetadata
from .image_provider import ImageProvider


class ProviderFactory(ABC):
    """提供商工厂接口（延迟、可检查的构造器）

    Callers must gate ``create`` with ``can_create``. ``context`` is the
    service settings object; factories read credentials from it or from the
    environment.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """唯一名称，不区分大小写"""
        pass

    @abstractmethod
    def get_metadata(self) -> ProviderMetadata:
        """返回静态元数据，不得执行 I/O"""
        pass

    @abstractmethod
    def can_create(self, context: Any) -> bool:
        """检查前置条件是否满足

        Must not raise: missing prerequisites yield False.
        """
        pass

    @abstractmethod
    def create(self, context: Any) -> ImageProvider:
        """创建提供商实例

        Raises:
            ConfigurationError: prerequisites are missing
        """
        pass
