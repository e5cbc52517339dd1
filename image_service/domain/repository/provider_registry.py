"""Provider Registry Repository Interface - Domain Layer"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional

from ..entity.image import ImageOperation
from .provider_factory import ProviderFactory


class ProviderRegistry(ABC):
    """提供商注册表接口"""

    @abstractmethod
    def register(self, factory: ProviderFactory) -> None:
        """注册工厂

        Raises:
            ConfigurationError: a factory with the same name (any case) exists
        """
        pass

    @abstractmethod
    def register_all(self, factories: Iterable[ProviderFactory]) -> None:
        """原子地注册一批工厂（全部成功或全部不生效）"""
        pass

    @abstractmethod
    def get_factories(self) -> List[ProviderFactory]:
        """按注册顺序列出所有工厂"""
        pass

    @abstractmethod
    def get_factory(self, name: str) -> Optional[ProviderFactory]:
        """按名称查找（不区分大小写）"""
        pass

    @abstractmethod
    def get_available_factories(self, context: Any) -> List[ProviderFactory]:
        """可创建的工厂，保持注册顺序"""
        pass

    @abstractmethod
    def get_factories_for_operation(
        self, operation: ImageOperation, context: Any
    ) -> List[ProviderFactory]:
        """支持指定操作的可用工厂"""
        pass

    @abstractmethod
    def get_factories_for_model(self, model: str, context: Any) -> List[ProviderFactory]:
        """列出该模型或接受自定义模型的可用工厂"""
        pass
