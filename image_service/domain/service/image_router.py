"""Image Router Domain Service - Domain Layer"""

import logging
from typing import Any, Iterable, List, Optional

from ..entity.image import CanonicalRequest
from ..errors import NoProviderAvailableError, ProviderNotFoundError
from ..repository.provider_factory import ProviderFactory
from ..repository.provider_registry import ProviderRegistry

logger = logging.getLogger(__name__)


class ImageRouter:
    """图像路由服务（提供商选择策略）

    选择顺序：
    1. 显式指定的提供商（仅在可用工厂中查找，空白名称视为未指定）
    2. 指定模型：支持该模型且支持该操作的工厂
    3. 其余：支持该操作的工厂

    Among several candidates the highest priority wins and ties go to the
    earliest registered factory. The router holds no mutable state, so the
    same registry snapshot and request always select the same factory.
    """

    def __init__(self, registry: ProviderRegistry, context: Any = None):
        """初始化路由器

        Args:
            registry: 提供商注册表
            context: 传递给工厂 can_create 的上下文（服务配置）
        """
        self._registry = registry
        self._context = context

    def select(
        self, request: CanonicalRequest, excluded: Optional[Iterable[str]] = None
    ) -> ProviderFactory:
        """为请求选择唯一的工厂

        Args:
            request: 规范化请求
            excluded: 不参与选择的提供商名称（不区分大小写）

        Returns:
            选中的工厂

        Raises:
            ProviderNotFoundError: 显式提供商不存在或不可用
            NoProviderAvailableError: 没有工厂满足操作/模型
        """
        if request.provider and request.provider.strip():
            return self._select_explicit(request.provider, excluded)

        candidates = self.rank(request, excluded)
        if not candidates:
            raise NoProviderAvailableError(self._describe_failure(request))

        selected = candidates[0]
        logger.info(
            f"Selected provider '{selected.name}' for operation '{request.operation.value}'"
            + (f" with model '{request.parameters.model}'" if request.parameters.model else "")
        )
        return selected

    def rank(
        self, request: CanonicalRequest, excluded: Optional[Iterable[str]] = None
    ) -> List[ProviderFactory]:
        """按优先级排列候选工厂（不处理显式提供商）"""
        skip = _normalize_names(excluded)
        model = request.parameters.model

        if model:
            by_model = self._registry.get_factories_for_model(model, self._context)
            candidates = [
                f for f in by_model
                if f.get_metadata().capabilities.supports(request.operation)
            ]
        else:
            candidates = self._registry.get_factories_for_operation(
                request.operation, self._context
            )

        candidates = [f for f in candidates if f.name.lower() not in skip]

        # sorted() is stable, so equal priorities keep registration order
        return sorted(candidates, key=lambda f: -f.get_metadata().priority)

    def _select_explicit(
        self, provider_name: str, excluded: Optional[Iterable[str]]
    ) -> ProviderFactory:
        wanted = provider_name.strip().lower()
        available = self._registry.get_available_factories(self._context)
        skip = _normalize_names(excluded)

        for factory in available:
            if factory.name.lower() == wanted and wanted not in skip:
                logger.info(f"Selected explicitly requested provider '{factory.name}'")
                return factory

        names = [f.name for f in available]
        logger.warning(f"Requested provider '{provider_name}' not found among {names}")
        raise ProviderNotFoundError(provider_name, names)

    def _describe_failure(self, request: CanonicalRequest) -> str:
        available = ", ".join(
            f.name for f in self._registry.get_available_factories(self._context)
        ) or "none"
        message = f"No suitable providers found for operation '{request.operation.value}'"
        if request.parameters.model:
            message += f" with model '{request.parameters.model}'"
        return f"{message}. Available providers: {available}"


def _normalize_names(names: Optional[Iterable[str]]) -> set:
    return {n.lower() for n in names} if names else set()
