"""External Provider Loading - Infrastructure Layer

Loads provider factories from a dotted module path or a ``.py`` file.
A module either exposes ``provider_factories()`` returning factory
instances, or defines concrete ``ProviderFactory`` subclasses with no-arg
constructors.
"""

import importlib
import importlib.util
import inspect
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from types import ModuleType
from typing import Iterable, List

from ...domain.errors import ConfigurationError, LoadError
from ...domain.repository.provider_factory import ProviderFactory
from ...domain.repository.provider_registry import ProviderRegistry

logger = logging.getLogger(__name__)


class ExternalProviderSource(ABC):
    """外部提供商来源接口"""

    @abstractmethod
    def load(self, locator: str) -> List[ProviderFactory]:
        """加载工厂

        Raises:
            LoadError: locator cannot be loaded
        """
        pass


class ModuleProviderSource(ExternalProviderSource):
    """从 Python 模块或文件加载提供商工厂"""

    def load(self, locator: str) -> List[ProviderFactory]:
        if not locator or not locator.strip():
            raise LoadError(str(locator), "empty locator")

        module = self._import(locator.strip())
        factories = self._collect(module, locator)
        logger.info(f"Loaded {len(factories)} provider factories from {locator}")
        return factories

    def _import(self, locator: str) -> ModuleType:
        if locator.endswith(".py"):
            path = Path(locator)
            if not path.is_file():
                raise LoadError(locator, "file not found")
            spec = importlib.util.spec_from_file_location(f"image_service_ext_{path.stem}", path)
            if spec is None or spec.loader is None:
                raise LoadError(locator, "not an importable Python file")
            module = importlib.util.module_from_spec(spec)
            try:
                spec.loader.exec_module(module)
            except Exception as e:
                raise LoadError(locator, f"{type(e).__name__}: {e}") from e
            return module

        try:
            return importlib.import_module(locator)
        except Exception as e:
            raise LoadError(locator, f"{type(e).__name__}: {e}") from e

    def _collect(self, module: ModuleType, locator: str) -> List[ProviderFactory]:
        hook = getattr(module, "provider_factories", None)
        if callable(hook):
            try:
                produced = list(hook())
            except Exception as e:
                raise LoadError(locator, f"provider_factories() failed: {e}") from e
            for item in produced:
                if not isinstance(item, ProviderFactory):
                    raise LoadError(
                        locator, f"provider_factories() returned a {type(item).__name__}"
                    )
            return produced

        factories = []
        for name, obj in inspect.getmembers(module, inspect.isclass):
            if name.startswith("_") or obj.__module__ != module.__name__:
                continue
            if not issubclass(obj, ProviderFactory) or inspect.isabstract(obj):
                continue
            try:
                factories.append(obj())
            except Exception as e:
                raise LoadError(locator, f"cannot instantiate {name}: {e}") from e
        return factories


def load_external_providers(
    registry: ProviderRegistry, source: ExternalProviderSource, locators: Iterable[str]
) -> int:
    """加载并注册外部提供商

    A locator that fails to load is logged and skipped; the host keeps
    running. Duplicate names still raise ConfigurationError.

    Returns:
        注册的工厂数量
    """
    count = 0
    for locator in locators:
        try:
            factories = source.load(locator)
        except LoadError as e:
            logger.error(str(e))
            continue
        try:
            registry.register_all(factories)
        except ConfigurationError:
            logger.error(f"Duplicate provider name in {locator}")
            raise
        count += len(factories)
    logger.info(f"Loaded {count} external provider(s)")
    return count
