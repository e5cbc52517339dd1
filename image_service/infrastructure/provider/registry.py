"""In-Memory Provider Registry - Infrastructure Layer"""

import logging
import threading
from typing import Any, Iterable, List, Optional, Tuple

from ...domain.entity.image import ImageOperation
from ...domain.errors import ConfigurationError
from ...domain.repository.provider_factory import ProviderFactory
from ...domain.repository.provider_registry import ProviderRegistry

logger = logging.getLogger(__name__)


class InMemoryProviderRegistry(ProviderRegistry):
    """内存提供商注册表

    Factories are kept in an immutable tuple that is swapped as a whole
    under a lock. Readers never lock and always see either the previous or
    the next snapshot.
    """

    def __init__(self, factories: Optional[Iterable[ProviderFactory]] = None):
        self._lock = threading.Lock()
        self._snapshot: Tuple[ProviderFactory, ...] = ()
        if factories:
            self.register_all(factories)

    def register(self, factory: ProviderFactory) -> None:
        """注册工厂"""
        self.register_all([factory])

    def register_all(self, factories: Iterable[ProviderFactory]) -> None:
        """原子地注册一批工厂"""
        batch = list(factories)
        if not batch:
            return

        with self._lock:
            seen = {f.name.lower() for f in self._snapshot}
            for factory in batch:
                key = factory.name.lower()
                if key in seen:
                    raise ConfigurationError(
                        f"Provider factory '{factory.name}' is already registered"
                    )
                seen.add(key)
            self._snapshot = self._snapshot + tuple(batch)

        for factory in batch:
            logger.info(
                f"Registered provider factory: {factory.name} "
                f"(priority={factory.get_metadata().priority})"
            )

    def get_factories(self) -> List[ProviderFactory]:
        return list(self._snapshot)

    def get_factory(self, name: str) -> Optional[ProviderFactory]:
        if not name or not name.strip():
            return None
        wanted = name.strip().lower()
        for factory in self._snapshot:
            if factory.name.lower() == wanted:
                return factory
        return None

    def get_available_factories(self, context: Any) -> List[ProviderFactory]:
        snapshot = self._snapshot
        available = []
        for factory in snapshot:
            try:
                usable = factory.can_create(context)
            except Exception as e:
                # can_create must not raise; a factory that does is unusable
                logger.warning(f"Error checking availability for factory '{factory.name}': {e}")
                continue
            if usable:
                available.append(factory)
            else:
                logger.debug(f"Factory '{factory.name}' is not available (missing requirements)")

        logger.debug(f"Found {len(available)} available factories out of {len(snapshot)}")
        return available

    def get_factories_for_operation(
        self, operation: ImageOperation, context: Any
    ) -> List[ProviderFactory]:
        compatible = [
            f for f in self.get_available_factories(context)
            if f.get_metadata().capabilities.supports(operation)
        ]
        logger.debug(f"Found {len(compatible)} factories supporting operation '{operation.value}'")
        return compatible

    def get_factories_for_model(self, model: str, context: Any) -> List[ProviderFactory]:
        if not model or not model.strip():
            return []

        compatible = []
        for factory in self.get_available_factories(context):
            capabilities = factory.get_metadata().capabilities
            if capabilities.lists_model(model) or capabilities.accepts_custom_models:
                compatible.append(factory)

        logger.debug(f"Found {len(compatible)} factories supporting model '{model}'")
        return compatible
