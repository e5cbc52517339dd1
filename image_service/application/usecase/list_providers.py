"""List Providers Use Case - Application Layer"""

from typing import Any, Dict, List

from ...domain.repository.provider_registry import ProviderRegistry


class ListProvidersUseCase:
    """列出已注册的提供商及其可用性"""

    def __init__(self, registry: ProviderRegistry, context: Any = None):
        self._registry = registry
        self._context = context

    def execute(self) -> List[Dict[str, Any]]:
        available = {f.name.lower() for f in self._registry.get_available_factories(self._context)}
        providers = []
        for factory in self._registry.get_factories():
            metadata = factory.get_metadata()
            providers.append({
                "name": metadata.name,
                "description": metadata.description,
                "priority": metadata.priority,
                "available": factory.name.lower() in available,
                "capabilities": metadata.capabilities.to_dict(),
            })
        return providers
