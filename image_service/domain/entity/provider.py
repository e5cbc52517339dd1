"""Provider Metadata Entities - Domain Layer"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .image import ImageOperation


@dataclass(frozen=True)
class ProviderCapabilities:
    """提供商能力声明

    ``example_models`` is illustrative, not exhaustive: a provider with
    ``accepts_custom_models`` will take any model name.
    """

    example_models: Tuple[str, ...] = ()
    supported_operations: FrozenSet[ImageOperation] = frozenset()
    default_model: Optional[str] = None
    accepts_custom_models: bool = True
    supports_multi_modal_input: bool = False
    max_conversation_images: Optional[int] = None
    features: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def supports(self, operation: ImageOperation) -> bool:
        return operation in self.supported_operations

    def lists_model(self, model: str) -> bool:
        """检查模型是否在示例列表中（不区分大小写）"""
        wanted = model.lower()
        return any(m.lower() == wanted for m in self.example_models)

    def to_dict(self) -> Dict[str, Any]:
        # Keep operation order stable for callers diffing the output
        operations = [op.value for op in ImageOperation if op in self.supported_operations]
        return {
            "exampleModels": list(self.example_models),
            "supportedOperations": operations,
            "defaultModel": self.default_model,
            "acceptsCustomModels": self.accepts_custom_models,
            "supportsMultiModalInput": self.supports_multi_modal_input,
            "maxConversationImages": self.max_conversation_images,
            "features": dict(self.features),
        }


@dataclass(frozen=True)
class ProviderRequirements:
    """提供商运行所需的前置条件（仅供展示）"""

    required_environment_variables: Tuple[str, ...] = ()
    required_configuration_sections: Tuple[str, ...] = ()
    required_dependencies: Tuple[str, ...] = ()
    optional_dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderMetadata:
    """提供商元数据，注册后不可变"""

    name: str
    capabilities: ProviderCapabilities
    description: Optional[str] = None
    requirements: ProviderRequirements = field(default_factory=ProviderRequirements)
    priority: int = 100
