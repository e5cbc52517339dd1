"""Image Service Main Entry Point"""

import asyncio
import logging
import signal
import sys
from typing import List

from . import __version__
from .application.usecase.image_generation import ImageGenerationUseCase
from .application.usecase.list_providers import ListProvidersUseCase
from .domain.errors import ConfigurationError
from .domain.repository.provider_factory import ProviderFactory
from .domain.service.image_router import ImageRouter
from .infrastructure.config.settings import Settings, load_settings
from .infrastructure.image.factories import (
    GoogleProviderFactory,
    MockProviderFactory,
    OpenAIProviderFactory,
)
from .infrastructure.provider.loader import ModuleProviderSource, load_external_providers
from .infrastructure.provider.registry import InMemoryProviderRegistry
from .infrastructure.tool.image_tools import ImageTools
from .sideload.handler import SideloadHandler
from .sideload.tool import ToolHandler

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """配置日志系统

    Logs always go to stderr; stdout carries JSON-RPC.

    Args:
        level: 日志级别
        log_format: 日志格式 (json/text)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)

    if log_format == "json":
        # JSON 格式日志
        logging.basicConfig(
            level=log_level,
            format='{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","message":"%(message)s"}',
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stderr,
        )
    else:
        # 文本格式日志
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stderr,
        )


def create_builtin_factories(settings: Settings) -> List[ProviderFactory]:
    """创建内置提供商工厂（配置可覆盖优先级）"""
    return [
        OpenAIProviderFactory(priority=settings.provider("openai").priority),
        GoogleProviderFactory(priority=settings.provider("google").priority),
        MockProviderFactory(priority=settings.provider("mock").priority),
    ]


def build_registry(settings: Settings) -> InMemoryProviderRegistry:
    """创建并填充提供商注册表

    Raises:
        ConfigurationError: duplicate provider names
    """
    registry = InMemoryProviderRegistry(create_builtin_factories(settings))

    if settings.external_providers:
        load_external_providers(registry, ModuleProviderSource(), settings.external_providers)

    available = registry.get_available_factories(settings)
    if available:
        logger.info(f"Available image providers: {', '.join(f.name for f in available)}")
    else:
        logger.warning("No image providers available; set an API key or enable providers.mock")
    return registry


def build_tools(settings: Settings) -> ImageTools:
    """组装 注册表 → 路由器 → 用例 → 工具"""
    registry = build_registry(settings)
    router = ImageRouter(registry, settings)
    return ImageTools(
        ImageGenerationUseCase(router, settings),
        ListProvidersUseCase(registry, settings),
    )


async def run_sideload(tools: ImageTools) -> None:
    """Run in sideload mode: JSON-RPC 2.0 over stdin/stdout."""
    logger.info("Starting Image Service in SIDELOAD mode (JSON-RPC 2.0 over stdio)")

    tool_handler = ToolHandler(tools)
    handler = SideloadHandler()

    async def handle_initialize(params):
        return {
            "name": "image-service",
            "version": __version__,
            "capabilities": {
                "tools": tool_handler.get_capabilities(),
            },
        }

    async def handle_shutdown(params):
        logger.info("Received shutdown, stopping sideload handler")
        handler.stop()
        return {}

    async def handle_ping(params):
        return {"pong": True}

    handler.register_method("initialize", handle_initialize)
    handler.register_method("shutdown", handle_shutdown)
    handler.register_method("ping", handle_ping)
    handler.register_method("tools/list", tool_handler.handle_list)
    handler.register_method("tool/execute", tool_handler.handle_execute)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, handler.stop)
        except NotImplementedError:
            # Windows event loops
            pass

    await handler.run()
    logger.info("Sideload mode exited")


def main() -> None:
    """主函数"""
    # 1. 加载配置
    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    # 2. 配置日志
    setup_logging(settings.logging.level, settings.logging.format)
    logger.info("Starting Image Service...")

    # 3. 创建注册表与工具
    try:
        tools = build_tools(settings)
    except ConfigurationError as e:
        logger.error(f"Failed to initialize providers: {e}")
        sys.exit(1)

    # 4. 运行
    try:
        asyncio.run(run_sideload(tools))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.error(f"Fatal sideload error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
