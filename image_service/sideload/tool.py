"""Sideload Tool Handler

Handles 'tools/list' and 'tool/execute' JSON-RPC calls by delegating
to ImageTools.
"""

import logging
import re
from typing import Any, Awaitable, Callable, Dict, List

from ..infrastructure.tool.image_tools import ImageTools, tool_definitions

logger = logging.getLogger(__name__)


class ToolHandler:
    """Handles tool requests via ImageTools."""

    def __init__(self, tools: ImageTools):
        self._tools = tools
        self._dispatch: Dict[str, Callable[..., Awaitable[Dict[str, Any]]]] = {
            "generate_image": tools.generate_image,
            "generate_image_from_conversation": tools.generate_image_from_conversation,
            "edit_image": tools.edit_image,
            "create_variation": tools.create_variation,
            "list_providers": tools.list_providers,
        }

    async def handle_list(self, params: dict) -> dict:
        return {"tools": tool_definitions()}

    async def handle_execute(self, params: dict) -> dict:
        """Handle a tool/execute JSON-RPC request.

        Params:
        {
            "name": "generate_image",
            "arguments": {"prompt": "a red fox", "size": "1024x1024"}
        }
        """
        name = params.get("name", "")
        arguments = params.get("arguments") or {}

        tool = self._dispatch.get(name)
        if tool is None:
            return {"error": f"Tool '{name}' not found"}
        if not isinstance(arguments, dict):
            return {"error": "Tool arguments must be an object"}

        try:
            return await tool(**_normalize_arguments(arguments))
        except TypeError as e:
            # unexpected or missing keyword arguments
            logger.warning(f"Bad arguments for tool '{name}': {e}")
            return {"error": f"Invalid arguments for '{name}': {e}"}

    def get_capabilities(self) -> List[dict]:
        """Return tool capabilities for the initialize response."""
        return [
            {"name": d["name"], "description": d["description"]}
            for d in tool_definitions()
        ]


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _normalize_arguments(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Accept camelCase argument names (``numberOfImages``) as snake_case."""
    return {_CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in arguments.items()}
