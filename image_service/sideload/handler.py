"""JSON-RPC 2.0 Sideload Handler

Line-delimited JSON-RPC over stdio for the image tools. stdout carries
protocol messages only; logs go to stderr.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, Optional, TextIO

logger = logging.getLogger(__name__)

MethodHandler = Callable[[Dict[str, Any]], Awaitable[Any]]

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class SideloadHandler:
    """JSON-RPC 2.0 方法分发器

    Requests without an ``id`` are notifications and never get a response,
    including on error.
    """

    def __init__(self, output: Optional[TextIO] = None):
        self._methods: Dict[str, MethodHandler] = {}
        self._output = output
        self._running = False

    def register_method(self, name: str, handler: MethodHandler) -> None:
        self._methods[name] = handler

    @property
    def methods(self):
        return sorted(self._methods)

    async def handle_request(self, raw: str) -> Optional[str]:
        """处理单条请求，返回响应 JSON；通知返回 None"""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError as e:
            return _error(None, PARSE_ERROR, f"Parse error: {e}")

        if not isinstance(message, dict) or message.get("jsonrpc") != "2.0":
            return _error(None, INVALID_REQUEST, "Invalid Request: expected a JSON-RPC 2.0 object")

        msg_id = message.get("id")
        method = message.get("method")
        params = message.get("params")
        if params is None:
            params = {}

        handler = self._methods.get(method) if isinstance(method, str) else None
        if handler is None:
            if msg_id is None:
                logger.debug(f"Ignoring notification for unknown method {method!r}")
                return None
            return _error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        if not isinstance(params, dict):
            if msg_id is None:
                return None
            return _error(msg_id, INVALID_PARAMS, "Invalid params: expected an object")

        try:
            result = await handler(params)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Error handling {method}")
            if msg_id is None:
                return None
            return _error(msg_id, INTERNAL_ERROR, str(e))

        if msg_id is None:
            return None
        return json.dumps({"jsonrpc": "2.0", "id": msg_id, "result": result})

    async def run(self) -> None:
        """读取 stdin 直到 EOF 或 stop()"""
        self._running = True
        logger.info(f"Sideload handler started; methods: {', '.join(self.methods)}")

        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)

        while self._running:
            try:
                line = await reader.readline()
            except asyncio.CancelledError:
                break
            if not line:
                logger.info("EOF on stdin, shutting down")
                break

            raw = line.decode("utf-8", errors="replace").strip()
            if not raw:
                continue
            response = await self.handle_request(raw)
            if response is not None:
                self._write(response)

        self._running = False
        logger.info("Sideload handler stopped")

    def stop(self) -> None:
        self._running = False

    def _write(self, line: str) -> None:
        output = self._output or sys.stdout
        output.write(line + "\n")
        output.flush()


def _error(msg_id: Any, code: int, message: str) -> str:
    return json.dumps({
        "jsonrpc": "2.0", "id": msg_id,
        "error": {"code": code, "message": message},
    })
