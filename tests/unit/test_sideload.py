import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from image_service.sideload.handler import SideloadHandler
from image_service.sideload.tool import ToolHandler


def _tools():
    tools = MagicMock()
    tools.generate_image = AsyncMock(return_value={"images": [], "provider": "Mock"})
    tools.generate_image_from_conversation = AsyncMock(return_value={})
    tools.edit_image = AsyncMock(return_value={})
    tools.create_variation = AsyncMock(return_value={})
    tools.list_providers = AsyncMock(return_value=[])
    return tools


@pytest.mark.asyncio
async def test_dispatches_registered_method():
    handler = SideloadHandler()

    async def echo(params):
        return {"echo": params["value"]}

    handler.register_method("echo", echo)

    raw = await handler.handle_request(json.dumps({
        "jsonrpc": "2.0", "id": 1, "method": "echo", "params": {"value": 42},
    }))

    assert json.loads(raw) == {"jsonrpc": "2.0", "id": 1, "result": {"echo": 42}}


@pytest.mark.asyncio
async def test_parse_error():
    response = json.loads(await SideloadHandler().handle_request("{not json"))

    assert response["error"]["code"] == -32700
    assert response["id"] is None


@pytest.mark.asyncio
async def test_unknown_method():
    response = json.loads(await SideloadHandler().handle_request(
        json.dumps({"jsonrpc": "2.0", "id": 7, "method": "nope"})
    ))

    assert response["error"]["code"] == -32601
    assert response["id"] == 7


@pytest.mark.asyncio
async def test_notifications_get_no_response():
    handler = SideloadHandler()
    called = AsyncMock(return_value={})
    handler.register_method("notify", called)

    assert await handler.handle_request(json.dumps({"jsonrpc": "2.0", "method": "notify"})) is None
    assert await handler.handle_request(json.dumps({"jsonrpc": "2.0", "method": "unknown"})) is None
    called.assert_awaited_once_with({})


@pytest.mark.asyncio
async def test_handler_exception_becomes_internal_error():
    handler = SideloadHandler()
    handler.register_method("fail", AsyncMock(side_effect=RuntimeError("kaboom")))

    response = json.loads(await handler.handle_request(
        json.dumps({"jsonrpc": "2.0", "id": 3, "method": "fail"})
    ))

    assert response["error"] == {"code": -32603, "message": "kaboom"}


@pytest.mark.asyncio
async def test_tool_execute_passes_arguments():
    tools = _tools()
    handler = ToolHandler(tools)

    result = await handler.handle_execute({
        "name": "generate_image",
        "arguments": {"prompt": "a fox", "size": "1024x1024"},
    })

    assert result == {"images": [], "provider": "Mock"}
    tools.generate_image.assert_awaited_once_with(prompt="a fox", size="1024x1024")


@pytest.mark.asyncio
async def test_unknown_tool():
    result = await ToolHandler(_tools()).handle_execute({"name": "paint", "arguments": {}})

    assert result == {"error": "Tool 'paint' not found"}


@pytest.mark.asyncio
async def test_bad_tool_arguments():
    tools = _tools()
    tools.generate_image = AsyncMock(side_effect=TypeError("unexpected keyword argument 'colour'"))
    handler = ToolHandler(tools)

    result = await handler.handle_execute({"name": "generate_image", "arguments": {"colour": "red"}})

    assert "Invalid arguments" in result["error"]


@pytest.mark.asyncio
async def test_tools_list():
    result = await ToolHandler(_tools()).handle_list({})

    assert "generate_image" in [t["name"] for t in result["tools"]]


def test_capabilities():
    names = [c["name"] for c in ToolHandler(_tools()).get_capabilities()]

    assert names[0] == "generate_image"
    assert "list_providers" in names


@pytest.mark.asyncio
async def test_tool_execute_accepts_camel_case_arguments():
    tools = _tools()
    handler = ToolHandler(tools)

    await handler.handle_execute({
        "name": "create_variation",
        "arguments": {"image": "aGVsbG8=", "numberOfImages": 3},
    })

    tools.create_variation.assert_awaited_once_with(image="aGVsbG8=", number_of_images=3)


@pytest.mark.asyncio
async def test_request_without_jsonrpc_version_is_invalid():
    response = json.loads(await SideloadHandler().handle_request(
        json.dumps({"id": 1, "method": "ping"})
    ))

    assert response["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_non_object_params_are_rejected():
    handler = SideloadHandler()
    called = AsyncMock(return_value={})
    handler.register_method("ping", called)

    response = json.loads(await handler.handle_request(
        json.dumps({"jsonrpc": "2.0", "id": 2, "method": "ping", "params": [1, 2]})
    ))

    assert response["error"]["code"] == -32602
    called.assert_not_called()
