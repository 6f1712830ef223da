"""Tests for the MCP config helper and the stdio server."""

import io
import json

import pytest

from spongewallet.exceptions import SpongeError
from spongewallet.mcp import METHOD_NOT_FOUND, PARSE_ERROR, McpStdioServer, create_mcp_config, run_stdio_server
from spongewallet.tools import TOOL_DEFINITIONS, ToolExecutor
from spongewallet.version import __version__

from .conftest import API_KEY, EVM_ADDRESS


@pytest.fixture
def server(http):
    return McpStdioServer(ToolExecutor(http), stdin=io.StringIO(), stdout=io.StringIO())


def call(name, arguments=None, msg_id=3):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {"jsonrpc": "2.0", "id": msg_id, "method": "tools/call", "params": params}


class TestMcpConfig:
    def test_hosted_endpoint(self):
        config = create_mcp_config(API_KEY, "https://api.test/")

        assert config.url == "https://api.test/mcp"
        assert config.headers == {"Authorization": f"Bearer {API_KEY}"}

    def test_default_base_url(self):
        assert create_mcp_config(API_KEY).url == "https://api.wallet.paysponge.com/mcp"


class TestHandle:
    @pytest.mark.asyncio
    async def test_initialize(self, server):
        reply = await server.handle({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}})

        assert reply["id"] == 1
        assert reply["result"]["protocolVersion"] == "2024-11-05"
        assert reply["result"]["serverInfo"] == {"name": "spongewallet", "version": __version__}

    @pytest.mark.asyncio
    async def test_tools_list(self, server):
        reply = await server.handle({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})

        tools = reply["result"]["tools"]
        assert [tool["name"] for tool in tools] == [tool.name for tool in TOOL_DEFINITIONS]
        assert all("inputSchema" in tool for tool in tools)

    @pytest.mark.asyncio
    async def test_tool_call_success(self, api, server):
        api.add("GET", "/api/balances", json={"base": {"address": EVM_ADDRESS, "balances": []}})

        reply = await server.handle(call("get_balance", {"chain": "base"}))

        content = reply["result"]["content"][0]
        assert content["type"] == "text"
        assert json.loads(content["text"]) == {"base": {"address": EVM_ADDRESS, "balances": []}}
        assert "isError" not in reply["result"]

    @pytest.mark.asyncio
    async def test_tool_call_error(self, api, server):
        reply = await server.handle(call("get_transaction_status", {"txHash": "0xabc"}))

        assert reply["result"]["isError"] is True
        assert reply["result"]["content"][0]["text"].startswith("Error: ")
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        reply = await server.handle(call("launch_rocket"))

        assert reply["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_notifications_get_no_reply(self, server):
        assert await server.handle({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
        assert await server.handle({"jsonrpc": "2.0", "method": "notifications/cancelled"}) is None

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        reply = await server.handle({"jsonrpc": "2.0", "id": 9, "method": "resources/list"})

        assert reply["error"]["code"] == METHOD_NOT_FOUND
        assert reply["id"] == 9


class TestServe:
    @pytest.mark.asyncio
    async def test_serve_until_eof(self, http):
        lines = [
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}),
            "",
            "{not json",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}),
        ]
        stdout = io.StringIO()
        server = McpStdioServer(ToolExecutor(http), stdin=io.StringIO("\n".join(lines) + "\n"), stdout=stdout)

        await server.serve()

        replies = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [reply.get("id") for reply in replies] == [1, None, 2]
        assert replies[1]["error"]["code"] == PARSE_ERROR


class TestRunStdioServer:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        with pytest.raises(SpongeError):
            await run_stdio_server()
