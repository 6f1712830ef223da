"""
MCP integration.

Two ways to hand the wallet to an MCP-capable agent framework:

* :func:`create_mcp_config` points the framework at the hosted MCP endpoint
  (``<base_url>/mcp``) with the API key as bearer token.
* :func:`run_stdio_server` serves the local tool catalog over MCP JSON-RPC
  on stdio, e.g. ``spongewallet mcp`` in a desktop client config.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

import httpx

from .config import DEFAULT_BASE_URL, resolve_session_config
from .exceptions import SpongeError
from .http import HttpClient
from .models import McpConfig
from .tools import ToolExecutor, ToolName
from .version import __version__

logger = logging.getLogger("spongewallet.mcp")

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "spongewallet"

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601


def create_mcp_config(api_key: str, base_url: str = DEFAULT_BASE_URL) -> McpConfig:
    """MCP server config for the hosted SpongeWallet MCP endpoint.

    Args:
        api_key: Agent API key used as bearer token.
        base_url: API base URL.
    """
    return McpConfig(
        url=f"{base_url.rstrip('/')}/mcp",
        headers={"Authorization": f"Bearer {api_key}"},
    )


# ═══════════════════════════════════════
# STDIO SERVER
# ═══════════════════════════════════════


def _response(msg_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "result": result}


def _error(msg_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


class McpStdioServer:
    """MCP JSON-RPC server over line-delimited stdio.

    Handles ``initialize``, ``tools/list``, ``tools/call`` and
    ``notifications/initialized``. Tool calls go through
    :class:`ToolExecutor`; a failed tool is reported as an ``isError``
    result, not as a protocol error.
    """

    def __init__(
        self,
        executor: ToolExecutor,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self.executor = executor
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout

    async def serve(self) -> None:
        """Serve until stdin is closed."""
        while True:
            line = await asyncio.to_thread(self._stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue

            try:
                msg = json.loads(line)
            except ValueError as e:
                logger.warning(f"Unparseable MCP message: {e}")
                self._write(_error(None, PARSE_ERROR, "Parse error"))
                continue

            reply = await self.handle(msg)
            if reply is not None:
                self._write(reply)

    async def handle(self, msg: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Handle one JSON-RPC message. Returns the reply, if any."""
        method = msg.get("method", "")
        msg_id = msg.get("id")
        params = msg.get("params") or {}

        if method == "initialize":
            return _response(
                msg_id,
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {"tools": {}},
                    "serverInfo": {"name": SERVER_NAME, "version": __version__},
                },
            )
        if method == "tools/list":
            return _response(
                msg_id,
                {
                    "tools": [
                        {
                            "name": tool["name"],
                            "description": tool["description"],
                            "inputSchema": tool["input_schema"],
                        }
                        for tool in self.executor.definitions
                    ]
                },
            )
        if method == "tools/call":
            return await self._call_tool(msg_id, params)
        if method == "notifications/initialized":
            # Acknowledgement, no response needed
            return None
        if msg_id is None:
            return None
        return _error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    async def _call_tool(self, msg_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name", "")
        if tool_name not in {tool.value for tool in ToolName}:
            return _error(msg_id, METHOD_NOT_FOUND, f"Unknown tool: {tool_name}")

        result = await self.executor.execute(tool_name, params.get("arguments") or {})
        if result["status"] == "error":
            return _response(
                msg_id,
                {
                    "content": [{"type": "text", "text": f"Error: {result['error']}"}],
                    "isError": True,
                },
            )
        return _response(
            msg_id,
            {"content": [{"type": "text", "text": json.dumps(result["data"], indent=2, default=str)}]},
        )

    def _write(self, msg: Dict[str, Any]) -> None:
        self._stdout.write(json.dumps(msg) + "\n")
        self._stdout.flush()


async def run_stdio_server(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Serve the tool catalog over stdio for the stored or configured agent.

    Never starts an interactive login: stdio belongs to the MCP client.

    Raises:
        SpongeError: If no API key is available.
    """
    session = resolve_session_config(api_key=api_key, base_url=base_url)
    if not session.api_key:
        raise SpongeError("No API key found. Run `spongewallet login` or set SPONGE_API_KEY.")

    logger.info(f"Starting MCP stdio server against {session.base_url}")
    async with HttpClient(session.api_key, base_url=session.base_url, transport=transport) as http:
        await McpStdioServer(ToolExecutor(http, session.agent_id)).serve()
