"""Shared fixtures: an isolated home directory and a mocked SpongeWallet API."""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from spongewallet.http import HttpClient

BASE_URL = "https://api.test"
API_KEY = "sponge_test_0123456789abcdef"
AGENT_ID = "3f2b8c1e-6a4d-4e8f-9b2a-1c5d7e9f0a12"
OTHER_AGENT_ID = "9d1e2f3a-4b5c-4d6e-8f70-8192a3b4c5d6"
EVM_ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
SOLANA_ADDRESS = "7EcDhSYGxXyscszYEp35KHN8vvw3svAuLKTzXwCFLtV"


class MockApi:
    """Routes requests to queued canned responses and records them.

    Responses for a route are served in order; the last one repeats.
    Unrouted requests get a 404 in the API's error format.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self.on_request = None

    def add(
        self,
        method: str,
        path: str,
        json: Any = None,
        status_code: int = 200,
        content: Optional[bytes] = None,
    ) -> None:
        self._routes.setdefault((method, path), []).append(
            {"json": json, "status_code": status_code, "content": content}
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(
                404,
                json={"error": "not_found", "message": f"No route for {request.method} {request.url.path}"},
            )
        canned = queue.pop(0) if len(queue) > 1 else queue[0]
        if canned["content"] is not None:
            return httpx.Response(canned["status_code"], content=canned["content"])
        if canned["json"] is None:
            return httpx.Response(canned["status_code"])
        return httpx.Response(canned["status_code"], json=canned["json"])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point the credential store at a temp dir and clear SDK env vars."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("SPONGE_API_KEY", "SPONGE_MASTER_KEY", "SPONGE_API_URL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def api():
    return MockApi()


@pytest.fixture
def http(api):
    return HttpClient(API_KEY, base_url=BASE_URL, transport=api.transport)


def agent_payload(agent_id: str = AGENT_ID, name: str = "Trading Bot") -> Dict[str, Any]:
    return {
        "id": agent_id,
        "name": name,
        "description": None,
        "status": "active",
        "dailySpendingLimit": "100",
        "weeklySpendingLimit": None,
        "monthlySpendingLimit": None,
        "createdAt": "2026-01-05T10:00:00Z",
        "updatedAt": "2026-01-05T10:00:00Z",
    }


def wallet_payload(
    chain_id: int,
    chain_name: str,
    address: str,
    wallet_id: str = "5a6b7c8d-1e2f-4a3b-9c4d-5e6f7a8b9c0d",
    balance: Optional[str] = None,
    symbol: Optional[str] = None,
) -> Dict[str, Any]:
    payload = {
        "id": wallet_id,
        "agentId": AGENT_ID,
        "chainId": chain_id,
        "chainName": chain_name,
        "address": address,
        "isActive": True,
        "createdAt": "2026-01-05T10:00:00Z",
    }
    if balance is not None:
        payload["balance"] = balance
    if symbol is not None:
        payload["symbol"] = symbol
    return payload
