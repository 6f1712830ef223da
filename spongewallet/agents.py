"""Agents API."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import TypeAdapter

from .http import HttpClient
from .models import Agent, CreateAgentOptions, CreatedAgent, UpdateAgentOptions

_AGENT_LIST = TypeAdapter(List[Agent])


class AgentsApi:
    """Create, inspect and manage agents."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def create(
        self,
        name: str,
        description: Optional[str] = None,
        daily_spending_limit: Optional[str] = None,
        weekly_spending_limit: Optional[str] = None,
        monthly_spending_limit: Optional[str] = None,
    ) -> CreatedAgent:
        """Create a new agent.

        Args:
            name: Agent name (1-255 characters).
            description: Optional free-form description.
            daily_spending_limit: Optional daily limit, as a decimal string.
            weekly_spending_limit: Optional weekly limit, as a decimal string.
            monthly_spending_limit: Optional monthly limit, as a decimal string.

        Returns:
            A :class:`CreatedAgent`. Its ``api_key`` belongs to the new
            agent, not to the caller.
        """
        options = CreateAgentOptions(
            name=name,
            description=description,
            daily_spending_limit=daily_spending_limit,
            weekly_spending_limit=weekly_spending_limit,
            monthly_spending_limit=monthly_spending_limit,
        )
        data = await self._http.post("/api/agents", options.to_wire())
        return CreatedAgent.model_validate(data)

    async def list(self) -> List[Agent]:
        """List all agents of the current user."""
        data = await self._http.get("/api/agents")
        return _AGENT_LIST.validate_python(data)

    async def get(self, agent_id: str) -> Agent:
        data = await self._http.get(f"/api/agents/{agent_id}")
        return Agent.model_validate(data)

    async def get_current(self) -> Agent:
        """Get the agent that owns the API key in use."""
        data = await self._http.get("/api/agents/me")
        return Agent.model_validate(data)

    async def update(self, agent_id: str, **updates: Any) -> Agent:
        """Partially update an agent.

        Accepts the keyword arguments of :meth:`create`; only those given
        are sent.
        """
        options = UpdateAgentOptions(**updates)
        data = await self._http.put(f"/api/agents/{agent_id}", options.to_wire())
        return Agent.model_validate(data)

    async def delete(self, agent_id: str) -> None:
        await self._http.delete(f"/api/agents/{agent_id}")
