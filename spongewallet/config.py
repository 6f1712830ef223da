"""
SDK configuration.

Environment variables (a ``.env`` file in the working directory is loaded
on import):

* ``SPONGE_API_KEY``    agent API key, preempts the credential file
* ``SPONGE_MASTER_KEY`` master key used by :class:`SpongeAdmin`
* ``SPONGE_API_URL``    API base URL override

Everything is resolved once, here, into a :class:`SessionConfig` that is
passed down explicitly. Nothing below this module reads the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .credentials import load_credentials

load_dotenv()

DEFAULT_BASE_URL = "https://api.wallet.paysponge.com"

API_KEY_ENV = "SPONGE_API_KEY"
MASTER_KEY_ENV = "SPONGE_MASTER_KEY"
BASE_URL_ENV = "SPONGE_API_URL"

# Seconds, per request
REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class SessionConfig:
    """Connection settings for one session.

    ``api_key`` is ``None`` when nothing resolved and an interactive login
    is required. ``source`` records where the key came from.
    """

    api_key: Optional[str]
    agent_id: Optional[str]
    base_url: str
    source: Optional[str] = None

    @property
    def is_default_base_url(self) -> bool:
        return self.base_url == DEFAULT_BASE_URL


def resolve_session_config(
    api_key: Optional[str] = None,
    agent_id: Optional[str] = None,
    base_url: Optional[str] = None,
    env_var: str = API_KEY_ENV,
) -> SessionConfig:
    """Resolve the API key, agent id and base URL for a session.

    Precedence for the key is explicit argument, then ``env_var``, then the
    credential file. The stored agent id and base URL are only used when
    the stored key is the key in use, so an agent id never gets paired
    with somebody else's key.
    """
    source: Optional[str] = None
    if api_key:
        source = "argument"
    else:
        env_key = os.environ.get(env_var)
        if env_key:
            api_key, source = env_key, "environment"

    credentials = load_credentials()
    if credentials is not None and api_key is None:
        api_key, source = credentials.api_key, "credentials"

    stored = credentials if credentials is not None and credentials.api_key == api_key else None

    if agent_id is None and stored is not None:
        agent_id = stored.agent_id

    if base_url is None:
        if stored is not None and stored.base_url:
            base_url = stored.base_url
        else:
            base_url = os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL

    return SessionConfig(
        api_key=api_key,
        agent_id=agent_id,
        base_url=base_url.rstrip("/"),
        source=source,
    )
