"""
Local credential store.

One JSON record per user at ``~/.spongewallet/credentials.json``. The
directory is created owner-only (0700) and the file owner read/write
(0600). A corrupt or invalid file is treated as absent.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import Credentials

logger = logging.getLogger("spongewallet.credentials")

CREDENTIALS_DIR = ".spongewallet"
CREDENTIALS_FILE = "credentials.json"


def get_credentials_dir() -> Path:
    return Path.home() / CREDENTIALS_DIR


def get_credentials_path() -> Path:
    return get_credentials_dir() / CREDENTIALS_FILE


def load_credentials() -> Optional[Credentials]:
    """Load credentials from disk.

    Returns:
        The stored :class:`Credentials`, or ``None`` if the file is missing,
        unreadable or does not hold a valid record.
    """
    path = get_credentials_path()
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read credentials file {path}: {e}")
        return None

    try:
        return Credentials.model_validate(data)
    except ValidationError:
        logger.warning(f"Invalid credentials file {path}, ignoring")
        return None


def save_credentials(credentials: Credentials) -> Path:
    """Write credentials to disk, replacing any previous record."""
    directory = get_credentials_dir()
    directory.mkdir(mode=0o700, parents=True, exist_ok=True)

    path = get_credentials_path()
    payload = json.dumps(credentials.to_wire(), indent=2)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(payload)
    # O_CREAT only applies the mode to new files
    os.chmod(path, 0o600)
    logger.debug(f"Saved credentials for agent {credentials.agent_id} to {path}")
    return path


def delete_credentials() -> bool:
    """Remove the credential file. Returns ``True`` if a file was removed."""
    path = get_credentials_path()
    if not path.exists():
        return False
    path.unlink()
    return True
