"""
Flat key-value session cache.

Holds the small amount of state the SDK keeps between calls: the bearer token
and user id of the signed-in player, plus whatever flat values an embedding
application wants to remember. Optionally persisted to a JSON file so a
session survives restarts. Values must be JSON scalars; nested structures are
rejected.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiofiles

from ..observability.logging import get_baas_logger

Scalar = Union[str, int, float, bool, None]

TOKEN_KEY = "session_token"
USER_ID_KEY = "user_id"


class SessionStore:
    """
    In-memory flat key-value store with optional JSON persistence.

    Example:
        store = SessionStore(session_file=Path("session.json"))
        await store.load()
        store.token = "eyJ..."
        store.user_id = "player-42"
        await store.save()
    """

    def __init__(self, session_file: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            session_file: Path to persist values to; None keeps them in memory only
        """
        self.session_file = session_file
        self._values: Dict[str, Scalar] = {}
        self._lock = threading.Lock()
        self._logger = get_baas_logger(__name__)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: Scalar) -> None:
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise TypeError(f"session values must be flat scalars, got {type(value).__name__}")
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            if key not in self._values:
                return False
            del self._values[key]
            return True

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def as_dict(self) -> Dict[str, Scalar]:
        with self._lock:
            return dict(self._values)

    @property
    def token(self) -> Optional[str]:
        return self.get(TOKEN_KEY) or None

    @token.setter
    def token(self, value: Optional[str]) -> None:
        self.set(TOKEN_KEY, value)

    @property
    def user_id(self) -> Optional[str]:
        value = self.get(USER_ID_KEY)
        return str(value) if value else None

    @user_id.setter
    def user_id(self, value: Optional[str]) -> None:
        self.set(USER_ID_KEY, value)

    async def save(self) -> None:
        """Write the current values to disk (no-op without a session file)."""
        if self.session_file is None:
            return

        session_data = {
            "values": self.as_dict(),
            "saved_at": datetime.now().isoformat(),
        }

        async with aiofiles.open(self.session_file, "w") as f:
            await f.write(json.dumps(session_data, indent=2))

        self._logger.info(
            "session.saved",
            session_file=str(self.session_file),
            value_count=len(session_data["values"]),
        )

    async def load(self) -> bool:
        """
        Load values from disk, replacing what is in memory.

        Returns:
            True if a session was loaded, False if there is none or it is unreadable
        """
        if self.session_file is None or not self.session_file.exists():
            self._logger.debug("session.not_found", session_file=str(self.session_file))
            return False

        try:
            async with aiofiles.open(self.session_file, "r") as f:
                session_data = json.loads(await f.read())
            values = session_data.get("values", {})
            if not isinstance(values, dict):
                raise ValueError("session file 'values' must be an object")
        except (OSError, ValueError, AttributeError) as exc:
            self._logger.error(
                "session.load_failed",
                session_file=str(self.session_file),
                error_message=str(exc),
                exc_info=exc,
            )
            return False

        with self._lock:
            self._values = {
                k: v for k, v in values.items()
                if v is None or isinstance(v, (str, int, float, bool))
            }

        self._logger.info(
            "session.loaded",
            session_file=str(self.session_file),
            value_count=len(self._values),
            saved_at=session_data.get("saved_at"),
        )
        return True

    async def clear_session(self) -> None:
        """Clear memory and remove the saved session file."""
        self.clear()
        if self.session_file is not None and self.session_file.exists():
            self.session_file.unlink()
            self._logger.info("session.cleared", session_file=str(self.session_file))
