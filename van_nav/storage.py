"""Key/value stores for client state: on disk for the CLI, in the session for the web."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from typing import MutableMapping

from diskcache import Cache

logger = logging.getLogger(__name__)


class ClientStorage:
    """Small persistent store for client state (session token, UI preferences).

    Values survive process restarts; each key holds a single value.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._cache = Cache(str(self.directory))

    def get(self, key: str) -> Any:
        return self._cache.get(key)

    def set(self, key: str, value: Any) -> None:
        self._cache.set(key, value)

    def delete(self, key: str) -> None:
        # Missing keys are fine
        self._cache.delete(key)

    def close(self) -> None:
        self._cache.close()

    def __enter__(self) -> "ClientStorage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ClientStorage({str(self.directory)!r})"


class SessionStorage:
    """Client state kept in a web visitor's own session.

    Wraps the mutable mapping Starlette's session middleware puts on each
    request, so the token and tag travel in that browser's signed cookie.
    """

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self.session = session

    def get(self, key: str) -> Any:
        return self.session.get(key)

    def set(self, key: str, value: Any) -> None:
        self.session[key] = value

    def delete(self, key: str) -> None:
        self.session.pop(key, None)

    def close(self) -> None:
        pass
