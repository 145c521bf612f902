"""User-facing notices and navigation requests.

The request layer only *decides* that the user should see a message or be sent
to the login page; front-ends (CLI, web) decide how to show or perform it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable
from typing import List
from typing import Literal
from typing import Optional

logger = logging.getLogger(__name__)

NoticeLevel = Literal["success", "info", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


class NoticeBoard:
    """Collects notices in emission order."""

    def __init__(self, on_notice: Optional[Callable[[Notice], None]] = None) -> None:
        self.notices: List[Notice] = []
        self._on_notice = on_notice

    def emit(self, level: NoticeLevel, message: str) -> None:
        notice = Notice(level, message)
        self.notices.append(notice)
        logger.debug(f"Notice [{level}]: {message}")
        if self._on_notice is not None:
            self._on_notice(notice)

    def success(self, message: str) -> None:
        self.emit("success", message)

    def info(self, message: str) -> None:
        self.emit("info", message)

    def warning(self, message: str) -> None:
        self.emit("warning", message)

    def error(self, message: str) -> None:
        self.emit("error", message)

    @property
    def has_errors(self) -> bool:
        return any(notice.level == "error" for notice in self.notices)

    def drain(self) -> List[Notice]:
        """Return pending notices and forget them."""
        notices, self.notices = self.notices, []
        return notices


class Navigator:
    """Records the latest navigation request."""

    def __init__(self, on_navigate: Optional[Callable[[str, float], None]] = None) -> None:
        self.target: Optional[str] = None
        self.delay: float = 0.0
        self._on_navigate = on_navigate

    def redirect(self, path: str, delay: float = 0.0) -> None:
        logger.info(f"Navigation to {path} requested (delay {delay}s)")
        self.target = path
        self.delay = delay
        if self._on_navigate is not None:
            self._on_navigate(path, delay)

    @property
    def requested(self) -> bool:
        return self.target is not None

    def reset(self) -> None:
        self.target = None
        self.delay = 0.0
