"""Session state: the bearer credential and the remembered category filter."""

from __future__ import annotations

import logging
from typing import Iterable
from typing import Optional

from van_nav.config import ADMIN_TAG
from van_nav.config import ALL_TAG
from van_nav.config import TAG_KEY
from van_nav.config import TOKEN_KEY
from van_nav.storage import ClientStorage

logger = logging.getLogger(__name__)


class SessionStore:
    """Holds at most one credential per client.

    There is no client-side expiry; an expired token is only discovered when
    the API rejects it.
    """

    def __init__(self, storage: ClientStorage) -> None:
        self.storage = storage

    def get_credential(self) -> Optional[str]:
        token = self.storage.get(TOKEN_KEY)
        return token or None

    def set_credential(self, token: str) -> None:
        self.storage.set(TOKEN_KEY, token)

    def clear_credential(self) -> None:
        self.storage.delete(TOKEN_KEY)
        logger.debug("Cleared stored credential")

    def last_tag(self) -> Optional[str]:
        return self.storage.get(TAG_KEY) or None

    def remember_tag(self, tag: str) -> None:
        if not tag or tag == ADMIN_TAG:
            return
        self.storage.set(TAG_KEY, tag)

    def resolve_tag(self, catelogs: Iterable[str]) -> str:
        """Return the remembered tag if the listing still offers it."""
        tag = self.last_tag()
        if tag and tag in list(catelogs):
            return tag
        return ALL_TAG
