"""Single chokepoint for calls to the Van Nav API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Dict
from typing import Optional

import httpx

from van_nav.config import API_BASE_URL
from van_nav.config import CHECK_TOKEN_API_PATH
from van_nav.config import LOGIN_API_PATH
from van_nav.config import LOGIN_PATH
from van_nav.config import REDIRECT_DELAY
from van_nav.config import REQUEST_TIMEOUT
from van_nav.config import RETRY_DELAY
from van_nav.notices import Navigator
from van_nav.notices import NoticeBoard
from van_nav.session import SessionStore

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not logged in or session expired"
SESSION_EXPIRED = "Session expired, please log in again"
REQUEST_FAILED = "Request failed, please try again later"
NETWORK_ERROR = "Network error, please check your connection"

# Paths callable without a stored credential
PUBLIC_PATHS = frozenset({LOGIN_API_PATH, CHECK_TOKEN_API_PATH})


def parse_body(text: str) -> Any:
    """Decode a response body, treating empty or non-JSON text as an empty dict."""
    if not text or not text.strip():
        return {}
    try:
        return json.loads(text)
    except ValueError:
        logger.warning(f"Response body is not JSON: {text[:200]!r}")
        return {}


def server_message(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if isinstance(message, str) and message.strip():
            return message
    return None


class RequestGateway:
    """Performs one logical API call and classifies its outcome.

    Results are the parsed body on success and ``None`` otherwise; failures are
    reported to the notice board instead of being raised.
    """

    def __init__(
        self,
        session: SessionStore,
        notices: NoticeBoard,
        navigator: Navigator,
        base_url: str = API_BASE_URL,
        *,
        timeout: float = REQUEST_TIMEOUT,
        retry_delay: float = RETRY_DELAY,
        redirect_delay: float = REDIRECT_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.session = session
        self.notices = notices
        self.navigator = navigator
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.redirect_delay = redirect_delay
        self._transport = transport
        self._sleep = sleep

    def _headers(self, overrides: Optional[Dict[str, str]]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.session.get_credential()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if overrides:
            headers.update(overrides)
        return headers

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        *,
        silent: bool = False,
    ) -> Any:
        if not self.session.get_credential() and path not in PUBLIC_PATHS:
            logger.warning(f"No credential for {method} {path}, sending user to login")
            if not silent:
                self.notices.error(NOT_AUTHENTICATED)
            self.navigator.redirect(LOGIN_PATH)
            return None

        content = json.dumps(body, ensure_ascii=False) if body is not None else None

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, path, content=content, headers=self._headers(headers))
                if response.status_code == 401 and path != LOGIN_API_PATH:
                    # A token written moments ago may not be visible yet; give it one more go
                    logger.info(f"{method} {path} returned 401, retrying once in {self.retry_delay}s")
                    await self._sleep(self.retry_delay)
                    response = await client.request(method, path, content=content, headers=self._headers(headers))
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e!r}")
            if not silent:
                self.notices.error(NETWORK_ERROR)
            return None

        data = parse_body(response.text)

        if response.is_success:
            return data

        if response.status_code == 401 and path != LOGIN_API_PATH:
            if path == CHECK_TOKEN_API_PATH:
                logger.info("Session probe rejected")
                return None
            self._expire_session(silent)
            return None

        logger.error(f"{method} {path} returned {response.status_code}: {response.text[:500]!r}")
        if not silent:
            self.notices.error(server_message(data) or REQUEST_FAILED)
        return None

    def _expire_session(self, silent: bool) -> None:
        logger.warning("Credential rejected twice, clearing session")
        self.session.clear_credential()
        if not silent:
            self.notices.error(SESSION_EXPIRED)
        self.navigator.redirect(LOGIN_PATH, delay=self.redirect_delay)

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request(path, "GET", **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.request(path, "POST", body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.request(path, "PUT", body, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request(path, "DELETE", **kwargs)
