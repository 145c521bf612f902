"""Typed operations on the Van Nav API, built on the request gateway."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Union

import httpx
from pydantic import ValidationError

from van_nav.config import ALL_TAG
from van_nav.config import API_BASE_URL
from van_nav.config import CHECK_TOKEN_API_PATH
from van_nav.config import DATA_DIR
from van_nav.config import LOGIN_API_PATH
from van_nav.config import LOGIN_PATH
from van_nav.config import REDIRECT_DELAY
from van_nav.gateway import REQUEST_FAILED
from van_nav.gateway import RequestGateway
from van_nav.gateway import server_message
from van_nav.models import AdminData
from van_nav.models import Category
from van_nav.models import LoginResponse
from van_nav.models import Settings
from van_nav.models import Tool
from van_nav.models import ToolListing
from van_nav.models import UserUpdate
from van_nav.notices import Navigator
from van_nav.notices import NoticeBoard
from van_nav.session import SessionStore
from van_nav.storage import ClientStorage

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Login failed"

ToolInput = Union[Tool, Dict[str, Any]]


def _payload(value: Any) -> Any:
    """Wire form of a model; plain data passes through untouched."""
    if isinstance(value, (Tool, Category, Settings, UserUpdate)):
        return value.to_wire()
    return value


class NavClient:
    """One method per resource/action pair of the API.

    Methods never raise for API or network failures: they return ``None``
    (or ``False``) after the gateway has reported the problem.
    """

    def __init__(
        self,
        session: SessionStore,
        gateway: RequestGateway,
        *,
        redirect_delay: float = REDIRECT_DELAY,
    ) -> None:
        self.session = session
        self.gateway = gateway
        self.redirect_delay = redirect_delay

    @property
    def notices(self) -> NoticeBoard:
        return self.gateway.notices

    @property
    def navigator(self) -> Navigator:
        return self.gateway.navigator

    def _succeeded(self, result: Any, message: str) -> Any:
        if result is not None:
            self.notices.success(message)
        return result

    def _invalid_payload(self, what: str, error: ValidationError) -> None:
        logger.error(f"Unexpected {what} payload: {error}")
        self.notices.error(REQUEST_FAILED)

    # Listings

    async def fetch_tools(self) -> ToolListing:
        data = await self.gateway.get("/api/tools")
        if data is None:
            return ToolListing(tools=[], catelogs=[ALL_TAG])
        try:
            listing = ToolListing.model_validate(data)
        except ValidationError as e:
            self._invalid_payload("tool listing", e)
            return ToolListing(tools=[], catelogs=[ALL_TAG])
        logger.info(f"Fetched {len(listing.tools)} tools in {len(listing.catelogs)} categories")
        return listing

    async def fetch_admin_data(self) -> Optional[AdminData]:
        data = await self.gateway.get("/api/admin/all")
        if data is None:
            return None
        try:
            return AdminData.model_validate(data)
        except ValidationError as e:
            self._invalid_payload("admin data", e)
            return None

    # Tools

    async def add_tool(self, tool: ToolInput) -> Any:
        result = await self.gateway.post("/api/tools", _payload(tool))
        return self._succeeded(result, "Tool added")

    async def update_tool(self, tool_id: str, changes: ToolInput) -> Any:
        result = await self.gateway.put(f"/api/tools/{tool_id}", _payload(changes))
        return self._succeeded(result, "Tool updated")

    async def delete_tool(self, tool_id: str) -> Any:
        result = await self.gateway.delete(f"/api/tools/{tool_id}")
        return self._succeeded(result, "Tool deleted")

    async def delete_tools(self, tool_ids: Iterable[str]) -> bool:
        ids = list(tool_ids)
        results = await asyncio.gather(*(self.gateway.delete(f"/api/tools/{tool_id}") for tool_id in ids))
        ok = all(result is not None for result in results)
        if ok:
            self.notices.success(f"Deleted {len(ids)} tools")
        return ok

    async def reset_logos(self, tools: Iterable[Tool]) -> bool:
        """Blank the logo of each tool so the server fetches it again."""
        updates = [tool.model_copy(update={"logo": ""}) for tool in tools]
        results = await asyncio.gather(
            *(self.gateway.put(f"/api/tools/{tool.id}", tool.to_wire()) for tool in updates)
        )
        ok = all(result is not None for result in results)
        if ok:
            self.notices.success(f"Reset {len(updates)} logos")
        return ok

    async def export_tools(self) -> Any:
        """Full tool export, exactly as the server sent it."""
        result = await self.gateway.get("/api/tools/export")
        return self._succeeded(result, "Tools exported")

    async def import_tools(self, tools: List[ToolInput]) -> Any:
        """Replace the remote tool list with ``tools``."""
        result = await self.gateway.post("/api/tools/import", [_payload(tool) for tool in tools])
        return self._succeeded(result, "Tools imported")

    async def update_tools_sort(self, tool_ids: Iterable[str]) -> Any:
        result = await self.gateway.put("/api/tools/sort", {"ids": list(tool_ids)})
        return self._succeeded(result, "Sort order updated")

    # Categories

    async def add_category(self, category: Union[Category, Dict[str, Any]]) -> Any:
        result = await self.gateway.post("/api/admin/catelog", _payload(category))
        return self._succeeded(result, "Category added")

    async def update_category(self, category_id: str, changes: Union[Category, Dict[str, Any]]) -> Any:
        result = await self.gateway.put(f"/api/admin/catelog/{category_id}", _payload(changes))
        return self._succeeded(result, "Category updated")

    async def delete_category(self, category_id: str) -> Any:
        result = await self.gateway.delete(f"/api/admin/catelog/{category_id}")
        return self._succeeded(result, "Category deleted")

    # API tokens

    async def add_api_token(self) -> Any:
        result = await self.gateway.post("/api/admin/tokens")
        return self._succeeded(result, "API token created")

    async def delete_api_token(self, token_id: str) -> Any:
        result = await self.gateway.delete(f"/api/admin/tokens/{token_id}")
        return self._succeeded(result, "API token deleted")

    # Account and site

    async def update_user(self, update: Union[UserUpdate, Dict[str, Any]]) -> Any:
        result = await self.gateway.put("/api/admin/user", _payload(update))
        return self._succeeded(result, "Account updated")

    async def update_settings(self, settings: Union[Settings, Dict[str, Any]]) -> Any:
        result = await self.gateway.put("/api/admin/settings", _payload(settings))
        return self._succeeded(result, "Settings updated")

    # Authentication

    async def login(self, name: str, password: str) -> LoginResponse:
        data = await self.gateway.post(LOGIN_API_PATH, {"name": name, "password": password})
        if data is None:
            # The gateway already told the user why
            return LoginResponse(success=False, message=LOGIN_FAILED)

        try:
            response = LoginResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected login payload: {e}")
            response = LoginResponse(success=False, message=server_message(data) or LOGIN_FAILED)

        if not response.success or response.data is None or not response.data.token:
            message = response.message or LOGIN_FAILED
            self.notices.error(message)
            return LoginResponse(success=False, message=message)

        self.session.clear_credential()
        self.session.set_credential(response.data.token)
        logger.info(f"Logged in as {name}")
        self.notices.success("Logged in")
        return response

    async def logout(self) -> None:
        self.session.clear_credential()
        logger.info("Logged out")
        self.notices.info("Logged out")
        self.navigator.redirect(LOGIN_PATH, delay=self.redirect_delay)

    async def check_login(self) -> bool:
        if not self.session.get_credential():
            return False
        result = await self.gateway.get(CHECK_TOKEN_API_PATH, silent=True)
        return result is not None


def build_client(
    storage: Optional[ClientStorage] = None,
    *,
    base_url: str = API_BASE_URL,
    data_dir: Path = DATA_DIR,
    notices: Optional[NoticeBoard] = None,
    navigator: Optional[Navigator] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **gateway_options: Any,
) -> NavClient:
    """Wire a client from its parts, defaulting to the configured environment."""
    session = SessionStore(storage if storage is not None else ClientStorage(data_dir))
    gateway = RequestGateway(
        session,
        notices if notices is not None else NoticeBoard(),
        navigator if navigator is not None else Navigator(),
        base_url,
        transport=transport,
        **gateway_options,
    )
    return NavClient(session, gateway, redirect_delay=gateway.redirect_delay)
