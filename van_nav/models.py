"""Data models exchanged with the Van Nav API.

Field names follow the wire format (``catelog``, ``createdAt``, ...); Python
names differ only where the wire name is camelCase.
"""

from __future__ import annotations

import hashlib
from typing import Any
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator


def stable_id(value: str) -> str:
    """Deterministic short identifier for records the server sent without one."""
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:12]


def _id_to_str(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Tool(WireModel):
    """A cataloged link shown to end users."""

    id: str = ""
    name: str
    desc: str = ""
    url: str
    logo: str = ""
    catelog: str = ""
    content: Optional[str] = None
    hide: Optional[bool] = None
    sort: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _id_to_str(value)

    @model_validator(mode="after")
    def fill_missing_id(self) -> "Tool":
        if not self.id:
            self.id = stable_id(self.url)
        return self


class Category(WireModel):
    """A named grouping of tools; ``sort`` orders it, ``hide`` keeps it off the home page."""

    id: str = ""
    name: str
    sort: Optional[int] = None
    hide: Optional[bool] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _id_to_str(value)


class ApiToken(WireModel):
    """Credential issued to external API consumers (not the session token)."""

    id: str = ""
    token: str = ""
    created_at: str = Field("", alias="createdAt")
    name: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _id_to_str(value)


class Settings(WireModel):
    hide_github: Optional[bool] = Field(None, alias="hideGithub")
    favicon: Optional[str] = None
    title: Optional[str] = None
    gov_record: Optional[str] = Field(None, alias="govRecord")


class UserUpdate(WireModel):
    username: Optional[str] = None
    password: Optional[str] = None
    old_password: Optional[str] = Field(None, alias="oldPassword")


class ToolListing(WireModel):
    """Public listing as returned by ``GET /api/tools``."""

    tools: List[Tool] = Field(default_factory=list)
    catelogs: List[str] = Field(default_factory=list)
    setting: Optional[Settings] = None

    @field_validator("tools", "catelogs", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class AdminData(WireModel):
    """Aggregate dataset behind the admin panel (``GET /api/admin/all``)."""

    tools: List[Tool] = Field(default_factory=list)
    catelogs: List[Category] = Field(default_factory=list)
    tokens: List[ApiToken] = Field(default_factory=list)
    setting: Optional[Settings] = None

    @field_validator("tools", "catelogs", "tokens", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class LoginData(WireModel):
    token: str


class LoginResponse(WireModel):
    success: bool = False
    message: str = ""
    data: Optional[LoginData] = None
