import pytest
from pydantic import ValidationError

from van_nav.models import ApiToken
from van_nav.models import Settings
from van_nav.models import Tool
from van_nav.models import ToolListing
from van_nav.models import stable_id


def test_tool_without_id_gets_url_hash():
    tool = Tool(name="Rust", url="https://rust-lang.org")
    assert tool.id == stable_id("https://rust-lang.org")
    assert len(tool.id) == 12


def test_numeric_ids_become_strings():
    assert Tool(id=12, name="A", url="https://a.example").id == "12"
    assert ApiToken(id=3, token="x", createdAt="2024").id == "3"


def test_tool_requires_name_and_url():
    with pytest.raises(ValidationError):
        Tool(name="No URL")


def test_wire_aliases_round_trip():
    settings = Settings.model_validate({"hideGithub": True, "govRecord": "ICP-1", "title": "Nav"})
    assert settings.hide_github is True
    assert settings.to_wire() == {"hideGithub": True, "govRecord": "ICP-1", "title": "Nav"}


def test_unknown_tool_fields_survive():
    tool = Tool.model_validate({"id": "1", "name": "A", "url": "https://a.example", "clicks": 5})
    assert tool.to_wire()["clicks"] == 5


def test_listing_accepts_null_lists():
    listing = ToolListing.model_validate({"tools": None, "catelogs": None})
    assert listing.tools == []
    assert listing.catelogs == []
