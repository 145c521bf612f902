"""Search and filtering helpers for the tool directory.

Everything here is pure: no storage, no network.
"""

from functools import lru_cache
from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import TypeVar
from urllib.parse import quote

from pypinyin import Style
from pypinyin import pinyin

from van_nav.config import ALL_TAG
from van_nav.config import SEARCH_ENGINE_URL
from van_nav.config import SEARCH_TAG
from van_nav.models import Category
from van_nav.models import Tool
from van_nav.models import stable_id

T = TypeVar("T")


def _is_cjk(char: str) -> bool:
    return "\u3400" <= char <= "\u9fff" or "\uf900" <= char <= "\ufaff"


@lru_cache(maxsize=4096)
def _readings(char: str) -> Tuple[str, ...]:
    """Spellings that may stand for a single haystack character."""
    if not _is_cjk(char):
        return (char,)
    readings = pinyin(char, style=Style.NORMAL, heteronym=True)[0]
    return tuple(dict.fromkeys([char, *(r.lower() for r in readings if r)]))


def _match_from(chars: Sequence[str], start: int, needle: str) -> bool:
    """Can ``needle`` be spelled by consecutive characters starting at ``start``?

    A Chinese character may contribute any non-empty prefix of one of its
    readings (so "bd", "baidu" and "baid" all spell 百度); other characters
    contribute only themselves.
    """
    if not needle:
        return True
    if start >= len(chars):
        return False
    for reading in _readings(chars[start]):
        for size in range(min(len(reading), len(needle)), 0, -1):
            if needle.startswith(reading[:size]) and _match_from(chars, start + 1, needle[size:]):
                return True
    return False


def pinyin_match(haystack: str, needle: str) -> bool:
    """Pinyin-aware match of ``needle`` against ``haystack``."""
    chars = [c for c in haystack.lower() if not c.isspace()]
    needle = "".join(needle.lower().split())
    if not needle:
        return True
    return any(_match_from(chars, i, needle) for i in range(len(chars)))


def matches(haystack: Optional[str], needle: str) -> bool:
    """Case-insensitive containment, falling back to a pinyin match."""
    if not needle:
        return True
    if not haystack:
        return False
    source = haystack.lower()
    target = needle.lower()
    return target in source or pinyin_match(source, target)


def build_fallback_result(query: str) -> List[Tool]:
    """Synthetic card that sends the query to an external search engine."""
    query = (query or "").strip()
    if not query:
        return []
    url = f"{SEARCH_ENGINE_URL}{quote(query, safe='')}"
    return [
        Tool(
            id=f"search-{stable_id(url)}",
            name="Search engine",
            desc=f"Search: {query}",
            url=url,
            logo="",
            catelog=SEARCH_TAG,
            hide=False,
        )
    ]


def tool_matches(tool: Tool, query: str) -> bool:
    return matches(tool.name, query) or matches(tool.desc, query) or matches(tool.url, query)


def filter_tools(tools: Optional[Iterable[Tool]], tag: str = ALL_TAG, query: str = "") -> List[Tool]:
    """Tools shown for a tag and search string, followed by the web-search card."""
    query = (query or "").strip()
    fallback = build_fallback_result(query)
    if tools is None:
        return fallback

    local = [
        tool
        for tool in tools
        if (tag == ALL_TAG or tool.catelog == tag) and (not query or tool_matches(tool, query))
    ]
    return local + fallback


def ordered_categories(categories: Iterable[Category], include_hidden: bool = False) -> List[Category]:
    """Categories in display order; ties keep their original order."""
    visible = [c for c in categories if include_hidden or not c.hide]
    return sorted(visible, key=lambda c: c.sort or 0)


def move_item(items: Sequence[T], old_index: int, new_index: int) -> List[T]:
    """Return a copy of ``items`` with one element moved."""
    result = list(items)
    if not (0 <= old_index < len(result)) or not (0 <= new_index < len(result)):
        raise IndexError(f"Cannot move item {old_index} to {new_index} in a list of {len(result)}")
    result.insert(new_index, result.pop(old_index))
    return result
