import logging
from urllib.parse import quote

from fasthtml.common import H1
from fasthtml.common import H2
from fasthtml.common import H5
from fasthtml.common import A
from fasthtml.common import Article
from fasthtml.common import Button
from fasthtml.common import Div
from fasthtml.common import Form
from fasthtml.common import Img
from fasthtml.common import Input
from fasthtml.common import Link
from fasthtml.common import Main
from fasthtml.common import Meta
from fasthtml.common import Nav
from fasthtml.common import NotStr
from fasthtml.common import P
from fasthtml.common import Section
from fasthtml.common import Span
from fasthtml.common import Table
from fasthtml.common import Tbody
from fasthtml.common import Td
from fasthtml.common import Th
from fasthtml.common import Thead
from fasthtml.common import Title
from fasthtml.common import Tr
from fasthtml.fastapp import fast_app
from starlette.responses import RedirectResponse

from van_nav.api import NavClient
from van_nav.api import build_client
from van_nav.config import ALL_TAG
from van_nav.config import LOG_LEVEL
from van_nav.config import LOGIN_PATH
from van_nav.config import SEARCH_TAG
from van_nav.config import WEB_PORT
from van_nav.config import WEB_SECRET_KEY
from van_nav.logging_config import setup_logging
from van_nav.models import Settings
from van_nav.notices import Notice
from van_nav.search import filter_tools
from van_nav.search import ordered_categories
from van_nav.storage import SessionStorage

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Van Nav"

# Session key for notices that must survive a redirect
FLASH_KEY = "flash"


def make_client(session) -> NavClient:
    """Fresh client per request, keeping the visitor's token and tag in their own session"""
    return build_client(SessionStorage(session))


def flash(session, notices) -> None:
    if notices:
        session[FLASH_KEY] = session.get(FLASH_KEY, []) + [[n.level, n.message] for n in notices]


def pop_flash(session) -> list:
    return [Notice(level, message) for level, message in session.pop(FLASH_KEY, [])]


# Components
def page(title, *content, settings: Settings = None, head=()):
    favicon = settings.favicon if settings and settings.favicon else "/favicon.ico"
    record = settings.gov_record if settings and settings.gov_record else ""
    footer = Div(A(record, href="https://beian.miit.gov.cn", target="_blank"), _class="record") if record else ""
    return (
        Title(title),
        Link(rel="icon", href=favicon),
        *head,
        Main(*content, footer, _class="container"),
    )


def notice_list(notices):
    return Div(*[P(n.message, _class=f"notice notice-{n.level}") for n in notices], _class="notices")


def tool_card(tool):
    # The web-search card has no detail page
    detail = tool.url if tool.catelog == SEARCH_TAG else f"/tool/{quote(tool.id, safe='')}"
    return Div(
        A(H5(tool.name), href=detail),
        P(tool.desc),
        Span(tool.catelog, _class="tag"),
        A("Visit", href=tool.url, target="_blank", rel="noopener noreferrer", _class="visit"),
        _class="tool-card",
        **{"data-id": tool.id},
    )


def tool_detail_card(tool):
    content = NotStr(tool.content) if tool.content else P("No details yet", _class="empty")
    return Article(
        Img(src=tool.logo, alt=tool.name, _class="tool-logo") if tool.logo else "",
        H1(tool.name),
        Span(tool.catelog, _class="tag"),
        P(tool.desc, _class="tool-description"),
        Div(content, _class="tool-content"),
        A("Visit site", href=tool.url, target="_blank", rel="noopener noreferrer", role="button"),
        _class="tool-detail",
    )


def tag_selector(catelogs, current):
    tags = [ALL_TAG] + [tag for tag in catelogs if tag != ALL_TAG]
    links = [A(tag, href=f"/?tag={quote(tag)}", _class="tag active" if tag == current else "tag") for tag in tags]
    return Nav(*links, _class="tags")


def follow_navigation(client: NavClient, session):
    """Perform the redirect the client asked for, pausing first if a notice must be read"""
    navigator = client.navigator
    target = navigator.target or LOGIN_PATH
    if navigator.delay > 0:
        return page(
            "Redirecting",
            notice_list(client.notices.drain()),
            P(A("Continue", href=target)),
            head=(Meta(http_equiv="refresh", content=f"{navigator.delay:g}; url={target}"),),
        )
    # Shown by the page we land on
    flash(session, client.notices.drain())
    return RedirectResponse(target, status_code=303)


def login_form(notices=()):
    return page(
        "Log in",
        H1("Log in"),
        notice_list(notices),
        Form(
            Input(name="name", placeholder="User name", required=True),
            Input(name="password", type="password", placeholder="Password", required=True),
            Button("Log in", type="submit"),
            method="post",
            action=LOGIN_PATH,
        ),
    )


def table(headers, rows):
    return Table(Thead(Tr(*[Th(h) for h in headers])), Tbody(*[Tr(*[Td(c) for c in row]) for row in rows]))


# App setup
app, rt = fast_app(secret_key=WEB_SECRET_KEY)


@rt("/")
async def get(session, tag: str = "", q: str = ""):
    client = make_client(session)
    listing = await client.fetch_tools()
    if client.navigator.requested:
        return follow_navigation(client, session)

    query = q.strip()
    if query:
        # Searching always looks across every category
        tag = ALL_TAG
    elif tag:
        client.session.remember_tag(tag)
    else:
        tag = client.session.resolve_tag(listing.catelogs)

    cards = [tool_card(tool) for tool in filter_tools(listing.tools, tag, query)]
    settings = listing.setting
    title = settings.title if settings and settings.title else DEFAULT_TITLE

    github = ""
    if not (settings and settings.hide_github):
        github = A("GitHub", href="https://github.com/mereithhh/van-nav", target="_blank", _class="github-link")

    return page(
        title,
        H1(title),
        github,
        notice_list(pop_flash(session) + client.notices.drain()),
        Form(Input({"type": "search", "name": "q", "value": query, "placeholder": "Search tools..."}), method="get"),
        tag_selector(listing.catelogs, tag),
        Section(*cards, _class="tools-grid") if cards else P("No tools found", _class="empty"),
        settings=settings,
    )


@rt("/tool/{tool_id}")
async def tool_detail(session, tool_id: str):
    client = make_client(session)
    listing = await client.fetch_tools()
    if client.navigator.requested:
        return follow_navigation(client, session)

    tool = next((tool for tool in listing.tools if tool.id == tool_id), None)
    notices = notice_list(client.notices.drain())
    back = P(A("Back", href="/"))
    if tool is None:
        return page("Tool not found", back, notices, P("Tool not found", _class="empty"), settings=listing.setting)
    return page(tool.name, back, notices, tool_detail_card(tool), settings=listing.setting)


@app.get(LOGIN_PATH)
def login_page(session):
    return login_form(pop_flash(session))


@app.post(LOGIN_PATH)
async def login_submit(session, name: str, password: str):
    client = make_client(session)
    response = await client.login(name, password)
    if response.success:
        flash(session, client.notices.drain())
        return RedirectResponse("/admin", status_code=303)
    return login_form(client.notices.drain())


@rt("/logout")
async def logout(session):
    client = make_client(session)
    await client.logout()
    return follow_navigation(client, session)


@rt("/admin")
async def admin(session):
    client = make_client(session)
    data = await client.fetch_admin_data()
    if client.navigator.requested:
        return follow_navigation(client, session)
    notices = notice_list(pop_flash(session) + client.notices.drain())
    if data is None:
        return page("Admin", H1("Admin"), notices)

    tools = sorted(data.tools, key=lambda tool: tool.sort or 0)
    categories = ordered_categories(data.catelogs, include_hidden=True)
    return page(
        "Admin",
        H1("Admin"),
        P(A("Home", href="/"), " · ", A("Log out", href="/logout")),
        notices,
        H2(f"Tools ({len(tools)})"),
        table(
            ["ID", "Name", "Category", "URL", "Sort", "Hidden"],
            [[t.id, t.name, t.catelog, t.url, t.sort or 0, "yes" if t.hide else ""] for t in tools],
        ),
        H2(f"Categories ({len(categories)})"),
        table(
            ["ID", "Name", "Sort", "Hidden"],
            [[c.id, c.name, c.sort or 0, "yes" if c.hide else ""] for c in categories],
        ),
        H2(f"API tokens ({len(data.tokens)})"),
        table(["ID", "Created", "Token"], [[t.id, t.created_at, t.token] for t in data.tokens]),
        settings=data.setting,
    )


@rt("/health")
def health():
    return {"status": "ok"}


# For direct script execution
if __name__ == "__main__":
    import uvicorn

    print(f"Starting server on port {WEB_PORT}")
    uvicorn.run("van_nav.web:app", host="0.0.0.0", port=WEB_PORT, reload=True)
