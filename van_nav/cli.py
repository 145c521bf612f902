"""Command line front-end for browsing and administering a Van Nav site."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any
from typing import Optional

import click
import httpx

from van_nav.api import NavClient
from van_nav.api import build_client
from van_nav.config import API_BASE_URL
from van_nav.config import DATA_DIR
from van_nav.config import LOG_LEVEL
from van_nav.logging_config import setup_logging
from van_nav.models import Category
from van_nav.models import Settings
from van_nav.models import UserUpdate
from van_nav.notices import Navigator
from van_nav.notices import Notice
from van_nav.notices import NoticeBoard
from van_nav.search import filter_tools
from van_nav.search import move_item
from van_nav.search import ordered_categories
from van_nav.storage import ClientStorage

logger = logging.getLogger(__name__)

NOTICE_COLORS = {"success": "green", "info": "cyan", "warning": "yellow", "error": "red"}


def echo_notice(notice: Notice) -> None:
    click.secho(notice.message, fg=NOTICE_COLORS.get(notice.level), err=True)


def login_hint(path: str, delay: float) -> None:
    click.secho("Run `van-nav login` to sign in.", fg="yellow", err=True)


def make_client(
    storage: ClientStorage,
    base_url: str = API_BASE_URL,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **gateway_options: Any,
) -> NavClient:
    """Client whose notices and login redirects are printed to the terminal."""
    return build_client(
        storage,
        base_url=base_url,
        notices=NoticeBoard(on_notice=echo_notice),
        navigator=Navigator(on_navigate=login_hint),
        transport=transport,
        # A terminal has nothing to show during the redirect pause
        redirect_delay=0.0,
        **gateway_options,
    )


def run(coro):
    return asyncio.run(coro)


def _fail_if_absent(result: Any) -> Any:
    if result is None or result is False:
        raise SystemExit(1)
    return result


def _drop_none(**fields: Any) -> dict:
    return {key: value for key, value in fields.items() if value is not None}


def _admin_data(client: NavClient):
    return _fail_if_absent(run(client.fetch_admin_data()))


@click.group()
@click.option("--api-url", default=API_BASE_URL, show_default=True, help="Base URL of the Van Nav API")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DATA_DIR,
    show_default=True,
    help="Where the session token and preferences are kept",
)
@click.option("--log-level", default=LOG_LEVEL, show_default=True)
@click.pass_context
def main(ctx: click.Context, api_url: str, data_dir: Path, log_level: str) -> None:
    """Browse and administer a Van Nav tool directory."""
    setup_logging(log_level)
    if ctx.obj is None:
        storage = ClientStorage(data_dir)
        ctx.call_on_close(storage.close)
        ctx.obj = make_client(storage, api_url)


# Session


@main.command()
@click.option("--name", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@click.pass_obj
def login(client: NavClient, name: str, password: str) -> None:
    """Log in and remember the session token."""
    response = run(client.login(name, password))
    if not response.success:
        raise SystemExit(1)


@main.command()
@click.pass_obj
def logout(client: NavClient) -> None:
    """Forget the session token."""
    run(client.logout())


@main.command()
@click.pass_obj
def status(client: NavClient) -> None:
    """Check whether the stored session is still valid."""
    if run(client.check_login()):
        click.echo("Logged in")
    else:
        click.echo("Not logged in")
        raise SystemExit(1)


# Tools


@main.group()
def tools() -> None:
    """Manage tools."""


@tools.command("list")
@click.option("--tag", "-t", default=None, help="Only show tools in this category")
@click.option("--query", "-q", default="", help="Search name, description and URL")
@click.pass_obj
def list_tools(client: NavClient, tag: Optional[str], query: str) -> None:
    """List tools, optionally filtered, with a web-search suggestion."""
    listing = run(client.fetch_tools())
    if client.navigator.requested or client.notices.has_errors:
        raise SystemExit(1)

    if tag:
        client.session.remember_tag(tag)
    else:
        tag = client.session.resolve_tag(listing.catelogs)

    for index, tool in enumerate(filter_tools(listing.tools, tag, query), start=1):
        click.echo(f"{index:>3}. {tool.name} [{tool.catelog}] {tool.url}")
        if tool.desc:
            click.echo(f"     {tool.desc}")


@tools.command("add")
@click.option("--name", required=True)
@click.option("--url", required=True)
@click.option("--desc", default="")
@click.option("--logo", default="")
@click.option("--content", default=None, help="Detail page HTML")
@click.option("--catelog", "--category", "catelog", default="")
@click.option("--sort", type=int, default=None)
@click.option("--hide/--show", default=False)
@click.pass_obj
def add_tool(client: NavClient, name, url, desc, logo, content, catelog, sort, hide) -> None:
    """Add a tool."""
    payload = _drop_none(
        name=name, url=url, desc=desc, logo=logo, content=content, catelog=catelog, sort=sort, hide=hide
    )
    _fail_if_absent(run(client.add_tool(payload)))


@tools.command("update")
@click.argument("tool_id")
@click.option("--name", default=None)
@click.option("--url", default=None)
@click.option("--desc", default=None)
@click.option("--logo", default=None)
@click.option("--content", default=None, help="Detail page HTML")
@click.option("--catelog", "--category", "catelog", default=None)
@click.option("--sort", type=int, default=None)
@click.option("--hide/--show", default=None)
@click.pass_obj
def update_tool(client: NavClient, tool_id, name, url, desc, logo, content, catelog, sort, hide) -> None:
    """Change fields of a tool."""
    changes = _drop_none(
        name=name, url=url, desc=desc, logo=logo, content=content, catelog=catelog, sort=sort, hide=hide
    )
    if not changes:
        raise click.UsageError("Nothing to update")
    _fail_if_absent(run(client.update_tool(tool_id, changes)))


@tools.command("delete")
@click.argument("tool_ids", nargs=-1, required=True)
@click.pass_obj
def delete_tools(client: NavClient, tool_ids) -> None:
    """Delete one or more tools."""
    if len(tool_ids) == 1:
        _fail_if_absent(run(client.delete_tool(tool_ids[0])))
    else:
        _fail_if_absent(run(client.delete_tools(tool_ids)))


@tools.command("export")
@click.option("--output", "-o", type=click.File("w", encoding="utf-8"), default="-")
@click.pass_obj
def export_tools(client: NavClient, output) -> None:
    """Write every tool as JSON."""
    data = _fail_if_absent(run(client.export_tools()))
    json.dump(data, output, ensure_ascii=False, indent=2)
    output.write("\n")


@tools.command("import")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_obj
def import_tools(client: NavClient, source) -> None:
    """Replace all tools with the JSON list in SOURCE."""
    try:
        data = json.load(source)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="SOURCE")
    if not isinstance(data, list):
        raise click.BadParameter("expected a JSON list of tools", param_hint="SOURCE")
    _fail_if_absent(run(client.import_tools(data)))


@tools.command("sort")
@click.argument("tool_ids", nargs=-1, required=True)
@click.pass_obj
def sort_tools(client: NavClient, tool_ids) -> None:
    """Set the display order to TOOL_IDS."""
    _fail_if_absent(run(client.update_tools_sort(tool_ids)))


@tools.command("move")
@click.argument("position", type=click.IntRange(min=1))
@click.argument("new_position", type=click.IntRange(min=1))
@click.pass_obj
def move_tool(client: NavClient, position: int, new_position: int) -> None:
    """Move the tool at POSITION (1-based) to NEW_POSITION."""
    data = _admin_data(client)
    ordered = sorted(data.tools, key=lambda tool: tool.sort or 0)
    try:
        moved = move_item(ordered, position - 1, new_position - 1)
    except IndexError as e:
        raise click.BadParameter(str(e))
    _fail_if_absent(run(client.update_tools_sort([tool.id for tool in moved])))


@tools.command("reset-logo")
@click.argument("tool_ids", nargs=-1)
@click.option("--all", "all_tools", is_flag=True, help="Reset every tool")
@click.pass_obj
def reset_logo(client: NavClient, tool_ids, all_tools: bool) -> None:
    """Clear stored logos so the server fetches them again."""
    if not tool_ids and not all_tools:
        raise click.UsageError("Give tool ids or --all")
    data = _admin_data(client)
    selected = data.tools if all_tools else [tool for tool in data.tools if tool.id in set(tool_ids)]
    if not selected:
        raise click.BadParameter("no matching tools", param_hint="TOOL_IDS")
    _fail_if_absent(run(client.reset_logos(selected)))


# Categories


@main.group()
def categories() -> None:
    """Manage categories."""


@categories.command("list")
@click.pass_obj
def list_categories(client: NavClient) -> None:
    """List categories in display order."""
    data = _admin_data(client)
    for category in ordered_categories(data.catelogs, include_hidden=True):
        hidden = " (hidden)" if category.hide else ""
        click.echo(f"{category.id:>4}  {category.sort or 0:>3}  {category.name}{hidden}")


@categories.command("add")
@click.argument("name")
@click.option("--sort", type=int, default=0, show_default=True)
@click.option("--hide/--show", default=False)
@click.pass_obj
def add_category(client: NavClient, name: str, sort: int, hide: bool) -> None:
    """Add a category."""
    _fail_if_absent(run(client.add_category(Category(name=name, sort=sort, hide=hide))))


@categories.command("update")
@click.argument("category_id")
@click.option("--name", default=None)
@click.option("--sort", type=int, default=None)
@click.option("--hide/--show", default=None)
@click.pass_obj
def update_category(client: NavClient, category_id: str, name, sort, hide) -> None:
    """Rename, reorder or hide a category."""
    changes = _drop_none(name=name, sort=sort, hide=hide)
    if not changes:
        raise click.UsageError("Nothing to update")
    _fail_if_absent(run(client.update_category(category_id, changes)))


@categories.command("delete")
@click.argument("category_id")
@click.pass_obj
def delete_category(client: NavClient, category_id: str) -> None:
    """Delete a category."""
    _fail_if_absent(run(client.delete_category(category_id)))


# API tokens


@main.group()
def tokens() -> None:
    """Manage API tokens for external consumers."""


@tokens.command("list")
@click.pass_obj
def list_tokens(client: NavClient) -> None:
    data = _admin_data(client)
    for token in data.tokens:
        click.echo(f"{token.id:>4}  {token.created_at}  {token.token}")


@tokens.command("add")
@click.pass_obj
def add_token(client: NavClient) -> None:
    result = _fail_if_absent(run(client.add_api_token()))
    if isinstance(result, dict) and result.get("data"):
        click.echo(json.dumps(result["data"], ensure_ascii=False))


@tokens.command("delete")
@click.argument("token_id")
@click.pass_obj
def delete_token(client: NavClient, token_id: str) -> None:
    _fail_if_absent(run(client.delete_api_token(token_id)))


# Account and site settings


@main.group()
def user() -> None:
    """Manage the admin account."""


@user.command("update")
@click.option("--username", default=None)
@click.option("--password", default=None)
@click.option("--old-password", default=None)
@click.pass_obj
def update_user(client: NavClient, username, password, old_password) -> None:
    """Change the admin user name or password."""
    update = UserUpdate(username=username, password=password, old_password=old_password)
    if not update.to_wire():
        raise click.UsageError("Nothing to update")
    _fail_if_absent(run(client.update_user(update)))


@main.group()
def settings() -> None:
    """Manage site settings."""


@settings.command("update")
@click.option("--title", default=None)
@click.option("--favicon", default=None)
@click.option("--gov-record", default=None)
@click.option("--hide-github/--show-github", default=None)
@click.pass_obj
def update_settings(client: NavClient, title, favicon, gov_record, hide_github) -> None:
    """Change site title, favicon, record number or GitHub link visibility."""
    update = Settings(title=title, favicon=favicon, gov_record=gov_record, hide_github=hide_github)
    if not update.to_wire():
        raise click.UsageError("Nothing to update")
    _fail_if_absent(run(client.update_settings(update)))


if __name__ == "__main__":
    main()
