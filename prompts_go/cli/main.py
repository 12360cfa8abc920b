"""PromptsGo CLI: promptsgo command."""

from __future__ import annotations

import json
from typing import Any

import click
from pydantic import ValidationError

from prompts_go.config import get_settings
from prompts_go.core.drafts import DraftManager, FileStorage, draft_key
from prompts_go.core.history import back_destination
from prompts_go.core.routing import from_url, parse_page, to_url
from prompts_go.core.store import AppStore
from prompts_go.db.gateway import GatewayResult, get_gateway
from prompts_go.utils.logging import setup_logging


PROMPT_COLUMNS = ["id", "title", "category", "visibility", "hearts"]


def _prompt_table(rows: list[dict]) -> str:
    if not rows:
        return "No results."
    cells = [[str(row.get(c, "")) for c in PROMPT_COLUMNS] for row in rows]
    widths = [max(len(c), *(len(r[i]) for r in cells)) for i, c in enumerate(PROMPT_COLUMNS)]
    lines = [
        "  ".join(c.upper().ljust(w) for c, w in zip(PROMPT_COLUMNS, widths)),
        "  ".join("-" * w for w in widths),
    ]
    lines += ["  ".join(v.ljust(w) for v, w in zip(r, widths)) for r in cells]
    return "\n".join(lines)


@click.group()
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.option(
    "--storage",
    "storage_path",
    default=None,
    envvar="PROMPTSGO_STORAGE",
    help="Local key-value storage file",
)
@click.pass_context
def cli(ctx: click.Context, output_format: str, storage_path: str | None) -> None:
    """PromptsGo CLI: inspect routes, prompts and local drafts."""
    ctx.ensure_object(dict)
    ctx.obj["storage_path"] = storage_path or get_settings().storage_path
    ctx.meta["output_format"] = output_format


def _output(ctx: click.Context, data: Any, as_prompts: bool = False) -> None:
    if as_prompts and ctx.meta.get("output_format", "table") == "table":
        click.echo(_prompt_table(data))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


def _unwrap(result: GatewayResult) -> Any:
    if not result.ok:
        raise click.ClickException(result.error.message)
    return result.data


def _parse_params(params: tuple[str, ...]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in params:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{item}'", param_hint="--param")
        parsed[key] = value
    return parsed


# --- Route commands ---


@cli.group()
def route() -> None:
    """Encode and decode page URLs."""


@route.command("encode")
@click.argument("page_type")
@click.option("--param", "-p", "params", multiple=True, help="Page field as key=value")
def route_encode(page_type: str, params: tuple[str, ...]) -> None:
    """Print the URL for a page, e.g. `route encode prompt -p prompt_id=p1 -p from=repo`."""
    try:
        page = parse_page({"type": page_type, **_parse_params(params)})
    except ValidationError as e:
        raise click.ClickException(f"Invalid page: {e.errors()[0]['msg']}") from e
    click.echo(to_url(page))


@route.command("decode")
@click.argument("url")
@click.pass_context
def route_decode(ctx: click.Context, url: str) -> None:
    """Show the page a URL maps to."""
    page = from_url(url)
    _output(ctx, page.model_dump(by_alias=True, exclude_none=True))


@route.command("back")
@click.argument("url")
@click.option("--user-id", default=None)
def route_back(url: str, user_id: str | None) -> None:
    """Print where the back control leads from a URL."""
    click.echo(to_url(back_destination(from_url(url), user_id)))


# --- Prompt commands ---


@cli.group()
def prompt() -> None:
    """Browse stored prompts."""


@prompt.command("list")
@click.option("--repo", "repo_id", default=None)
@click.option("--user", "user_id", default=None)
@click.pass_context
def prompt_list(ctx: click.Context, repo_id: str | None, user_id: str | None) -> None:
    """List prompts, newest first."""
    prompts = _unwrap(get_gateway().prompts.get_all(repo_id=repo_id, user_id=user_id))
    data = [p.model_dump(mode="json") for p in prompts]
    _output(ctx, data, as_prompts=True)


@prompt.command("show")
@click.argument("prompt_id")
@click.pass_context
def prompt_show(ctx: click.Context, prompt_id: str) -> None:
    """Show prompt details."""
    found = _unwrap(get_gateway().prompts.get_by_id(prompt_id))
    _output(ctx, found.model_dump(mode="json"))


# --- Draft commands ---


@cli.group()
def draft() -> None:
    """Inspect locally saved drafts."""


def _drafts(ctx: click.Context) -> DraftManager:
    return DraftManager(AppStore(), FileStorage(ctx.obj["storage_path"]))


@draft.command("show")
@click.argument("user_id")
@click.pass_context
def draft_show(ctx: click.Context, user_id: str) -> None:
    """Show the saved draft for a user."""
    saved = _drafts(ctx).load(user_id)
    if saved is None:
        click.echo(f"No draft for user '{user_id}'")
        return
    _output(ctx, saved.model_dump(mode="json"))


@draft.command("clear")
@click.argument("user_id")
@click.pass_context
def draft_clear(ctx: click.Context, user_id: str) -> None:
    """Delete the saved draft for a user."""
    _drafts(ctx).clear(user_id)
    click.echo(f"Cleared draft '{draft_key(user_id)}'")


def main() -> None:
    setup_logging(get_settings().log_level)
    cli()


if __name__ == "__main__":
    main()
