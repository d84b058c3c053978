"""Command line interface for the Mend SDK."""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import MendSdkConfig
from .errors import MendError
from .sdk import MendSdk

console = Console()
error_console = Console(stderr=True)


def _parse_query(pairs: Tuple[str, ...]) -> Dict[str, Any]:
    """Turn repeated ``key=value`` options into query params; repeats become lists."""
    query: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--query")
        key, value = pair.split("=", 1)
        if key in query:
            existing = query[key]
            query[key] = (existing if isinstance(existing, list) else [existing]) + [value]
        else:
            query[key] = value
    return query


def _print_json(data: Any) -> None:
    if data is None:
        console.print("(no content)", style="dim")
    else:
        console.print_json(json.dumps(data))


def _run(ctx: click.Context, operation) -> None:
    """Build the SDK from the context, run ``operation(sdk)`` and print the result."""

    async def runner():
        async with MendSdk(ctx.obj["config"]) as sdk:
            return await operation(sdk)

    try:
        _print_json(asyncio.run(runner()))
    except MendError as e:
        status = f" (HTTP {e.status})" if e.status is not None else ""
        error_console.print(f"❌ {e.code.value}{status}: {e.message}", style="red")
        if ctx.obj.get("verbose") and e.details is not None:
            error_console.print(e.details, style="dim red")
        sys.exit(1)


@click.group()
@click.option("--endpoint", envvar="MEND_API_ENDPOINT", help="Base REST endpoint")
@click.option("--email", envvar="MEND_EMAIL", help="Account email")
@click.option("--password", envvar="MEND_PASSWORD", help="Account password")
@click.option("--org-id", type=int, default=None, help="Organization to switch to after login")
@click.option("--mfa-code", default=None, help="MFA code used if login asks for one")
@click.option("--timeout", type=float, default=None, help="Request timeout in seconds")
@click.option("--retries", type=int, default=None, help="Retry attempts per request")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="mend")
@click.pass_context
def cli(
    ctx: click.Context,
    endpoint: Optional[str],
    email: Optional[str],
    password: Optional[str],
    org_id: Optional[int],
    mfa_code: Optional[str],
    timeout: Optional[float],
    retries: Optional[int],
    verbose: bool,
):
    """Call the Mend REST API from the shell.

    Settings come from MEND_* environment variables; options override them.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=error_console, show_path=False)],
        )

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    try:
        ctx.obj["config"] = MendSdkConfig.from_env(
            api_endpoint=endpoint,
            email=email,
            password=password,
            org_id=org_id,
            mfa_code=mfa_code,
            request_timeout=timeout,
            retry_attempts=retries,
        )
    except MendError as e:
        error_console.print(f"❌ {e.code.value}: {e.message}", style="red")
        sys.exit(1)


@cli.command("request")
@click.argument("method")
@click.argument("path")
@click.option("--query", "-q", multiple=True, help="Query parameter as key=value")
@click.option("--data", "-d", default=None, help="JSON request body")
@click.pass_context
def request_command(
    ctx: click.Context, method: str, path: str, query: Tuple[str, ...], data: Optional[str]
):
    """Send an authenticated METHOD request to PATH.

    Examples:
        mend request GET /user/1
        mend request GET /patient -q search=doe -q limit=5
    """
    try:
        body = json.loads(data) if data else None
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="--data")
    params = _parse_query(query)
    _run(ctx, lambda sdk: sdk.request(method, path, body, params))


@cli.command("user")
@click.argument("user_id", type=int)
@click.pass_context
def user_command(ctx: click.Context, user_id: int):
    """Show a user by id."""
    _run(ctx, lambda sdk: sdk.get_user(user_id))


@cli.command("orgs")
@click.pass_context
def orgs_command(ctx: click.Context):
    """List organizations available to the account."""
    _run(ctx, lambda sdk: sdk.list_orgs())


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
