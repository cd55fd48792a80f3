"""
elements-rpc CLI

Command-line front end for the JSON-RPC client.

Commands:
  call  - Call an RPC method and print its result
  info  - Show the resolved connection settings
"""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import click
from loguru import logger
from pydantic import ValidationError

from .config import RpcSettings
from .records.models import RECORDS, dump_record
from .rpc.client import TraceEvent
from .rpc.envelope import RpcFault, RpcResponse
from .rpc.errors import RpcClientError

VERSION = "1.0.0"

CASTS = ("json", "number", "string", "bool")


def _parse_param(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _echo_trace(event: TraceEvent) -> None:
    if event.kind == "request":
        click.echo(click.style("> ", fg="cyan") + event.body, err=True)
    else:
        click.echo(click.style(f"< {event.status} ", fg="cyan") + event.body, err=True)


def _fault_of(response: Optional[RpcResponse]) -> Optional[RpcFault]:
    if response is None or response.error is None:
        return None
    try:
        return response.unmarshal_error()
    except RpcClientError:
        return None


def _exit_with_fault(fault: RpcFault) -> None:
    click.secho(f"RPC error {fault.code}: {fault.message}", fg="red", err=True)
    sys.exit(1)


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="elements-rpc")
@click.option("--url", default=None, help="RPC endpoint (overrides ELEMENTS_RPC_URL)")
@click.option("--user", default=None, help="RPC user (overrides ELEMENTS_RPC_USER)")
@click.option("--password", default=None, help="RPC password (overrides ELEMENTS_RPC_PASSWORD)")
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="dotenv file to load (default: ~/.elements-rpc/.env)",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Echo requests and responses to stderr")
@click.option("--debug", is_flag=True, default=False, help="Print client debug logs to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    url: Optional[str],
    user: Optional[str],
    password: Optional[str],
    env_file: Optional[Path],
    verbose: bool,
    debug: bool,
) -> None:
    """JSON-RPC client for Elements / Bitcoin daemons."""
    if debug:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG", format="<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <8}</level> | <level>{message}</level>")
        logger.enable("elementsrpc")
    else:
        logger.disable("elementsrpc")

    try:
        settings = RpcSettings.from_env(env_file)
    except ValueError as exc:
        raise click.BadParameter(str(exc))

    overrides: dict[str, Any] = {}
    if url is not None:
        overrides["url"] = url
    if user is not None:
        overrides["user"] = user
    if password is not None:
        overrides["password"] = password
    if verbose:
        overrides["verbose"] = True
    ctx.obj = replace(settings, **overrides)


# ============ Commands ============


@cli.command()
@click.pass_obj
def info(settings: RpcSettings) -> None:
    """Show the resolved connection settings."""
    click.echo(f"URL:     {settings.url}")
    click.echo(f"User:    {settings.user or '(none)'}")
    click.echo(f"Verbose: {'on' if settings.verbose else 'off'}")
    if settings.timeout is not None:
        click.echo(f"Timeout: {settings.timeout}s")


@cli.command()
@click.argument("method")
@click.argument("params", nargs=-1)
@click.option(
    "--as",
    "cast",
    type=click.Choice(CASTS),
    default=None,
    help="Expected result type (default: json)",
)
@click.option(
    "--record",
    type=click.Choice(sorted(RECORDS)),
    default=None,
    help="Decode the result into a record",
)
@click.pass_obj
def call(settings: RpcSettings, method: str, params: tuple[str, ...], cast: Optional[str], record: Optional[str]) -> None:
    """
    Call METHOD with PARAMS and print the result as JSON.

    Each param is parsed as JSON when it can be, otherwise sent as a string.
    """
    if record is not None and cast is not None:
        raise click.UsageError("--record and --as cannot be combined")

    client = settings.client(trace=_echo_trace)
    args = [_parse_param(p) for p in params]

    try:
        if record is not None:
            value, _ = client.request_and_unmarshal_result(RECORDS[record], method, *args)
            output = dump_record(RECORDS[record], value)
        elif cast == "number":
            output, _ = client.request_and_cast_number(method, *args)
        elif cast == "string":
            output, _ = client.request_and_cast_string(method, *args)
        elif cast == "bool":
            output, _ = client.request_and_cast_bool(method, *args)
        else:
            response = client.request(method, *args)
            fault = _fault_of(response)
            if fault is not None:
                _exit_with_fault(fault)
            output = response.result
    except RpcClientError as exc:
        fault = _fault_of(exc.response)
        if fault is not None:
            _exit_with_fault(fault)
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    except ValidationError as exc:
        click.secho(f"ERROR: cannot decode {record}: {exc}", fg="red", err=True)
        sys.exit(4)

    click.echo(json.dumps(output, indent=2, sort_keys=True))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
