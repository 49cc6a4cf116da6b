# ABOUTME: Typer application for the cub command and its async command handlers
# ABOUTME: Turns flags into ConfigHub API calls and waits for server-side work to settle

"""ConfigHub CLI - commands for spaces, units, links and functions."""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional

import httpx
import structlog
import typer
from pydantic import ValidationError

from confighub_cli import __version__
from confighub_cli.config import HubSettings, load_settings, parse_duration
from confighub_cli.utils.client import HubClient, HubError, is_uuid
from confighub_cli.utils.logging import AuditLogger, configure_logging, set_correlation_id
from confighub_cli.utils.waiting import WaitError, await_completion, await_triggers_removal

if TYPE_CHECKING:
    from confighub_cli.utils.client import (
        BulkOperationResult,
        BulkUnitResult,
        FunctionInvocationResult,
        Link,
        Space,
        Unit,
    )

logger = structlog.get_logger(__name__)

app = typer.Typer(add_completion=False, help="Command-line client for ConfigHub.")
space_app = typer.Typer(add_completion=False, help="Inspect spaces.")
unit_app = typer.Typer(add_completion=False, help="Manage configuration units.")
link_app = typer.Typer(add_completion=False, help="Manage links between units.")
function_app = typer.Typer(add_completion=False, help="Invoke functions on units.")

app.add_typer(space_app, name="space")
app.add_typer(unit_app, name="unit")
app.add_typer(link_app, name="link")
app.add_typer(function_app, name="function")

QUEUED_ACTIONS = ("apply", "refresh", "destroy", "import")


# =============================================================================
# COMMAND CONTEXT
# =============================================================================


@dataclass
class CommandContext:
    """
    Per-invocation state shared by all command handlers.

    Built once by the top-level callback from global options and settings,
    then narrowed per command (where filter, wait, timeout).
    """

    settings: HubSettings
    audit: AuditLogger
    space: str = ""
    space_id: str = ""
    where: str = ""
    quiet: bool = False
    json_output: bool = False
    wait: bool = True
    timeout: float = 120.0

    async def select_space(self, client: HubClient) -> str:
        """Resolve the selected space slug to its ID, once."""
        if self.space_id:
            return self.space_id
        if not self.space:
            raise typer.BadParameter(
                "no space selected; pass --space or set CONFIGHUB_SPACE",
                param_hint="--space",
            )
        space = await client.resolve_space(self.space)
        self.space_id = space.space_id
        self.space = space.slug
        return self.space_id

    def echo(self, message: str) -> None:
        """Print default output unless --quiet."""
        if not self.quiet:
            typer.echo(message)

    def emit_json(self, data: Any) -> None:
        typer.echo(json.dumps(data, indent=2))

    def announce_wait(self) -> None:
        if not self.quiet and not self.json_output:
            typer.echo("Awaiting triggers...")


def _command_context(
    ctx: typer.Context,
    *,
    where: str | None = None,
    wait: bool | None = None,
    timeout: str | None = None,
) -> CommandContext:
    cmd: CommandContext = ctx.obj
    if where is not None:
        cmd.where = where
    if wait is not None:
        cmd.wait = wait
    if timeout is not None:
        try:
            cmd.timeout = parse_duration(timeout)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--timeout") from None
    return cmd


def _run(
    cmd: CommandContext,
    action: str,
    target: str,
    handler: Callable[..., Awaitable[Any]],
    *args: Any,
) -> Any:
    """
    Run one async handler with an open client and report failures.

    API and wait failures print "Error: <message>" to stderr, are recorded
    in the audit log, and exit with status 1.
    """

    async def invoke() -> Any:
        async with HubClient(cmd.settings) as client:
            return await handler(cmd, client, *args)

    try:
        return asyncio.run(invoke())
    except (HubError, WaitError, httpx.HTTPError) as e:
        cmd.audit.log_error(action, target, str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None


# =============================================================================
# ARGUMENT HELPERS
# =============================================================================


def parse_labels(labels: list[str] | None) -> dict[str, str]:
    """
    Parse repeated --label values.

    "key=value" sets a value; a bare "key" sets an empty value.
    """
    result: dict[str, str] = {}
    for label in labels or []:
        parts = label.split("=")
        if len(parts) > 2 or not parts[0]:
            raise typer.BadParameter(f"invalid label format {label!r}", param_hint="--label")
        result[parts[0]] = parts[1] if len(parts) == 2 else ""
    return result


def parse_function_arguments(args: list[str]) -> list[dict[str, str]]:
    """
    Parse function arguments in order.

    "--name=value" is a named argument; anything else is positional.
    Positional arguments may not follow named ones.
    """
    parsed: list[dict[str, str]] = []
    named_mode = False
    for arg in args:
        if arg.startswith("--") and "=" in arg:
            named_mode = True
            name, value = arg[2:].split("=", 1)
            parsed.append({"ParameterName": name, "Value": value})
        elif named_mode:
            raise typer.BadParameter(f"positional argument '{arg}' cannot follow named arguments")
        else:
            parsed.append({"Value": arg})
    return parsed


def read_config(path: str | None) -> bytes | None:
    """Read config data from a file, or from stdin when path is "-"."""
    if path is None:
        return None
    if path == "-":
        return typer.get_binary_stream("stdin").read()
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise typer.BadParameter(f"cannot read {path}: {e.strerror}") from None


def _encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


# =============================================================================
# SPACE HANDLERS
# =============================================================================


async def handle_space_list(cmd: CommandContext, client: HubClient) -> list[Space]:
    spaces = await client.list_spaces(where=cmd.where or None)
    cmd.audit.log_read("space_list", f"where={cmd.where}")
    if cmd.json_output:
        cmd.emit_json([space.raw for space in spaces])
    else:
        for space in spaces:
            cmd.echo(f"{space.slug}  {space.space_id}")
    return spaces


async def handle_space_get(cmd: CommandContext, client: HubClient, space_ref: str) -> Space:
    space = await client.resolve_space(space_ref)
    cmd.audit.log_read("space_get", space.slug)
    if cmd.json_output:
        cmd.emit_json(space.raw)
    else:
        cmd.echo(f"Slug:         {space.slug}")
        cmd.echo(f"ID:           {space.space_id}")
        cmd.echo(f"Display name: {space.display_name}")
    return space


# =============================================================================
# UNIT HANDLERS
# =============================================================================


async def handle_unit_list(cmd: CommandContext, client: HubClient) -> list[Unit]:
    space_id = await cmd.select_space(client)
    units = await client.list_units(space_id, where=cmd.where or None)
    cmd.audit.log_read("unit_list", f"{cmd.space}/where={cmd.where}")
    if cmd.json_output:
        cmd.emit_json([unit.raw for unit in units])
    else:
        for unit in units:
            cmd.echo(
                f"{unit.slug}  {unit.unit_id}  {unit.toolchain_type}  "
                f"{unit.head_revision_num}/{unit.live_revision_num}"
            )
    return units


async def handle_unit_get(cmd: CommandContext, client: HubClient, unit_ref: str) -> Unit:
    space_id = await cmd.select_space(client)
    unit = await client.resolve_unit(space_id, unit_ref)
    cmd.audit.log_read("unit_get", f"{cmd.space}/{unit.slug}")
    if cmd.json_output:
        cmd.emit_json(unit.raw)
        return unit

    gates = ", ".join(sorted(unit.apply_gates)) if unit.apply_gates else "None"
    cmd.echo(f"Slug:          {unit.slug}")
    cmd.echo(f"ID:            {unit.unit_id}")
    cmd.echo(f"Space:         {cmd.space} ({unit.space_id})")
    cmd.echo(f"Toolchain:     {unit.toolchain_type}")
    cmd.echo(f"Head revision: {unit.head_revision_num}")
    cmd.echo(f"Live revision: {unit.live_revision_num}")
    cmd.echo(f"Apply gates:   {gates}")
    return unit


async def _settle(cmd: CommandContext, client: HubClient, unit: Unit) -> Unit:
    """Await triggers on a freshly mutated unit when waiting is enabled."""
    if not cmd.wait:
        return unit
    cmd.announce_wait()
    return await await_triggers_removal(client, unit)


async def _scoped_where(cmd: CommandContext, client: HubClient) -> str:
    """Restrict a bulk --where filter to the selected space, if any."""
    if not cmd.space:
        return cmd.where
    space_id = await cmd.select_space(client)
    return f"SpaceID = '{space_id}' AND {cmd.where}"


async def handle_unit_create(
    cmd: CommandContext,
    client: HubClient,
    slug: str,
    data: bytes | None,
    toolchain: str,
    labels: dict[str, str],
    change_desc: str,
) -> Unit:
    space_id = await cmd.select_space(client)
    body: dict[str, Any] = {
        "SpaceID": space_id,
        "Slug": slug,
        "DisplayName": slug,
        "ToolchainType": toolchain,
        "Labels": labels,
    }
    if data is not None:
        body["Data"] = _encode(data)
    if change_desc:
        body["LastChangeDescription"] = change_desc

    unit = await client.create_unit(space_id, body)
    unit = await _settle(cmd, client, unit)
    cmd.audit.log_write("unit_create", f"{cmd.space}/{unit.slug}", "success", {"waited": cmd.wait})

    if cmd.json_output:
        cmd.emit_json(unit.raw)
    else:
        cmd.echo(f"Successfully created unit {unit.slug} ({unit.unit_id})")
    return unit


async def handle_unit_update(
    cmd: CommandContext,
    client: HubClient,
    unit_ref: str,
    data: bytes | None,
    patch: bool,
    labels: dict[str, str],
    change_desc: str,
) -> Unit:
    space_id = await cmd.select_space(client)
    current = await client.resolve_unit(space_id, unit_ref)

    if patch:
        body: dict[str, Any] = {}
        if data is not None:
            body["Data"] = _encode(data)
        if labels:
            body["Labels"] = labels
        if change_desc:
            body["LastChangeDescription"] = change_desc
        unit = await client.patch_unit(space_id, current.unit_id, body)
    else:
        body = dict(current.raw)
        if data is not None:
            body["Data"] = _encode(data)
        if labels:
            body["Labels"] = {**current.labels, **labels}
        if change_desc:
            body["LastChangeDescription"] = change_desc
        unit = await client.update_unit(space_id, current.unit_id, body)

    unit = await _settle(cmd, client, unit)
    cmd.audit.log_write(
        "unit_update",
        f"{cmd.space}/{unit.slug}",
        "success",
        {"patch": patch, "waited": cmd.wait},
    )

    if cmd.json_output:
        cmd.emit_json(unit.raw)
    else:
        cmd.echo(f"Successfully updated unit {unit.slug} ({unit.unit_id})")
    return unit


async def handle_unit_bulk_update(
    cmd: CommandContext,
    client: HubClient,
    labels: dict[str, str],
    change_desc: str,
) -> list[BulkUnitResult]:
    """
    Merge-patch every unit matching --where, then await each one in turn.

    The units are rendered as they were after their triggers ran. Per-unit
    failures are reported without stopping the others.
    """
    where = await _scoped_where(cmd, client)

    patch: dict[str, Any] = {}
    if labels:
        patch["Labels"] = labels
    if change_desc:
        patch["LastChangeDescription"] = change_desc

    results = await client.bulk_patch_units(where, patch)
    succeeded = [result.unit for result in results if result.unit is not None]
    failed = [result for result in results if result.error is not None]

    if cmd.wait and succeeded:
        cmd.announce_wait()
        succeeded = [await await_triggers_removal(client, unit) for unit in succeeded]

    if cmd.json_output:
        cmd.emit_json([unit.raw for unit in succeeded])
    else:
        for unit in succeeded:
            cmd.echo(f"Successfully updated unit {unit.slug} ({unit.unit_id})")
        for result in failed:
            typer.echo(f"Failed to update unit: {result.error}", err=True)
        cmd.echo(f"{len(succeeded)} of {len(results)} units updated")

    cmd.audit.log_write(
        "unit_bulk_update",
        f"where={cmd.where}",
        "success" if not failed else "partial",
        {"updated": len(succeeded), "failed": len(failed), "waited": cmd.wait},
    )
    return results


async def handle_unit_action(
    cmd: CommandContext,
    client: HubClient,
    action: str,
    unit_ref: str,
) -> None:
    """Queue apply, refresh, destroy or import and optionally await it."""
    space_id = await cmd.select_space(client)
    unit = await client.resolve_unit(space_id, unit_ref)
    queue = getattr(client, f"{action}_unit")
    operation = await queue(space_id, unit.unit_id)
    target = f"{cmd.space}/{unit.slug}"

    if not cmd.wait:
        cmd.audit.log_write(f"unit_{action}", target, "initiated")
        if cmd.json_output and operation is not None:
            cmd.emit_json(operation.raw)
        else:
            cmd.echo(f"Successfully queued {action} on unit {unit.slug} ({unit.unit_id})")
        return

    event = await await_completion(client, action, operation, cmd.timeout)
    cmd.audit.log_write(f"unit_{action}", target, "completed", {"status": event.status})

    if cmd.json_output:
        cmd.emit_json(event.raw)
    elif event.status == "Completed":
        cmd.echo(f"Successfully completed {event.action} on unit {unit.slug} ({unit.unit_id})")
    else:
        cmd.echo(f"Action {event.action} on unit {unit.slug} ({unit.unit_id}) {event.status}")


async def handle_unit_bulk_action(
    cmd: CommandContext,
    client: HubClient,
    action: str,
) -> list[BulkOperationResult]:
    """
    Queue an action on every unit matching --where.

    With wait, each queued operation is awaited in turn. A wait that fails
    is printed as a warning and the remaining operations are still awaited.
    """
    where = await _scoped_where(cmd, client)
    queue = getattr(client, f"bulk_{action}_units")
    results = await queue(where)
    operations = [result.operation for result in results if result.operation is not None]
    failed = [result for result in results if result.error is not None]

    if cmd.json_output:
        pass
    elif not results:
        cmd.echo("No units found matching the filter")
    else:
        for result in failed:
            unit = f" {result.entity_id}" if result.entity_id else ""
            typer.echo(f"Failed to {action} unit{unit}: {result.error}", err=True)
        if not cmd.wait:
            for operation in operations:
                cmd.echo(f"Queued {action} for unit {operation.unit_id}")
        cmd.echo(f"{len(operations)} of {len(results)} units queued for {action}")

    warnings = 0
    if cmd.wait and operations:
        if not cmd.json_output:
            cmd.echo(f"Waiting for {len(operations)} operation(s) to complete...")
        for operation in operations:
            try:
                await await_completion(client, action, operation, cmd.timeout)
            except (HubError, WaitError) as e:
                warnings += 1
                if not cmd.quiet:
                    typer.echo(f"Warning: {e}", err=True)

    cmd.audit.log_write(
        f"unit_bulk_{action}",
        f"where={cmd.where}",
        "success" if not failed and not warnings else "partial",
        {
            "queued": len(operations),
            "failed": len(failed),
            "wait_warnings": warnings,
            "waited": cmd.wait,
        },
    )

    if cmd.json_output:
        cmd.emit_json([result.raw for result in results])
    return results


async def handle_unit_delete(cmd: CommandContext, client: HubClient, unit_ref: str) -> None:
    space_id = await cmd.select_space(client)
    unit = await client.resolve_unit(space_id, unit_ref)
    await client.delete_unit(space_id, unit.unit_id)
    cmd.audit.log_write("unit_delete", f"{cmd.space}/{unit.slug}", "success")
    cmd.echo(f"Successfully deleted unit {unit.slug} ({unit.unit_id})")


# =============================================================================
# LINK HANDLERS
# =============================================================================


async def handle_link_create(
    cmd: CommandContext,
    client: HubClient,
    slug: str,
    from_ref: str,
    to_ref: str,
    to_space_ref: str | None,
) -> Link:
    space_id = await cmd.select_space(client)
    from_unit = await client.resolve_unit(space_id, from_ref)

    to_space_id = space_id
    if to_space_ref:
        to_space_id = (await client.resolve_space(to_space_ref)).space_id
    to_unit = await client.resolve_unit(to_space_id, to_ref)

    link = await client.create_link(
        space_id,
        {
            "SpaceID": space_id,
            "Slug": slug,
            "FromUnitID": from_unit.unit_id,
            "ToUnitID": to_unit.unit_id,
            "ToSpaceID": to_space_id,
        },
    )

    if cmd.wait:
        await _settle(cmd, client, await client.get_unit(space_id, from_unit.unit_id))
    cmd.audit.log_write("link_create", f"{cmd.space}/{link.slug}", "success", {"waited": cmd.wait})

    if cmd.json_output:
        cmd.emit_json(link.raw)
    else:
        cmd.echo(f"Successfully created link {link.slug} ({link.link_id})")
    return link


async def handle_link_delete(cmd: CommandContext, client: HubClient, link_ref: str) -> None:
    space_id = await cmd.select_space(client)
    link = await client.resolve_link(space_id, link_ref)
    await client.delete_link(space_id, link.link_id)

    if cmd.wait:
        await _settle(cmd, client, await client.get_unit(link.space_id or space_id, link.from_unit_id))
    cmd.audit.log_write("link_delete", f"{cmd.space}/{link.slug}", "success", {"waited": cmd.wait})
    cmd.echo(f"Successfully deleted link {link.slug} ({link.link_id})")


# =============================================================================
# FUNCTION HANDLERS
# =============================================================================


def build_function_request(function: str, args: list[str], change_desc: str = "") -> dict[str, Any]:
    """Build a FunctionInvocationsRequest invoking one function."""
    return {
        "CastStringArgsToScalars": True,
        "NumFilters": 0,
        "StopOnError": False,
        "ChangeDescription": change_desc,
        "FunctionInvocations": [
            {
                "FunctionName": function,
                "Arguments": parse_function_arguments(args),
            }
        ],
    }


async def handle_function_do(
    cmd: CommandContext,
    client: HubClient,
    request: dict[str, Any],
) -> list[FunctionInvocationResult]:
    """Invoke functions on the selected space and await triggers per unit."""
    space_id = await cmd.select_space(client)
    function = request["FunctionInvocations"][0]["FunctionName"]
    results = await client.invoke_functions(space_id, request, where=cmd.where or None)
    cmd.audit.log_write(
        "function_do",
        f"{cmd.space}/{function}",
        "success",
        {"units": len(results), "failed": sum(1 for r in results if not r.success)},
    )

    if cmd.json_output:
        cmd.emit_json([result.raw for result in results])
    else:
        for result in results:
            if not result.success:
                messages = "; ".join(result.error_messages) or "unknown error"
                typer.echo(f"Function {function} failed on unit {result.unit_id}: {messages}", err=True)
            elif result.output:
                cmd.echo(result.output)

    if cmd.wait and results:
        cmd.announce_wait()
        # One unit at a time.
        for result in results:
            unit = await client.get_unit(result.space_id or space_id, result.unit_id)
            await await_triggers_removal(client, unit)
    return results


# =============================================================================
# TYPER COMMANDS
# =============================================================================


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cub {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    space: str = typer.Option("", "--space", help="Space slug or UUID (default: CONFIGHUB_SPACE)."),
    debug: bool = typer.Option(False, "--debug", help="Log API requests and polling to stderr."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress default output."),
    json_output: bool = typer.Option(False, "--json", help="Print raw entity JSON."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    ),
) -> None:
    """Command-line client for ConfigHub."""
    try:
        settings = load_settings()
    except ValidationError as e:
        typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(code=1) from None

    configure_logging(level="DEBUG" if debug else settings.log_level, json_output=settings.json_logs)
    set_correlation_id("")

    selected = space or settings.space
    ctx.obj = CommandContext(
        settings=settings,
        audit=AuditLogger(settings.audit_log),
        space=selected,
        space_id=selected if is_uuid(selected) else "",
        quiet=quiet,
        json_output=json_output,
        wait=settings.wait.wait,
        timeout=settings.wait.timeout_seconds,
    )
    logger.debug("Invoking command", command=ctx.invoked_subcommand, url=settings.url)


@space_app.command("list")
def space_list(
    ctx: typer.Context,
    where: Optional[str] = typer.Option(None, "--where", help="Filter expression."),
) -> None:
    """List spaces."""
    cmd = _command_context(ctx, where=where)
    _run(cmd, "space_list", f"where={cmd.where}", handle_space_list)


@space_app.command("get")
def space_get(ctx: typer.Context, space_ref: str = typer.Argument(..., metavar="SPACE")) -> None:
    """Show one space."""
    cmd = _command_context(ctx)
    _run(cmd, "space_get", space_ref, handle_space_get, space_ref)


@unit_app.command("list")
def unit_list(
    ctx: typer.Context,
    where: Optional[str] = typer.Option(None, "--where", help="Filter expression."),
) -> None:
    """List units in the selected space."""
    cmd = _command_context(ctx, where=where)
    _run(cmd, "unit_list", f"{cmd.space}/where={cmd.where}", handle_unit_list)


@unit_app.command("get")
def unit_get(ctx: typer.Context, unit_ref: str = typer.Argument(..., metavar="UNIT")) -> None:
    """Show one unit."""
    cmd = _command_context(ctx)
    _run(cmd, "unit_get", f"{cmd.space}/{unit_ref}", handle_unit_get, unit_ref)


@unit_app.command("create")
def unit_create(
    ctx: typer.Context,
    slug: str = typer.Argument(...),
    config_file: Optional[str] = typer.Argument(None, help="Config file, or - for stdin."),
    toolchain: str = typer.Option("Kubernetes/YAML", "--toolchain"),
    label: Optional[List[str]] = typer.Option(None, "--label", help="key=value, repeatable."),
    change_desc: str = typer.Option("", "--change-desc"),
    wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Await triggers."),
) -> None:
    """Create a unit."""
    cmd = _command_context(ctx, wait=wait)
    labels = parse_labels(label)
    data = read_config(config_file)
    _run(
        cmd,
        "unit_create",
        f"{cmd.space}/{slug}",
        handle_unit_create,
        slug,
        data,
        toolchain,
        labels,
        change_desc,
    )


@unit_app.command("update")
def unit_update(
    ctx: typer.Context,
    unit_ref: Optional[str] = typer.Argument(None, metavar="[UNIT]"),
    config_file: Optional[str] = typer.Argument(None, help="Config file, or - for stdin."),
    patch: bool = typer.Option(False, "--patch", help="Merge-patch instead of replace."),
    label: Optional[List[str]] = typer.Option(None, "--label", help="key=value, repeatable."),
    change_desc: str = typer.Option("", "--change-desc"),
    where: Optional[str] = typer.Option(None, "--where", help="Bulk mode filter."),
    wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Await triggers."),
) -> None:
    """Update one unit, or merge-patch all units matching --where."""
    cmd = _command_context(ctx, where=where, wait=wait)
    labels = parse_labels(label)

    if where:
        if unit_ref is not None or config_file is not None:
            raise typer.BadParameter("bulk update with --where takes no unit or config file")
        if not patch:
            raise typer.BadParameter("bulk update requires --patch", param_hint="--patch")
        if not labels and not change_desc:
            raise typer.BadParameter("nothing to update; pass --label or --change-desc")
        results = _run(
            cmd,
            "unit_bulk_update",
            f"where={where}",
            handle_unit_bulk_update,
            labels,
            change_desc,
        )
        if any(result.error is not None for result in results):
            raise typer.Exit(code=1)
        return

    if unit_ref is None:
        raise typer.BadParameter("a unit is required unless --where is given", param_hint="UNIT")
    data = read_config(config_file)
    if data is None and not labels and not change_desc:
        raise typer.BadParameter("nothing to update; pass a config file, --label or --change-desc")
    _run(
        cmd,
        "unit_update",
        f"{cmd.space}/{unit_ref}",
        handle_unit_update,
        unit_ref,
        data,
        patch,
        labels,
        change_desc,
    )


def _register_action(action: str) -> None:
    def command(
        ctx: typer.Context,
        unit_ref: Optional[str] = typer.Argument(None, metavar="[UNIT]"),
        where: Optional[str] = typer.Option(None, "--where", help="Bulk mode filter."),
        timeout: Optional[str] = typer.Option(None, "--timeout", help="Completion timeout, e.g. 2m."),
        wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Await completion."),
    ) -> None:
        cmd = _command_context(ctx, where=where, wait=wait, timeout=timeout)

        if where:
            if unit_ref is not None:
                raise typer.BadParameter(f"bulk {action} with --where takes no unit")
            results = _run(
                cmd,
                f"unit_bulk_{action}",
                f"where={where}",
                handle_unit_bulk_action,
                action,
            )
            if any(result.error is not None for result in results):
                raise typer.Exit(code=1)
            return

        if unit_ref is None:
            raise typer.BadParameter("a unit is required unless --where is given", param_hint="UNIT")
        _run(cmd, f"unit_{action}", f"{cmd.space}/{unit_ref}", handle_unit_action, action, unit_ref)

    command.__doc__ = f"Queue {action} of a unit, or of every unit matching --where, and wait for it."
    unit_app.command(action)(command)


for _action in QUEUED_ACTIONS:
    _register_action(_action)


@unit_app.command("delete")
def unit_delete(ctx: typer.Context, unit_ref: str = typer.Argument(..., metavar="UNIT")) -> None:
    """Delete a unit."""
    cmd = _command_context(ctx)
    _run(cmd, "unit_delete", f"{cmd.space}/{unit_ref}", handle_unit_delete, unit_ref)


@link_app.command("create")
def link_create(
    ctx: typer.Context,
    slug: str = typer.Argument(...),
    from_ref: str = typer.Argument(..., metavar="FROM_UNIT"),
    to_ref: str = typer.Argument(..., metavar="TO_UNIT"),
    to_space_ref: Optional[str] = typer.Argument(None, metavar="[TO_SPACE]"),
    wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Await triggers."),
) -> None:
    """Link FROM_UNIT to TO_UNIT, optionally in another space."""
    cmd = _command_context(ctx, wait=wait)
    _run(
        cmd,
        "link_create",
        f"{cmd.space}/{slug}",
        handle_link_create,
        slug,
        from_ref,
        to_ref,
        to_space_ref,
    )


@link_app.command("delete")
def link_delete(
    ctx: typer.Context,
    link_ref: str = typer.Argument(..., metavar="LINK"),
    wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Await triggers."),
) -> None:
    """Delete a link."""
    cmd = _command_context(ctx, wait=wait)
    _run(cmd, "link_delete", f"{cmd.space}/{link_ref}", handle_link_delete, link_ref)


@function_app.command(
    "do",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def function_do(
    ctx: typer.Context,
    function: str = typer.Argument(...),
    where: Optional[str] = typer.Option(None, "--where", help="Unit filter expression."),
    change_desc: str = typer.Option("", "--change-desc"),
    wait: Optional[bool] = typer.Option(None, "--wait/--no-wait", help="Await triggers."),
) -> None:
    """Invoke FUNCTION with positional or --name=value arguments."""
    cmd = _command_context(ctx, where=where, wait=wait)
    request = build_function_request(function, list(ctx.args), change_desc)
    _run(cmd, "function_do", f"{cmd.space}/{function}", handle_function_do, request)


def main() -> None:
    """Entry point for the cub command."""
    app()


if __name__ == "__main__":
    main()
