"""Command-line interface for the usage bridge."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from .bridge import UsageBridge, build_bridge
from .channel import ResultKind
from .config import Backend, BridgeSettings
from .reporting import UsageReportPrinter

app = typer.Typer(help="Device app-usage statistics bridge.")


@app.callback(no_args_is_help=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    backend: Backend = typer.Option(
        Backend.SNAPSHOT, "--backend", help="Where OS services are answered from."
    ),
    package_name: Optional[str] = typer.Option(
        None, "--package", help="Package name of the calling application."
    ),
    snapshot_path: Optional[Path] = typer.Option(
        None,
        "--snapshot",
        path_type=Path,
        help="Device snapshot JSON used by the snapshot backend.",
    ),
    adb_executable: Optional[str] = typer.Option(
        None, "--adb", help="Path to the adb executable."
    ),
    adb_serial: Optional[str] = typer.Option(
        None, "--serial", "-s", help="Serial of the adb device to use."
    ),
    labels_path: Optional[Path] = typer.Option(
        None,
        "--labels",
        path_type=Path,
        help="JSON map of package name to label for the adb backend.",
    ),
    launch_count_field: str = typer.Option(
        "mLaunchCount",
        "--launch-count-field",
        help="Internal record field holding launch counts; empty to always report 0.",
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    ctx.obj = BridgeSettings.from_options(
        backend=backend,
        package_name=package_name,
        snapshot_path=snapshot_path,
        adb_executable=adb_executable,
        adb_serial=adb_serial,
        labels_path=labels_path,
        launch_count_field=launch_count_field,
    )


def _bridge(ctx: typer.Context) -> UsageBridge:
    return build_bridge(ctx.obj)


@app.command()
def permission(ctx: typer.Context) -> None:
    """Report whether usage access is granted."""
    granted = _bridge(ctx).has_usage_permission()
    typer.echo("granted" if granted else "not granted")


@app.command("request-permission")
def request_permission(ctx: typer.Context) -> None:
    """Open the usage access settings screen on the device."""
    _bridge(ctx).request_usage_permission()
    typer.echo("Usage access settings opened; re-check with 'permission'.")


@app.command()
def usage(
    ctx: typer.Context,
    start: Optional[str] = typer.Option(
        None,
        "--start",
        help="Window start as YYYY-MM-DD or epoch milliseconds. Defaults to the epoch.",
    ),
    end: Optional[str] = typer.Option(
        None,
        "--end",
        help="Window end as YYYY-MM-DD or epoch milliseconds. Defaults to now.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print channel payloads as JSON."),
) -> None:
    """Print app usage for a time window."""
    records = _bridge(ctx).get_app_usage(_parse_instant(start), _parse_instant(end))
    if as_json:
        typer.echo(json.dumps([record.to_payload() for record in records], indent=2))
        return
    UsageReportPrinter().print_usage(records)


@app.command()
def call(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="Channel method name."),
    arguments: Optional[str] = typer.Option(
        None, "--args", help="JSON object passed as call arguments."
    ),
) -> None:
    """Invoke a channel method and print its reply."""
    try:
        parsed = json.loads(arguments) if arguments else None
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--args is not valid JSON: {exc}") from exc
    result = _bridge(ctx).channel.invoke(method, parsed)
    if result.kind is ResultKind.NOT_IMPLEMENTED:
        typer.echo(f"{method}: not implemented", err=True)
        raise typer.Exit(code=2)
    if result.kind is ResultKind.ERROR:
        typer.echo(f"{method}: {result.error_code} {result.error_message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result.value, indent=2))


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the server."),
    port: int = typer.Option(8766, "--port", min=1, max=65535, help="TCP port to listen on."),
) -> None:
    """Serve the usage channel over HTTP."""
    from .server_runner import run_server

    run_server(host=host, port=port, settings=ctx.obj)


def _parse_instant(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    if value.strip().lstrip("-").isdigit():
        return int(value)
    try:
        return int(datetime.strptime(value, "%Y-%m-%d").timestamp() * 1000)
    except ValueError as exc:
        raise typer.BadParameter(
            f"Expected YYYY-MM-DD or epoch milliseconds, got {value!r}"
        ) from exc
