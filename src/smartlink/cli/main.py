"""smartlink CLI - Main entry point."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from smartlink.config import get_settings
from smartlink.platform.device_detection import detect_device, needs_bridge_page
from smartlink.platform.targets import resolve_target

app = typer.Typer(
    name="smartlink",
    help="Smart-link router: send visitors to the app, a store listing, or the website",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP service."""
    import uvicorn

    uvicorn.run("smartlink.api:app", host=host, port=port, reload=reload)


@app.command()
def detect(
    user_agent: str = typer.Option("", "--user-agent", "-u", help="User-Agent header"),
    platform: Optional[str] = typer.Option(
        None, "--platform", help='Sec-CH-UA-Platform header, e.g. "Android"'
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show how a request with these headers would be routed."""
    headers = {"User-Agent": user_agent}
    if platform is not None:
        headers["Sec-CH-UA-Platform"] = platform

    config = get_settings().routing_config()
    detection = detect_device(headers)
    target = resolve_target(detection, config)

    if json_output:
        console.print_json(
            json.dumps(
                {
                    "detection": detection.to_dict(),
                    "needsBridgePage": needs_bridge_page(detection),
                    "chosenTarget": target.value,
                }
            )
        )
        return

    table = Table(title="Routing decision")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Device", detection.device.value)
    table.add_row("Confidence", detection.confidence.value)
    table.add_row("Reason", detection.reason)
    table.add_row("Bridge page", "yes" if needs_bridge_page(detection) else "no")
    table.add_row("Target", f"[bold]{target.value}[/bold]")
    console.print(table)


@app.command("config")
def show_config(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show the effective routing configuration."""
    config = get_settings().routing_config()
    data = config.to_dict()
    data["debug"] = config.debug

    if json_output:
        console.print_json(json.dumps(data))
        return

    table = Table(title="Routing configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, "[dim]not set[/dim]" if value is None else str(value))
    console.print(table)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
