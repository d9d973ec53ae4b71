"""Typer CLI for Nester-Engine."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="nester", help="Nester-Engine: listing ingestion and content pipelines")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Nester-Engine API server."""
    import uvicorn
    from nester_engine.app import create_app

    console.print(f"[bold green]Starting Nester-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def platforms():
    """List supported listing platforms."""
    from nester_engine.properties.platforms import PLATFORM_CAPABILITIES

    table = Table(title="Supported platforms")
    table.add_column("Platform")
    table.add_column("Name")
    table.add_column("Supports")
    for key, info in PLATFORM_CAPABILITIES.items():
        table.add_row(key, info["name"], ", ".join(info["supports"]))
    console.print(table)


@app.command()
def detect(
    url: str = typer.Argument(..., help="Listing URL"),
):
    """Detect the listing platform for a URL (offline)."""
    from nester_engine.properties.platforms import (
        UNSUPPORTED_PLATFORM_MESSAGE,
        detect_platform,
        is_valid_url,
    )

    if not is_valid_url(url):
        console.print("[bold red]INVALID[/bold red] — Invalid URL format")
        raise typer.Exit(1)
    platform = detect_platform(url)
    if platform is None:
        console.print(f"[bold red]UNSUPPORTED[/bold red] — {UNSUPPORTED_PLATFORM_MESSAGE}")
        raise typer.Exit(1)
    console.print(f"[bold green]{platform}[/bold green]")


@app.command("set-brand")
def set_brand(
    agent_id: str = typer.Argument(..., help="Agent (tenant) id"),
    company_name: Optional[str] = typer.Option(None, help="Company name"),
    primary_color: Optional[str] = typer.Option(None, help="Primary colour, e.g. #112233"),
    secondary_color: Optional[str] = typer.Option(None, help="Secondary colour"),
    font_family: Optional[str] = typer.Option(None, help="Font family"),
    reset: bool = typer.Option(False, "--reset", help="Switch back to the default brand"),
):
    """Create or update an agent's brand configuration."""
    from pydantic import ValidationError

    from nester_engine.brand.schemas import BrandUpdate
    from nester_engine.brand.service import BrandService, brand_from_record
    from nester_engine.common.database import DatabaseManager

    fields = {
        k: v for k, v in {
            "company_name": company_name,
            "primary_color": primary_color,
            "secondary_color": secondary_color,
            "font_family": font_family,
        }.items() if v is not None
    }
    if reset:
        fields["has_custom_branding"] = False
    try:
        update = BrandUpdate(**fields)
    except ValidationError as e:
        console.print(f"[bold red]Invalid brand:[/bold red] {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    async def _run():
        db = DatabaseManager()
        await db.init()
        await db.create_all()
        try:
            async with db.get_session() as session:
                record = await BrandService().upsert(session, agent_id, update)
                return brand_from_record(record)
        finally:
            await db.close()

    brand = asyncio.run(_run())
    console.print(f"[bold]{brand.company_name}[/bold] ({brand.mode}) {brand.primary_color}")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Nester-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
