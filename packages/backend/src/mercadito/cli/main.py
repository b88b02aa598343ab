"""Mercadito CLI — run the server and poke at a running one.

Usage:
    mercadito serve                       # uvicorn on $PORT (default 8080)
    mercadito serve --reload              # dev autoreload
    mercadito check-config                # validate env vars, print the result
    mercadito health                      # GET /api/health on a running server
"""

from __future__ import annotations

import json
import os
import sys

import click
import httpx

from mercadito.config import load_settings
from mercadito.errors import StartupError

DEFAULT_API_URL = "http://localhost:8080"


def _api_url() -> str:
    return os.environ.get("MERCADITO_API_URL", DEFAULT_API_URL).rstrip("/")


def _load_or_exit():
    try:
        return load_settings()
    except StartupError as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        sys.exit(1)


@click.group()
def cli():
    """Mercadito e-commerce backend."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: settings.host)")
@click.option("--port", default=None, type=int, help="Port (default: $PORT or 8080)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP + websocket server."""
    import uvicorn

    settings = _load_or_exit()
    uvicorn.run(
        "mercadito.main:build_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",
    )


@cli.command("check-config")
def check_config():
    """Validate configuration without starting anything."""
    settings = _load_or_exit()
    click.secho("✓ configuration ok", fg="green")
    click.echo(f"  environment: {settings.environment}")
    click.echo(f"  port:        {settings.port}")
    click.echo(f"  database:    {settings.mongo_db}")
    click.echo(f"  log level:   {settings.log_level}")
    click.echo(f"  session ttl: {settings.session_ttl_seconds}s")


@cli.command()
@click.option("--url", default=None, help="Server base URL (default: $MERCADITO_API_URL)")
def health(url: str | None):
    """Ask a running server for its health."""
    base = (url or _api_url()).rstrip("/")
    try:
        r = httpx.get(f"{base}/api/health", timeout=10.0)
    except httpx.HTTPError as e:
        click.secho(f"✗ {base} unreachable: {e}", fg="red", err=True)
        sys.exit(1)
    data = r.json()
    click.echo(json.dumps(data, indent=2))
    if data.get("status") != "healthy":
        sys.exit(1)
