"""CLI for running the Trendyol proxy and checking credentials."""

import json
import sys
from dataclasses import replace

import click

from .client import TrendyolClient
from .config import ENVIRONMENTS, ProxySettings
from .errors import ProxyError
from .log import setup_logging
from .operations import first_seller
from .server import run_server


def _load_settings() -> ProxySettings:
    try:
        return ProxySettings.from_env()
    except ProxyError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


@click.group()
def cli() -> None:
    """Trendyol proxy: forward simplified requests to the Trendyol API."""
    pass


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default: HOST or 0.0.0.0).")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (default: PORT or 4000).")
@click.option("--environment", "-e", type=click.Choice(sorted(ENVIRONMENTS)), default=None,
              help="Trendyol environment to forward to.")
@click.option("--static-dir", type=click.Path(file_okay=False), default=None,
              help="Directory holding the frontend build.")
@click.option("--debug", is_flag=True, help="Verbose log format.")
def serve(host: str | None, port: int | None, environment: str | None,
          static_dir: str | None, debug: bool) -> None:
    """Run the long-lived proxy server."""
    settings = _load_settings()
    overrides = {
        "host": host,
        "port": port,
        "environment": environment,
        "static_dir": static_dir,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    setup_logging(debug=debug)
    run_server(settings)


@cli.command("test-connection")
@click.option("--api-key", envvar="TRENDYOL_API_KEY", required=True, help="Trendyol API key.")
@click.option("--api-secret", envvar="TRENDYOL_API_SECRET", required=True, help="Trendyol API secret.")
@click.option("--seller-id", envvar="TRENDYOL_SELLER_ID", default=None, help="Seller (supplier) ID.")
@click.option("--environment", "-e", type=click.Choice(sorted(ENVIRONMENTS)), default=None,
              help="Trendyol environment to test against.")
def test_connection(api_key: str, api_secret: str, seller_id: str | None, environment: str | None) -> None:
    """Check that the given credentials are accepted by Trendyol."""
    settings = _load_settings()
    if environment:
        settings = replace(settings, environment=environment)

    click.echo(f"Testing Trendyol connection ({settings.environment})...")
    client = TrendyolClient.from_settings(settings)
    try:
        info = client.request("/suppliers", api_key=api_key, api_secret=api_secret, seller_id=seller_id)
    except Exception as e:
        click.echo(f"Connection failed: {e}", err=True)
        sys.exit(1)

    click.echo("Connection OK.")
    click.echo(json.dumps(first_seller(info), indent=2, ensure_ascii=False))
