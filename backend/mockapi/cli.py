"""CLI for the mock REST server.

Usage:
    mockapi serve --db-model models/ --db-storage db.json   # Serve the API
    mockapi serve --port 4000 --delay 200 --auth            # Override settings
    mockapi token --sub 42 --claim role=admin               # Print a signed token
    mockapi --version

Flags override environment variables (MOCK_*), .env and the JSON config file.
"""
import logging
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError

from mockapi import __version__
from mockapi.config import DEFAULT_CONFIG_FILE, Settings, load_settings
from mockapi.core.errors import PersistenceError, SchemaError
from mockapi.core.security import AuthGuard
from mockapi.server import MockServer

app = typer.Typer(
    name="mockapi",
    help="Mock REST backend generated from declarative model schemas",
    no_args_is_help=True,
)

logger = logging.getLogger("mockapi")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_claims(pairs: list[str]) -> dict[str, str]:
    """Turn ["role=admin", "team=x"] into {"role": "admin", "team": "x"}."""
    claims: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--claim")
        claims[key] = value
    return claims


def _load(config: str, **overrides) -> Settings:
    try:
        return load_settings(config, **overrides)
    except (PydanticValidationError, ValueError) as e:
        logger.error(f"Failed to load configuration: {e}")
        raise typer.Exit(1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Mock REST backend."""


@app.command("serve")
def cmd_serve(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Server port"),
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    delay: Optional[int] = typer.Option(None, "--delay", "-d", help="Response delay in ms"),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="URL prefix of resource routes"),
    db_storage: Optional[str] = typer.Option(None, "--db-storage", help="Snapshot file path"),
    db_model: Optional[str] = typer.Option(None, "--db-model", help="Model file or folder path"),
    auth: Optional[bool] = typer.Option(None, "--auth/--no-auth", help="Require bearer tokens"),
    config: str = typer.Option(DEFAULT_CONFIG_FILE, "--config", "-c", help="JSON config file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Serve the mock API."""
    settings = _load(
        config,
        port=port,
        host=host,
        delay=delay,
        prefix=prefix,
        db_storage_path=db_storage,
        db_model_path=db_model,
        auth_enabled=auth,
        log_level=log_level,
    )
    setup_logging(settings.log_level)

    logger.info("=" * 60)
    logger.info(f"Mock REST API {__version__}")
    logger.info(f"Models: {settings.db_model_path or '-'}")
    logger.info(f"Storage: {settings.db_storage_path or 'in-memory'}")
    logger.info(f"Auth: {'enabled' if settings.auth_enabled else 'disabled'}")
    logger.info("=" * 60)

    server = MockServer(settings)
    try:
        # Fail fast on bad models/snapshot instead of inside the ASGI lifespan
        server.store.initialize()
    except (SchemaError, PersistenceError) as e:
        logger.error(f"Failed to initialize store: {e}")
        raise typer.Exit(1)

    server.start()


@app.command("token")
def cmd_token(
    sub: Optional[str] = typer.Option(None, "--sub", help="Principal id (sub claim)"),
    claim: list[str] = typer.Option([], "--claim", help="Extra claim as key=value (repeatable)"),
    expires_minutes: Optional[int] = typer.Option(None, "--expires-minutes", help="Token lifetime"),
    config: str = typer.Option(DEFAULT_CONFIG_FILE, "--config", "-c", help="JSON config file"),
) -> None:
    """Print a signed bearer token using the configured secret."""
    settings = _load(config, jwt_access_token_expire_minutes=expires_minutes)
    claims = parse_claims(claim)
    if sub is not None:
        claims["sub"] = sub
    typer.echo(AuthGuard.from_settings(settings).generate_token(claims))


if __name__ == "__main__":
    app()
