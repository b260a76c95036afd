from __future__ import annotations

import json
import logging
from typing import Optional

import typer
import uvicorn

from tsproxy.api.main import create_app
from tsproxy.common.config import Settings, load_settings
from tsproxy.common.errors import ConfigError
from tsproxy.common.logging import setup_logging

app = typer.Typer(add_completion=False, help="Typesense search proxy CLI")


def _settings_or_exit(log: logging.Logger) -> Settings:
    try:
        return load_settings()
    except ConfigError as e:
        log.critical("config_error", extra={"error": str(e)})
        raise typer.Exit(code=1) from e


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to bind (overrides APP_PORT)"),
    log_level: str = typer.Option("info", help="Log level"),
) -> None:
    """Run the search proxy."""
    setup_logging(log_level)
    log = logging.getLogger("tsproxy.cli")

    settings = _settings_or_exit(log)
    listen_port = port or settings.listen_port
    log.info("starting", extra={"listen": f"{settings.listen_host}:{listen_port}"})
    uvicorn.run(
        create_app(settings),
        host=settings.listen_host,
        port=listen_port,
        log_level=log_level,
        log_config=None,
    )


@app.command()
def config() -> None:
    """Print the effective configuration with the API key redacted."""
    setup_logging()
    log = logging.getLogger("tsproxy.cli")

    settings = _settings_or_exit(log)
    typer.echo(json.dumps(settings.redacted(), indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
