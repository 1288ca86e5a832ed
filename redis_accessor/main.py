from __future__ import annotations

import asyncio
import sys
from typing import Any, Awaitable, TypeVar

import typer

from redis_accessor.config import get_settings
from redis_accessor.connector import Connector
from redis_accessor.errors import AccessorError
from redis_accessor.reporter import print_records
from redis_accessor.utils.logging import configure_logging

app = typer.Typer(help="Redis accessor CLI.")

T = TypeVar("T")


def _run(coro: Awaitable[T]) -> T:
    settings = get_settings()
    configure_logging(level=settings.log_level)
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except AccessorError as exc:
        typer.echo(f"Error ({exc.status_code}): {exc.message}", err=True)
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    target = settings.redis_url or (
        f"sentinels={settings.redis_sentinels} master={settings.redis_sentinel_master}"
        if settings.redis_sentinels
        else f"{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
    )
    typer.echo(
        f"backend={settings.store_backend} | redis={target} | "
        f"lock_ttl_ms={settings.lock_ttl_ms} id_strategy={settings.id_strategy} "
        f"strict_predicates={settings.strict_predicates}"
    )


@app.command()
def ping() -> None:
    """
    Check that the configured store answers.
    """

    async def _ping() -> bool:
        async with Connector() as connector:
            return await connector.ping()

    ok = _run(_ping())
    typer.echo("PONG" if ok else "no reply")


@app.command()
def dump(
    model: str = typer.Argument(..., help="Model name (key namespace) to list."),
) -> None:
    """
    Print every record of a model as a table. Values are decoded as JSON where possible.
    """

    async def _dump() -> Any:
        async with Connector() as connector:
            return await connector.find(model)

    records = _run(_dump())
    print_records(model, records)


@app.command()
def purge(
    model: str = typer.Argument(..., help="Model name (key namespace) to clear."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Delete every record of a model.
    """
    if not yes:
        typer.confirm(f"Delete all '{model}' records?", abort=True)

    async def _purge() -> int:
        async with Connector() as connector:
            return await connector.destroy_all(model)

    count = _run(_purge())
    typer.echo(f"Deleted {count} '{model}' record(s).")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
