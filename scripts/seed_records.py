"""
Synthetic record generation and loading script for the Redis accessor.

Implements deterministic pseudo-random person records and loads them through
the accessor (`put`), so stored hashes use the same encoding as the library.
"""

from __future__ import annotations

import asyncio
import random
import sys
import time
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List, Optional

import typer

from redis_accessor.config import get_settings
from redis_accessor.connector import Connector
from redis_accessor.utils.logging import configure_logging

app = typer.Typer(help="Generate synthetic person records and load them into Redis.")

PERSON_PROPERTIES: Dict[str, Any] = {
    "id": str,
    "name": str,
    "age": int,
    "active": bool,
    "joined_at": datetime,
}

_NAMES = ["Charlie", "Mary", "David", "Jason", "Alice", "Bob", "Eve", "Mallory"]


def _generate_people(count: int, seed: int) -> List[Dict[str, Any]]:
    rng = random.Random(seed)
    epoch = datetime(2020, 1, 1, tzinfo=UTC)
    people: List[Dict[str, Any]] = []
    for i in range(count):
        people.append(
            {
                "id": str(i),
                "name": rng.choice(_NAMES),
                "age": rng.randint(18, 90),
                "active": rng.choice([True, False]),
                "joined_at": epoch + timedelta(days=rng.randint(0, 1500)),
                "tags": rng.sample(["admin", "beta", "staff", "guest"], k=rng.randint(0, 2)),
            }
        )
    return people


async def _load(model: str, people: List[Dict[str, Any]], connector: Connector) -> int:
    connector.define_model(model, PERSON_PROPERTIES)
    accessor = connector.get_accessor(model)
    await asyncio.gather(*(accessor.put(person["id"], person) for person in people))
    return len(people)


async def _seed(model: str, people: List[Dict[str, Any]], connector: Optional[Connector]) -> int:
    if connector is not None:
        await connector.connect()
        return await _load(model, people, connector)
    async with Connector() as owned:
        return await _load(model, people, owned)


@app.command()
def main(
    count: int = typer.Option(
        100,
        "--count",
        "-n",
        help="Number of records to generate.",
    ),
    model: str = typer.Option(
        "person",
        "--model",
        "-m",
        help="Model name (key namespace) to load into.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
) -> None:
    """
    Generate synthetic person records and write them with the accessor.
    """
    configure_logging(level=get_settings().log_level)
    start = time.perf_counter()
    people = _generate_people(count, seed)
    typer.echo(f"Loading {count:,} '{model}' records (seed={seed})...")
    loaded = asyncio.run(_seed(model, people, None))
    duration = time.perf_counter() - start
    typer.echo(f"Loaded {loaded:,} records in {duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
