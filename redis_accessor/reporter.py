from __future__ import annotations

import json
from typing import Any, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from redis_accessor.domain.models import Record


def _format_value(value: Any) -> str:
    if value is None:
        return "[dim]null[/dim]"
    if isinstance(value, (dict, list)):
        return escape(json.dumps(value, sort_keys=True))
    return escape(str(value))


def record_columns(records: Sequence[Record], id_field: str = "id") -> List[str]:
    """
    Column order for a set of records: the id field first, then every other
    field name in order of first appearance.
    """
    columns: List[str] = [id_field]
    for record in records:
        for name in record.data:
            if name not in columns:
                columns.append(name)
    return columns


def print_records(
    model: str,
    records: Sequence[Record],
    id_field: str = "id",
    console: Optional[Console] = None,
) -> None:
    """
    Render records of one model as a rich table.
    """
    console = console or Console()

    if not records:
        console.print(f"[yellow]No {model} records.[/yellow]")
        return

    table = Table(
        title=f"{model} ({len(records)} records)",
        box=box.ROUNDED,
        caption="Sorted by id",
    )
    columns = record_columns(records, id_field)
    for name in columns:
        if name == id_field:
            table.add_column(name, style="cyan", no_wrap=True)
        else:
            table.add_column(name)

    for record in records:
        row = [escape(record.id)]
        row.extend(_format_value(record.data.get(name)) for name in columns[1:])
        table.add_row(*row)

    console.print(table)
