#!/usr/bin/env python3
"""
User Export Script

Dumps the summary table to CSV and the detail records to JSON Lines, and
prints an overview of both stores with any rows that are out of sync.

Usage:
    python scripts/export_users.py --config config/app_settings.json --out exports/
"""

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from careerfeed.app import CareerFeedApp
from careerfeed.storage.detail_store import derive_record_key
from careerfeed.utils.validator import ConfigurationError

console = Console()


async def export_users(app: CareerFeedApp, out_dir: Path) -> int:
    """
    Export both stores and print the overview table.

    Returns:
        Number of summary rows without a matching detail record
    """
    rows = await app.master.read_all()
    details = await app.details.list_all()
    detail_keys = {derive_record_key(record.full_name) for record in details}

    table = Table(title="CareerFeed users")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Detail record")

    missing = 0
    for row in rows:
        has_detail = derive_record_key(row.full_name) in detail_keys
        if not has_detail and row.email_address != app.settings.admin.email:
            missing += 1
        table.add_row(
            row.full_name,
            row.email_address,
            "[green]yes[/green]" if has_detail else "[yellow]no[/yellow]",
        )
    console.print(table)

    summary_count = await app.master.export_csv(out_dir / "users.csv")
    detail_count = await app.details.export_all(out_dir / "user_details.jsonl")
    console.print(
        f"[+] Exported {summary_count} summary rows and {detail_count} detail records "
        f"to {out_dir}"
    )
    if missing:
        console.print(f"[yellow][!] {missing} summary rows have no detail record[/yellow]")
    return missing


def main() -> None:
    parser = argparse.ArgumentParser(description="Export CareerFeed user data")
    parser.add_argument("--config", default="config/app_settings.json")
    parser.add_argument("--out", default="exports")
    args = parser.parse_args()

    try:
        app = CareerFeedApp.from_config(args.config)
    except (ConfigurationError, FileNotFoundError) as e:
        console.print(f"[red][X] {e}[/red]")
        sys.exit(1)

    asyncio.run(export_users(app, Path(args.out)))


if __name__ == "__main__":
    main()
