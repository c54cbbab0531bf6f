#!/usr/bin/env python3
"""
Unreconciled Sales Report

Lists items that are marked sold but have no order on record. These are the
purchases whose Printful submission or order write failed after the item was
locked; each one has to be checked by hand against the Printful order list.

Usage:
    python report_unreconciled.py
    python report_unreconciled.py --json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.settings import load_settings
from repositories.catalog_repository import SupabaseCatalogStore
from repositories.client import create_supabase_client
from repositories.order_repository import SupabaseOrderStore
from services.reconciliation_service import UnreconciledItem, find_unreconciled_items


def format_table(items: List[UnreconciledItem]) -> str:
    """Render the report as a fixed-width table."""
    lines = [f"{'PRODUCT ID':<40} {'SOLD AT (UTC)':<27} TITLE", "-" * 90]
    for item in items:
        sold_at = item.sold_at.isoformat() if item.sold_at else "unknown"
        lines.append(f"{item.item_id:<40} {sold_at:<27} {item.title}")
    lines.append("")
    lines.append(f"{len(items)} sold item(s) without an order")
    return "\n".join(lines)


def format_json(items: List[UnreconciledItem]) -> str:
    return json.dumps(
        [
            {
                "product_id": item.item_id,
                "title": item.title,
                "sold_at": item.sold_at.isoformat() if item.sold_at else None,
            }
            for item in items
        ],
        indent=2,
    )


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="List sold items that have no order on record",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON instead of a table",
    )
    args = parser.parse_args()

    settings = load_settings()
    client = create_supabase_client(settings.supabase_url, settings.supabase_key)

    items = find_unreconciled_items(SupabaseCatalogStore(client), SupabaseOrderStore(client))
    print(format_json(items) if args.json else format_table(items))

    # Non-zero exit lets cron/monitoring alert on a non-empty report.
    return 1 if items else 0


if __name__ == "__main__":
    sys.exit(main())
