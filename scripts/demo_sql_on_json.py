#!/usr/bin/env python3
"""
Quick demo script for SQL on JSON.

Loads a small document into the default in-memory backend and runs a few
queries against it.
"""

import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


SAMPLE = {
    "users": [
        {"id": 1, "name": "Alice"},
        {"id": 2, "name": "Bob", "email": "bob@example.com"},
    ],
    "orders": [
        {"id": 900, "user_id": 1, "total": 12.5, "items": [{"sku": "A-1"}]},
        {"id": 901, "user_id": 2, "total": 7},
        {"id": 902, "user_id": 1, "total": 3.25, "note": "gift"},
    ],
    "meta": {"generated": "2024-01-01"},
}


def demo_schema():
    """Show the flattened schema without touching a database."""
    print("=" * 70)
    print("DEMO: Flattened schema")
    print("=" * 70)

    from sqlonjson.ingest import JsonSchemaAnalyzer, from_python

    analyzer = JsonSchemaAnalyzer()
    analyzer.analyze(from_python(SAMPLE))
    print(json.dumps(analyzer.get_summary(), indent=2))


def demo_queries():
    """Load the sample and query it."""
    print("\n" + "=" * 70)
    print("DEMO: Queries")
    print("=" * 70)

    from sqlonjson import SqlOnJson

    with SqlOnJson().convert_data(SAMPLE) as store:
        print(f"\n   Tables: {store.table_names()}")
        for table in store.table_names():
            print(f"   {table}: {store.column_types(table)}")

        rows = store.query(
            "SELECT u.name AS name, SUM(o.total) AS spent "
            "FROM orders o JOIN users u ON o.user_id = u.id "
            "GROUP BY u.name ORDER BY u.name"
        )
        print("\n   Spend per user:")
        for row in rows:
            print(f"     {row['name']}: {row['spent']}")


if __name__ == "__main__":
    from sqlonjson.common.logging_config import setup_logging_from_settings
    from sqlonjson.common.metrics import get_metrics

    setup_logging_from_settings()
    demo_schema()
    demo_queries()

    print("\n" + "=" * 70)
    print("Metrics")
    print("=" * 70)
    print(get_metrics().decode())
