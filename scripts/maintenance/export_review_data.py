"""
Export or import the persisted review data as a JSON file.

Reads the engine snapshot from the configured database (DATABASE_URL,
or the local SQLite file) and writes a full export, including statistics.

Usage:
    # Export to logs/review_export.json
    python -m scripts.maintenance.export_review_data

    # Export to a custom file
    python -m scripts.maintenance.export_review_data --output backup.json

    # Merge a previous export back into the database
    python -m scripts.maintenance.export_review_data --import backup.json
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from recall import ReviewEngine, SqlAlchemyStore, ValidationError, config

DEFAULT_OUTPUT = Path("logs") / "review_export.json"


def export_data(engine: ReviewEngine, output: Path) -> None:
    data = engine.export_data()
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    stats = data["statistics"]
    print(f"✓ Exported {len(data['items'])} items and {len(data['sessions'])} sessions")
    print(f"  Retention: {stats['retention_rate']:.1f}% over {stats['total_reviews']} reviews")
    print(f"  Written to: {output}")


def import_data(engine: ReviewEngine, source: Path) -> None:
    if not source.exists():
        print(f"No export file found at: {source}")
        return

    with open(source, 'r', encoding='utf-8') as f:
        data = json.load(f)

    try:
        result = engine.import_data(data)
    except ValidationError as exc:
        print(f"✗ Import rejected: {exc}")
        return

    print(f"✓ Imported {result.imported} items from {source}")
    if engine.warnings:
        print(f"⚠ {len(engine.warnings)} save warning(s), last: {engine.warnings[-1]}")


def main():
    parser = argparse.ArgumentParser(description="Export or import persisted review data")
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"Export file (default: {DEFAULT_OUTPUT})"
    )
    parser.add_argument(
        "--import",
        dest="import_file",
        type=Path,
        help="Merge this export file into the database instead of exporting"
    )
    parser.add_argument(
        "--db-url",
        help="Database URL (default: DATABASE_URL or the local SQLite file)"
    )
    args = parser.parse_args()

    db_url = args.db_url or config.get_database_url()
    print(f"Using database: {db_url}")
    engine = ReviewEngine(store=SqlAlchemyStore(db_url), settings_source=config.settings_from_env)

    if args.import_file:
        import_data(engine, args.import_file)
    else:
        export_data(engine, args.output)


if __name__ == "__main__":
    main()
