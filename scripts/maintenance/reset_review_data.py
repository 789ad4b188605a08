"""
Reset the persisted review data.

DANGEROUS: This deletes all items and review history!
Only use when you want to start fresh for testing.

Usage:
    python -m scripts.maintenance.reset_review_data

    # Drop and recreate the whole table (every store key)
    python -m scripts.maintenance.reset_review_data --all-keys
"""

import argparse

from recall import ReviewEngine, SqlAlchemyStore, config


def main():
    parser = argparse.ArgumentParser(description="Reset persisted review data")
    parser.add_argument(
        "--all-keys",
        action="store_true",
        help="Drop every stored snapshot, not just the configured store key"
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt"
    )
    args = parser.parse_args()

    store = SqlAlchemyStore(config.get_database_url())
    key = config.get_store_key()

    print("=" * 60)
    print("WARNING: Reset Review Data")
    print("=" * 60)
    print()
    print("This will DELETE:")
    print("  - All review items (ease factors, intervals, statistics)")
    print("  - All review sessions (logs of past reviews)")
    print(f"  - Stored keys: {', '.join(store.keys()) if args.all_keys else key}")
    print()

    if not args.yes:
        response = input("Are you sure you want to reset? (type 'yes' to confirm): ")
        if response.lower() != "yes":
            print("\nCancelled. No changes made.")
            return

    print("\nResetting review data...")
    if args.all_keys:
        store.reset_db()
    else:
        ReviewEngine(store=store, store_key=key).reset_all_data()
    print("✓ Reset complete!")


if __name__ == "__main__":
    main()
