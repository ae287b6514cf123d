"""
Database initialization and seeding.

This script:
- Creates all database tables
- Seeds a sample business with the default queue policy
- Optionally adds sample queue entries for development/testing
- Can reset the database (drop and recreate)

Usage:
    # Initialize with the sample business
    python -m queueme.database.init_db

    # Reset database (drops all tables and recreates)
    python -m queueme.database.init_db --reset

    # Add sample queue entries for testing
    python -m queueme.database.init_db --sample-data
"""

import argparse

from sqlalchemy import func, select

from queueme.config import setup_logging
from queueme.core.exceptions import QueueError
from queueme.database.session import (
    SessionLocal,
    create_all_tables,
    drop_all_tables,
    engine,
    get_db_context,
)
from queueme.models import Business, QueueEntry
from queueme.repositories import BusinessPolicyStore, QueueLedger
from queueme.services import AdmissionEngine


SAMPLE_BUSINESS_SLUG = "sample-restaurant"


def create_tables(reset: bool = False) -> None:
    """
    Create all database tables.

    Args:
        reset: If True, drop existing tables first
    """
    if reset:
        print("🗑️  Dropping existing tables...")
        drop_all_tables(engine)
        print("✅ Tables dropped")

    print("📊 Creating database tables...")
    create_all_tables(engine)
    print("✅ Tables created")


def seed_business() -> str:
    """
    Seed the sample business (queue 50, priority 10, extension 15 minutes).

    Returns:
        The sample business id
    """
    print("\n🌱 Seeding business...")

    with get_db_context() as db:
        existing = db.execute(
            select(Business).where(Business.slug == SAMPLE_BUSINESS_SLUG)
        ).scalar_one_or_none()

        if existing:
            print(f"  ⏭️  Business '{SAMPLE_BUSINESS_SLUG}' already exists (skipping)")
            return existing.id

        business = BusinessPolicyStore(db).create_business(
            "Sample Restaurant",
            slug=SAMPLE_BUSINESS_SLUG,
            max_queue_length=50,
            reserved_priority_slots=10,
            priority_extension_time=15,
        )
        print(f"  ✅ Created business: {business}")
        return business.id


def seed_sample_data(business_id: str) -> None:
    """
    Seed sample queue entries through the admission engine.

    Creates two waiting customers (one priority with a pre-order) and one
    customer who has already been called.
    """
    print("\n🌱 Seeding sample queue entries...")

    db = SessionLocal()
    try:
        existing = QueueLedger(db).count(business_id)
        if existing:
            print(f"  ⏭️  Business already has {existing} queue entries (skipping)")
            return

        admission = AdmissionEngine(db)
        samples = [
            dict(customer_name="John Doe", customer_phone="+1234567890",
                 order_items=[{"item_id": "menu-1", "name": "Burger", "price": 12.5, "quantity": 1}]),
            dict(customer_name="Jane Smith", customer_email="jane@example.com", is_priority=True),
            dict(customer_name="Sam Lee"),
        ]
        entries = []
        for sample in samples:
            name = sample.pop("customer_name")
            try:
                entry = admission.join(business_id, name, **sample)
            except QueueError as exc:
                print(f"    ⏭️  {name}: {exc.message}")
                continue
            entries.append(entry)
            print(f"    ✅ {entry}")

        if entries:
            called = admission.call(entries[-1].id, actor_id="seed")
            print(f"    📣 Called {called}")
    finally:
        db.close()

    print("✅ Sample data seeded")


def print_database_status() -> None:
    """Print current database status and counts."""
    print("\n" + "=" * 60)
    print("📊 Database Status")
    print("=" * 60)

    with get_db_context() as db:
        businesses = db.execute(select(Business).order_by(Business.name)).scalars().all()
        entries_count = db.execute(select(func.count()).select_from(QueueEntry)).scalar_one()

        print(f"  Businesses:    {len(businesses)}")
        print(f"  Queue entries: {entries_count}")

        for business in businesses:
            print(f"    • {business}")

    print("=" * 60)


def initialize_database(reset: bool = False, sample_data: bool = False) -> None:
    """
    Initialize the database.

    Args:
        reset: Drop existing tables before creating
        sample_data: Add sample queue entries for testing
    """
    print("=" * 60)
    print("🗄️  Database Initialization")
    print("=" * 60)

    create_tables(reset=reset)
    business_id = seed_business()

    if sample_data:
        seed_sample_data(business_id)

    print_database_status()

    print("\n✅ Database initialization complete!")


def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Initialize and seed the queue database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Initialize with the sample business
  python -m queueme.database.init_db

  # Reset database (drop all tables and recreate)
  python -m queueme.database.init_db --reset

  # Add sample queue entries for testing
  python -m queueme.database.init_db --sample-data
        """
    )

    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop existing tables before creating (WARNING: deletes all data!)"
    )

    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Add sample queue entries for development/testing"
    )

    parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt for --reset"
    )

    args = parser.parse_args()
    setup_logging()

    if args.reset and not args.yes:
        print("⚠️  WARNING: This will DELETE ALL DATA in the database!")
        response = input("Are you sure? Type 'yes' to continue: ")
        if response.lower() != 'yes':
            print("❌ Aborted")
            return

    initialize_database(reset=args.reset, sample_data=args.sample_data)


if __name__ == "__main__":
    main()
