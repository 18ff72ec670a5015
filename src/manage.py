"""Washerman database management CLI.

Creates and drops the booking schema on whichever SQL provider the active
PROTEAN_ENV configures. The in-memory provider has no schema.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from booking.domain import booking
    from booking.utils.db import setup_db

    print("Initializing booking domain...")
    booking.init()
    print("Creating booking database schema...")
    providers = setup_db(booking)
    if providers:
        print(f"  schema ready on: {', '.join(providers)}")
    else:
        print("  no SQL providers configured, nothing to do.")
    print("Done.")


def drop_database():
    from booking.domain import booking
    from booking.utils.db import drop_db

    print("Initializing booking domain...")
    booking.init()
    print("Dropping booking database schema...")
    providers = drop_db(booking)
    if providers:
        print(f"  schema dropped on: {', '.join(providers)}")
    else:
        print("  no SQL providers configured, nothing to do.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Washerman database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
