"""Checkout database management CLI.

Creates or drops the checkout schema on whichever SQL provider the active
PROTEAN_ENV configures. With the default memory provider both commands are
no-ops.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db
    PROTEAN_ENV=production python src/manage.py drop-db
"""

import argparse
import sys


def setup_database():
    from checkout.domain import checkout
    from checkout.utils.db import setup_db

    print("Initializing checkout domain...")
    checkout.init()
    touched = setup_db(checkout)
    if touched:
        print(f"  schema ready on: {', '.join(touched)}")
    else:
        print("  no SQL provider configured, nothing to create.")
    print("Done.")


def drop_database():
    from checkout.domain import checkout
    from checkout.utils.db import drop_db

    print("Initializing checkout domain...")
    checkout.init()
    touched = drop_db(checkout)
    if touched:
        print(f"  schema dropped on: {', '.join(touched)}")
    else:
        print("  no SQL provider configured, nothing to drop.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Checkout database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all checkout tables")
    subparsers.add_parser("drop-db", help="Drop all checkout tables")

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
