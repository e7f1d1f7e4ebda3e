"""Billing management CLI.

Creates and drops the billing database schema and runs the billing job
that turns due order items into orders.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py run        # Run one billing pass
"""

import argparse
import sys


def _init_domain():
    from billing.domain import billing

    billing.init()
    return billing


def setup_database():
    """Create the billing schema unless migrations are switched off."""
    from billing.cashier import get_cashier
    from billing.utils.db import setup_db

    billing = _init_domain()
    if not get_cashier().runs_migrations:
        print("Migrations are disabled (CASHIER_RUNS_MIGRATIONS=false), skipping.")
        return

    print("Creating billing database schema...")
    setup_db(billing)
    print("Done.")


def drop_database():
    """Drop the billing schema."""
    from billing.cashier import get_cashier
    from billing.utils.db import drop_db

    billing = _init_domain()
    if not get_cashier().runs_migrations:
        print("Migrations are disabled (CASHIER_RUNS_MIGRATIONS=false), skipping.")
        return

    print("Dropping billing database schema...")
    drop_db(billing)
    print("Done.")


def run_billing():
    """Assemble orders for every due order item and start their payments."""
    from billing.cashier import get_cashier
    from billing.order.aggregation import OrderItemAggregator

    billing = _init_domain()
    cashier = get_cashier()
    with billing.domain_context():
        orders = OrderItemAggregator(cashier).run()
        for order in orders:
            owner = f"{order.owner_type}:{order.owner_id}"
            print(f"  {order.number}  {owner}  {cashier.format_amount(order.total_money())}")
    print(f"Billed {len(orders)} order(s).")


def main():
    parser = argparse.ArgumentParser(description="Billing management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("run", help="Bill all due order items")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "run":
        run_billing()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
