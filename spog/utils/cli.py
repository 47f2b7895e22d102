"""
Administration CLI

Command-line helpers for setting up and inspecting a SPOG Inventory
Tracker database without the HTTP API.

Usage Examples:
    # Create the database and tables
    python -m spog.utils.cli init-db

    # Drop and recreate every table
    python -m spog.utils.cli reset-db --yes

    # Create the first admin account
    python -m spog.utils.cli create-user --email admin@example.com \\
        --password changeme1 --first-name Ada --last-name Admin --role admin

    # Load demo locations and items
    python -m spog.utils.cli seed-demo

    # Can 250 mL be taken from 0.5 L of stock?
    python -m spog.utils.cli check-consumption 250 mL 0.5 L
"""

import argparse
import sys
from datetime import date, timedelta

from spog.models import InventoryItem, Location
from spog.services import inventory_service, location_service, user_service
from spog.services.consumption_validator import (
    ConsumptionRequest,
    InventorySnapshot,
    evaluate_consumption,
)
from spog.services.database import initialize_app_database, reset_database, session_scope
from spog.services.exceptions import ServiceError
from spog.utils.constants import USER_ROLES

DEMO_LOCATIONS = [
    ("Hangar 1 Paint Store", "Flammables cabinet, hangar 1"),
    ("Line Maintenance Store", "Consumables for line maintenance"),
]

DEMO_ITEMS = [
    {
        "name": "PR-1422 B2 Sealant",
        "category": "Sealant",
        "unit": "L",
        "consumption_unit": "mL",
        "original_amount": 5,
        "current_balance": 4.2,
        "minimum_quantity": 1,
        "location": "Hangar 1 Paint Store",
        "expiry_days": 90,
    },
    {
        "name": "Epoxy Primer 515-700",
        "category": "Paint",
        "unit": "L",
        "consumption_unit": "mL",
        "original_amount": 10,
        "current_balance": 1.5,
        "minimum_quantity": 2,
        "location": "Hangar 1 Paint Store",
        "expiry_days": 20,
    },
    {
        "name": "Turbine Oil 2380",
        "category": "Oil",
        "unit": "L",
        "original_amount": 24,
        "current_balance": 1.9,
        "minimum_quantity": 4,
        "location": "Line Maintenance Store",
        "expiry_days": 365,
    },
    {
        "name": "Aeroshell Grease 33",
        "category": "Grease",
        "unit": "kg",
        "consumption_unit": "g",
        "original_amount": 3,
        "current_balance": 2.5,
        "minimum_quantity": 0.5,
        "location": "Line Maintenance Store",
        "expiry_days": 5,
    },
]


def init_db_cmd() -> int:
    print("Initializing database...")
    initialize_app_database()
    print("Database ready")
    return 0


def reset_db_cmd(confirmed: bool) -> int:
    if not confirmed:
        print("ERROR: reset-db deletes all data. Re-run with --yes to confirm.")
        return 1
    reset_database(confirm=True)
    print("Database reset")
    return 0


def create_user_cmd(email, password, first_name, last_name, role, department=None) -> int:
    """Create an account directly (no admin actor required)."""
    initialize_app_database()
    try:
        user = user_service.create_user(
            {
                "email": email,
                "password": password,
                "first_name": first_name,
                "last_name": last_name,
                "role": role,
                "department": department,
                "email_verified": True,
            }
        )
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1
    print(f"Created {user.role} {user.email} (id {user.id})")
    return 0


def seed_demo_cmd() -> int:
    """Load demo locations and items. Existing names are left untouched."""
    initialize_app_database()

    with session_scope() as session:
        location_ids = {name: loc_id for loc_id, name in session.query(Location.id, Location.name)}
        existing_items = {name for (name,) in session.query(InventoryItem.name)}

        for name, description in DEMO_LOCATIONS:
            if name not in location_ids:
                location = location_service.create_location(
                    name, description=description, session=session
                )
                location_ids[name] = location.id
                print(f"  + location {name}")

        today = date.today()
        for entry in DEMO_ITEMS:
            if entry["name"] in existing_items:
                continue
            data = {k: v for k, v in entry.items() if k not in ("location", "expiry_days")}
            data["location_id"] = location_ids[entry["location"]]
            data["expiry_date"] = today + timedelta(days=entry["expiry_days"])
            item = inventory_service.create_item(data, session=session)
            print(f"  + item {item.name} [{item.status}]")

    print("Demo data loaded")
    return 0


def check_consumption_cmd(amount, unit, balance, stock_unit, strict=False) -> int:
    """Print the validator's decision for one consumption.

    Returns 0 when the consumption fits, 2 when it does not, 1 on error.
    """
    snapshot = InventorySnapshot(current_balance=balance, original_amount=balance, unit=stock_unit)
    try:
        decision = evaluate_consumption(
            snapshot, ConsumptionRequest(quantity=amount, unit=unit), strict=strict
        )
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Requested:     {amount:g} {unit}")
    print(f"Converted:     {decision.converted_quantity:g} {stock_unit}")
    print(f"New balance:   {decision.new_balance:g} {stock_unit}")
    print(f"Maximum:       {decision.max_quantity:g} {unit}")
    print(f"Decision:      {'VALID' if decision.is_valid else 'INSUFFICIENT STOCK'}")
    return 0 if decision.is_valid else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Administration utility for the SPOG Inventory Tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Usage Examples:")[1],
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create the database and tables")

    reset_parser = subparsers.add_parser("reset-db", help="Drop and recreate all tables")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm data deletion")

    user_parser = subparsers.add_parser("create-user", help="Create a user account")
    user_parser.add_argument("--email", required=True)
    user_parser.add_argument("--password", required=True)
    user_parser.add_argument("--first-name", required=True)
    user_parser.add_argument("--last-name", required=True)
    user_parser.add_argument("--role", choices=USER_ROLES, default="user")
    user_parser.add_argument("--department")

    subparsers.add_parser("seed-demo", help="Load demo locations and inventory items")

    check_parser = subparsers.add_parser(
        "check-consumption", help="Check a consumption against a balance"
    )
    check_parser.add_argument("amount", type=float, help="Amount to consume")
    check_parser.add_argument("unit", help="Unit of the amount, e.g. mL")
    check_parser.add_argument("balance", type=float, help="Available balance")
    check_parser.add_argument("stock_unit", help="Unit of the balance, e.g. L")
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Refuse unknown or cross-family units instead of falling back to 1:1",
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "init-db":
        return init_db_cmd()
    elif args.command == "reset-db":
        return reset_db_cmd(args.yes)
    elif args.command == "create-user":
        return create_user_cmd(
            args.email,
            args.password,
            args.first_name,
            args.last_name,
            args.role,
            department=args.department,
        )
    elif args.command == "seed-demo":
        return seed_demo_cmd()
    elif args.command == "check-consumption":
        return check_consumption_cmd(
            args.amount, args.unit, args.balance, args.stock_unit, strict=args.strict
        )
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
