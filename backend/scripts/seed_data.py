#!/usr/bin/env python3
"""Seed a development database with a demo campground.

Populates DynamoDB tables with one campground, its site classes and sites,
seasonal rates, pricing rules, sample guests, currency settings and a
two-park portfolio.

Usage:
    python backend/scripts/seed_data.py --env dev
    python backend/scripts/seed_data.py --env dev --skip-guests
    python backend/scripts/seed_data.py --env dev --region us-east-1
"""

import argparse
from datetime import datetime, timezone
from decimal import Decimal

import boto3

CAMPGROUND_ID = "cg-pinecrest"

# Global region setting (set by main() from args)
_AWS_REGION: str | None = None


def get_dynamodb_resource():
    """Get DynamoDB resource with configured region."""
    if _AWS_REGION:
        return boto3.resource("dynamodb", region_name=_AWS_REGION)
    return boto3.resource("dynamodb")


def get_table_name(env: str, table: str) -> str:
    """Get full table name with environment prefix."""
    return f"campreserv-{env}-{table}"


def put_all(env: str, table: str, items: list[dict]) -> None:
    resource = get_dynamodb_resource().Table(get_table_name(env, table))
    print(f"Seeding {resource.name}")
    with resource.batch_writer() as batch:
        for item in items:
            batch.put_item(Item=item)
    print(f"  ✓ {len(items)} items")


def create_campground(env: str) -> None:
    now = datetime.now(timezone.utc).isoformat()
    put_all(
        env,
        "campgrounds",
        [
            {
                "campground_id": CAMPGROUND_ID,
                "name": "Pinecrest RV Park",
                "slug": "pinecrest",
                "currency": "USD",
                "site_selection_fee_cents": 1500,
                "deposit_rule": "first_night",
                "cancellation_rules": [
                    {"id": "moderate-7", "days_before_arrival": 7, "fee_type": "percent",
                     "fee_amount": 100, "applies_to": []},
                    {"id": "moderate-2", "days_before_arrival": 2, "fee_type": "percent",
                     "fee_amount": 50, "applies_to": []},
                    {"id": "moderate-0", "days_before_arrival": 0, "fee_type": "full",
                     "fee_amount": 0, "applies_to": []},
                ],
                "created_at": now,
                "updated_at": now,
            }
        ],
    )


def create_inventory(env: str) -> None:
    """Site classes, sites, seasonal rates and pricing rules."""
    classes = [
        {"site_class_id": "sc-full-hookup", "name": "Full Hookup 50A", "default_rate": 6500,
         "site_type": "rv", "max_occupancy": 6, "rig_max_length": 45},
        {"site_class_id": "sc-water-electric", "name": "Water & Electric", "default_rate": 4800,
         "site_type": "rv", "max_occupancy": 6, "rig_max_length": 35},
        {"site_class_id": "sc-tent", "name": "Tent Site", "default_rate": 2500,
         "site_type": "tent", "max_occupancy": 4},
        {"site_class_id": "sc-cabin", "name": "Rustic Cabin", "default_rate": 9500,
         "site_type": "cabin", "max_occupancy": 5},
    ]
    for site_class in classes:
        site_class.update({"campground_id": CAMPGROUND_ID, "is_active": True})
    put_all(env, "site-classes", classes)

    sites = []
    layout = [("A", "sc-full-hookup", "rv", 8), ("B", "sc-water-electric", "rv", 6),
              ("T", "sc-tent", "tent", 6), ("C", "sc-cabin", "cabin", 3)]
    for prefix, class_id, site_type, count in layout:
        for n in range(1, count + 1):
            number = f"{prefix}{n:02d}"
            sites.append(
                {
                    "site_id": f"site-{number.lower()}",
                    "campground_id": CAMPGROUND_ID,
                    "name": f"Site {number}",
                    "site_number": number,
                    "site_type": site_type,
                    "site_class_id": class_id,
                    "accessible": n == 1,
                    "amenity_tags": ["fire_ring", "picnic_table"] + (["shade"] if n % 2 else []),
                    "is_active": True,
                }
            )
    put_all(env, "sites", sites)

    put_all(
        env,
        "seasonal-rates",
        [
            {"rate_id": "sr-summer-fhu", "campground_id": CAMPGROUND_ID,
             "site_class_id": "sc-full-hookup", "name": "Summer Peak", "amount": 7900,
             "start_date": "2026-06-15", "end_date": "2026-08-31", "min_nights": 1,
             "is_active": True},
            {"rate_id": "sr-summer-weekly", "campground_id": CAMPGROUND_ID,
             "site_class_id": "sc-full-hookup", "name": "Summer Weekly", "amount": 6900,
             "start_date": "2026-06-15", "end_date": "2026-08-31", "min_nights": 7,
             "is_active": True},
        ],
    )
    put_all(
        env,
        "pricing-rules",
        [
            {"rule_id": "pr-saturday", "campground_id": CAMPGROUND_ID, "label": "Saturday night",
             "is_active": True, "day_of_week": 6, "flat_adjust": 1000},
            {"rule_id": "pr-long-stay", "campground_id": CAMPGROUND_ID, "label": "Long stay",
             "is_active": True, "min_nights": 14, "percent_adjust": Decimal("-0.1")},
        ],
    )


def create_sample_guests(env: str) -> None:
    now = datetime.now(timezone.utc).isoformat()
    put_all(
        env,
        "guests",
        [
            {"guest_id": "guest-0001", "primary_first_name": "Dana", "primary_last_name": "Reyes",
             "email": "dana.reyes@example.com", "phone": "555-0101",
             "rig_type": "fifth-wheel", "rig_length": 36, "created_at": now},
            {"guest_id": "guest-0002", "primary_first_name": "Sam", "primary_last_name": "Okafor",
             "email": "sam.okafor@example.com", "phone": "555-0102", "created_at": now},
            {"guest_id": "guest-0003", "primary_first_name": "Lee", "primary_last_name": "Martin",
             "email": "lee.martin@example.com", "rig_type": "tent", "created_at": now},
        ],
    )


def create_reporting(env: str) -> None:
    """Currency settings and a portfolio with a Canadian park."""
    now = datetime.now(timezone.utc).isoformat()
    put_all(
        env,
        "currency-config",
        [
            {"config_id": "default", "base_currency": "USD", "reporting_currency": "USD",
             "fx_provider": "manual", "updated_at": now,
             "fx_rates": [{"base": "USD", "quote": "CAD", "rate": Decimal("1.36"), "as_of": now}]},
        ],
    )
    put_all(
        env,
        "portfolios",
        [
            {
                "portfolio_id": "pf-northwest",
                "name": "Northwest Parks",
                "home_currency": "USD",
                "parks": [
                    {"park_id": CAMPGROUND_ID, "name": "Pinecrest RV Park", "region": "Oregon",
                     "currency": "USD", "occupancy": Decimal("0.78"), "adr": Decimal("68.5"),
                     "revpar": Decimal("53.43"), "revenue": 4120000},
                    {"park_id": "cg-lakeview", "name": "Lakeview Campground",
                     "region": "British Columbia", "currency": "CAD",
                     "occupancy": Decimal("0.64"), "adr": Decimal("82"),
                     "revpar": Decimal("52.48"), "revenue": 3350000},
                ],
            }
        ],
    )


def main() -> None:
    global _AWS_REGION

    parser = argparse.ArgumentParser(description="Seed campreserv DynamoDB tables")
    parser.add_argument("--env", default="dev", help="Target environment (default: dev)")
    parser.add_argument("--region", default=None, help="AWS region")
    parser.add_argument("--skip-guests", action="store_true", help="Do not create sample guests")
    args = parser.parse_args()

    _AWS_REGION = args.region

    print(f"Seeding environment: {args.env}")
    create_campground(args.env)
    create_inventory(args.env)
    if not args.skip_guests:
        create_sample_guests(args.env)
    create_reporting(args.env)
    print("Done.")


if __name__ == "__main__":
    main()
