#!/usr/bin/env python3
"""
Index Setup Script
==================

Creates the MongoDB indexes the ride booking service relies on, including
the partial unique index that allows at most one active ride per rider.

Rides written before the isActive flag existed are backfilled first,
otherwise the partial index would not see them.

Usage:
    python init-scripts/setup-indexes.py
    python init-scripts/setup-indexes.py --uri mongodb://localhost:27017 --db ride_booking
"""

import argparse
import os
import sys

from pymongo import MongoClient
from pymongo.errors import DuplicateKeyError, OperationFailure

from ride_service.database import RIDE_INDEXES, RIDES_COLLECTION, USER_INDEXES, USERS_COLLECTION
from ride_service.repository import ACTIVE_STATUS_VALUES


def backfill_active_flag(db) -> int:
    """Set isActive on ride documents that do not carry it yet"""
    activated = db[RIDES_COLLECTION].update_many(
        {"isActive": {"$exists": False}, "status": {"$in": ACTIVE_STATUS_VALUES}},
        {"$set": {"isActive": True}},
    )
    deactivated = db[RIDES_COLLECTION].update_many(
        {"isActive": {"$exists": False}},
        {"$set": {"isActive": False}},
    )
    return activated.modified_count + deactivated.modified_count


def create_indexes(db):
    """Create ride and user indexes"""
    ride_names = db[RIDES_COLLECTION].create_indexes(RIDE_INDEXES)
    for name in ride_names:
        print(f"  ✅ {RIDES_COLLECTION}.{name}")

    user_names = db[USERS_COLLECTION].create_indexes(USER_INDEXES)
    for name in user_names:
        print(f"  ✅ {USERS_COLLECTION}.{name}")


def main():
    """Main execution"""
    parser = argparse.ArgumentParser(description="Create ride booking MongoDB indexes")
    parser.add_argument("--uri", default=os.getenv("MONGO_URI", "mongodb://localhost:27017"))
    parser.add_argument("--db", default=os.getenv("MONGO_DB_NAME", "ride_booking"))
    args = parser.parse_args()

    print("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print("  Ride Booking Index Setup")
    print(f"  {args.uri} / {args.db}")
    print("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print()

    client = MongoClient(args.uri)
    db = client[args.db]

    try:
        updated = backfill_active_flag(db)
        print(f"🔄 Backfilled isActive on {updated} rides")
        print()

        print("Creating indexes...")
        create_indexes(db)

    except (DuplicateKeyError, OperationFailure) as e:
        # Typically two active rides for one rider already exist
        print(f"  ❌ Index creation failed: {e}")
        sys.exit(1)
    finally:
        client.close()

    print()
    print("✅ Index setup complete!")


if __name__ == "__main__":
    main()
