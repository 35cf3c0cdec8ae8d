#!/usr/bin/env python3
"""
Create a placement officer account.

Officers cannot self-register; provision them with this script.
Usage: python scripts/create_officer.py --name "Placement Cell" --email tpo@college.edu --password secret123
"""
import argparse
import sys
sys.path.insert(0, '.')

from egs_bridge.core.errors import ConflictError
from egs_bridge.db.mongodb import init_mongo_indexes
from egs_bridge.services.account_service import OfficerService


def main():
    parser = argparse.ArgumentParser(description="Create a placement officer account")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--department", default=None)
    args = parser.parse_args()

    if len(args.password) < 6:
        parser.error("password must be at least 6 characters")

    init_mongo_indexes()
    try:
        officer = OfficerService().create(args.name, args.email, args.password, args.department)
    except ConflictError as e:
        print(f"❌ {e.message}")
        sys.exit(1)

    print(f"✅ Officer created: {officer['email']} (id: {officer['id']})")


if __name__ == "__main__":
    main()
