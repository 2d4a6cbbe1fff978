"""
Create a city admin (or super admin) account in Firestore or the mock DB.

Admins cannot self-register through the API; this script is the only way
to create them.

Usage:
  - Dry run (default): python scripts/create_admin.py --name "Ward Office" --email ward@pune.gov.in --city Pune
  - Apply to configured DB: add --apply
  - Super admin (all cities): add --role super_admin

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` and
`USE_MOCK_DB=false` are set in `.env`.
"""

import argparse
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from civicpulse.config.firebase import get_db
from civicpulse.core.exceptions import CivicPulseError
from civicpulse.core.logging import setup_logging
from civicpulse.services.user_service import UserService


def main():
    parser = argparse.ArgumentParser(description="Create a CivicPulse admin account")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--city", help="City the admin manages (required for role admin)")
    parser.add_argument("--role", choices=["admin", "super_admin"], default="admin")
    parser.add_argument("--apply", action="store_true", help="Write to the DB instead of dry-run")
    args = parser.parse_args()

    if args.role == "admin" and not args.city:
        parser.error("--city is required for city admins")

    print(f"Preparing: {args.role} {args.email} ({args.city or 'all cities'})")
    if not args.apply:
        print("Dry run complete. Re-run with --apply to write to DB.")
        return

    setup_logging()
    password = getpass.getpass("Password: ")

    try:
        user = UserService(get_db()).register(args.name, args.email, password, city=args.city, role=args.role)
    except CivicPulseError as e:
        print(f"Failed to create admin: {e.message}")
        sys.exit(1)

    print(f"Created {user['role']} {user['email']} with id {user['id']}")


if __name__ == "__main__":
    main()
