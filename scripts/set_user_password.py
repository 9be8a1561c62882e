"""Create a local account or reset its password for development."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the project root is on sys.path so ``salonbook`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app
from salonbook.auth import hash_password
from salonbook.extensions import db
from salonbook.models import AuthAccount
from salonbook.storage import atomic, storage


def set_password(username: str, email: str, password: str, salon_owner: bool = False) -> None:
    app = create_app()

    with app.app_context():
        with atomic():
            user = storage.get_user_by_username(username)
            if user is None:
                user = storage.create_user(
                    {
                        "username": username,
                        "email": email,
                        "name": username,
                        "is_salon_owner": salon_owner,
                    },
                    hash_password(password),
                )
                print(f"Created user '{username}' ({'salon owner' if salon_owner else 'customer'})")
                return

            if bool(user.is_salon_owner) != salon_owner:
                print(f"Updating salon owner flag to {salon_owner}")
                storage.update_user(user.user_id, {"is_salon_owner": salon_owner})

            account = storage.get_auth_account(user.user_id)
            if account is None:
                account = AuthAccount(user_id=user.user_id, password_hash="")
                db.session.add(account)
            account.password_hash = hash_password(password)

        print(f"Password for '{username}' has been set successfully.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set a user password for local testing.")
    parser.add_argument("username", help="Username of the account")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument("--email", help="Email used when the account has to be created")
    parser.add_argument("--salon-owner", action="store_true", help="Mark the account as a salon owner")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    email = args.email or f"{args.username}@example.com"
    set_password(args.username, email, args.password, args.salon_owner)


if __name__ == "__main__":
    main()
