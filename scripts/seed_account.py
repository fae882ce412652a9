"""Seed a verified development account."""

import os

from app import create_app
from models import db
from services import get_accounts, users

ACCOUNT_EMAIL = os.getenv("SEED_EMAIL", "dev@example.com")
ACCOUNT_PASSWORD = os.getenv("SEED_PASSWORD", "DevPass123")


def main() -> None:
    app = create_app()
    with app.app_context():
        db.create_all()
        accounts = get_accounts()
        user = users.get_by_email(ACCOUNT_EMAIL)
        if user is None:
            user = accounts.register(ACCOUNT_EMAIL, ACCOUNT_PASSWORD)
            action = "created"
        else:
            users.update(
                user.id, {"password_hash": accounts.vault.hash(ACCOUNT_PASSWORD)}
            )
            action = "updated"
        users.update(user.id, {"is_verified": True, "verification_token": None})
        print(f"Verified account {action}: {ACCOUNT_EMAIL}")


if __name__ == "__main__":
    main()
