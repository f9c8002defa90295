"""
Create an admin account, or add an existing account to the admin allow-list.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pydantic import ValidationError

from portal_backend.auth import ensure_admin
from portal_backend.dependencies import get_db_client
from portal_backend.errors import message
from portal_backend.schemas import AdminCreateIn

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a portal admin")
    parser.add_argument("email", help="Admin email address")
    parser.add_argument(
        "--password",
        default=None,
        help="Password for a new account (prompted when omitted)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    password = args.password
    confirm = password
    if password is None:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")

    try:
        payload = AdminCreateIn(email=args.email, password=password, confirm_password=confirm)
    except ValidationError as exc:
        for error in exc.errors(include_url=False):
            logger.error("%s", error["msg"])
        return 2

    outcome = ensure_admin(get_db_client(), payload.email, payload.password)
    key = "admin_exists" if outcome == "exists" else "admin_created"
    print(f"{payload.email.lower()}: {message(key, 'en')}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
