#!/usr/bin/env python3
"""
Create (or reset the password of) a staff account directly in the database.

Usage:
  python scripts/create_staff.py --email staff@example.com [--password secret] [--reset]
"""
from __future__ import annotations

import argparse
import secrets
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mailroom.core.config import get_settings  # noqa: E402
from mailroom.core.security import hash_password  # noqa: E402
from mailroom.repositories.sql_repository import SQLRepository  # noqa: E402


def gen_password(length: int = 12) -> str:
    alphabet = "abcdefghijkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def main() -> None:
    ap = argparse.ArgumentParser(description="Create a staff account")
    ap.add_argument("--email", required=True, help="Staff e-mail (login)")
    ap.add_argument("--password", help="Password (default: random 12 chars)")
    ap.add_argument("--reset", action="store_true", help="Reset the password if the account exists")
    args = ap.parse_args()

    email = (args.email or "").strip().lower()
    if not email or "@" not in email:
        raise SystemExit("Invalid e-mail")
    password = args.password or gen_password()
    min_length = get_settings().min_password_length
    if len(password) < min_length:
        raise SystemExit(f"Password must have at least {min_length} characters")

    repo = SQLRepository()
    if repo.get_user(email):
        if not args.reset:
            raise SystemExit(f"User '{email}' already exists (use --reset to change the password)")
        repo.update_user_password(email, hash_password(password))
        repo.delete_user_sessions(email)
        print(f"OK: password reset for {email}")
    else:
        repo.create_user(email, hash_password(password))
        print(f"OK: staff account created for {email}")
    if not args.password:
        print(f"  Password: {password}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
