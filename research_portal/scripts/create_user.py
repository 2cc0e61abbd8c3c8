"""
Create a portal user (e.g. the first admin). Run from project root:
  python -m research_portal.scripts.create_user USERNAME PASSWORD --name NAME --email EMAIL [--role ROLE]
Example:
  python -m research_portal.scripts.create_user jdoe your-secure-password --name "Jane Doe" --email jdoe@research.org --role admin
"""
import argparse
import sys

from research_portal.core.database import SessionLocal
from research_portal.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    hash_password,
)
from research_portal.models.user import User


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a portal user (no registration UI).")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--email", required=True, help="Email address")
    parser.add_argument("--role", default="user", help="Role, e.g. user, admin, Management")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1
    role = args.role.strip()
    if not role:
        print("Role must be non-empty.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        user = User(
            username=username,
            password_hash=hash_password(args.password),
            name=args.name.strip(),
            email=args.email.strip(),
            role=role,
        )
        db.add(user)
        db.commit()
        print(f"Created user '{username}' with role '{role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
