"""Operator commands.

Usage:
    python -m dental_booking.manage seed-catalog
    python -m dental_booking.manage promote someone@example.com
    python -m dental_booking.manage sp-metadata
"""
import argparse
import sys
from datetime import datetime

from dental_booking.database import Base, SessionLocal, engine, ensure_schema
from dental_booking.models import appointment, availability, dentist, service, user  # noqa: F401
from dental_booking.models.user import ROLE_ADMIN, User
from dental_booking.services.catalog import seed_sample_catalog


def seed_catalog() -> int:
    Base.metadata.create_all(bind=engine)
    ensure_schema()
    db = SessionLocal()
    try:
        services_added, dentists_added = seed_sample_catalog(db)
    finally:
        db.close()
    print(f"Added {services_added} services and {dentists_added} dentists.")
    return 0


def promote(email: str) -> int:
    # Bootstraps the first administrator; later role changes go through the admin API.
    db = SessionLocal()
    try:
        target = db.query(User).filter(User.email == email.strip().lower()).first()
        if target is None:
            print(f"No user with email {email}. They must sign in once first.", file=sys.stderr)
            return 1
        target.role = ROLE_ADMIN
        target.updated_at = datetime.now()
        db.commit()
    finally:
        db.close()
    print(f"{email} is now an administrator.")
    return 0


def print_sp_metadata() -> int:
    from dental_booking.auth.saml import generate_sp_metadata

    metadata, errors = generate_sp_metadata()
    if errors:
        print("Metadata validation errors:", errors, file=sys.stderr)
        return 1
    if isinstance(metadata, bytes):
        sys.stdout.buffer.write(metadata)
    else:
        print(metadata)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="dental_booking.manage")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("seed-catalog", help="insert sample services and dentists into an empty catalog")
    promote_parser = commands.add_parser("promote", help="give an existing user the admin role")
    promote_parser.add_argument("email")
    commands.add_parser("sp-metadata", help="print SAML service provider metadata XML")

    args = parser.parse_args(argv)
    if args.command == "seed-catalog":
        return seed_catalog()
    if args.command == "promote":
        return promote(args.email)
    return print_sp_metadata()


if __name__ == "__main__":
    sys.exit(main())
