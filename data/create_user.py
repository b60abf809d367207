#!/usr/bin/env python3
"""
Create a user account from the command line.

Usage:
    python data/create_user.py USERNAME PASSWORD [--admin] [--company NAME]
    python data/create_user.py USERNAME --promote

Creates the tables if needed, seeds the towing service catalog and the new
user's company settings. --company creates the company if it doesn't exist.
--promote makes an existing user an admin.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fastapi import HTTPException  # noqa: E402

from ppp import models  # noqa: E402
from ppp.database import Base, SessionLocal, engine  # noqa: E402
from ppp.routers.auth import create_user  # noqa: E402
from ppp.routers.services import seed_towing_services  # noqa: E402


def get_or_create_company(db, name: str) -> models.Company:
    company = db.query(models.Company).filter(models.Company.name == name).first()
    if company:
        return company
    company = models.Company(name=name)
    db.add(company)
    db.commit()
    db.refresh(company)
    print(f"Created company '{name}' (id={company.id})")
    return company


def promote(db, username: str) -> int:
    user = db.query(models.User).filter(models.User.username == username).first()
    if not user:
        print(f"User '{username}' not found. You can promote them later.")
        return 1
    user.role = models.UserRole.ADMIN
    db.commit()
    print(f"User '{username}' is now an admin!")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a PPP Invoice Wizard user")
    parser.add_argument("username")
    parser.add_argument("password", nargs="?")
    parser.add_argument("--admin", action="store_true", help="create the user with the admin role")
    parser.add_argument("--company", help="company name to add the user to")
    parser.add_argument("--promote", action="store_true", help="make an existing user an admin")
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_towing_services(db)

        if args.promote:
            return promote(db, args.username)

        if not args.password:
            parser.error("password is required unless --promote is given")

        company_id = get_or_create_company(db, args.company).id if args.company else None
        role = models.UserRole.ADMIN if args.admin else models.UserRole.USER
        try:
            user = create_user(db, args.username, args.password, role, company_id)
        except HTTPException as e:
            print(f"Error creating user: {e.detail}")
            return 1

        print("User created successfully:")
        print(f"Username: {user.username}")
        print(f"User ID: {user.id}")
        print(f"Role: {user.role.value}")
        print(f"Created at: {user.created_at}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
