#!/usr/bin/env python3
"""
NexusHub - Create Admin User
Run this script to create an admin login.

Usage:
    python scripts/create_admin.py

Or with environment variables:
    ADMIN_EMAIL=admin@nexushub.com ADMIN_PASSWORD=securepass123 python scripts/create_admin.py
"""
import os
import sys
import secrets
import string
import getpass

# Add parent directory to path so we can import the app
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from nexushub import create_app
from nexushub.database import db
from nexushub.models.db_models import DBUser, UserRole


def generate_password(length=16):
    """Generate a secure random password"""
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def create_admin_user():
    """Create the admin user"""
    app = create_app()

    with app.app_context():
        email = os.environ.get('ADMIN_EMAIL') or input("Admin email: ").strip()
        if not email or '@' not in email:
            print("Error: Valid email required")
            return 1

        if DBUser.query.filter_by(email=email.lower()).first():
            print(f"Error: User with email {email} already exists")
            return 1

        password = os.environ.get('ADMIN_PASSWORD')
        if not password:
            if input("Generate password? (Y/n): ").strip().lower() != 'n':
                password = generate_password()
                print(f"\nGenerated password: {password}")
                print("   (Save this somewhere safe!)\n")
            else:
                password = getpass.getpass("Enter password: ")
                if password != getpass.getpass("Confirm password: "):
                    print("Error: Passwords don't match")
                    return 1

        if len(password) < 8:
            print("Error: Password must be at least 8 characters")
            return 1

        user = DBUser(
            email=email,
            name=os.environ.get('ADMIN_NAME', 'Admin'),
            password=password,
            role=UserRole.ADMIN
        )
        db.session.add(user)
        db.session.commit()

        print(f"\nAdmin user created: {user.email}")
        return 0


if __name__ == '__main__':
    load_dotenv()
    sys.exit(create_admin_user())
