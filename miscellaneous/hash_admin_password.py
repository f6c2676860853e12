#!/usr/bin/env python3
"""
Script to generate the ADMIN_PASSWORD_HASH for the Theater Booking Platform.

The hash goes into the environment (or .env); the plain password is never stored.
"""

import sys
import os
from getpass import getpass

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from theater_booking_platform.utils.auth import get_password_hash


def hash_admin_password():
    """Ask for the shared admin password twice and print its bcrypt hash."""
    print("🔧 Theater Booking Platform - Admin Password")
    print("=" * 50)

    password = getpass("Enter admin password: ").strip()
    if len(password) < 8:
        print("❌ Password must be at least 8 characters!")
        return False

    confirm_password = getpass("Confirm password: ").strip()
    if password != confirm_password:
        print("❌ Passwords do not match!")
        return False

    password_hash = get_password_hash(password)
    print("\n✅ Add this line to your environment or .env file:")
    print(f"ADMIN_PASSWORD_HASH='{password_hash}'")
    return True


if __name__ == "__main__":
    if not hash_admin_password():
        sys.exit(1)
