"""
This script hashes the passwords of users created before hashing was introduced.

- Scans every document in the 'users' collection.
- Users with a plaintext 'password' field get a 'passwordHash' and the
  plaintext field is removed.
- Users that already have a 'passwordHash' and no plaintext password are
  skipped.
- Prints how many users were migrated and skipped.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import firebase_admin
from firebase_admin import credentials, firestore

# Add the project root to the Python path to allow importing 'peerfinder'
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from peerfinder.constants import USERS_COLLECTION  # noqa: E402
from peerfinder.user.services.profile import hash_password  # noqa: E402

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def initialize_firebase():
    """Initializes the Firebase Admin SDK."""
    cred = None
    cred_path = project_root / "firebase_credentials.json"
    if cred_path.exists():
        try:
            cred = credentials.Certificate(str(cred_path))
        except Exception as e:
            print(f"Error loading credentials from file: {e}")
            return False
    else:
        cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
        if cred_json:
            try:
                cred = credentials.Certificate(json.loads(cred_json))
            except (json.JSONDecodeError, ValueError) as e:
                print(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")
                return False

    if not cred:
        print("Could not find Firebase credentials in file or environment variable.")
        return False

    if not firebase_admin._apps:
        firebase_admin.initialize_app(cred)
    return True


def migrate_passwords(db: Client) -> tuple[int, int]:
    """Hash plaintext passwords in place. Returns (migrated, skipped)."""
    migrated = 0
    skipped = 0
    for doc in db.collection(USERS_COLLECTION).stream():
        data = doc.to_dict() or {}
        email = data.get("email", doc.id)
        plaintext = data.pop("password", None)
        if not plaintext:
            print(f"User {email} has no plaintext password, skipping...")
            skipped += 1
            continue

        # A user that already has a hash keeps it; only the plaintext goes.
        if not data.get("passwordHash"):
            data["passwordHash"] = hash_password(plaintext)
        doc.reference.set(data)
        print(f"Migrated password for user: {email}")
        migrated += 1
    return migrated, skipped


def main():
    """Run the password migration against the configured project."""
    if not initialize_firebase():
        sys.exit(1)

    print("Starting password migration...")
    migrated, skipped = migrate_passwords(firestore.client())
    print("\nMigration complete!")
    print(f"Migrated: {migrated} users")
    print(f"Skipped (already hashed): {skipped} users")


if __name__ == "__main__":
    main()
