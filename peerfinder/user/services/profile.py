from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from werkzeug.security import check_password_hash, generate_password_hash

from peerfinder.constants import MIN_PASSWORD_LENGTH, PROFILE_FIELDS, USERS_COLLECTION
from peerfinder.core.courses import normalize_courses
from peerfinder.errors import DuplicateResourceError, NotFoundError, ValidationError

from .core import get_user_by_email, get_user_by_id

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return generate_password_hash(password, method="pbkdf2:sha256")


def create_user(  # noqa: PLR0913
    db: Client,
    name: str,
    email: str,
    password: str,
    courses_seeking: list[str] | None = None,
    availability: str | None = None,
    year: str | None = None,
    bio: str | None = None,
) -> dict[str, Any]:
    """Register a new user and return the stored document."""
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email:
        raise ValidationError("Name and email are required.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    if get_user_by_email(db, email):
        raise DuplicateResourceError("Sorry, this email already exists.")

    user_data = {
        "name": name,
        "email": email,
        "passwordHash": hash_password(password),
        "coursesSeeking": normalize_courses(courses_seeking),
        "availability": availability or "",
        "year": year or "",
        "bio": bio or "",
        "imageUrl": "",
        "createdAt": datetime.now(timezone.utc),
    }
    _, user_ref = db.collection(USERS_COLLECTION).add(user_data)
    return {**user_data, "id": user_ref.id}


def verify_credentials(db: Client, email: str, password: str) -> dict[str, Any] | None:
    """Return the user for a matching email/password pair, else None."""
    user = get_user_by_email(db, email)
    if not user or not password:
        return None
    password_hash = user.get("passwordHash")
    if not password_hash or not check_password_hash(password_hash, password):
        return None
    return user


def update_profile(
    db: Client, user_id: str, update_data: dict[str, Any]
) -> dict[str, Any]:
    """Update the editable fields of a user's profile."""
    if get_user_by_id(db, user_id) is None:
        raise NotFoundError("User not found.")

    updates: dict[str, Any] = {
        key: value for key, value in update_data.items() if key in PROFILE_FIELDS
    }
    if "name" in updates:
        updates["name"] = (updates["name"] or "").strip()
        if not updates["name"]:
            raise ValidationError("Name cannot be empty.")
    if "coursesSeeking" in update_data:
        updates["coursesSeeking"] = normalize_courses(update_data["coursesSeeking"])

    if updates:
        db.collection(USERS_COLLECTION).document(user_id).update(updates)
    return get_user_by_id(db, user_id) or {}
