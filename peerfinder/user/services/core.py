"""User Directory lookups."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from peerfinder.constants import FIRESTORE_IN_QUERY_LIMIT, USERS_COLLECTION

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


def public_profile(user: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a user document that is safe to send to clients."""
    data = dict(user)
    data.pop("passwordHash", None)
    data.pop("password", None)
    return data


def get_user_by_id(db: Client, user_id: str) -> dict[str, Any] | None:
    """Fetch a user by their ID."""
    if not user_id:
        return None
    user_ref = db.collection(USERS_COLLECTION).document(user_id)
    user_doc = cast("DocumentSnapshot", user_ref.get())
    if not user_doc.exists:
        return None
    data = user_doc.to_dict()
    if data is None:
        return None
    data["id"] = user_id
    return data


def get_users_by_ids(
    db: Client, user_ids: Iterable[str], transaction: Transaction | None = None
) -> dict[str, dict[str, Any]]:
    """Batch fetch users and return a map by ID.

    IDs that do not resolve to a user are absent from the result.
    """
    unique_ids = {uid for uid in user_ids if uid}
    if not unique_ids:
        return {}

    refs = [db.collection(USERS_COLLECTION).document(uid) for uid in unique_ids]
    docs = cast(list["DocumentSnapshot"], db.get_all(refs, transaction=transaction))
    users = {}
    for doc in docs:
        if doc.exists:
            data = doc.to_dict()
            if data is not None:
                users[doc.id] = {**data, "id": doc.id}
    return users


def get_user_by_email(db: Client, email: str) -> dict[str, Any] | None:
    """Fetch a user by e-mail address, ignoring case."""
    email = (email or "").strip().lower()
    if not email:
        return None
    query = (
        db.collection(USERS_COLLECTION)
        .where(filter=firestore.FieldFilter("email", "==", email))
        .limit(1)
    )
    for doc in query.stream():
        data = doc.to_dict()
        if data is not None:
            data["id"] = doc.id
            return data
    return None


def find_users_by_courses(
    db: Client, courses: Iterable[str], exclude_id: str | None = None
) -> list[dict[str, Any]]:
    """Fetch users whose ``coursesSeeking`` contains any of ``courses``.

    Results are de-duplicated by ID and keep the order in which the store
    returned them.
    """
    values = list(dict.fromkeys(c for c in courses if c))
    users: dict[str, dict[str, Any]] = {}
    for i in range(0, len(values), FIRESTORE_IN_QUERY_LIMIT):
        chunk = values[i : i + FIRESTORE_IN_QUERY_LIMIT]
        query = db.collection(USERS_COLLECTION).where(
            filter=firestore.FieldFilter("coursesSeeking", "array_contains_any", chunk)
        )
        for doc in query.stream():
            if doc.id == exclude_id or doc.id in users:
                continue
            data = doc.to_dict()
            if data is not None:
                users[doc.id] = {**data, "id": doc.id}
    return list(users.values())
