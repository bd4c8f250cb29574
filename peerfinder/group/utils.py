"""Firestore helpers shared by the group services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from peerfinder.constants import (
    GROUPS_COLLECTION,
    JOIN_REQUESTS_COLLECTION,
    REQUEST_PENDING,
)
from peerfinder.errors import NotFoundError, PermissionDeniedError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from peerfinder.user.models import MemberName

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def created_at_key(doc: dict[str, Any]) -> datetime:
    """Sort key for documents by creation time; missing timestamps sort first."""
    return doc.get("createdAt") or _EPOCH


def get_group_ref(db: Client, group_id: str) -> DocumentReference:
    return db.collection(GROUPS_COLLECTION).document(group_id)


def join_request_id(group_id: str, user_id: str) -> str:
    """Document ID of the join request for a (group, user) pair.

    Keying requests by the pair makes the store hold at most one request
    per pair; a new request replaces an answered one.
    """
    return f"{group_id}_{user_id}"


def get_join_request_ref(db: Client, group_id: str, user_id: str) -> DocumentReference:
    return db.collection(JOIN_REQUESTS_COLLECTION).document(
        join_request_id(group_id, user_id)
    )


def snapshot_to_dict(snapshot: DocumentSnapshot) -> dict[str, Any]:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data


def read_group(
    transaction: Transaction, group_ref: DocumentReference
) -> dict[str, Any]:
    """Read a group inside a transaction, raising NotFoundError if absent."""
    snapshot = group_ref.get(transaction=transaction)
    if not snapshot.exists:
        raise NotFoundError("Study group not found.")
    group = snapshot_to_dict(snapshot)
    group.setdefault("members", [])
    return group


def is_pending(snapshot: DocumentSnapshot) -> bool:
    """Return True if a join request snapshot exists and awaits an answer."""
    if not snapshot.exists:
        return False
    return (snapshot.to_dict() or {}).get("status") == REQUEST_PENDING


def read_group_request_refs(
    transaction: Transaction, db: Client, group_id: str
) -> list[DocumentReference]:
    """Read the references of every join request filed against a group."""
    query = db.collection(JOIN_REQUESTS_COLLECTION).where(
        filter=firestore.FieldFilter("groupId", "==", group_id)
    )
    return [doc.reference for doc in transaction.get(query)]


def delete_group_cascade(
    transaction: Transaction,
    group_ref: DocumentReference,
    request_refs: list[DocumentReference],
) -> None:
    """Delete a group together with its join requests in one transaction."""
    for request_ref in request_refs:
        transaction.delete(request_ref)
    transaction.delete(group_ref)


def member_names(
    member_ids: list[str], users: dict[str, dict[str, Any]]
) -> list[MemberName]:
    """Pair member IDs with display names, skipping IDs that did not resolve."""
    return [
        {"id": uid, "name": users[uid].get("name", "Unknown User")}
        for uid in member_ids
        if uid in users
    ]


def require_creator(group: dict[str, Any], caller_id: str, action: str) -> None:
    """Raise PermissionDeniedError unless ``caller_id`` created the group."""
    if group.get("creatorId") != caller_id:
        raise PermissionDeniedError(f"Only the group creator can {action}.")
