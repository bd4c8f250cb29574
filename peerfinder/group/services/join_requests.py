"""Service layer for join requests to private study groups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from peerfinder.constants import (
    EVENT_JOIN,
    JOIN_REQUESTS_COLLECTION,
    REQUEST_ACCEPTED,
    REQUEST_PENDING,
    REQUEST_REJECTED,
)
from peerfinder.errors import (
    CapacityExceededError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from peerfinder.user.services.core import get_user_by_id
from peerfinder.utils import run_in_transaction

from ..utils import (
    created_at_key,
    get_group_ref,
    get_join_request_ref,
    is_pending,
    read_group,
    require_creator,
    snapshot_to_dict,
    utcnow,
)
from . import notifications

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from ..models import JoinRequest


def _request_in_transaction(
    transaction: Transaction,
    db: Client,
    group_id: str,
    user: dict[str, Any],
    message: str | None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    request_ref = get_join_request_ref(db, group_id, user["id"])
    existing = request_ref.get(transaction=transaction)

    if group.get("isPublic", True):
        raise ValidationError("This group is public. Join it directly instead.")
    if user["id"] in group["members"]:
        raise ConflictError("You are already a member of this group.")
    if len(group["members"]) >= group["maxMembers"]:
        raise CapacityExceededError("Group is full.")
    if is_pending(existing):
        raise ConflictError("You already have a pending request for this group.")

    # Overwrites any answered request for the same pair.
    request_data = {
        "groupId": group_id,
        "userId": user["id"],
        "userName": user.get("name", ""),
        "userEmail": user.get("email", ""),
        "message": message,
        "status": REQUEST_PENDING,
        "createdAt": utcnow(),
        "respondedAt": None,
    }
    transaction.set(request_ref, request_data)
    return group, {**request_data, "id": request_ref.id}


def _read_request(
    transaction: Transaction, db: Client, group_id: str, request_id: str
) -> tuple[Any, dict[str, Any] | None]:
    request_ref = db.collection(JOIN_REQUESTS_COLLECTION).document(request_id)
    snapshot = request_ref.get(transaction=transaction)
    request = snapshot_to_dict(snapshot) if snapshot.exists else None
    if request is not None and request.get("groupId") != group_id:
        request = None
    return request_ref, request


def _respond_in_transaction(  # noqa: PLR0913
    transaction: Transaction,
    db: Client,
    group_id: str,
    request_id: str,
    caller_id: str,
    accept: bool,
) -> tuple[dict[str, Any], dict[str, Any]]:
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    request_ref, request = _read_request(transaction, db, group_id, request_id)

    require_creator(group, caller_id, "answer join requests")
    if request is None:
        raise NotFoundError("Join request not found.")
    if request.get("status") != REQUEST_PENDING:
        raise ConflictError("This request has already been answered.")

    if accept:
        user_id = request["userId"]
        if user_id in group["members"]:
            raise ConflictError("User is already a member of this group.")
        # Other joins may have filled the group since the request was made.
        if len(group["members"]) >= group["maxMembers"]:
            raise CapacityExceededError("Group is full.")
        members = [*group["members"], user_id]
        transaction.update(group_ref, {"members": members})
        group["members"] = members

    updates = {
        "status": REQUEST_ACCEPTED if accept else REQUEST_REJECTED,
        "respondedAt": utcnow(),
    }
    transaction.update(request_ref, updates)
    request.update(updates)
    return group, request


class JoinRequestService:
    """Service class for requesting to join, and answering requests to join, groups."""

    @staticmethod
    def request_join(
        db: Client, group_id: str, user_id: str, message: str | None = None
    ) -> JoinRequest:
        """File a pending request to join a private group."""
        user = get_user_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found.")
        group, join_request = run_in_transaction(
            db, _request_in_transaction, db, group_id, user, message
        )
        notifications.notify_join_request(db, group, join_request)
        return cast("JoinRequest", join_request)

    @staticmethod
    def accept_request(
        db: Client, group_id: str, request_id: str, caller_id: str
    ) -> dict[str, Any]:
        """Accept a pending request and add the requester to the group."""
        group, join_request = run_in_transaction(
            db, _respond_in_transaction, db, group_id, request_id, caller_id, True
        )
        notifications.notify_membership_change(
            db,
            group_id,
            EVENT_JOIN,
            join_request.get("userName") or "A new member",
            group["members"],
        )
        return group

    @staticmethod
    def reject_request(
        db: Client, group_id: str, request_id: str, caller_id: str
    ) -> JoinRequest:
        """Reject a pending request; membership is unchanged."""
        _, join_request = run_in_transaction(
            db, _respond_in_transaction, db, group_id, request_id, caller_id, False
        )
        return cast("JoinRequest", join_request)

    @staticmethod
    def list_pending_requests(
        db: Client, group_id: str, caller_id: str
    ) -> list[JoinRequest]:
        """Fetch the pending requests of a group, oldest first. Creator only."""
        snapshot = get_group_ref(db, group_id).get()
        if not snapshot.exists:
            raise NotFoundError("Study group not found.")
        require_creator(snapshot_to_dict(snapshot), caller_id, "view join requests")

        query = (
            db.collection(JOIN_REQUESTS_COLLECTION)
            .where(filter=firestore.FieldFilter("groupId", "==", group_id))
            .where(filter=firestore.FieldFilter("status", "==", REQUEST_PENDING))
        )
        requests = [snapshot_to_dict(doc) for doc in query.stream()]
        requests.sort(key=created_at_key)
        return cast("list[JoinRequest]", requests)

    @staticmethod
    def list_user_requests(db: Client, user_id: str) -> list[JoinRequest]:
        """Fetch every request a user has filed, newest first."""
        query = db.collection(JOIN_REQUESTS_COLLECTION).where(
            filter=firestore.FieldFilter("userId", "==", user_id)
        )
        requests = [snapshot_to_dict(doc) for doc in query.stream()]
        requests.sort(key=created_at_key, reverse=True)
        return cast("list[JoinRequest]", requests)
