"""Service layer for the study group lifecycle.

Every state change runs in a single Firestore transaction: the group is
read, the change is validated against what was read and the write is
committed only if nothing it depends on changed in the meantime. That is
what keeps ``members`` within ``maxMembers`` and ``creatorId`` inside
``members`` when requests race.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from peerfinder.constants import (
    EVENT_JOIN,
    EVENT_KICK,
    EVENT_LEAVE,
    EVENT_OWNERSHIP_TRANSFER,
    GROUPS_COLLECTION,
    MAX_GROUP_MEMBERS,
    MAX_GROUP_NAME_LENGTH,
    MIN_GROUP_MEMBERS,
)
from peerfinder.core.courses import normalize_course
from peerfinder.errors import (
    CapacityExceededError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from peerfinder.user.services.core import get_users_by_ids
from peerfinder.utils import run_in_transaction

from ..utils import (
    created_at_key,
    delete_group_cascade,
    get_group_ref,
    get_join_request_ref,
    is_pending,
    member_names,
    read_group,
    read_group_request_refs,
    require_creator,
    snapshot_to_dict,
    utcnow,
)
from . import notifications

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from ..models import StudyGroup

UNKNOWN_USER_NAME = "Unknown User"


def validate_group_name(name: Any) -> str:
    """Return a trimmed group name or raise ValidationError."""
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError("Group name is required.")
    if len(name) > MAX_GROUP_NAME_LENGTH:
        raise ValidationError(
            f"Group name must be {MAX_GROUP_NAME_LENGTH} characters or fewer."
        )
    return name


def validate_max_members(value: Any) -> int:
    """Return ``value`` as a group capacity or raise ValidationError."""
    if value is None or isinstance(value, bool):
        raise ValidationError("maxMembers is required.")
    try:
        max_members = int(value)
    except (TypeError, ValueError):
        raise ValidationError("maxMembers must be a whole number.") from None
    if not MIN_GROUP_MEMBERS <= max_members <= MAX_GROUP_MEMBERS:
        raise ValidationError(
            f"maxMembers must be between {MIN_GROUP_MEMBERS} and {MAX_GROUP_MEMBERS}."
        )
    return max_members


def _display_name(db: Client, user_id: str) -> str:
    user = get_users_by_ids(db, [user_id]).get(user_id)
    return (user or {}).get("name") or UNKNOWN_USER_NAME


def _join_in_transaction(
    transaction: Transaction, db: Client, group_id: str, user_id: str
) -> dict[str, Any]:
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    request_ref = get_join_request_ref(db, group_id, user_id)
    request_snapshot = request_ref.get(transaction=transaction)

    members = group["members"]
    if user_id in members:
        raise ConflictError("User already in group.")
    if len(members) >= group["maxMembers"]:
        raise CapacityExceededError("Group is full.")
    if not group.get("isPublic", True):
        raise PermissionDeniedError(
            "This group is private. Send a join request to the creator instead."
        )

    members = [*members, user_id]
    transaction.update(group_ref, {"members": members})
    if is_pending(request_snapshot):
        transaction.delete(request_ref)
    group["members"] = members
    return group


def _leave_in_transaction(
    transaction: Transaction, db: Client, group_id: str, user_id: str
) -> tuple[dict[str, Any] | None, bool]:
    """Remove a member; returns (group or None if deleted, ownership moved)."""
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    if user_id not in group["members"]:
        raise ConflictError("User is not in this group.")
    request_ref = get_join_request_ref(db, group_id, user_id)
    request_snapshot = request_ref.get(transaction=transaction)

    members = [uid for uid in group["members"] if uid != user_id]
    if not members:
        request_refs = read_group_request_refs(transaction, db, group_id)
        delete_group_cascade(transaction, group_ref, request_refs)
        return None, False

    updates: dict[str, Any] = {"members": members}
    ownership_moved = group.get("creatorId") == user_id
    if ownership_moved:
        updates["creatorId"] = members[0]
    # Member removal and ownership transfer land in the same write.
    transaction.update(group_ref, updates)
    if is_pending(request_snapshot):
        transaction.delete(request_ref)
    group.update(updates)
    return group, ownership_moved


def _kick_in_transaction(
    transaction: Transaction,
    db: Client,
    group_id: str,
    caller_id: str,
    target_id: str,
) -> dict[str, Any]:
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    require_creator(group, caller_id, "remove members")
    if target_id == group["creatorId"]:
        raise ValidationError(
            "The group creator cannot be removed. Leave the group to hand it over."
        )
    if target_id not in group["members"]:
        raise NotFoundError("User is not a member of this group.")

    members = [uid for uid in group["members"] if uid != target_id]
    transaction.update(group_ref, {"members": members})
    group["members"] = members
    return group


def _rename_in_transaction(
    transaction: Transaction, db: Client, group_id: str, caller_id: str, name: Any
) -> dict[str, Any]:
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    if caller_id not in group["members"]:
        raise PermissionDeniedError("Only group members can rename the group.")
    name = validate_group_name(name)
    transaction.update(group_ref, {"name": name})
    group["name"] = name
    return group


def _toggle_visibility_in_transaction(
    transaction: Transaction, db: Client, group_id: str, caller_id: str
) -> dict[str, Any]:
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    require_creator(group, caller_id, "change the group's visibility")
    is_public = not group.get("isPublic", True)
    transaction.update(group_ref, {"isPublic": is_public})
    group["isPublic"] = is_public
    return group


def _delete_in_transaction(
    transaction: Transaction, db: Client, group_id: str, caller_id: str
) -> None:
    group_ref = get_group_ref(db, group_id)
    group = read_group(transaction, group_ref)
    require_creator(group, caller_id, "delete the group")
    request_refs = read_group_request_refs(transaction, db, group_id)
    delete_group_cascade(transaction, group_ref, request_refs)


def _prune_in_transaction(
    transaction: Transaction, db: Client, group_id: str, stale_ids: set[str]
) -> dict[str, Any] | None:
    """Drop member IDs that no longer resolve to a user.

    Returns the repaired group, or None if nothing was left and the group
    was deleted.
    """
    group_ref = get_group_ref(db, group_id)
    snapshot = group_ref.get(transaction=transaction)
    if not snapshot.exists:
        return None
    group = snapshot_to_dict(snapshot)
    current = group.get("members", [])
    members = [uid for uid in current if uid not in stale_ids]
    if members == current:
        return group

    if not members:
        request_refs = read_group_request_refs(transaction, db, group_id)
        delete_group_cascade(transaction, group_ref, request_refs)
        return None

    updates: dict[str, Any] = {"members": members}
    if group.get("creatorId") not in members:
        updates["creatorId"] = members[0]
    transaction.update(group_ref, updates)
    group.update(updates)
    return group


def build_group(  # noqa: PLR0913
    db: Client,
    name: Any,
    creator_id: str,
    course: str,
    max_members: Any,
    is_public: bool = True,
    invitee_ids: list[str] | None = None,
) -> tuple[dict[str, Any], dict[str, dict[str, Any]]]:
    """Validate a new group and return its document data with the users it names.

    The creator is always the first member. Invitees are added as members
    straight away, so the whole roster must fit in ``max_members``.
    """
    name = validate_group_name(name)
    if not creator_id:
        raise ValidationError("creatorId is required.")
    course_code = normalize_course(course)
    if not course_code:
        raise ValidationError("A course is required.")
    max_members = validate_max_members(max_members)

    invitees = [
        uid for uid in dict.fromkeys(invitee_ids or []) if uid and uid != creator_id
    ]
    if 1 + len(invitees) > max_members:
        raise ValidationError(
            f"A group of {max_members} cannot hold its creator and "
            f"{len(invitees)} invited members."
        )

    users = get_users_by_ids(db, [creator_id, *invitees])
    if creator_id not in users:
        raise NotFoundError("Creator not found.")
    unknown = [uid for uid in invitees if uid not in users]
    if unknown:
        raise ValidationError(f"Unknown invited members: {', '.join(unknown)}")

    group_data = {
        "name": name,
        "creatorId": creator_id,
        "courses": [course_code],
        "maxMembers": max_members,
        "members": [creator_id, *invitees],
        "isPublic": bool(is_public),
        "createdAt": utcnow(),
    }
    return group_data, users


class StudyGroupService:
    """Service class for study group operations."""

    @staticmethod
    def create_group(  # noqa: PLR0913
        db: Client,
        name: Any,
        creator_id: str,
        course: str,
        max_members: Any,
        is_public: bool = True,
        invitee_ids: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create a study group around one course."""
        group_data, users = build_group(
            db, name, creator_id, course, max_members, is_public, invitee_ids
        )
        _, group_ref = db.collection(GROUPS_COLLECTION).add(group_data)
        current_app.logger.info(f"Study group {group_ref.id} created by {creator_id}")
        return {
            **group_data,
            "id": group_ref.id,
            "memberNames": member_names(group_data["members"], users),
        }

    @staticmethod
    def _resolve_members(
        db: Client, groups: list[dict[str, Any]]
    ) -> list[StudyGroup]:
        """Attach member names, repairing groups that list deleted users."""
        member_ids = {uid for group in groups for uid in group.get("members", [])}
        users = get_users_by_ids(db, member_ids)

        resolved: list[StudyGroup] = []
        for group in groups:
            stale = {uid for uid in group.get("members", []) if uid not in users}
            if stale:
                group_id = group["id"]
                current_app.logger.info(
                    f"Pruning {len(stale)} unknown members from group {group_id}"
                )
                repaired = run_in_transaction(
                    db, _prune_in_transaction, db, group_id, stale
                )
                if repaired is None:
                    current_app.logger.info(f"Group {group_id} had no members left")
                    continue
                group = repaired
            group["memberNames"] = member_names(group.get("members", []), users)
            resolved.append(cast("StudyGroup", group))
        return resolved

    @staticmethod
    def get_group(db: Client, group_id: str) -> StudyGroup:
        """Fetch a group with its member names."""
        snapshot = get_group_ref(db, group_id).get()
        if not snapshot.exists:
            raise NotFoundError("Study group not found.")
        resolved = StudyGroupService._resolve_members(db, [snapshot_to_dict(snapshot)])
        if not resolved:
            raise NotFoundError("Study group not found.")
        return resolved[0]

    @staticmethod
    def list_user_groups(db: Client, user_id: str) -> list[StudyGroup]:
        """Fetch every group a user belongs to, newest first."""
        query = db.collection(GROUPS_COLLECTION).where(
            filter=firestore.FieldFilter("members", "array_contains", user_id)
        )
        groups = [snapshot_to_dict(doc) for doc in query.stream()]
        groups.sort(key=created_at_key, reverse=True)
        return StudyGroupService._resolve_members(db, groups)

    @staticmethod
    def list_course_groups(db: Client, course: str) -> list[StudyGroup]:
        """Fetch every group for a course, newest first."""
        course_code = normalize_course(course)
        if not course_code:
            return []
        query = db.collection(GROUPS_COLLECTION).where(
            filter=firestore.FieldFilter("courses", "array_contains", course_code)
        )
        groups = [snapshot_to_dict(doc) for doc in query.stream()]
        groups.sort(key=created_at_key, reverse=True)
        return StudyGroupService._resolve_members(db, groups)

    @staticmethod
    def join_group(db: Client, group_id: str, user_id: str) -> dict[str, Any]:
        """Add a user to a public group that has room."""
        group = run_in_transaction(db, _join_in_transaction, db, group_id, user_id)
        notifications.notify_membership_change(
            db, group_id, EVENT_JOIN, _display_name(db, user_id), group["members"]
        )
        return group

    @staticmethod
    def leave_group(db: Client, group_id: str, user_id: str) -> dict[str, Any] | None:
        """Remove a user from a group.

        When the creator leaves, ownership passes to the first remaining
        member. When the last member leaves, the group and its join
        requests are deleted and None is returned.
        """
        actor_name = _display_name(db, user_id)
        group, ownership_moved = run_in_transaction(
            db, _leave_in_transaction, db, group_id, user_id
        )
        if group is None:
            current_app.logger.info(
                f"Group {group_id} deleted after its last member {user_id} left"
            )
            return None

        kind = EVENT_LEAVE
        if ownership_moved:
            kind = EVENT_OWNERSHIP_TRANSFER
            current_app.logger.info(
                f"Ownership of group {group_id} moved from {user_id} "
                f"to {group['creatorId']}"
            )
        notifications.notify_membership_change(
            db, group_id, kind, actor_name, group["members"]
        )
        return group

    @staticmethod
    def kick_member(
        db: Client, group_id: str, caller_id: str, target_id: str
    ) -> dict[str, Any]:
        """Remove a member at the creator's request."""
        group = run_in_transaction(
            db, _kick_in_transaction, db, group_id, caller_id, target_id
        )
        notifications.notify_membership_change(
            db, group_id, EVENT_KICK, _display_name(db, target_id), group["members"]
        )
        return group

    @staticmethod
    def rename_group(
        db: Client, group_id: str, caller_id: str, new_name: Any
    ) -> dict[str, Any]:
        """Rename a group; any member may do this."""
        return run_in_transaction(
            db, _rename_in_transaction, db, group_id, caller_id, new_name
        )

    @staticmethod
    def toggle_visibility(db: Client, group_id: str, caller_id: str) -> dict[str, Any]:
        """Flip a group between public and private."""
        return run_in_transaction(
            db, _toggle_visibility_in_transaction, db, group_id, caller_id
        )

    @staticmethod
    def delete_group(db: Client, group_id: str, caller_id: str) -> None:
        """Delete a group and all of its join requests."""
        run_in_transaction(db, _delete_in_transaction, db, group_id, caller_id)
        current_app.logger.info(f"Group {group_id} deleted by {caller_id}")
