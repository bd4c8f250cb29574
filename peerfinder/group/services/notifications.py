"""Best-effort notifications about study group activity.

Nothing in this module raises: a failed notification is logged and the
group operation that triggered it stands.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from peerfinder.constants import (
    CONVERSATIONS_COLLECTION,
    EVENT_JOIN,
    EVENT_KICK,
    EVENT_LEAVE,
    EVENT_OWNERSHIP_TRANSFER,
    MESSAGES_COLLECTION,
    SYSTEM_SENDER_ID,
)
from peerfinder.user.services.core import get_user_by_id
from peerfinder.utils import EmailError, send_email

from ..utils import utcnow

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

SYSTEM_MESSAGES = {
    EVENT_JOIN: "{actor} joined the group",
    EVENT_LEAVE: "{actor} left the group",
    EVENT_OWNERSHIP_TRANSFER: (
        "{actor} left the group. Ownership transferred to another member."
    ),
    EVENT_KICK: "{actor} was removed from the group",
}


def find_group_conversation_id(db: Client, group_id: str) -> str | None:
    """Return the ID of the chat conversation attached to a group, if any."""
    query = (
        db.collection(CONVERSATIONS_COLLECTION)
        .where(filter=firestore.FieldFilter("groupId", "==", group_id))
        .where(filter=firestore.FieldFilter("isGroup", "==", True))
        .limit(1)
    )
    for doc in query.stream():
        return doc.id
    return None


def notify_membership_change(
    db: Client,
    group_id: str,
    kind: str,
    actor_name: str,
    member_ids: list[str] | None = None,
) -> bool:
    """Post a system message about a membership change to the group chat.

    Returns True if a message was written.
    """
    text = SYSTEM_MESSAGES.get(kind, "{actor} updated the group").format(
        actor=actor_name
    )
    try:
        conversation_id = find_group_conversation_id(db, group_id)
        if conversation_id is None:
            current_app.logger.info(f"[SYSTEM MESSAGE] {text} (no chat for {group_id})")
            return False

        conversation_ref = db.collection(CONVERSATIONS_COLLECTION).document(
            conversation_id
        )
        now = utcnow()
        conversation_ref.collection(MESSAGES_COLLECTION).add(
            {
                "senderId": SYSTEM_SENDER_ID,
                "text": text,
                "createdAt": now,
                "readBy": [],
                "eventType": kind,
                "isSystemMessage": True,
            }
        )
        updates: dict[str, Any] = {"updatedAt": now, "lastMessage": text}
        if member_ids is not None:
            updates["users"] = sorted(member_ids)
        conversation_ref.update(updates)
        return True
    except Exception as e:
        current_app.logger.warning(f"System message failed for group {group_id}: {e}")
        return False


def notify_join_request(
    db: Client, group: dict[str, Any], join_request: dict[str, Any]
) -> bool:
    """E-mail a group's creator about a new join request.

    Returns True if the e-mail was handed to the mail server.
    """
    try:
        creator = get_user_by_id(db, group.get("creatorId", ""))
    except Exception as e:
        current_app.logger.warning(f"Could not load creator of {group.get('id')}: {e}")
        return False
    if not creator or not creator.get("email"):
        return False

    try:
        send_email(
            to=creator["email"],
            subject=f"{join_request['userName']} wants to join {group['name']}",
            template="email/join_request.html",
            creator=creator,
            group=group,
            join_request=join_request,
        )
        return True
    except EmailError as e:
        current_app.logger.error(f"Join request email failed: {e}")
        return False
