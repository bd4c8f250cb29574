"""Routes for the study group blueprint."""

from datetime import timedelta

from firebase_admin import firestore
from flask import current_app, request, session

from peerfinder.auth.decorators import login_required
from peerfinder.errors import ValidationError
from peerfinder.utils import api_response, validate_form

from . import bp
from .forms import (
    AIGroupForm,
    GroupForm,
    JoinRequestForm,
    KickMemberForm,
    RenameGroupForm,
)
from .services import AIGroupService, JoinRequestService, StudyGroupService
from .services.suggestions import get_member_suggester


def _json_payload():
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@bp.route("/create", methods=["POST"])
@login_required
def create_group():
    """Create a study group led by the logged-in user."""
    form = GroupForm()
    validate_form(form)
    payload = _json_payload()

    is_public = payload.get("isPublic", True)
    if not isinstance(is_public, bool):
        raise ValidationError("isPublic must be true or false.")
    invitee_ids = payload.get("memberIds") or []
    if not isinstance(invitee_ids, list) or not all(
        isinstance(uid, str) for uid in invitee_ids
    ):
        raise ValidationError("memberIds must be a list of user IDs.")

    db = firestore.client()
    group = StudyGroupService.create_group(
        db,
        name=form.name.data,
        creator_id=session["user_id"],
        course=form.course.data,
        max_members=form.maxMembers.data,
        is_public=is_public,
        invitee_ids=invitee_ids,
    )
    return api_response("Group created successfully.", {"group": group}, 201)


@bp.route("/ai", methods=["POST"])
@login_required
def create_ai_group():
    """Create a private group with classmates suggested by the AI service."""
    form = AIGroupForm()
    validate_form(form)

    db = firestore.client()
    cooldown = timedelta(hours=current_app.config["AI_GROUP_COOLDOWN_HOURS"])
    group = AIGroupService.create_ai_group(
        db,
        requester_id=session["user_id"],
        course=form.course.data,
        group_size=form.groupSize.data,
        suggester=get_member_suggester(),
        cooldown=cooldown,
    )
    return api_response("AI study group created.", {"group": group}, 201)


@bp.route("/requests/mine", methods=["GET"])
@login_required
def my_join_requests():
    """List the join requests the logged-in user has filed."""
    db = firestore.client()
    requests = JoinRequestService.list_user_requests(db, session["user_id"])
    return api_response("OK", {"requests": requests})


@bp.route("/user/<string:user_id>", methods=["GET"])
@login_required
def user_groups(user_id):
    """List the groups a user belongs to."""
    db = firestore.client()
    groups = StudyGroupService.list_user_groups(db, user_id)
    return api_response("OK", {"groups": groups})


@bp.route("/course/<path:course>", methods=["GET"])
@login_required
def course_groups(course):
    """List the groups studying a course."""
    db = firestore.client()
    groups = StudyGroupService.list_course_groups(db, course)
    return api_response("OK", {"groups": groups})


@bp.route("/<string:group_id>", methods=["GET"])
@login_required
def view_group(group_id):
    """Return a single group with its member names."""
    db = firestore.client()
    group = StudyGroupService.get_group(db, group_id)
    return api_response("OK", {"group": group})


@bp.route("/<string:group_id>", methods=["DELETE"])
@login_required
def delete_group(group_id):
    """Delete a group. Only its creator may do this."""
    db = firestore.client()
    StudyGroupService.delete_group(db, group_id, session["user_id"])
    return api_response("Group deleted.")


@bp.route("/<string:group_id>/join", methods=["POST"])
@login_required
def join_group(group_id):
    """Join a public group."""
    db = firestore.client()
    group = StudyGroupService.join_group(db, group_id, session["user_id"])
    return api_response("Joined group.", {"group": group})


@bp.route("/<string:group_id>/leave", methods=["POST"])
@login_required
def leave_group(group_id):
    """Leave a group."""
    db = firestore.client()
    group = StudyGroupService.leave_group(db, group_id, session["user_id"])
    if group is None:
        return api_response("You were the last member, so the group was deleted.")
    return api_response("Left group.", {"group": group})


@bp.route("/<string:group_id>/kick", methods=["POST"])
@login_required
def kick_member(group_id):
    """Remove a member from a group."""
    form = KickMemberForm()
    validate_form(form)

    db = firestore.client()
    group = StudyGroupService.kick_member(
        db, group_id, session["user_id"], form.userId.data
    )
    return api_response("Member removed.", {"group": group})


@bp.route("/<string:group_id>/rename", methods=["POST"])
@login_required
def rename_group(group_id):
    """Rename a group."""
    form = RenameGroupForm()
    validate_form(form)

    db = firestore.client()
    group = StudyGroupService.rename_group(
        db, group_id, session["user_id"], form.name.data
    )
    return api_response("Group renamed.", {"group": group})


@bp.route("/<string:group_id>/visibility", methods=["POST"])
@login_required
def toggle_visibility(group_id):
    """Switch a group between public and private."""
    db = firestore.client()
    group = StudyGroupService.toggle_visibility(db, group_id, session["user_id"])
    state = "public" if group["isPublic"] else "private"
    return api_response(f"Group is now {state}.", {"group": group})


@bp.route("/<string:group_id>/requests", methods=["POST"])
@login_required
def request_to_join(group_id):
    """Ask the creator of a private group to let the user in."""
    form = JoinRequestForm()
    validate_form(form)

    db = firestore.client()
    join_request = JoinRequestService.request_join(
        db, group_id, session["user_id"], form.message.data or None
    )
    return api_response("Join request sent.", {"request": join_request}, 201)


@bp.route("/<string:group_id>/requests", methods=["GET"])
@login_required
def pending_requests(group_id):
    """List the pending join requests of a group."""
    db = firestore.client()
    requests = JoinRequestService.list_pending_requests(
        db, group_id, session["user_id"]
    )
    return api_response("OK", {"requests": requests})


@bp.route("/<string:group_id>/requests/<string:request_id>/accept", methods=["POST"])
@login_required
def accept_request(group_id, request_id):
    """Accept a join request."""
    db = firestore.client()
    group = JoinRequestService.accept_request(
        db, group_id, request_id, session["user_id"]
    )
    return api_response("Join request accepted.", {"group": group})


@bp.route("/<string:group_id>/requests/<string:request_id>/reject", methods=["POST"])
@login_required
def reject_request(group_id, request_id):
    """Reject a join request."""
    db = firestore.client()
    join_request = JoinRequestService.reject_request(
        db, group_id, request_id, session["user_id"]
    )
    return api_response("Join request rejected.", {"request": join_request})
