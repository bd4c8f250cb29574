"""Routes for the user blueprint."""

from firebase_admin import firestore
from flask import g, request, session

from peerfinder.auth.decorators import login_required
from peerfinder.constants import PROFILE_FIELDS
from peerfinder.errors import NotFoundError
from peerfinder.utils import api_response, validate_form

from . import bp
from .forms import ProfileForm
from .services import UserService


@bp.route("/me", methods=["GET"])
@login_required
def get_current_user():
    """Return the logged-in user's profile."""
    return api_response("OK", {"user": g.user})


@bp.route("/me", methods=["PATCH"])
@login_required
def update_current_user():
    """Update the logged-in user's profile."""
    form = ProfileForm()
    validate_form(form)
    payload = request.get_json(silent=True) or {}

    update_data = {
        field: getattr(form, field).data for field in PROFILE_FIELDS if field in payload
    }
    if "coursesSeeking" in payload:
        update_data["coursesSeeking"] = payload.get("coursesSeeking") or []

    db = firestore.client()
    user = UserService.update_profile(db, session["user_id"], update_data)
    return api_response("Profile updated.", {"user": UserService.public_profile(user)})


@bp.route("/<string:user_id>", methods=["GET"])
@login_required
def view_user(user_id):
    """Return another user's public profile."""
    db = firestore.client()
    user = UserService.get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return api_response("OK", {"user": UserService.public_profile(user)})
