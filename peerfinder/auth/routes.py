"""Routes for the auth blueprint."""

from firebase_admin import firestore
from flask import current_app, jsonify, request, session

from peerfinder.user.services import UserService
from peerfinder.utils import api_response, validate_form

from . import bp
from .forms import LoginForm, RegisterForm


@bp.route("/register", methods=["POST"])
def register():
    """Register a new user with the courses they are looking for peers in."""
    form = RegisterForm()
    validate_form(form)
    payload = request.get_json(silent=True) or {}

    db = firestore.client()
    user = UserService.create_user(
        db,
        name=form.name.data,
        email=form.email.data,
        password=form.password.data,
        courses_seeking=payload.get("coursesSeeking") or [],
        availability=form.availability.data,
        year=form.year.data,
        bio=form.bio.data,
    )
    current_app.logger.info(f"Registered user {user['id']}")
    return api_response(
        "You have been registered successfully",
        {"user": UserService.public_profile(user)},
        201,
    )


@bp.route("/login", methods=["POST"])
def login():
    """Verify credentials and start a server-side session."""
    form = LoginForm()
    validate_form(form)

    db = firestore.client()
    user = UserService.verify_credentials(db, form.email.data, form.password.data)
    if user is None:
        current_app.logger.warning(f"Failed login attempt for {form.email.data}")
        return (
            jsonify(
                {
                    "success": False,
                    "error": "invalid_credentials",
                    "message": "Invalid email or password. Please try again.",
                }
            ),
            401,
        )

    session.clear()
    session["user_id"] = user["id"]
    return api_response("Login successful!", {"user": UserService.public_profile(user)})


@bp.route("/logout", methods=["POST"])
def logout():
    """End the current session."""
    session.clear()
    return api_response("You have been logged out.")
