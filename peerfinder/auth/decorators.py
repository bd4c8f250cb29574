"""Decorators for the auth blueprint."""

from functools import wraps

from flask import jsonify, session


def login_required(f):
    """Reject the request with 401 if the user is not logged in.

    Usage:
    @login_required
    def protected_view():
        ...
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if "user_id" not in session:
            return (
                jsonify(
                    {
                        "success": False,
                        "error": "unauthorized",
                        "message": "Please log in to continue.",
                    }
                ),
                401,
            )
        return f(*args, **kwargs)

    return decorated_function
