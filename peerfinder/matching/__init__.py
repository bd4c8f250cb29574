"""The peer matching blueprint."""

from flask import Blueprint

bp = Blueprint("matching", __name__, url_prefix="/peers")

from . import routes  # noqa: E402

__all__ = ["routes"]
