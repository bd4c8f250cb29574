"""Routes for the peer matching blueprint."""

from firebase_admin import firestore
from flask import current_app, request, session

from peerfinder.auth.decorators import login_required
from peerfinder.errors import ValidationError
from peerfinder.utils import api_response

from . import bp
from .services import PeerMatchingService


@bp.route("/search", methods=["POST"])
@login_required
def search_peers():
    """Rank classmates by how many of the requested courses they share."""
    payload = request.get_json(silent=True) or {}
    courses = payload.get("courses", [])
    if not isinstance(courses, list) or not all(isinstance(c, str) for c in courses):
        raise ValidationError("courses must be a list of course names.")

    db = firestore.client()
    peers = PeerMatchingService.rank_peers(db, session["user_id"], courses)
    limit = current_app.config["PEER_SEARCH_LIMIT"]
    return api_response(
        f"Found {len(peers)} matching peers.",
        {"peers": peers[:limit], "total": len(peers)},
    )
