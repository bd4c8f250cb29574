"""JSON error handlers for the application."""

from flask import Blueprint, current_app, jsonify

from .errors import AppError, ExternalServiceError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(kind, message, status_code):
    """Render an error as the JSON body every client expects."""
    return jsonify({"success": False, "error": kind, "message": message}), status_code


@error_handlers_bp.app_errorhandler(ExternalServiceError)
def handle_external_service_error(error):
    """Handles failures of collaborating services."""
    current_app.logger.error(f"External Service Error: {error.message}")
    return _error_response(error.kind, error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles application errors raised by services and routes."""
    current_app.logger.warning(f"{type(error).__name__}: {error.message}")
    return _error_response(error.kind, error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("not_found", "Resource not found.", 404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    """Handles requests with an unsupported method."""
    return _error_response("method_not_allowed", "Method not allowed.", 405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("server_error", "An unexpected error occurred.", 500)
