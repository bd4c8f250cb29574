"""Utility functions for the application."""

from __future__ import annotations

import smtplib
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from firebase_admin import firestore
from flask import current_app, jsonify, render_template
from flask_mail import Message

from .core.types import APIResponse
from .errors import ValidationError
from .extensions import mail

if TYPE_CHECKING:
    from flask_wtf import FlaskForm
    from google.cloud.firestore_v1.client import Client

T = TypeVar("T")

SMTP_AUTH_ERROR_CODE = 534


class EmailError(Exception):
    """Base class for email errors."""

    pass


def send_email(to, subject, template, **kwargs):
    """Send an email to a recipient.

    Raises:
        EmailError: If sending the email fails.
    """
    try:
        msg = Message(
            subject,
            recipients=[to],
            html=render_template(template, **kwargs),
            sender=current_app.config["MAIL_DEFAULT_SENDER"],
        )
        mail.send(msg)
    except smtplib.SMTPAuthenticationError as e:
        if e.smtp_code == SMTP_AUTH_ERROR_CODE:
            raise EmailError(
                "Authentication failed. The mail provider requires an app password. "
                "Please verify your MAIL_USERNAME and MAIL_PASSWORD settings."
            ) from e
        raise EmailError(f"SMTP Authentication failed: {e}") from e
    except Exception as e:
        raise EmailError(f"Failed to send email: {e}") from e


def run_in_transaction(db: Client, func: Callable[..., T], *args: Any) -> T:
    """Run ``func(transaction, *args)`` inside a Firestore transaction.

    Firestore retries the function when a document it read changes before
    commit, so the reads, checks and writes in ``func`` behave as one
    conditional update. Exceptions raised by ``func`` roll the transaction
    back and propagate unchanged.
    """
    transaction = db.transaction()
    return firestore.transactional(func)(transaction, *args)


def api_response(message: str, data: dict[str, Any] | None = None, status: int = 200):
    """Build the JSON envelope returned by every API route."""
    payload: APIResponse = {"success": True, "message": message, "data": data}
    return jsonify(payload), status


def validate_form(form: FlaskForm) -> None:
    """Raise a ValidationError carrying the first form error, if any."""
    if form.validate():
        return
    for field_name, errors in form.errors.items():
        label = getattr(form, field_name).label.text
        raise ValidationError(f"{label}: {errors[0]}")
    raise ValidationError()
