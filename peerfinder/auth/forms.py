"""Forms for the auth blueprint."""

from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, Optional

from peerfinder.constants import MIN_PASSWORD_LENGTH


class LoginForm(FlaskForm):
    """Form for users to log in."""

    class Meta:
        csrf = False

    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])


class RegisterForm(FlaskForm):
    """Form for new users to register.

    ``coursesSeeking`` is a JSON list and is read from the request body
    directly.
    """

    class Meta:
        csrf = False

    name = StringField("Name", validators=[DataRequired(), Length(max=100)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField(
        "Password", validators=[DataRequired(), Length(min=MIN_PASSWORD_LENGTH)]
    )
    availability = StringField("Availability", validators=[Optional()])
    year = StringField("Year", validators=[Optional()])
    bio = StringField("Bio", validators=[Optional(), Length(max=500)])
