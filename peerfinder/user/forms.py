"""Forms for the user blueprint."""

from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import Length, Optional, URL


class ProfileForm(FlaskForm):
    """Form for editing a user's profile. Every field is optional."""

    class Meta:
        csrf = False

    name = StringField("Name", validators=[Optional(), Length(min=1, max=100)])
    availability = StringField("Availability", validators=[Optional()])
    year = StringField("Year", validators=[Optional()])
    bio = StringField("Bio", validators=[Optional(), Length(max=500)])
    imageUrl = StringField("Image URL", validators=[Optional(), URL()])
