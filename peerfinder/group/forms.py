"""Forms for the study group blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, StringField, TextAreaField
from wtforms.validators import (
    DataRequired,
    InputRequired,
    Length,
    NumberRange,
    Optional,
)

from peerfinder.constants import (
    MAX_GROUP_MEMBERS,
    MAX_GROUP_NAME_LENGTH,
    MIN_GROUP_MEMBERS,
)


class GroupForm(FlaskForm):
    """Form for creating a new study group.

    ``isPublic`` and the ``memberIds`` list of invitees are read from the
    JSON body directly.
    """

    class Meta:
        csrf = False

    name = StringField(
        "Group Name", validators=[DataRequired(), Length(max=MAX_GROUP_NAME_LENGTH)]
    )
    course = StringField("Course", validators=[DataRequired()])
    maxMembers = IntegerField(
        "Max Members",
        validators=[
            InputRequired(),
            NumberRange(min=MIN_GROUP_MEMBERS, max=MAX_GROUP_MEMBERS),
        ],
    )


class RenameGroupForm(FlaskForm):
    """Form for renaming a group."""

    class Meta:
        csrf = False

    name = StringField(
        "Group Name", validators=[DataRequired(), Length(max=MAX_GROUP_NAME_LENGTH)]
    )


class KickMemberForm(FlaskForm):
    """Form for removing a member from a group."""

    class Meta:
        csrf = False

    userId = StringField("User", validators=[DataRequired()])


class JoinRequestForm(FlaskForm):
    """Form for asking to join a private group."""

    class Meta:
        csrf = False

    message = TextAreaField("Message", validators=[Optional(), Length(max=500)])


class AIGroupForm(FlaskForm):
    """Form for asking the AI service to put a group together."""

    class Meta:
        csrf = False

    course = StringField("Course", validators=[DataRequired()])
    groupSize = IntegerField(
        "Group Size",
        validators=[
            InputRequired(),
            NumberRange(min=MIN_GROUP_MEMBERS, max=MAX_GROUP_MEMBERS),
        ],
    )
