from flask_wtf import FlaskForm
from flask_wtf.file import FileField
from wtforms import StringField, TextAreaField
from wtforms.validators import Length, Optional


class ApplicationForm(FlaskForm):
    """Multipart body of ``POST /apply``. Field names follow the public API."""

    class Meta:
        # JSON/multipart API consumed cross-origin, no session to bind a token to
        csrf = False

    first_name = StringField("First name", name="firstName", validators=[Optional(), Length(max=120)])
    last_name = StringField("Last name", name="lastName", validators=[Optional(), Length(max=120)])
    email = StringField("Email", name="email", validators=[Optional(), Length(max=254)])
    phone = StringField("Phone", name="phone", validators=[Optional(), Length(max=40)])
    position = StringField("Position", name="position", validators=[Optional(), Length(max=200)])
    cover_letter = TextAreaField("Cover letter", name="coverLetter", validators=[Optional(), Length(max=20000)])
    resume = FileField("Resume", name="resume")

    def applicant_fields(self):
        return {
            "first_name": self.first_name.data or None,
            "last_name": self.last_name.data or None,
            "email": (self.email.data or "").strip() or None,
            "phone": self.phone.data or None,
            "position": self.position.data or None,
            "cover_letter": self.cover_letter.data or None,
        }

    def first_error(self):
        for field in self:
            if field.errors:
                return f"{field.name}: {field.errors[0]}"
        return None
