from datetime import datetime, timezone
from ..extensions import db


def _utc_iso(value):
    if value is None:
        return None
    # naive values read back from the database are UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class Applicant(db.Model):
    __tablename__ = "applicants"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    first_name = db.Column(db.String(120))
    last_name = db.Column(db.String(120))
    email = db.Column(db.String(254))
    phone = db.Column(db.String(40))
    position = db.Column(db.String(200))
    cover_letter = db.Column(db.Text)

    # generated storage key, never the client's filename
    resume_file = db.Column(db.String(64))
    resume_original_name = db.Column(db.String(255))
    resume_content_type = db.Column(db.String(120))

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    def to_dict(self, resume_url=None):
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
            "coverLetter": self.cover_letter,
            "resumeFile": self.resume_file,
            "createdAt": _utc_iso(self.created_at),
            "resumeUrl": resume_url,
        }

    def __repr__(self) -> str:
        return f"<Applicant id={self.id} email={self.email!r}>"
