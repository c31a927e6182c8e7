from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFound, PersistenceError
from ..models.applicant import Applicant


INSERTABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "position",
    "cover_letter",
    "resume_file",
    "resume_original_name",
    "resume_content_type",
)


class ApplicantStore:
    """Append-only access to the ``applicants`` table through one session."""

    def __init__(self, session):
        self.session = session

    def insert(self, fields):
        row = Applicant(**{k: fields.get(k) for k in INSERTABLE_FIELDS})
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError() from e
        return row.id

    def get_by_id(self, applicant_id):
        try:
            row = self.session.get(Applicant, applicant_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError("Failed to load application") from e
        if row is None:
            raise NotFound("Applicant not found")
        return row

    def list_all(self):
        return (
            self.session.query(Applicant)
            .order_by(Applicant.created_at.desc(), Applicant.id.desc())
            .all()
        )

    def referenced_keys(self):
        rows = self.session.query(Applicant.resume_file).filter(Applicant.resume_file.isnot(None)).all()
        return {r[0] for r in rows}
