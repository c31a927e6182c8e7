import mimetypes
import os
from dataclasses import dataclass
from typing import Any

from ..errors import NotFound


@dataclass
class ResumeDownload:
    stream: Any
    download_name: str
    mimetype: str


class ApplicantQueryService:
    def __init__(self, store, artifacts):
        self.store = store
        self.artifacts = artifacts

    def _annotate(self, row, resume_url_for):
        url = resume_url_for(row.resume_file) if row.resume_file else None
        return row.to_dict(resume_url=url)

    def list_applicants(self, resume_url_for):
        return [self._annotate(r, resume_url_for) for r in self.store.list_all()]

    def get_applicant(self, applicant_id, resume_url_for):
        return self._annotate(self.store.get_by_id(applicant_id), resume_url_for)

    def open_resume(self, applicant_id):
        try:
            row = self.store.get_by_id(applicant_id)
        except NotFound:
            raise NotFound("Resume not found")
        if not row.resume_file:
            raise NotFound("Resume not found")
        # may have been removed by an operator since the record was written
        stream = self.artifacts.open(row.resume_file)
        ext = os.path.splitext(row.resume_file)[1]
        return ResumeDownload(
            stream=stream,
            download_name=f"{row.first_name or 'resume'}{ext}",
            mimetype=row.resume_content_type or _guess_type(row.resume_file),
        )

    def open_artifact(self, key):
        return ResumeDownload(stream=self.artifacts.open(key), download_name=key, mimetype=_guess_type(key))

    def orphaned_artifacts(self):
        referenced = self.store.referenced_keys()
        return sorted(k for k in self.artifacts.iter_keys() if k not in referenced)


def _guess_type(key):
    return mimetypes.guess_type(key)[0] or "application/octet-stream"
