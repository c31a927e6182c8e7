"""Submission pipeline: validate the resume, store it, insert the record, notify.

Persistence is a hard dependency and aborts the submission. Notification is a
soft dependency: the record is already committed when it runs, so any
notification failure is logged and reported on the outcome, never raised.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import DeliveryError, NotFound, PersistenceError, ValidationError


class SubmissionState(enum.Enum):
    RECEIVED = "received"
    FILE_VALIDATED = "file_validated"
    FILE_REJECTED = "file_rejected"
    PERSISTED = "persisted"
    PERSIST_FAILED = "persist_failed"
    NOTIFIED = "notified"
    NOTIFY_FAILED = "notify_failed"
    COMPLETE = "complete"


@dataclass
class SubmissionOutcome:
    applicant_id: Optional[int] = None
    resume_key: Optional[str] = None
    notified: bool = False
    delivery_error: Optional[str] = None
    states: List[SubmissionState] = field(default_factory=list)

    @property
    def state(self):
        return self.states[-1] if self.states else None


class SubmissionOrchestrator:
    def __init__(self, file_intake, store, notifier, logger=None):
        self.file_intake = file_intake
        self.store = store
        self.notifier = notifier
        self.logger = logger or logging.getLogger(__name__)

    def _advance(self, outcome, state):
        outcome.states.append(state)
        self.logger.debug("submission %s -> %s", outcome.applicant_id or "-", state.value)

    def submit(self, fields, upload=None, resume_url_for=None):
        """Run one submission.

        ``fields`` holds the applicant columns (``first_name``, ``email``, ...).
        ``upload`` is a werkzeug ``FileStorage`` or None. ``resume_url_for``
        maps a storage key to the absolute URL the applicant can use.

        Raises ``ValidationError`` (nothing written) or ``PersistenceError``
        (artifact possibly orphaned). Returns a ``SubmissionOutcome`` otherwise.
        """
        outcome = SubmissionOutcome()
        self._advance(outcome, SubmissionState.RECEIVED)

        record_fields = dict(fields)
        stored = None
        if upload:
            try:
                stored = self.file_intake.accept(upload)
            except ValidationError as e:
                self._advance(outcome, SubmissionState.FILE_REJECTED)
                self.logger.info("resume rejected (%s): %s", type(e).__name__, e.message)
                raise
            outcome.resume_key = stored.key
            record_fields.update(
                resume_file=stored.key,
                resume_original_name=stored.original_filename,
                resume_content_type=stored.content_type,
            )
            self._advance(outcome, SubmissionState.FILE_VALIDATED)

        try:
            outcome.applicant_id = self.store.insert(record_fields)
        except PersistenceError:
            self._advance(outcome, SubmissionState.PERSIST_FAILED)
            if stored is not None:
                # not cleaned up; find_orphaned_resumes.py lists these
                self.logger.error("insert failed, resume %s is now orphaned", stored.key)
            self.logger.exception("failed to save application")
            raise
        self._advance(outcome, SubmissionState.PERSISTED)

        try:
            record = self.store.get_by_id(outcome.applicant_id)
            resume_url = None
            if record.resume_file and resume_url_for is not None:
                resume_url = resume_url_for(record.resume_file)
            self.notifier.send_confirmation(record, resume_url)
        except (NotFound, PersistenceError) as e:
            outcome.delivery_error = f"stored record could not be reloaded: {e.message}"
            self._advance(outcome, SubmissionState.NOTIFY_FAILED)
            self.logger.warning("applicant %s saved but not notified: %s", outcome.applicant_id, e.message)
        except DeliveryError as e:
            outcome.delivery_error = e.message
            self._advance(outcome, SubmissionState.NOTIFY_FAILED)
            self.logger.warning(
                "applicant %s saved but confirmation email failed: %s", outcome.applicant_id, e.message
            )
        except Exception as e:
            # the record is committed; nothing raised here may turn into a 500
            outcome.delivery_error = str(e) or e.__class__.__name__
            self._advance(outcome, SubmissionState.NOTIFY_FAILED)
            self.logger.exception("applicant %s saved but notification crashed", outcome.applicant_id)
        else:
            outcome.notified = True
            self._advance(outcome, SubmissionState.NOTIFIED)

        self._advance(outcome, SubmissionState.COMPLETE)
        return outcome
