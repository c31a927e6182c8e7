"""Error taxonomy shared by the intake services and the HTTP layer.

Every error that may reach a client derives from :class:`IntakeError` and
carries the HTTP status it maps to plus a message that is safe to show.
"""


class IntakeError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(IntakeError):
    """The client sent something we refuse to accept."""
    status_code = 400
    message = "Invalid submission"


class UnsupportedMediaType(ValidationError):
    status_code = 415
    message = "Only PDF / DOC / DOCX files are allowed"


class PayloadTooLarge(ValidationError):
    status_code = 413
    message = "Resume file is too large"


class NotFound(IntakeError):
    status_code = 404
    message = "Not found"


class PersistenceError(IntakeError):
    status_code = 500
    message = "Failed to save application"


class DeliveryError(IntakeError):
    """Mail transport failure. Logged, never rendered as a request failure."""
    status_code = 502
    message = "Email delivery failed"


class StartupError(RuntimeError):
    """Store, storage or mail transport could not be initialized."""
