import os
import random
import time
from dataclasses import dataclass

from werkzeug.utils import secure_filename

from ..errors import PayloadTooLarge, UnsupportedMediaType
from .storage import generate_storage_key


# declared MIME type -> extension used when the upload has none
ALLOWED_MIME_TYPES = {
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
# width of applicants.resume_original_name
MAX_ORIGINAL_NAME = 255


@dataclass(frozen=True)
class StoredResume:
    key: str
    original_filename: str
    content_type: str
    size: int


def resume_extension(filename, content_type):
    """Lowercased extension of the client's filename, or the MIME type's default."""
    ext = os.path.splitext(secure_filename(filename or ""))[1].lower()
    if ext and 1 < len(ext) <= 11 and ext[1:].isalnum():
        return ext
    return ALLOWED_MIME_TYPES.get(content_type, "")


def clip_filename(filename, limit=MAX_ORIGINAL_NAME):
    """Shorten ``filename`` to ``limit`` characters, keeping its extension."""
    if len(filename) <= limit:
        return filename
    stem, ext = os.path.splitext(filename)
    if len(ext) >= limit:
        return filename[:limit]
    return stem[: limit - len(ext)] + ext


def _stream_size(stream):
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


class FileIntake:
    def __init__(self, artifacts, max_bytes=DEFAULT_MAX_BYTES, clock=time.time, random_source=None):
        self.artifacts = artifacts
        self.max_bytes = max_bytes
        self.clock = clock
        self.random_source = random_source or random.SystemRandom()

    def next_key(self, filename, content_type):
        return generate_storage_key(
            self.clock() * 1000, self.random_source, resume_extension(filename, content_type)
        )

    def accept(self, upload):
        """Validate a werkzeug ``FileStorage`` and store it under a fresh key.

        Raises ``UnsupportedMediaType`` or ``PayloadTooLarge`` before anything
        is written.
        """
        content_type = (upload.mimetype or "").lower()
        if content_type not in ALLOWED_MIME_TYPES:
            raise UnsupportedMediaType()

        stream = upload.stream
        size = _stream_size(stream)
        if size > self.max_bytes:
            raise PayloadTooLarge(f"Resume file is too large ({self.max_bytes} bytes max)")

        key = self.next_key(upload.filename, content_type)
        stream.seek(0)
        self.artifacts.save(stream, key, content_type=content_type)
        return StoredResume(
            key=key,
            original_filename=clip_filename(upload.filename or f"resume{resume_extension(None, content_type)}"),
            content_type=content_type,
            size=size,
        )
