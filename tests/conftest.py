import io
import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from intake import create_app
from intake.errors import DeliveryError


PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


class RecordingTransport:
    """Stands in for the SMTP relay; keeps what would have been sent."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send(self, mail):
        if self.fail_with:
            raise DeliveryError(self.fail_with)
        self.sent.append(mail)

    def verify(self):
        return None


@pytest.fixture
def app_config(tmp_path):
    db_file = str(tmp_path / "applicants.db")
    return {
        "TESTING": True,
        "UPLOAD_DIR": str(tmp_path / "uploads"),
        "DB_FILE": db_file,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
        "STORAGE_BACKEND": "local",
        "MAIL_BACKEND": "smtp",
        "MAIL_VERIFY_ON_STARTUP": False,
        "EMAIL_USER": "hr@example.com",
        "EMAIL_PASS": "secret",
        "MAIL_FROM": "hr@example.com",
        "HR_EMAIL": "hiring@example.com",
        "MAX_RESUME_BYTES": 64 * 1024,
    }


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def app(app_config, transport):
    app = create_app(app_config)
    app.extensions["applicant_intake"].notifier.transport = transport
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def upload_dir(app_config):
    return app_config["UPLOAD_DIR"]


def application_form(resume=None, **overrides):
    data = {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "phone": "+44 20 7946 0000",
        "position": "Backend Engineer",
        "coverLetter": "I would like to join.",
    }
    data.update(overrides)
    if resume is not None:
        content, filename, content_type = resume
        data["resume"] = (io.BytesIO(content), filename, content_type)
    return data


def stored_files(directory):
    if not os.path.isdir(directory):
        return []
    return sorted(os.listdir(directory))
