import os
import socket
from datetime import datetime, timedelta

from conftest import PDF_BYTES, application_form, stored_files
from intake import create_app
from intake.errors import PersistenceError
from intake.services.mail import SMTPTransport


DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _apply(client, **kwargs):
    return client.post("/apply", data=application_form(**kwargs), content_type="multipart/form-data")


def test_apply_without_resume_creates_one_record(client, transport):
    resp = _apply(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["emailSent"] is True
    assert isinstance(body["id"], int)

    record = client.get(f"/applicants/{body['id']}").get_json()
    assert record["resumeFile"] is None
    assert record["resumeUrl"] is None
    assert record["firstName"] == "Ada"
    assert record["coverLetter"] == "I would like to join."

    assert len(client.get("/applicants").get_json()) == 1
    (mail,) = transport.sent
    assert mail.to == "ada@example.com"
    assert mail.bcc == "hiring@example.com"
    assert mail.message.attachment is None


def test_each_submission_gets_a_fresh_id(client):
    ids = [_apply(client).get_json()["id"] for _ in range(3)]
    assert len(set(ids)) == 3


def test_unsupported_type_creates_nothing(client, upload_dir):
    resp = _apply(client, resume=(b"hello", "cv.txt", "text/plain"))
    assert resp.status_code == 415
    assert resp.get_json() == {"success": False, "message": "Only PDF / DOC / DOCX files are allowed"}
    assert client.get("/applicants").get_json() == []
    assert stored_files(upload_dir) == []


def test_oversize_resume_creates_nothing(client, app, upload_dir):
    too_big = b"%PDF" + b"0" * app.config["MAX_RESUME_BYTES"]
    resp = _apply(client, resume=(too_big, "cv.pdf", "application/pdf"))
    assert resp.status_code == 413
    assert resp.get_json()["success"] is False
    assert client.get("/applicants").get_json() == []
    assert stored_files(upload_dir) == []


def test_request_body_ceiling_is_reported_as_json(app_config):
    app_config["MAX_CONTENT_LENGTH"] = 2048
    app = create_app(app_config)
    client = app.test_client()
    resp = _apply(client, resume=(b"%PDF" + b"0" * 8192, "cv.pdf", "application/pdf"))
    assert resp.status_code == 413
    assert resp.get_json()["success"] is False


def test_overlong_field_is_a_client_error(client):
    resp = _apply(client, firstName="A" * 500)
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
    assert client.get("/applicants").get_json() == []


def test_listing_is_newest_first(client):
    for name in ("first", "second", "third"):
        _apply(client, firstName=name)
    rows = client.get("/applicants").get_json()
    stamps = [r["createdAt"] for r in rows]
    assert stamps == sorted(stamps, reverse=True)
    assert [r["firstName"] for r in rows] == ["third", "second", "first"]


def test_resume_round_trip(client, transport):
    resp = _apply(client, resume=(PDF_BYTES, "Ada CV.pdf", "application/pdf"))
    applicant_id = resp.get_json()["id"]

    record = client.get(f"/applicants/{applicant_id}").get_json()
    assert record["resumeUrl"].startswith("http://localhost/uploads/")
    assert record["resumeFile"].endswith(".pdf")
    assert record["resumeFile"] != "Ada CV.pdf"

    download = client.get(f"/resume/{applicant_id}")
    assert download.status_code == 200
    assert download.data == PDF_BYTES
    assert "Ada.pdf" in download.headers["Content-Disposition"]

    static = client.get(record["resumeUrl"].replace("http://localhost", ""))
    assert static.status_code == 200
    assert static.data == PDF_BYTES

    (mail,) = transport.sent
    assert mail.message.attachment.filename == "Ada CV.pdf"
    assert mail.attachment_data == PDF_BYTES
    assert record["resumeUrl"] in mail.message.html


def test_docx_resume_keeps_its_extension(client):
    resp = _apply(client, resume=(b"PK\x03\x04docx", "cv.docx", DOCX))
    record = client.get(f"/applicants/{resp.get_json()['id']}").get_json()
    assert record["resumeFile"].endswith(".docx")


def test_refused_mail_connection_still_saves(app, client):
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    notifier = app.extensions["applicant_intake"].notifier
    notifier.transport = SMTPTransport("127.0.0.1", port, user="u", password="p", timeout=2)

    resp = _apply(client, resume=(PDF_BYTES, "cv.pdf", "application/pdf"))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["emailSent"] is False
    assert client.get(f"/applicants/{body['id']}").status_code == 200


def test_persistence_failure_is_a_server_error(app, client, monkeypatch, upload_dir):
    services = app.extensions["applicant_intake"]

    def failing_insert(fields):
        raise PersistenceError()

    monkeypatch.setattr(services.store, "insert", failing_insert)
    resp = _apply(client, resume=(PDF_BYTES, "cv.pdf", "application/pdf"))
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Failed to save application"}

    # the stored file is left behind and detectable
    with app.app_context():
        orphans = services.queries.orphaned_artifacts()
    assert orphans == stored_files(upload_dir)
    assert len(orphans) == 1


def test_missing_records_and_files_are_404(client, upload_dir):
    assert client.get("/applicants/999").status_code == 404
    assert client.get("/resume/999").status_code == 404

    no_resume = _apply(client).get_json()["id"]
    resp = client.get(f"/resume/{no_resume}")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False

    with_resume = _apply(client, resume=(PDF_BYTES, "cv.pdf", "application/pdf")).get_json()["id"]
    key = client.get(f"/applicants/{with_resume}").get_json()["resumeFile"]
    os.remove(os.path.join(upload_dir, key))
    resp = client.get(f"/resume/{with_resume}")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "File missing"}
    assert client.get(f"/uploads/{key}").status_code == 404


def test_static_prefix_only_serves_generated_keys(client):
    assert client.get("/uploads/config.py").status_code == 404
    assert client.get("/uploads/..%2Fconfig.py").status_code == 404


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_line_breaks_in_header_fields_still_save(app, client):
    notifier = app.extensions["applicant_intake"].notifier
    notifier.transport = SMTPTransport("127.0.0.1", 1, timeout=2)

    resp = _apply(client, position="Engineer\r\nBcc: x@example.com")
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["emailSent"] is False
    record = client.get(f"/applicants/{body['id']}").get_json()
    assert record["position"].startswith("Engineer")


def test_created_at_carries_a_utc_offset(client):
    applicant_id = _apply(client).get_json()["id"]
    stamp = client.get(f"/applicants/{applicant_id}").get_json()["createdAt"]
    assert stamp.endswith("+00:00")
    assert datetime.fromisoformat(stamp).utcoffset() == timedelta(0)
