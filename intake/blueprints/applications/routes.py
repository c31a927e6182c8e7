from flask import current_app, jsonify, send_file, url_for
from . import bp
from .forms import ApplicationForm
from ...errors import ValidationError


def _services():
    return current_app.extensions["applicant_intake"]


def _resume_url(key):
    # absolute, built from the host the client used to reach us
    return url_for("applications.uploaded_file", key=key, _external=True)


@bp.post("/apply")
def apply():
    form = ApplicationForm()
    if not form.validate():
        raise ValidationError(form.first_error() or "Invalid submission")

    outcome = _services().submissions.submit(
        form.applicant_fields(),
        upload=form.resume.data,
        resume_url_for=_resume_url,
    )
    if outcome.notified:
        message = "Application submitted & confirmation email sent!"
    else:
        message = "Application submitted, but the confirmation email could not be sent."
    return jsonify({
        "success": True,
        "message": message,
        "id": outcome.applicant_id,
        "emailSent": outcome.notified,
    }), 201


@bp.get("/applicants")
def list_applicants():
    return jsonify(_services().queries.list_applicants(_resume_url))


@bp.get("/applicants/<int:applicant_id>")
def get_applicant(applicant_id):
    return jsonify(_services().queries.get_applicant(applicant_id, _resume_url))


@bp.get("/resume/<int:applicant_id>")
def download_resume(applicant_id):
    dl = _services().queries.open_resume(applicant_id)
    return send_file(dl.stream, as_attachment=True, download_name=dl.download_name, mimetype=dl.mimetype)


@bp.get("/uploads/<path:key>")
def uploaded_file(key):
    dl = _services().queries.open_artifact(key)
    return send_file(dl.stream, as_attachment=False, download_name=dl.download_name, mimetype=dl.mimetype)


@bp.get("/health")
def health():
    return jsonify({"status": "ok"})
