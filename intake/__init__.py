import os
from dataclasses import dataclass

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from .errors import DeliveryError, IntakeError, PayloadTooLarge, StartupError
from .extensions import cors, db, migrate
from .services.applicant_store import ApplicantStore
from .services.file_intake import FileIntake
from .services.mail import Notifier, build_transport
from .services.query import ApplicantQueryService
from .services.storage import build_artifact_store
from .services.submission import SubmissionOrchestrator

# room for the text fields next to the largest accepted resume
FORM_OVERHEAD_BYTES = 256 * 1024


@dataclass
class IntakeServices:
    artifacts: object
    file_intake: FileIntake
    store: ApplicantStore
    notifier: Notifier
    submissions: SubmissionOrchestrator
    queries: ApplicantQueryService


def create_app(config_overrides=None):
    """Application factory.

    Raises ``StartupError`` when the database, the artifact store or the mail
    transport cannot be set up; such a process must not serve traffic.
    """
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if config_overrides:
        app.config.update(config_overrides)
    if not app.config.get("MAX_CONTENT_LENGTH"):
        app.config["MAX_CONTENT_LENGTH"] = app.config["MAX_RESUME_BYTES"] + FORM_OVERHEAD_BYTES
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        # concurrent submissions wait for the sqlite write lock instead of failing
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"timeout": 30}})
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    migrate.init_app(app, db)
    origins = app.config.get("CORS_ORIGINS", "*")
    cors.init_app(app, origins="*" if origins == "*" else [o.strip() for o in origins.split(",") if o.strip()])

    _init_database(app)
    app.extensions["applicant_intake"] = _build_services(app)

    from .blueprints.applications import bp as applications_bp
    app.register_blueprint(applications_bp)
    _register_error_handlers(app)

    app.logger.info("applicant intake ready (storage=%s, mail=%s)",
                    app.config.get("STORAGE_BACKEND"), app.config.get("MAIL_BACKEND"))
    return app


def _init_database(app):
    # alembic/env.py sets SKIP_CREATE_ALL so migrations own the schema there
    if os.environ.get("SKIP_CREATE_ALL"):
        return
    db_file = app.config.get("DB_FILE")
    if db_file and app.config["SQLALCHEMY_DATABASE_URI"] == f"sqlite:///{db_file}":
        os.makedirs(os.path.dirname(db_file) or ".", exist_ok=True)
    try:
        with app.app_context():
            from . import models  # noqa: F401
            db.create_all()
    except SQLAlchemyError as e:
        raise StartupError(f"database initialization failed: {e}") from e


def _build_services(app):
    config = app.config
    artifacts = build_artifact_store(config)
    transport = build_transport(config)

    if config.get("MAIL_BACKEND", "smtp") == "smtp" and not (config.get("EMAIL_USER") and config.get("EMAIL_PASS")):
        app.logger.warning("EMAIL_USER or EMAIL_PASS not set. Email will fail until configured.")
    elif config.get("MAIL_VERIFY_ON_STARTUP"):
        try:
            transport.verify()
            app.logger.info("Mail transporter ready")
        except DeliveryError as e:
            app.logger.warning("Mail transporter verification failed: %s", e.message)

    store = ApplicantStore(db.session)
    file_intake = FileIntake(artifacts, max_bytes=config["MAX_RESUME_BYTES"])
    notifier = Notifier(
        transport,
        artifacts,
        sender=config.get("MAIL_FROM"),
        sender_name=config.get("MAIL_FROM_NAME", "HR Team"),
        bcc=config.get("HR_EMAIL"),
    )
    return IntakeServices(
        artifacts=artifacts,
        file_intake=file_intake,
        store=store,
        notifier=notifier,
        submissions=SubmissionOrchestrator(file_intake, store, notifier, logger=app.logger),
        queries=ApplicantQueryService(store, artifacts),
    )


def _register_error_handlers(app):
    @app.errorhandler(IntakeError)
    def handle_intake_error(e):
        return jsonify({"success": False, "message": e.message}), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return jsonify({"success": False, "message": PayloadTooLarge.message}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"success": False, "message": e.name}), e.code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        app.logger.exception("database error")
        db.session.rollback()
        return jsonify({"success": False, "message": "Database error"}), 500
