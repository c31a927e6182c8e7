import os
from dotenv import load_dotenv
load_dotenv()


def _flag(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    PORT = int(os.getenv("PORT", "5000"))
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # relative paths are resolved against the working directory
    UPLOAD_DIR = os.path.abspath(os.getenv("UPLOAD_DIR", "uploads"))
    DB_FILE = os.path.abspath(os.getenv("DB_FILE", "applicants.db"))
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or f"sqlite:///{DB_FILE}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    MAX_RESUME_BYTES = int(os.getenv("MAX_RESUME_BYTES", str(10 * 1024 * 1024)))
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
    S3_ENDPOINT = os.getenv("S3_ENDPOINT")
    S3_REGION = os.getenv("S3_REGION")
    S3_BUCKET = os.getenv("S3_BUCKET")
    S3_PREFIX = os.getenv("S3_PREFIX", "resumes/")
    S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")
    S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")

    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")
    MAIL_HOST = os.getenv("MAIL_HOST", "smtp.zoho.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "465"))
    MAIL_TIMEOUT = float(os.getenv("MAIL_TIMEOUT", "10"))
    MAIL_TLS_VERIFY = _flag("MAIL_TLS_VERIFY", True)
    MAIL_VERIFY_ON_STARTUP = _flag("MAIL_VERIFY_ON_STARTUP", True)
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "HR Team")
    EMAIL_USER = os.getenv("EMAIL_USER")
    EMAIL_PASS = os.getenv("EMAIL_PASS")
    MAIL_FROM = os.getenv("MAIL_FROM") or EMAIL_USER or "noreply@example.com"
    HR_EMAIL = os.getenv("HR_EMAIL")
    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
