# alembic/env.py
from logging.config import fileConfig
from alembic import context
from sqlalchemy import create_engine
import os, sys, pathlib

os.environ["SKIP_CREATE_ALL"] = "1"

# project root on the import path
BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

config = context.config
# flask db passes alembic/alembic.ini, which does not exist; the root alembic.ini does
if getattr(config, "config_file_name", None) and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name)

from wsgi import app
from intake.extensions import db

with app.app_context():
    url = os.getenv("DATABASE_URL") or app.config.get("SQLALCHEMY_DATABASE_URI")

    # register models on the metadata
    import intake.models  # noqa: F401

    target_metadata = db.metadata

# sqlite needs batch mode for ALTER; type changes are diffed for autogenerate
MIGRATION_OPTIONS = dict(target_metadata=target_metadata, compare_type=True, render_as_batch=True)


def migrate_offline():
    """Emit SQL for the applicants schema without a live database."""
    context.configure(url=url, literal_binds=True, **MIGRATION_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def migrate_online():
    # same engine options as the app (sqlite busy timeout)
    with app.app_context():
        engine = db.engine if url == app.config.get("SQLALCHEMY_DATABASE_URI") else create_engine(url)
        with engine.connect() as connection:
            context.configure(connection=connection, **MIGRATION_OPTIONS)
            with context.begin_transaction():
                context.run_migrations()


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
