"""keep original filename and MIME type of the stored resume

Revision ID: 0002_add_resume_metadata
Revises: 0001_create_applicants
Create Date: 2026-10-06 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = "0002_add_resume_metadata"
down_revision = "0001_create_applicants"
branch_labels = None
depends_on = None


def _columns(bind, table):
    return {c["name"] for c in sa.inspect(bind).get_columns(table)}


def upgrade():
    existing = _columns(op.get_bind(), "applicants")
    with op.batch_alter_table("applicants") as batch:
        if "resume_original_name" not in existing:
            batch.add_column(sa.Column("resume_original_name", sa.String(255)))
        if "resume_content_type" not in existing:
            batch.add_column(sa.Column("resume_content_type", sa.String(120)))


def downgrade():
    existing = _columns(op.get_bind(), "applicants")
    with op.batch_alter_table("applicants") as batch:
        if "resume_content_type" in existing:
            batch.drop_column("resume_content_type")
        if "resume_original_name" in existing:
            batch.drop_column("resume_original_name")
