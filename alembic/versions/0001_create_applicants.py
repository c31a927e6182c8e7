"""create applicants table

Revision ID: 0001_create_applicants
Revises: None
Create Date: 2026-09-28 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_create_applicants"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # databases bootstrapped by create_all already have the table
    if not insp.has_table("applicants"):
        op.create_table(
            "applicants",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("first_name", sa.String(120)),
            sa.Column("last_name", sa.String(120)),
            sa.Column("email", sa.String(254)),
            sa.Column("phone", sa.String(40)),
            sa.Column("position", sa.String(200)),
            sa.Column("cover_letter", sa.Text),
            sa.Column("resume_file", sa.String(64)),
            sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp(), nullable=False),
        )
        op.create_index("ix_applicants_created_at", "applicants", ["created_at"])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if insp.has_table("applicants"):
        op.drop_index("ix_applicants_created_at", table_name="applicants")
        op.drop_table("applicants")
