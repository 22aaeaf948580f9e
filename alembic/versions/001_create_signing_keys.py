"""Create signing_keys table

Revision ID: 001_signing_keys
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "001_signing_keys"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "signing_keys",
        sa.Column("kid", sa.String(64), primary_key=True),
        sa.Column("algorithm", sa.String(16), nullable=False),
        sa.Column("public_key", sa.Text, nullable=False),
        sa.Column("private_key", sa.Text, nullable=False),
        # Naive UTC; the application re-attaches the timezone on load
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("expires_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_signing_keys_created_at", "signing_keys", ["created_at"])
    op.create_index("ix_signing_keys_expires_at", "signing_keys", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_signing_keys_expires_at", table_name="signing_keys")
    op.drop_index("ix_signing_keys_created_at", table_name="signing_keys")
    op.drop_table("signing_keys")
