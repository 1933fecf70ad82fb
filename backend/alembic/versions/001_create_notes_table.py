"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `notes` table backing the SQL record store.
How:   String ids (the store assigns a uuid4 string), text columns for the
       note body, and a nullable image key into the blob store.

Rollback: downgrade() drops the table and every note in it.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column(
            "id",
            sa.String(36),
            nullable=False,
            comment="Record store id, assigned on create",
        ),
        sa.Column(
            "name",
            sa.Text(),
            nullable=False,
            comment="Note title",
        ),
        sa.Column(
            "description",
            sa.Text(),
            nullable=False,
            comment="Note body",
        ),
        # Blob store key, never a resolved URL
        sa.Column(
            "image",
            sa.String(1024),
            nullable=True,
            comment="Blob store key of the attached image",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the record store accepted the note (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # list() returns notes in creation order
    op.create_index(
        "idx_notes_created_at",
        "notes",
        ["created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
