"""create invitation_codes and rsvps

Revision ID: 5c1e2a7f90d4
Revises: 
Create Date: 2026-10-18 10:12:41.203117

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e2a7f90d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

attendance_enum = sa.Enum("Will attend", "Will not attend", name="attendance_enum")


def upgrade() -> None:
    """Create the invitation code pool and the one-per-code RSVP table."""
    op.create_table(
        "invitation_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("assigned_to", sa.String(length=160), nullable=False, server_default=""),
        sa.Column("max_guests", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("used_guests", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("max_guests >= 1", name="ck_invitation_codes_max_guests_min"),
    )
    op.create_index("ix_invitation_codes_id", "invitation_codes", ["id"])
    op.create_index("ix_invitation_codes_code", "invitation_codes", ["code"], unique=True)

    op.create_table(
        "rsvps",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("code_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("allergies", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("guests_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("attendance", attendance_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("code", name="uq_rsvps_code"),
        sa.CheckConstraint("guests_count >= 1", name="ck_rsvps_guests_count_min"),
    )
    op.create_index("ix_rsvps_id", "rsvps", ["id"])
    op.create_index("ix_rsvps_code", "rsvps", ["code"])
    op.create_index("ix_rsvps_code_id", "rsvps", ["code_id"])


def downgrade() -> None:
    """Drop both tables (and the enum type on PostgreSQL)."""
    op.drop_index("ix_rsvps_code_id", table_name="rsvps")
    op.drop_index("ix_rsvps_code", table_name="rsvps")
    op.drop_index("ix_rsvps_id", table_name="rsvps")
    op.drop_table("rsvps")
    op.drop_index("ix_invitation_codes_code", table_name="invitation_codes")
    op.drop_index("ix_invitation_codes_id", table_name="invitation_codes")
    op.drop_table("invitation_codes")
    attendance_enum.drop(op.get_bind(), checkfirst=True)
