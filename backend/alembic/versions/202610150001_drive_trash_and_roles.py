"""add drive trash state and custom drive roles

Revision ID: 202610150001
Revises: 202610010001
Create Date: 2026-10-15
"""

from alembic import op
import sqlalchemy as sa

revision = "202610150001"
down_revision = "202610010001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    drive_cols = {c["name"] for c in inspector.get_columns("drives")}
    if "is_trashed" not in drive_cols:
        op.add_column(
            "drives",
            sa.Column("is_trashed", sa.Boolean(), nullable=False, server_default=sa.false()),
        )
    if "trashed_at" not in drive_cols:
        op.add_column("drives", sa.Column("trashed_at", sa.Text(), nullable=True))

    op.create_table(
        "drive_roles",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("drive_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["drive_id"], ["drives.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    with op.batch_alter_table("drive_members") as batch:
        batch.add_column(sa.Column("custom_role_id", sa.Text(), nullable=True))
        batch.create_foreign_key(
            "fk_drive_members_custom_role_id",
            "drive_roles",
            ["custom_role_id"],
            ["id"],
            ondelete="SET NULL",
        )


def downgrade() -> None:
    with op.batch_alter_table("drive_members") as batch:
        batch.drop_constraint("fk_drive_members_custom_role_id", type_="foreignkey")
        batch.drop_column("custom_role_id")
    op.drop_table("drive_roles")
    with op.batch_alter_table("drives") as batch:
        batch.drop_column("trashed_at")
        batch.drop_column("is_trashed")
