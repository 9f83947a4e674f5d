"""initial schema: users, catalog, feedback, images, activity logs

Revision ID: 4f1c2a9d7e10
Revises:
Create Date: 2026-10-19 09:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2a9d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create every table and index (idempotent for databases created by hand)."""
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(255), nullable=False, unique=True),
            sa.Column("email", sa.String(255), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("last_active", sa.DateTime(), nullable=True),
        )

    if "categories" not in existing_tables:
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False, unique=True),
            sa.Column("description", sa.Text(), nullable=True),
        )

    if "creatures" not in existing_tables:
        op.create_table(
            "creatures",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=False),
            sa.Column("scientific_name", sa.String(255), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("habitat", sa.Text(), nullable=True),
            sa.Column("diet", sa.Text(), nullable=True),
            sa.Column("lifespan", sa.String(100), nullable=True),
            sa.Column("conservation_status", sa.String(100), nullable=True),
            sa.Column("fun_facts", sa.Text(), nullable=True),
            sa.Column("image_url", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_creatures_category", "creatures", ["category_id"])

    if "feedback" not in existing_tables:
        op.create_table(
            "feedback",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("creature_id", sa.Integer(), sa.ForeignKey("creatures.id", ondelete="CASCADE"), nullable=False),
            sa.Column("comment", sa.Text(), nullable=False),
            sa.Column("rating", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
        )
        op.create_index("idx_feedback_user", "feedback", ["user_id"])
        op.create_index("idx_feedback_creature", "feedback", ["creature_id"])

    if "images" not in existing_tables:
        op.create_table(
            "images",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("creature_id", sa.Integer(), sa.ForeignKey("creatures.id", ondelete="CASCADE"), nullable=False),
            sa.Column("image_data", sa.LargeBinary(), nullable=False),
            sa.Column("content_type", sa.String(50), nullable=False, server_default="image/jpeg"),
            sa.Column("original_url", sa.Text(), nullable=True),
            sa.Column("file_size", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_images_creature_id", "images", ["creature_id"], unique=True)

    if "activity_logs" not in existing_tables:
        op.create_table(
            "activity_logs",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("username", sa.String(255), nullable=True),
            sa.Column("action", sa.String(100), nullable=False),
            sa.Column("details", sa.Text(), nullable=True),
            sa.Column("ip_address", sa.String(45), nullable=True),
            sa.Column("user_agent", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_activity_logs_user", "activity_logs", ["user_id"])
        op.create_index("idx_activity_logs_action", "activity_logs", ["action"])
        op.create_index("idx_activity_logs_created", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("images")
    op.drop_table("feedback")
    op.drop_table("creatures")
    op.drop_table("categories")
    op.drop_table("users")
