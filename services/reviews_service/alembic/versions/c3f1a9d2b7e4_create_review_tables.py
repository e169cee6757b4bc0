"""create_review_tables

Revision ID: c3f1a9d2b7e4
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "c3f1a9d2b7e4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUM_VALUES = {
    "review_invite_status_enum": ("pending", "completed", "expired", "declined"),
    "ensemble_review_status_enum": ("pending", "approved", "rejected"),
    "session_format_enum": ("in_person", "virtual"),
    "review_audit_action_enum": ("review_deleted", "rating_recomputed"),
}


def _enum(name: str) -> sa.Enum:
    # Postgres types are created once in upgrade(); columns only reference them.
    values = ENUM_VALUES[name]
    return sa.Enum(*values, name=name).with_variant(
        postgresql.ENUM(*values, name=name, create_type=False), "postgresql"
    )


def _review_body_columns() -> list[sa.Column]:
    return [
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("review_text", sa.Text(), nullable=True),
        sa.Column("session_month", sa.Integer(), nullable=False),
        sa.Column("session_year", sa.Integer(), nullable=False),
        sa.Column("session_format", _enum("session_format_enum"), nullable=False),
        sa.Column("validated_skills", sa.Text(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema - Add review workflow tables."""
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in ENUM_VALUES.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "coach_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("approved", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("rating", sa.Float(), server_default="0", nullable=False),
        sa.Column("total_reviews", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_reviews >= 0", name="ck_coach_total_reviews"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_coach_profiles_user_id", "coach_profiles", ["user_id"])

    op.create_table(
        "skills",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "coach_skills",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("coach_profile_id", sa.Uuid(), nullable=False),
        sa.Column("skill_id", sa.Uuid(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column(
            "endorsement_count", sa.Integer(), server_default="0", nullable=False
        ),
        sa.CheckConstraint(
            "endorsement_count >= 0", name="ck_coach_skill_endorsements"
        ),
        sa.ForeignKeyConstraint(
            ["coach_profile_id"], ["coach_profiles.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("coach_profile_id", "skill_id", name="uq_coach_skill"),
    )

    op.create_table(
        "ensemble_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("ensemble_name", sa.String(), nullable=False),
        sa.Column("contact_email", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ensemble_profiles_user_id", "ensemble_profiles", ["user_id"])

    op.create_table(
        "review_invites",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("coach_profile_id", sa.Uuid(), nullable=False),
        sa.Column("ensemble_email", sa.String(), nullable=False),
        sa.Column("ensemble_name", sa.String(), nullable=False),
        sa.Column("ensemble_profile_id", sa.Uuid(), nullable=True),
        sa.Column("status", _enum("review_invite_status_enum"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["coach_profile_id"], ["coach_profiles.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["ensemble_profile_id"], ["ensemble_profiles.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_review_invites_coach_profile_id", "review_invites", ["coach_profile_id"]
    )
    op.create_index(
        "ix_review_invites_ensemble_email", "review_invites", ["ensemble_email"]
    )
    op.create_index(
        "uq_review_invites_pending_email",
        "review_invites",
        ["coach_profile_id", "ensemble_email"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "ensemble_reviews",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("ensemble_profile_id", sa.Uuid(), nullable=False),
        sa.Column("coach_profile_id", sa.Uuid(), nullable=False),
        *_review_body_columns(),
        sa.Column("status", _enum("ensemble_review_status_enum"), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_ensemble_review_rating"),
        sa.CheckConstraint(
            "session_month BETWEEN 1 AND 12", name="ck_ensemble_review_month"
        ),
        sa.ForeignKeyConstraint(
            ["ensemble_profile_id"], ["ensemble_profiles.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["coach_profile_id"], ["coach_profiles.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ensemble_reviews_ensemble_profile_id",
        "ensemble_reviews",
        ["ensemble_profile_id"],
    )
    op.create_index(
        "ix_ensemble_reviews_coach_profile_id", "ensemble_reviews", ["coach_profile_id"]
    )
    op.create_index(
        "uq_ensemble_reviews_active_pair",
        "ensemble_reviews",
        ["ensemble_profile_id", "coach_profile_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'approved')"),
        sqlite_where=sa.text("status IN ('pending', 'approved')"),
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("invite_id", sa.Uuid(), nullable=False),
        sa.Column("reviewer_id", sa.Uuid(), nullable=False),
        sa.Column("coach_profile_id", sa.Uuid(), nullable=False),
        *_review_body_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
        sa.CheckConstraint("session_month BETWEEN 1 AND 12", name="ck_review_month"),
        sa.ForeignKeyConstraint(["invite_id"], ["review_invites.id"]),
        sa.ForeignKeyConstraint(
            ["reviewer_id"], ["ensemble_profiles.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["coach_profile_id"], ["coach_profiles.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invite_id"),
    )
    op.create_index("ix_reviews_reviewer_id", "reviews", ["reviewer_id"])
    op.create_index("ix_reviews_coach_profile_id", "reviews", ["coach_profile_id"])

    op.create_table(
        "review_audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("action", _enum("review_audit_action_enum"), nullable=False),
        sa.Column("performed_by", sa.String(), nullable=False),
        sa.Column("target_type", sa.String(), nullable=False),
        sa.Column("target_id", sa.Uuid(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_review_audit_logs_target_id", "review_audit_logs", ["target_id"]
    )


def downgrade() -> None:
    """Downgrade schema - Drop review workflow tables."""
    op.drop_index("ix_review_audit_logs_target_id", table_name="review_audit_logs")
    op.drop_table("review_audit_logs")
    op.drop_index("ix_reviews_coach_profile_id", table_name="reviews")
    op.drop_index("ix_reviews_reviewer_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("uq_ensemble_reviews_active_pair", table_name="ensemble_reviews")
    op.drop_index("ix_ensemble_reviews_coach_profile_id", table_name="ensemble_reviews")
    op.drop_index(
        "ix_ensemble_reviews_ensemble_profile_id", table_name="ensemble_reviews"
    )
    op.drop_table("ensemble_reviews")
    op.drop_index("uq_review_invites_pending_email", table_name="review_invites")
    op.drop_index("ix_review_invites_ensemble_email", table_name="review_invites")
    op.drop_index("ix_review_invites_coach_profile_id", table_name="review_invites")
    op.drop_table("review_invites")
    op.drop_index("ix_ensemble_profiles_user_id", table_name="ensemble_profiles")
    op.drop_table("ensemble_profiles")
    op.drop_table("coach_skills")
    op.drop_table("skills")
    op.drop_index("ix_coach_profiles_user_id", table_name="coach_profiles")
    op.drop_table("coach_profiles")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in ENUM_VALUES.items():
            postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)
