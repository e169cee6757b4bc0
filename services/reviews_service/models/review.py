"""Review workflow models: invites, unprompted drafts and canonical reviews."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.types import StringList
from services.reviews_service.models.enums import (
    EnsembleReviewStatus,
    InviteStatus,
    SessionFormat,
    enum_values,
)
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship


def _session_format_column() -> Mapped[SessionFormat]:
    return mapped_column(
        SAEnum(
            SessionFormat,
            name="session_format_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )


class ReviewInvite(Base):
    """A coach-issued solicitation for a review.

    ``completed`` exactly when one canonical review references the invite.
    Expiry is checked lazily when the invite is read.
    """

    __tablename__ = "review_invites"
    __table_args__ = (
        # One open solicitation per (coach, email).
        Index(
            "uq_review_invites_pending_email",
            "coach_profile_id",
            "ensemble_email",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    coach_profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("coach_profiles.id", ondelete="CASCADE"), index=True
    )
    ensemble_email: Mapped[str] = mapped_column(String, index=True, nullable=False)
    ensemble_name: Mapped[str] = mapped_column(String, nullable=False)
    ensemble_profile_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("ensemble_profiles.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[InviteStatus] = mapped_column(
        SAEnum(
            InviteStatus,
            name="review_invite_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=InviteStatus.PENDING,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    review: Mapped[Optional["Review"]] = relationship(
        back_populates="invite", uselist=False, lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<ReviewInvite {self.id} {self.status.value}>"


class EnsembleReview(Base):
    """An unprompted review draft awaiting the coach's decision."""

    __tablename__ = "ensemble_reviews"
    __table_args__ = (
        Index(
            "uq_ensemble_reviews_active_pair",
            "ensemble_profile_id",
            "coach_profile_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'approved')"),
            sqlite_where=text("status IN ('pending', 'approved')"),
        ),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_ensemble_review_rating"),
        CheckConstraint(
            "session_month BETWEEN 1 AND 12", name="ck_ensemble_review_month"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ensemble_profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ensemble_profiles.id", ondelete="CASCADE"), index=True
    )
    coach_profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("coach_profiles.id", ondelete="CASCADE"), index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_month: Mapped[int] = mapped_column(Integer, nullable=False)
    session_year: Mapped[int] = mapped_column(Integer, nullable=False)
    session_format: Mapped[SessionFormat] = _session_format_column()
    validated_skills: Mapped[list[str]] = mapped_column(
        StringList, default=list, nullable=False
    )
    status: Mapped[EnsembleReviewStatus] = mapped_column(
        SAEnum(
            EnsembleReviewStatus,
            name="ensemble_review_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=EnsembleReviewStatus.PENDING,
        nullable=False,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    ensemble_profile: Mapped["EnsembleProfile"] = relationship(  # noqa: F821
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<EnsembleReview {self.id} {self.status.value}>"


class Review(Base):
    """The public, canonical review driving a coach's rating."""

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
        CheckConstraint("session_month BETWEEN 1 AND 12", name="ck_review_month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    invite_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("review_invites.id"), unique=True, nullable=False
    )
    reviewer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ensemble_profiles.id", ondelete="CASCADE"), index=True
    )
    coach_profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("coach_profiles.id", ondelete="CASCADE"), index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_month: Mapped[int] = mapped_column(Integer, nullable=False)
    session_year: Mapped[int] = mapped_column(Integer, nullable=False)
    session_format: Mapped[SessionFormat] = _session_format_column()
    validated_skills: Mapped[list[str]] = mapped_column(
        StringList, default=list, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    invite: Mapped["ReviewInvite"] = relationship(back_populates="review")
    reviewer: Mapped["EnsembleProfile"] = relationship(lazy="selectin")  # noqa: F821
    coach_profile: Mapped["CoachProfile"] = relationship(lazy="selectin")  # noqa: F821

    def __repr__(self) -> str:
        return f"<Review {self.id} rating={self.rating}>"
