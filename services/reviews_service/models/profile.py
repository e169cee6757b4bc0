"""Coach and ensemble identities, plus the skill catalogue.

Profile CRUD belongs to the profiles service; this service only reads the
identity columns and maintains the reputation columns (rating, review count,
endorsement counts).
"""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship


class CoachProfile(Base):
    """A coach's public identity and cached reputation."""

    __tablename__ = "coach_profiles"
    __table_args__ = (
        CheckConstraint("total_reviews >= 0", name="ck_coach_total_reviews"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    approved: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    # Derived from the canonical reviews; only the rating aggregator writes these.
    rating: Mapped[float] = mapped_column(
        Float, default=0.0, server_default="0", nullable=False
    )
    total_reviews: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    skills: Mapped[list["CoachSkill"]] = relationship(
        back_populates="coach_profile",
        order_by="CoachSkill.display_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<CoachProfile {self.id} rating={self.rating} n={self.total_reviews}>"


class Skill(Base):
    """Predefined skill a coach can list and an ensemble can vouch for."""

    __tablename__ = "skills"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String, nullable=True)


class CoachSkill(Base):
    """A skill on a coach's profile, with its endorsement counter."""

    __tablename__ = "coach_skills"
    __table_args__ = (
        UniqueConstraint("coach_profile_id", "skill_id", name="uq_coach_skill"),
        CheckConstraint("endorsement_count >= 0", name="ck_coach_skill_endorsements"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    coach_profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("coach_profiles.id", ondelete="CASCADE"), nullable=False
    )
    skill_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("skills.id", ondelete="CASCADE"), nullable=False
    )
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    endorsement_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    coach_profile: Mapped["CoachProfile"] = relationship(back_populates="skills")
    skill: Mapped["Skill"] = relationship(lazy="selectin")

    @property
    def name(self) -> str:
        return self.skill.name


class EnsembleProfile(Base):
    """A client group. One account may own several; the id is the reviewer key."""

    __tablename__ = "ensemble_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    ensemble_name: Mapped[str] = mapped_column(String, nullable=False)
    contact_email: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<EnsembleProfile {self.id} {self.ensemble_name!r}>"
