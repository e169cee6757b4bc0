"""Reviews Service models package.

Re-exports all models and enums so that:
  - ``from services.reviews_service.models import Review`` works
  - Alembic env.py sees every table through one import
  - SQLAlchemy's mapper registry sees every model class on import

IMPORTANT: Every model class AND enum must be listed here.
"""

from services.reviews_service.models.audit import ReviewAuditLog  # noqa: F401
from services.reviews_service.models.enums import (  # noqa: F401
    AuditAction,
    EligibilityStatus,
    EnsembleReviewStatus,
    InviteStatus,
    ReviewDecision,
    SessionFormat,
)
from services.reviews_service.models.profile import (  # noqa: F401
    CoachProfile,
    CoachSkill,
    EnsembleProfile,
    Skill,
)
from services.reviews_service.models.review import (  # noqa: F401
    EnsembleReview,
    Review,
    ReviewInvite,
)

__all__ = [
    # Enums
    "AuditAction",
    "EligibilityStatus",
    "EnsembleReviewStatus",
    "InviteStatus",
    "ReviewDecision",
    "SessionFormat",
    # Profiles
    "CoachProfile",
    "CoachSkill",
    "EnsembleProfile",
    "Skill",
    # Review workflow
    "EnsembleReview",
    "Review",
    "ReviewInvite",
    # Audit
    "ReviewAuditLog",
]
