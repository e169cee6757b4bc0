"""Enums for the Reviews Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class InviteStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"
    DECLINED = "declined"


class EnsembleReviewStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SessionFormat(str, enum.Enum):
    IN_PERSON = "in_person"
    VIRTUAL = "virtual"


class ReviewDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class EligibilityStatus(str, enum.Enum):
    CAN_REVIEW = "can_review"
    CAN_UPDATE = "can_update"
    PENDING = "pending"
    COOLDOWN = "cooldown"
    NO_ENSEMBLE = "no_ensemble"


class AuditAction(str, enum.Enum):
    REVIEW_DELETED = "review_deleted"
    RATING_RECOMPUTED = "rating_recomputed"
