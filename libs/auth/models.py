import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated caller, decoded from the identity provider's JWT.

    Profile ownership comes from custom claims issued at sign-in: the coach
    profile the account owns (if any) and every ensemble profile it owns.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"
    coach_profile_id: Optional[uuid.UUID] = None
    ensemble_profile_ids: list[uuid.UUID] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "service_role")

    @property
    def normalized_email(self) -> Optional[str]:
        return self.email.strip().lower() if self.email else None
