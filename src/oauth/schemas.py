from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import Field

from src.core.redis.coder.registry import RecordRegistry
from src.core.schemas import Base
from src.core.utils.datetime_utils import ensure_aware_utc, get_utc_now


class Client(Base):
    """OAuth client as registered with the authorization server."""

    id: str
    secret: str = ""
    redirect_uri: str = ""
    user_data: Any = None

    def get_id(self) -> str:
        return self.id


class _ExpiringRecord(Base):
    expires_in: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=get_utc_now)

    def expire_at(self) -> datetime:
        return ensure_aware_utc(self.created_at) + timedelta(seconds=self.expires_in)

    def is_expired(self, now: datetime | None = None) -> bool:
        """A record with expires_in == 0 never expires."""
        if self.expires_in == 0:
            return False
        return self.expire_at() < ensure_aware_utc(now or get_utc_now())


class AuthorizationRecord(_ExpiringRecord):
    client: Optional[Client] = None
    code: str
    scope: str = ""
    redirect_uri: str = ""
    state: str = ""
    user_data: Any = None
    code_challenge: str = ""
    code_challenge_method: str = ""


class AccessRecord(_ExpiringRecord):
    client: Optional[Client] = None
    authorize_data: Optional[AuthorizationRecord] = None
    # Previous access record when this one was issued through a refresh grant.
    access_data: Optional["AccessRecord"] = None
    access_token: str
    refresh_token: str = ""
    scope: str = ""
    redirect_uri: str = ""
    user_data: Any = None


AccessRecord.model_rebuild()


def oauth_record_registry(
    client_variants: dict[str, type[Client]] | None = None,
) -> RecordRegistry:
    """
    Registry of every record shape stored by the OAuth storage.

    Custom client classes have to be listed in ``client_variants`` to be
    stored; they are decoded back as the same class.
    """
    return RecordRegistry(
        {
            "client": Client,
            "authorize": AuthorizationRecord,
            "access": AccessRecord,
            **(client_variants or {}),
        }
    )
