"""
RefreshToken model: one row per issued refresh token (one per login).
Fields:
- token (unique, 64 hex chars) - the opaque credential itself
- user_id (String(36)) - FK to users.id
- created_at, expires_at
- revoked_at (nullable) - set once by RefreshTokenStore.revoke(), never cleared

Rows are never deleted; expiry is evaluated at read time with is_live().
"""
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, as_utc


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    @property
    def revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return not now < as_utc(self.expires_at)

    def is_live(self, now: datetime) -> bool:
        """Usable iff never revoked and `now` is before expires_at."""
        return not self.revoked and not self.is_expired(now)

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id}>"
