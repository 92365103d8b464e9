"""
RefreshToken model: one row per issued refresh token so it can be revoked and
rotated. The row id is the `tokenId` claim of the signed token.
Fields:
- id (primary key, generated before signing)
- user_id (String(36)) - FK to users.id
- token (the signed refresh token)
- expires_at (authoritative expiry, checked on every use)
- created_at
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base_model import Base, _uuid_str


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        # SQLite hands back naive datetimes; they are stored as UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at < now

    def __repr__(self):
        return f"<RefreshToken id={self.id} user={self.user_id}>"
