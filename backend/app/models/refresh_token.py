"""
Refresh tokens for back-office users.

Only the SHA256 hash of a token is stored. Each refresh rotates the token:
the presented one is revoked and a new one issued.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index

from app.db.base_class import Base


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    device_info = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)

    __table_args__ = (
        Index("ix_refresh_tokens_user_expires", "user_id", "expires_at"),
    )

    def is_valid(self, now: datetime | None = None) -> bool:
        now = now or datetime.utcnow()
        return self.revoked_at is None and self.expires_at > now

    def revoke(self) -> None:
        self.revoked_at = datetime.utcnow()
