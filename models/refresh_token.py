"""
RefreshToken model: one row per issued refresh token so tokens can be rotated
and revoked.
Fields:
- user_id (String(36)) - FK to accounts.id
- token (signed token string, unique)
- expires_at
- is_active (False once rotated, logged out or pruned)
- created_at
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from models.base_model import Base, BaseModel


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_user_active", "user_id", "is_active"),
    )

    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    token = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    account = relationship("Account", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} active={self.is_active}>"
