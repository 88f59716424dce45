from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from wcag_audit.platform.db.base import BaseModel


class User(BaseModel):
    """Accounts are created on first magic-link request; there is no password."""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    magic_links = relationship("MagicLinkToken", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class MagicLinkToken(BaseModel):
    __tablename__ = "magic_link_tokens"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # sha256 of the emailed token; the raw token is never stored
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="magic_links")

    def __repr__(self):
        return f"<MagicLinkToken(user_id={self.user_id}, expires_at={self.expires_at})>"
