import enum

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text

from wcag_audit.features.auth.models.user import User  # noqa: F401
from wcag_audit.platform.db.base import BaseModel


class ScanStatus(enum.Enum):
    """Scan lifecycle: pending moves once to a terminal state."""
    pending = "pending"
    completed = "completed"
    failed = "failed"


TERMINAL_STATUSES = {ScanStatus.completed, ScanStatus.failed}


class Scan(BaseModel):

    __tablename__ = "scans"

    # Anonymous scans have no owner
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    url = Column(Text, nullable=False, index=True)

    status = Column(Enum(ScanStatus), default=ScanStatus.pending, nullable=False, index=True)

    audit_backend = Column(String(32), nullable=True)

    # Both set on completion, both null otherwise
    score = Column(Integer, nullable=True)
    violations = Column(JSON, nullable=True)

    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_scans_url_created", "url", "created_at"),
        Index("idx_scans_user_created", "user_id", "created_at"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<Scan(id={self.id}, url={self.url}, status={self.status})>"
