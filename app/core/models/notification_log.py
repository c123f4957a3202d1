import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid

from app.core.models._types import utcnow
from app.db.session import Base


class NotificationLog(Base):
    """One row per notification dispatched. A row is claimed before sending and removed again if the send fails."""

    __tablename__ = "notification_log"
    __table_args__ = (
        UniqueConstraint("recipient_id", "notification_type", "reference_id", name="uq_notification_once"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)
    # e.g. "<class_id>_<session_date>"
    reference_id = Column(String(100), nullable=False)
    sent_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
