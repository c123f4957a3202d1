import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from app.core.models._types import utcnow
from app.db.session import Base


class ReportCard(Base):
    """Uploaded report card PDF moving through draft -> submitted -> approved | rejected."""

    __tablename__ = "report_cards"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    term_id = Column(Uuid, ForeignKey("terms.id", ondelete="RESTRICT"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    coach_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default="draft")
    file_path = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    review_notes = Column(Text, nullable=True)
