import uuid

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Uuid

from app.core.models._types import utcnow
from app.db.session import Base


class ParentStudentLink(Base):
    """A parent account attached to a student; parents receive the student's class notices."""

    __tablename__ = "parent_student_links"
    __table_args__ = (UniqueConstraint("parent_id", "student_id", name="uq_parent_student"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    parent_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
