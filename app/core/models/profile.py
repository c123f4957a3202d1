import uuid

from sqlalchemy import JSON, Column, DateTime, String, Uuid

from app.core.models._types import utcnow
from app.db.session import Base


class Profile(Base):
    """Portal account. Role, timezone and locale drive what a session may do and how times render."""

    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    display_name = Column(String(255), nullable=True)
    # admin | coach | ta | student | parent
    role = Column(String(20), nullable=False)
    timezone = Column(String(100), nullable=True)
    locale = Column(String(10), nullable=False, default="en")
    # Schema-less; read only through app.core.notification_preferences
    notification_preferences = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
