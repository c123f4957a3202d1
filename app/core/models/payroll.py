"""Rows consumed by payroll: coach pay settings, class check-ins and private sessions."""

import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Numeric, String, Time, Uuid

from app.core.models._types import utcnow
from app.db.session import Base


class CoachProfile(Base):
    __tablename__ = "coach_profiles"

    coach_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    tier = Column(String(50), nullable=True)
    is_ta = Column(Boolean, nullable=False, default=False)
    # Null means pay is not calculated for this coach
    hourly_rate = Column(Numeric(10, 2), nullable=True)


class CoachCheckin(Base):
    __tablename__ = "coach_checkins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    coach_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    # Calendar date in the class's zone
    session_date = Column(Date, nullable=False, index=True)
    checked_in_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class PrivateSession(Base):
    __tablename__ = "private_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    coach_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    requested_date = Column(Date, nullable=False, index=True)
    requested_start_time = Column(Time, nullable=False)
    requested_end_time = Column(Time, nullable=False)
    timezone = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    price_cad = Column(Numeric(10, 2), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
