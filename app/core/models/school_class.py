import uuid

from sqlalchemy import Column, ForeignKey, String, Time, UniqueConstraint, Uuid

from app.db.session import Base


class SchoolClass(Base):
    """Weekly class. Schedule times are wall-clock values in the class's own IANA zone."""

    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    class_type = Column(String(50), nullable=False)
    # mon | tue | ... | sun
    schedule_day = Column(String(3), nullable=False)
    schedule_start_time = Column(Time, nullable=False)
    schedule_end_time = Column(Time, nullable=False)
    timezone = Column(String(100), nullable=False)
    term_id = Column(Uuid, ForeignKey("terms.id", ondelete="RESTRICT"), nullable=False, index=True)
    coach_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("class_id", "student_id", name="uq_enrollment_class_student"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    # active | pending | withdrawn
    status = Column(String(20), nullable=False, default="active")
