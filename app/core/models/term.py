import uuid

from sqlalchemy import Column, Date, Integer, String, Uuid

from app.db.session import Base


class Term(Base):
    """Closed date interval [start_date, end_date]."""

    __tablename__ = "terms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    # Overrides the week count derived from the dates (e.g. a term with a break week)
    total_weeks = Column(Integer, nullable=True)
