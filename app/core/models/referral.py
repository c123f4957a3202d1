"""
Referral codes and the referrals they produce.
A code belongs to exactly one user and is never rewritten once stored.
"""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Uuid

from app.core.models._types import utcnow
from app.db.session import Base


class ReferralCode(Base):
    __tablename__ = "referral_codes"

    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    code = Column(String(20), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Referral(Base):
    """
    pending -> registered -> converted -> credited (expired is terminal).
    Status only moves forward; every transition is a guarded update on the current status.
    """

    __tablename__ = "referrals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    referrer_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    referred_email = Column(String(255), nullable=False)
    referred_student_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    credit_amount_cad = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    registered_at = Column(DateTime(timezone=True), nullable=True)
    converted_at = Column(DateTime(timezone=True), nullable=True)
    credited_at = Column(DateTime(timezone=True), nullable=True)
