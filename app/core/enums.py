from enum import Enum


class PortalRole(str, Enum):
    ADMIN = "admin"
    COACH = "coach"
    TA = "ta"
    STUDENT = "student"
    PARENT = "parent"


class ReferralStatus(str, Enum):
    pending = "pending"
    registered = "registered"
    converted = "converted"
    credited = "credited"
    expired = "expired"


class ReportCardStatus(str, Enum):
    draft = "draft"
    submitted = "submitted"
    approved = "approved"
    rejected = "rejected"


class ClassType(str, Enum):
    NOVICE_DEBATE = "novice_debate"
    INTERMEDIATE_DEBATE = "intermediate_debate"
    ADVANCED_DEBATE = "advanced_debate"
    PUBLIC_SPEAKING = "public_speaking"
    WSC = "wsc"


class ClassReminderPreference(str, Enum):
    BOTH = "both"
    ONE_DAY = "1day"
    ONE_HOUR = "1hour"
    NONE = "none"


class PrivateSessionStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"
