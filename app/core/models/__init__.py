from app.core.models.profile import Profile
from app.core.models.term import Term
from app.core.models.school_class import Enrollment, SchoolClass
from app.core.models.referral import Referral, ReferralCode
from app.core.models.report_card import ReportCard
from app.core.models.payroll import CoachCheckin, CoachProfile, PrivateSession
from app.core.models.notification_log import NotificationLog
from app.core.models.parent_student_link import ParentStudentLink

__all__ = [
    "CoachCheckin",
    "CoachProfile",
    "Enrollment",
    "NotificationLog",
    "ParentStudentLink",
    "PrivateSession",
    "Profile",
    "Referral",
    "ReferralCode",
    "ReportCard",
    "SchoolClass",
    "Term",
]
