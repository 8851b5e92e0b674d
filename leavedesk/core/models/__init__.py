from leavedesk.core.models.semester import Semester
from leavedesk.core.models.grade import Grade
from leavedesk.core.models.class_model import SchoolClass
from leavedesk.core.models.student import Student
from leavedesk.core.models.fee_config import FeeConfig
from leavedesk.core.models.system_config import SystemConfig
from leavedesk.core.models.leave_record import LeaveRecord
from leavedesk.core.models.leave_audit_log import LeaveAuditLog

__all__ = [
    "Semester",
    "Grade",
    "SchoolClass",
    "Student",
    "FeeConfig",
    "SystemConfig",
    "LeaveRecord",
    "LeaveAuditLog",
]
