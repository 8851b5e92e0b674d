from enum import Enum


class LeaveStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ReviewDecision(str, Enum):
    approved = "approved"
    rejected = "rejected"


class UserRole(str, Enum):
    ADMIN = "admin"
    CLASS_TEACHER = "class_teacher"
    TEACHER = "teacher"


class LeaveAuditAction(str, Enum):
    CREATED = "CREATED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REVOKED = "REVOKED"
    UPDATED = "UPDATED"
    RESTATUSED = "RESTATUSED"
    DELETED = "DELETED"
