"""Enumerations and fixed values shared across the portal."""

from enum import Enum


class SessionStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class SessionType(str, Enum):
    ASSESSMENT = "Assessment"
    TEST = "Test"
    QUIZ = "Quiz"
    WORKSHOP = "Workshop"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    NOT_ATTEMPTED = "not-attempted"


class PrincipalKind(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


# Views a client should refetch after the matching operation
ATTENDANCE_VIEWS = ["attendance", "scoreboard"]
SCORE_VIEWS = ["scoreboard", "performance"]
STUDENT_VIEWS = ["profile", "attendance", "scoreboard", "performance"]

SESSION_ID_PREFIX = "DYS"
SESSION_CODE_LENGTH = 8
