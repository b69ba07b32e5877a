from club_portal.models.student import Student
from club_portal.models.session import ClubSession
from club_portal.models.test import Test, Question
from club_portal.models.attendance import Attendance
from club_portal.models.test_score import TestScore

__all__ = ["Student", "ClubSession", "Test", "Question", "Attendance", "TestScore"]
