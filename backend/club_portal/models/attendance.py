"""
Attendance model - one status per (student, session).

The unique constraint is the authoritative guard against double check-in;
the check-in engine maps its violation to "already marked".
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, ForeignKey, String, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from club_portal.constants import AttendanceStatus
from club_portal.database import Base


class Attendance(Base):
    """SQLAlchemy model for the attendance table."""
    __tablename__ = "attendance"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(String(32), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    status = Column(Text, nullable=False, default=AttendanceStatus.PRESENT.value,
                    doc="present | absent | not-attempted")
    marked_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    student = relationship("Student", back_populates="attendance")
    session = relationship("ClubSession", back_populates="attendance")

    __table_args__ = (
        UniqueConstraint("student_id", "session_id", name="uq_attendance_student_session"),
        Index("ix_attendance_session_id", "session_id"),
    )

    def __repr__(self):
        return f"<Attendance(student={self.student_id}, session={self.session_id}, status='{self.status}')>"
