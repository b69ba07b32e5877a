"""
Session model - a scheduled club event ("DYS session").

Sessions carry the plaintext code students type to self-check-in and, for
quiz sessions, at most one Test.
"""

from sqlalchemy import Column, Text, Date, String
from sqlalchemy.orm import relationship
from club_portal.constants import SessionStatus, SessionType
from club_portal.database import Base


class ClubSession(Base):
    """SQLAlchemy model for the sessions table."""
    __tablename__ = "sessions"

    id = Column(String(32), primary_key=True,
                doc="Human readable id such as DYS1")
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    time = Column(Text, nullable=False, doc="Start time as entered, e.g. 10:00")
    venue = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default=SessionStatus.UPCOMING.value,
                    doc="upcoming | active | completed")
    type = Column(Text, nullable=False, default=SessionType.ASSESSMENT.value,
                  doc="Assessment | Test | Quiz | Workshop")
    duration = Column(Text, nullable=True)
    test_link = Column(Text, nullable=True, doc="Optional external test URL")
    session_code = Column(Text, nullable=True,
                          doc="Check-in code, compared trimmed and case-insensitively")

    test = relationship("Test", back_populates="session", uselist=False,
                        cascade="all, delete-orphan", passive_deletes=True)
    attendance = relationship("Attendance", back_populates="session",
                              cascade="all, delete-orphan", passive_deletes=True)
    scores = relationship("TestScore", back_populates="session",
                          cascade="all, delete-orphan", passive_deletes=True)

    @property
    def has_code(self) -> bool:
        return bool(self.session_code and self.session_code.strip())

    def __repr__(self):
        return f"<ClubSession(id={self.id}, name='{self.name}', status='{self.status}')>"
