"""
Student model - a registered club member.

Students log in with email + PRN number, so both are unique. Attendance and
test score rows hang off the student id.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Date, DateTime, Boolean, String, Index
from sqlalchemy.orm import relationship
from club_portal.database import Base


class Student(Base):
    """SQLAlchemy model for the students table."""
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique student identifier")
    first_name = Column(Text, nullable=False)
    middle_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True,
                   doc="Login email, compared case-insensitively")
    roll_number = Column(Text, nullable=False)
    prn_number = Column(Text, nullable=False, unique=True,
                        doc="University PRN, second login factor")
    date_of_birth = Column(Date, nullable=True)
    branch = Column(Text, nullable=True)
    division = Column(Text, nullable=True)
    gender = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    sgpa_sem1 = Column(Text, nullable=True)
    sgpa_sem2 = Column(Text, nullable=True)
    profile_photo = Column(Text, nullable=True,
                           doc="URL or storage key of the profile picture")
    registration_date = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    is_paid = Column(Boolean, nullable=False, default=False,
                     doc="Membership fee received")
    mentor = Column(Text, nullable=True,
                    doc="One of the configured mentor names")

    attendance = relationship("Attendance", back_populates="student",
                              cascade="all, delete-orphan", passive_deletes=True)
    scores = relationship("TestScore", back_populates="student",
                          cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_students_mentor", "mentor"),
    )

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(p for p in parts if p)

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.full_name}', email='{self.email}')>"
