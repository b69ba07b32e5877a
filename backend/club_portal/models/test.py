"""
Test and Question models - the quiz attached to a session.

A session has at most one test (unique session_id). Questions are ordered by
`position`; answers submitted by students are matched to questions by that
order.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey, String, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from club_portal.database import Base


class Test(Base):
    """SQLAlchemy model for the tests table."""
    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique test identifier")
    session_id = Column(String(32), ForeignKey("sessions.id", ondelete="CASCADE"),
                        nullable=False, unique=True,
                        doc="Owning session (one test per session)")
    title = Column(Text, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    session = relationship("ClubSession", back_populates="test")
    questions = relationship("Question", back_populates="test",
                             order_by="Question.position",
                             cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Test(id={self.id}, session={self.session_id}, title='{self.title}')>"


class Question(Base):
    """SQLAlchemy model for the questions table."""
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    test_id = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0,
                      doc="Zero-based order within the test")
    question = Column(Text, nullable=False, doc="Prompt text")
    options = Column(JSON, nullable=False, default=list,
                     doc="Ordered list of option strings")
    correct_answer = Column(Integer, nullable=False,
                            doc="Index into options")

    test = relationship("Test", back_populates="questions")

    __table_args__ = (
        UniqueConstraint("test_id", "position", name="uq_questions_test_position"),
    )

    def __repr__(self):
        return f"<Question(id={self.id}, test={self.test_id}, position={self.position})>"
