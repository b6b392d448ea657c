"""
Test model - represents a test authored by a user.

A test owns either sections (each with its own questions) or standalone
questions. Configuration fields (duration, schedule, attempt limit, pass
percentage) are validated by `testcraft.services.settings` before they
reach this table.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from testcraft.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Test(Base):
    """
    SQLAlchemy model for the tests table.

    Status lifecycle: DRAFT -> PUBLISHED -> CLOSED -> ARCHIVED.
    `questions` holds every question of the test; `standalone_questions`
    narrows it to the ones without a section.
    """
    __tablename__ = "tests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique test identifier")
    creator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
                        doc="Owner of the test")
    title = Column(Text, nullable=False,
                   doc="Test title")
    description = Column(Text, nullable=True,
                         doc="Free-form description shown to candidates")
    duration = Column(Integer, nullable=False,
                      doc="Duration in minutes (1-480)")
    start_time = Column(DateTime, nullable=True,
                        doc="Start of the scheduling window (UTC)")
    end_time = Column(DateTime, nullable=True,
                      doc="End of the scheduling window (UTC), after start_time")
    status = Column(String(16), nullable=False, default="DRAFT",
                    doc="DRAFT | PUBLISHED | CLOSED | ARCHIVED")
    question_order = Column(String(16), nullable=False, default="SEQUENTIAL",
                            doc="SEQUENTIAL | SHUFFLED")
    attempt_limit = Column(Integer, nullable=True,
                           doc="Maximum attempts per candidate (1-10), NULL for unlimited")
    retake_cooldown = Column(Integer, nullable=True,
                             doc="Minutes a candidate waits between attempts")
    allow_back = Column(Boolean, nullable=False, default=True,
                        doc="Whether candidates may revisit earlier questions")
    result_visibility = Column(String(16), nullable=False, default="AFTER_TEST",
                               doc="INSTANT | AFTER_TEST | HIDDEN")
    pass_percentage = Column(Float, nullable=False,
                             doc="Percentage required to pass (0-100)")
    created_at = Column(DateTime, default=_utcnow,
                        doc="Timestamp when test was created")
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow,
                        doc="Timestamp of the last save")

    creator = relationship("User", back_populates="tests")
    sections = relationship("Section", back_populates="test", order_by="Section.order",
                            cascade="all, delete-orphan", passive_deletes=True)
    questions = relationship("Question", back_populates="test", order_by="Question.order",
                             cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_tests_creator_id", "creator_id"),
        Index("ix_tests_status", "status"),
    )

    @property
    def standalone_questions(self):
        """Questions that do not belong to any section."""
        return [q for q in self.questions if q.section_id is None]

    def __repr__(self):
        return f"<Test(id={self.id}, title='{self.title}', status='{self.status}')>"
