"""
Section model - a titled group of questions inside a test.

Sections carry default point values that new questions in the section
start from, plus an optional per-section duration.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from testcraft.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Section(Base):
    """
    SQLAlchemy model for the sections table.

    Deleting a section deletes its questions (and through them, their options).
    """
    __tablename__ = "sections"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique section identifier")
    test_id = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False,
                     doc="Owning test")
    title = Column(Text, nullable=False, default="",
                   doc="Section title")
    description = Column(Text, nullable=True,
                         doc="Section description")
    duration = Column(Integer, nullable=True,
                      doc="Optional time budget for the section in minutes")
    order = Column(Integer, nullable=False, default=0,
                   doc="Position among the test's sections, 0-based")
    points = Column(Float, nullable=False, default=1,
                    doc="Default points awarded per question")
    negative_points = Column(Float, nullable=False, default=0,
                             doc="Default points deducted per wrong answer")
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    test = relationship("Test", back_populates="sections")
    questions = relationship("Question", back_populates="section", order_by="Question.order",
                             cascade="all", passive_deletes=True)

    __table_args__ = (
        Index("ix_sections_test_id", "test_id"),
    )

    def __repr__(self):
        return f"<Section(id={self.id}, test={self.test_id}, order={self.order})>"
