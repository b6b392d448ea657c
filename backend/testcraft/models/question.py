"""
Question model - a single question of a test.

`section_id` is NULL for standalone questions. Choice questions
(MCQ_SINGLE, MCQ_MULTIPLE, TRUE_FALSE) store their choices in `options`;
TRUE_FALSE, SHORT_ANSWER and NUMERIC store the expected answer in
`correct_answer`. Title, description and explanation hold rich text.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from testcraft.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Question(Base):
    """SQLAlchemy model for the questions table."""
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique question identifier")
    test_id = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False,
                     doc="Owning test")
    section_id = Column(String(36), ForeignKey("sections.id", ondelete="CASCADE"), nullable=True,
                        doc="Owning section, NULL for standalone questions")
    type = Column(String(16), nullable=False, default="MCQ_SINGLE",
                  doc="MCQ_SINGLE | MCQ_MULTIPLE | TRUE_FALSE | SHORT_ANSWER | NUMERIC")
    title = Column(Text, nullable=False, default="",
                   doc="Question prompt (rich text)")
    description = Column(Text, nullable=True,
                         doc="Additional context (rich text)")
    explanation = Column(Text, nullable=True,
                         doc="Explanation shown after grading (rich text)")
    image_url = Column(Text, nullable=True,
                       doc="Optional illustration")
    points = Column(Float, nullable=False, default=1,
                    doc="Points awarded for a correct answer")
    negative_points = Column(Float, nullable=False, default=0,
                             doc="Points deducted for a wrong answer")
    order = Column(Integer, nullable=False, default=0,
                   doc="Position among sibling questions, 0-based")
    correct_answer = Column(Text, nullable=True,
                            doc="Expected answer for TRUE_FALSE / SHORT_ANSWER / NUMERIC")
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    test = relationship("Test", back_populates="questions")
    section = relationship("Section", back_populates="questions")
    options = relationship("Option", back_populates="question", order_by="Option.order",
                           cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_questions_test_id", "test_id"),
        Index("ix_questions_section_id", "section_id"),
    )

    def __repr__(self):
        return f"<Question(id={self.id}, type='{self.type}', order={self.order})>"
