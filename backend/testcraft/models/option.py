"""Option model - one choice of a choice-type question."""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from testcraft.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Option(Base):
    __tablename__ = "options"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique option identifier")
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False,
                         doc="Owning question")
    text = Column(Text, nullable=False, default="",
                  doc="Option text (rich text)")
    image_url = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0,
                   doc="Position among the question's options, 0-based")
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    question = relationship("Question", back_populates="options")

    __table_args__ = (
        Index("ix_options_question_id", "question_id"),
    )

    def __repr__(self):
        return f"<Option(id={self.id}, question={self.question_id}, correct={self.is_correct})>"
