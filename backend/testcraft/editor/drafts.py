"""
In-memory drafts of a test and everything it owns.

Drafts are frozen pydantic models linked through tuples, so an edit copies
only the path from the test down to the changed node and shares every
other node with the previous version of the tree.
"""

from datetime import datetime
from functools import lru_cache
from typing import Any, Optional, Tuple
import uuid

from pydantic import BaseModel, ConfigDict, TypeAdapter

from testcraft.enums import QuestionOrder, QuestionType, ResultVisibility, TestStatus


class Draft(BaseModel):
    model_config = ConfigDict(frozen=True)

    def replace(self, **changes):
        """Return a copy with `changes` applied; children are shared, not copied."""
        return self.model_copy(update=changes)


class OptionDraft(Draft):
    id: str
    text: str = ""
    image_url: Optional[str] = None
    is_correct: bool = False
    order: int = 0


class QuestionDraft(Draft):
    id: str
    # Back-reference for the editor only; never part of a save payload
    section_id: Optional[str] = None
    type: QuestionType = QuestionType.MCQ_SINGLE
    title: str = ""
    description: Optional[str] = None
    explanation: Optional[str] = None
    image_url: Optional[str] = None
    points: float = 1
    negative_points: float = 0
    order: int = 0
    correct_answer: Optional[str] = None
    options: Tuple[OptionDraft, ...] = ()

    def option(self, option_id: str) -> Optional[OptionDraft]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class SectionDraft(Draft):
    id: str
    title: str = ""
    description: Optional[str] = None
    duration: Optional[int] = None
    order: int = 0
    points: float = 1
    negative_points: float = 0
    questions: Tuple[QuestionDraft, ...] = ()

    def question(self, question_id: str) -> Optional[QuestionDraft]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class TestDraft(Draft):
    id: str
    title: str = ""
    description: Optional[str] = None
    duration: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: TestStatus = TestStatus.DRAFT
    question_order: QuestionOrder = QuestionOrder.SEQUENTIAL
    attempt_limit: Optional[int] = None
    retake_cooldown: Optional[int] = None
    allow_back: bool = True
    result_visibility: ResultVisibility = ResultVisibility.AFTER_TEST
    pass_percentage: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sections: Tuple[SectionDraft, ...] = ()
    questions: Tuple[QuestionDraft, ...] = ()

    def section(self, section_id: str) -> Optional[SectionDraft]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def all_questions(self):
        """Every question in the tree, sectioned ones first."""
        for section in self.sections:
            yield from section.questions
        yield from self.questions


@lru_cache(maxsize=None)
def _field_adapter(model: type, field: str) -> TypeAdapter:
    return TypeAdapter(model.model_fields[field].annotation)


def coerce_field(model: type, field: str, value: Any, protected=()) -> Any:
    """
    Validate a single field value against a draft model's annotation.

    Raises ValueError for unknown or protected fields and
    pydantic.ValidationError for values of the wrong shape.
    """
    if field not in model.model_fields or field in protected:
        raise ValueError("{} has no editable field '{}'".format(model.__name__, field))
    return _field_adapter(model, field).validate_python(value)


def new_id(kind: str) -> str:
    """Client-side identity for a node that has not been saved yet."""
    return "{}-{}".format(kind, uuid.uuid4().hex)
