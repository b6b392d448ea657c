"""Enumerations shared by the ORM models, the HTTP schemas and the editor."""

from enum import Enum


class TestStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"
    ARCHIVED = "ARCHIVED"


class QuestionOrder(str, Enum):
    SEQUENTIAL = "SEQUENTIAL"
    SHUFFLED = "SHUFFLED"


class ResultVisibility(str, Enum):
    INSTANT = "INSTANT"
    AFTER_TEST = "AFTER_TEST"
    HIDDEN = "HIDDEN"


class QuestionType(str, Enum):
    MCQ_SINGLE = "MCQ_SINGLE"
    MCQ_MULTIPLE = "MCQ_MULTIPLE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
    NUMERIC = "NUMERIC"
