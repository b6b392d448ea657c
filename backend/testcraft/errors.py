"""
Error taxonomy shared by the HTTP layer and the editing core.

- Validation errors (question answers, settings ranges) are user-correctable
  and block a save before any network call.
- StructuralConflict guards the sectioned-XOR-standalone layout.
- PersistenceFailure / NotFoundOrUnauthorized come from the remote
  collaborator and are recovered at the save/fetch boundary.
"""


class TestcraftError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class QuestionValidationError(TestcraftError):
    """A question's answer data is inconsistent with its type."""

    code = "INVALID_QUESTION"
    default_message = "Question is invalid"

    def __init__(self, question_id: str, message: str = ""):
        super().__init__(message or self.default_message)
        self.question_id = question_id


class NoCorrectAnswer(QuestionValidationError):
    code = "NO_CORRECT_ANSWER"
    default_message = "Mark at least one option as correct"


class MultipleCorrectAnswers(QuestionValidationError):
    code = "MULTIPLE_CORRECT_ANSWERS"
    default_message = "Only one option can be marked as correct"


class MissingAnswer(QuestionValidationError):
    code = "MISSING_ANSWER"
    default_message = "A correct answer is required"


class SettingsValidationError(TestcraftError):
    """A test setting is missing or outside its allowed range."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class StructuralConflict(TestcraftError):
    """An edit would mix sections and standalone questions in one test."""


class DraftNotFound(TestcraftError, KeyError):
    """No section, question or option with the given id in the draft."""

    def __str__(self):
        return self.message


class PersistenceFailure(TestcraftError):
    """Network or server error while fetching or saving a test."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundOrUnauthorized(PersistenceFailure):
    """The target test does not exist or is not owned by the caller."""
