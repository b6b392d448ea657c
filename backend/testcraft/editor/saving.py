"""
Save Coordinator - turns the draft tree into a bulk-replace request.

Pipeline for a save:
1. Validate settings and every question of the active layout; stop with
   field-level messages if anything fails (no request is sent)
2. Build the payload: persistable fields only, order renumbered, either
   nested `sections` or flat `questions`, never both populated
3. Send it to the service, which replaces the whole subtree atomically
4. Return the server's canonical copy, or a user-facing error with the
   local draft left untouched
"""

import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from testcraft.editor.answers import ensure_true_false_options, validate_question
from testcraft.editor.drafts import OptionDraft, QuestionDraft, SectionDraft, TestDraft
from testcraft.editor.structure import TestStructure
from testcraft.editor.tree import renumbered
from testcraft.errors import NotFoundOrUnauthorized, PersistenceFailure
from testcraft.logging_config import get_logger, log_with_context
from testcraft.services.settings import collect_settings_errors

logger = get_logger("save")

SETTINGS_FIELDS = (
    "title", "description", "duration", "start_time", "end_time", "status",
    "question_order", "attempt_limit", "retake_cooldown", "allow_back",
    "result_visibility", "pass_percentage",
)


class SaveResult(BaseModel):
    """Outcome of one save: the server copy, or what went wrong."""
    model_config = ConfigDict(frozen=True)

    test: Optional[TestDraft] = None
    error: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.test is not None


def _option_payload(option: OptionDraft) -> Dict[str, Any]:
    return option.model_dump(mode="json", include={"text", "image_url", "is_correct", "order"})


def _question_payload(question: QuestionDraft) -> Dict[str, Any]:
    question = ensure_true_false_options(question)
    payload = question.model_dump(mode="json", exclude={"id", "section_id", "options"})
    payload["options"] = [_option_payload(o) for o in question.options]
    return payload


def _section_payload(section: SectionDraft) -> Dict[str, Any]:
    payload = section.model_dump(mode="json", exclude={"id", "questions"})
    payload["questions"] = [_question_payload(q) for q in section.questions]
    return payload


def active_questions(test: TestDraft, structure: TestStructure) -> List[QuestionDraft]:
    if structure == TestStructure.SECTIONED:
        return [q for s in test.sections for q in s.questions]
    if structure == TestStructure.STANDALONE:
        return list(test.questions)
    return []


def build_save_payload(test: TestDraft, structure: TestStructure) -> Dict[str, Any]:
    """
    Serialise `test` for PUT /api/tests/{id}.

    Client-side ids and the question -> section back-reference are dropped;
    the server assigns fresh ids when it recreates the subtree.
    """
    test = renumbered(test)
    payload = test.model_dump(mode="json", include=set(SETTINGS_FIELDS))
    payload["sections"] = []
    payload["questions"] = []
    if structure == TestStructure.SECTIONED:
        payload["sections"] = [_section_payload(s) for s in test.sections]
    elif structure == TestStructure.STANDALONE:
        payload["questions"] = [_question_payload(q) for q in test.questions]
    return payload


def collect_validation_errors(test: TestDraft, structure: TestStructure) -> Dict[str, str]:
    """
    Field-level problems that block a save.

    Keys are settings field names or question ids.
    """
    errors = collect_settings_errors(test.model_dump(include=set(SETTINGS_FIELDS)))
    for question in active_questions(test, structure):
        problem = validate_question(question)
        if problem is not None:
            errors[question.id] = problem.message
    return errors


class SaveCoordinator:
    """
    Sends draft trees to the test service.

    Never raises for expected failures: validation problems, missing or
    foreign tests and transport/server errors all come back as a failed
    SaveResult so the editing session stays usable for a retry.
    """

    def __init__(self, client):
        self.client = client

    async def save(self, test: TestDraft, structure: TestStructure) -> SaveResult:
        start_time = time.time()
        context = {"test_id": test.id}

        field_errors = collect_validation_errors(test, structure)
        if field_errors:
            log_with_context(logger, "INFO", "Save blocked by {} validation error(s)".format(len(field_errors)),
                             context=context, extra_data={"fields": sorted(field_errors)})
            return SaveResult(error="Fix the highlighted fields before saving", field_errors=field_errors)

        payload = build_save_payload(test, structure)
        log_with_context(logger, "INFO", "Saving test",
                         context=context,
                         extra_data={"structure": structure.value,
                                     "sections": len(payload["sections"]),
                                     "questions": len(payload["questions"])})
        try:
            saved = await self.client.update_test(test.id, payload)
        except NotFoundOrUnauthorized as e:
            log_with_context(logger, "WARNING", "Save rejected: {}".format(e.message),
                             context=context, extra_data={"status_code": e.status_code})
            return SaveResult(error="This test no longer exists or you do not have access to it")
        except PersistenceFailure as e:
            log_with_context(logger, "ERROR", "Save failed: {}".format(e.message),
                             context=context, extra_data={"status_code": e.status_code})
            return SaveResult(error="Failed to save test: {}".format(e.message))

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "INFO", "Test saved",
                         context=context, extra_data={"duration_ms": round(duration_ms, 2)})
        return SaveResult(test=saved)
