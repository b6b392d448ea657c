"""
Document Tree Editor - structural edits over a test draft.

`TestEditor` holds the canonical `TestDraft`. Every operation builds a new
tree that shares all untouched nodes with the previous one and swaps it
in as a single assignment, so no caller ever sees a half-applied edit.

Deletions ask `confirm(message)` first and are skipped when it returns
False. Sibling order indices are not compacted on delete; `renumbered()`
does that when a save payload is built.
"""

from typing import Any, Callable, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from testcraft.editor import answers
from testcraft.editor.drafts import (
    OptionDraft, QuestionDraft, SectionDraft, TestDraft, coerce_field, new_id,
)
from testcraft.editor.structure import Confirm, StructureCoordinator, TestStructure
from testcraft.enums import QuestionType
from testcraft.errors import DraftNotFound
from testcraft.logging_config import get_logger, log_with_context

logger = get_logger("editor")


def _decline(message: str) -> bool:
    return False


class ExpansionState(BaseModel):
    """Which sections and questions are expanded in the editor UI."""
    model_config = ConfigDict(frozen=True)

    sections: FrozenSet[str] = frozenset()
    questions: FrozenSet[str] = frozenset()

    def toggle_section(self, section_id: str) -> "ExpansionState":
        return self.model_copy(update={"sections": self.sections ^ {section_id}})

    def toggle_question(self, question_id: str) -> "ExpansionState":
        return self.model_copy(update={"questions": self.questions ^ {question_id}})

    def expand(self, section_id: str = None, question_id: str = None) -> "ExpansionState":
        sections = self.sections | {section_id} if section_id else self.sections
        questions = self.questions | {question_id} if question_id else self.questions
        return self.model_copy(update={"sections": sections, "questions": questions})

    def prune(self, test: TestDraft) -> "ExpansionState":
        """Forget ids that are no longer in the tree."""
        section_ids = {s.id for s in test.sections}
        question_ids = {q.id for q in test.all_questions()}
        return self.model_copy(update={
            "sections": self.sections & section_ids,
            "questions": self.questions & question_ids,
        })


def _next_order(siblings) -> int:
    return max((s.order for s in siblings), default=-1) + 1


def _swap(items: Tuple, item_id: str, new_item) -> Tuple:
    return tuple(new_item if i.id == item_id else i for i in items)


def _without(items: Tuple, item_id: str) -> Tuple:
    return tuple(i for i in items if i.id != item_id)


def renumbered(test: TestDraft) -> TestDraft:
    """Copy of `test` with order indices 0..n-1 in every sibling group."""

    def number(items):
        return tuple(item if item.order == i else item.replace(order=i) for i, item in enumerate(items))

    def question(q: QuestionDraft) -> QuestionDraft:
        return q.replace(options=number(q.options))

    sections = number(
        s.replace(questions=number(tuple(question(q) for q in s.questions)))
        for s in test.sections
    )
    questions = number(tuple(question(q) for q in test.questions))
    return test.replace(sections=sections, questions=questions)


class TestEditor:
    """
    Mutable holder of an immutable test tree.

    Args:
        test: Draft to edit (usually fetched from the server)
        structure: Layout coordinator; detected from `test` when omitted
        confirm: Callback asked before destructive edits; declines by default
        id_factory: Produces client-side ids, `new_id` by default
    """

    TEST_PROTECTED = ("id", "sections", "questions", "created_at", "updated_at")
    SECTION_PROTECTED = ("id", "questions")
    QUESTION_PROTECTED = ("id", "section_id", "options")
    OPTION_PROTECTED = ("id",)

    def __init__(self, test: TestDraft, structure: Optional[StructureCoordinator] = None,
                 confirm: Optional[Confirm] = None, id_factory: Callable[[str], str] = new_id):
        self.test = test
        self.structure = structure or StructureCoordinator.from_test(test)
        self.confirm = confirm or _decline
        self.new_id = id_factory
        self.expanded = ExpansionState()
        if test.sections:
            self.expanded = self.expanded.expand(section_id=test.sections[0].id)

    # ── lookups ──────────────────────────────────────────────

    def _section(self, section_id: str) -> SectionDraft:
        section = self.test.section(section_id)
        if section is None:
            raise DraftNotFound("Section {} not found".format(section_id))
        return section

    def _owning_section(self, question_id: str) -> Optional[str]:
        for section in self.test.sections:
            if section.question(question_id) is not None:
                return section.id
        return None

    def _question(self, question_id: str, section_id: Optional[str] = None) -> QuestionDraft:
        """
        Look up a question; the returned copy's `section_id` always names
        the section that actually holds it (None for standalone questions).
        """
        if section_id:
            question = self._section(section_id).question(question_id)
        else:
            question = next((q for q in self.test.all_questions() if q.id == question_id), None)
        if question is None:
            raise DraftNotFound("Question {} not found".format(question_id))
        owner = section_id or self._owning_section(question_id)
        if question.section_id != owner:
            question = question.replace(section_id=owner)
        return question

    def _put_question(self, question: QuestionDraft):
        """Swap `question` into the tree at the position of the old copy."""
        if question.section_id:
            section = self._section(question.section_id)
            section = section.replace(questions=_swap(section.questions, question.id, question))
            self.test = self.test.replace(sections=_swap(self.test.sections, section.id, section))
        else:
            self.test = self.test.replace(questions=_swap(self.test.questions, question.id, question))

    # ── test ─────────────────────────────────────────────────

    def update_test_field(self, field: str, value: Any):
        value = coerce_field(TestDraft, field, value, self.TEST_PROTECTED)
        self.test = self.test.replace(**{field: value})

    # ── structure ────────────────────────────────────────────

    def choose_structure(self, target: TestStructure):
        self.structure.choose(target)

    def change_structure(self, target: TestStructure) -> bool:
        """Switch layouts after confirmation; returns True if the tree changed."""
        before = self.test
        self.test = self.structure.request_structure_change(self.test, target, self.confirm)
        self.expanded = self.expanded.prune(self.test)
        return self.test is not before

    # ── sections ─────────────────────────────────────────────

    def add_section(self) -> str:
        self.structure.ensure_allows(sectioned=True)
        section = SectionDraft(
            id=self.new_id("section"),
            title="New Section",
            order=_next_order(self.test.sections),
        )
        self.test = self.test.replace(sections=self.test.sections + (section,))
        self.expanded = self.expanded.expand(section_id=section.id)
        log_with_context(logger, "DEBUG", "Section added",
                         context={"test_id": self.test.id, "section_id": section.id})
        return section.id

    def update_section(self, section_id: str, field: str, value: Any):
        section = self._section(section_id)
        value = coerce_field(SectionDraft, field, value, self.SECTION_PROTECTED)
        section = section.replace(**{field: value})
        self.test = self.test.replace(sections=_swap(self.test.sections, section_id, section))

    def delete_section(self, section_id: str) -> bool:
        section = self._section(section_id)
        if not self.confirm("Are you sure you want to delete this section and all its questions?"):
            return False
        self.test = self.test.replace(sections=_without(self.test.sections, section_id))
        self.expanded = self.expanded.prune(self.test)
        log_with_context(logger, "INFO", "Section deleted",
                         context={"test_id": self.test.id, "section_id": section_id},
                         extra_data={"questions": len(section.questions)})
        return True

    # ── questions ────────────────────────────────────────────

    def add_question(self, section_id: Optional[str] = None) -> str:
        self.structure.ensure_allows(sectioned=bool(section_id))
        section = self._section(section_id) if section_id else None
        siblings = section.questions if section else self.test.questions

        question = QuestionDraft(
            id=self.new_id("question"),
            section_id=section_id,
            type=QuestionType.MCQ_SINGLE,
            points=section.points if section else 1,
            negative_points=section.negative_points if section else 0,
            order=_next_order(siblings),
            options=answers.blank_options(2, self.new_id),
        )
        if section:
            section = section.replace(questions=section.questions + (question,))
            self.test = self.test.replace(sections=_swap(self.test.sections, section_id, section))
        else:
            self.test = self.test.replace(questions=self.test.questions + (question,))
        self.expanded = self.expanded.expand(question_id=question.id)
        log_with_context(logger, "DEBUG", "Question added",
                         context={"test_id": self.test.id, "section_id": section_id, "question_id": question.id})
        return question.id

    def update_question(self, question_id: str, field: str, value: Any, section_id: Optional[str] = None):
        """
        Set one field of a question.

        Changing `type` resets options and the stored answer; setting
        `correct_answer` on a TRUE_FALSE question also updates its options.
        """
        question = self._question(question_id, section_id)
        value = coerce_field(QuestionDraft, field, value, self.QUESTION_PROTECTED)
        if field == "type":
            updated = answers.migrate_question_type(question, value, self.new_id)
            if updated is not question:
                log_with_context(logger, "DEBUG", "Question type changed",
                                 context={"test_id": self.test.id, "question_id": question_id},
                                 extra_data={"from": question.type.value, "to": updated.type.value})
        elif field == "correct_answer" and question.type == QuestionType.TRUE_FALSE:
            if value:
                updated = answers.set_true_false_answer(question, value, self.new_id)
            else:
                updated = answers.ensure_true_false_options(question.replace(correct_answer=None), self.new_id)
        else:
            updated = question.replace(**{field: value})
        self._put_question(updated)

    def set_true_false_answer(self, question_id: str, value: str, section_id: Optional[str] = None):
        question = self._question(question_id, section_id)
        self._put_question(answers.set_true_false_answer(question, value, self.new_id))

    def delete_question(self, question_id: str, section_id: Optional[str] = None) -> bool:
        question = self._question(question_id, section_id)
        if not self.confirm("Are you sure you want to delete this question?"):
            return False
        if question.section_id:
            section = self._section(question.section_id)
            section = section.replace(questions=_without(section.questions, question_id))
            self.test = self.test.replace(sections=_swap(self.test.sections, section.id, section))
        else:
            self.test = self.test.replace(questions=_without(self.test.questions, question_id))
        self.expanded = self.expanded.prune(self.test)
        log_with_context(logger, "INFO", "Question deleted",
                         context={"test_id": self.test.id, "question_id": question_id})
        return True

    # ── options ──────────────────────────────────────────────

    def add_option(self, question_id: str, section_id: Optional[str] = None) -> str:
        question = self._question(question_id, section_id)
        shape = answers.shape_of(question.type)
        if not shape.uses_options:
            raise ValueError("{} questions have no options".format(question.type.value))
        if question.type == QuestionType.TRUE_FALSE:
            raise ValueError("TRUE_FALSE questions have a fixed True/False pair")

        option = OptionDraft(id=self.new_id("option"), order=_next_order(question.options))
        self._put_question(question.replace(options=question.options + (option,)))
        return option.id

    def update_option(self, question_id: str, option_id: str, field: str, value: Any,
                      section_id: Optional[str] = None):
        question = self._question(question_id, section_id)
        value = coerce_field(OptionDraft, field, value, self.OPTION_PROTECTED)
        if field == "is_correct":
            self._put_question(answers.set_option_correctness(question, option_id, value))
            return
        option = question.option(option_id)
        if option is None:
            raise DraftNotFound("Option {} not found in question {}".format(option_id, question_id))
        option = option.replace(**{field: value})
        self._put_question(question.replace(options=_swap(question.options, option_id, option)))

    def delete_option(self, question_id: str, option_id: str, section_id: Optional[str] = None) -> bool:
        question = self._question(question_id, section_id)
        if question.option(option_id) is None:
            raise DraftNotFound("Option {} not found in question {}".format(option_id, question_id))
        if not self.confirm("Are you sure you want to delete this option?"):
            return False
        self._put_question(question.replace(options=_without(question.options, option_id)))
        return True

    # ── state ────────────────────────────────────────────────

    def reset(self, test: TestDraft):
        """Replace the whole tree, e.g. with the server copy after a save."""
        self.test = test
        self.structure = StructureCoordinator(
            self.structure.structure if not test.sections and not test.questions
            else StructureCoordinator.from_test(test).structure
        )
        self.expanded = self.expanded.prune(test)
