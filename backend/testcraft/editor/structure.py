"""
Structure Coordinator - decides whether a test is sectioned or standalone.

A test keeps its questions either entirely under sections or entirely as a
flat list. An empty test starts UNDECIDED and the author picks a layout
once; switching later is destructive and needs explicit confirmation.
"""

from enum import Enum
from typing import Callable

from testcraft.editor.drafts import TestDraft
from testcraft.errors import StructuralConflict
from testcraft.logging_config import get_logger, log_with_context

logger = get_logger("editor")

Confirm = Callable[[str], bool]


class TestStructure(str, Enum):
    UNDECIDED = "UNDECIDED"
    SECTIONED = "SECTIONED"
    STANDALONE = "STANDALONE"


def detect_structure(test: TestDraft) -> TestStructure:
    """Initial layout of a fetched test."""
    if test.sections:
        return TestStructure.SECTIONED
    if test.questions:
        return TestStructure.STANDALONE
    return TestStructure.UNDECIDED


def prune_for(test: TestDraft, target: TestStructure) -> TestDraft:
    """Drop the content that does not belong to `target`."""
    if target == TestStructure.STANDALONE:
        return test.replace(sections=())
    if target == TestStructure.SECTIONED:
        return test.replace(questions=())
    return test


class StructureCoordinator:
    """Tracks the active layout and gates edits that would break it."""

    def __init__(self, structure: TestStructure = TestStructure.UNDECIDED):
        self.structure = TestStructure(structure)

    @classmethod
    def from_test(cls, test: TestDraft) -> "StructureCoordinator":
        return cls(detect_structure(test))

    @property
    def needs_choice(self) -> bool:
        return self.structure == TestStructure.UNDECIDED

    @property
    def allows_sections(self) -> bool:
        return self.structure == TestStructure.SECTIONED

    @property
    def allows_standalone(self) -> bool:
        return self.structure == TestStructure.STANDALONE

    def ensure_allows(self, sectioned: bool):
        """Raise StructuralConflict unless the active layout accepts the add."""
        if self.needs_choice:
            raise StructuralConflict("Choose a test structure before adding content")
        if sectioned and not self.allows_sections:
            raise StructuralConflict("This test uses standalone questions; sections are not allowed")
        if not sectioned and not self.allows_standalone:
            raise StructuralConflict("This test uses sections; add questions inside a section")

    def choose(self, target: TestStructure):
        """One-time choice for an empty test; nothing is discarded."""
        target = TestStructure(target)
        if target == TestStructure.UNDECIDED:
            raise ValueError("Choose SECTIONED or STANDALONE")
        if not self.needs_choice:
            raise StructuralConflict(
                "Structure already set to {}; use request_structure_change".format(self.structure.value)
            )
        self.structure = target

    def request_structure_change(self, test: TestDraft, target: TestStructure, confirm: Confirm) -> TestDraft:
        """
        Switch the layout of `test` to `target`.

        Switching to STANDALONE deletes every section with its questions;
        switching to SECTIONED deletes every standalone question. The prune
        happens only if `confirm` returns True; otherwise the tree is
        returned unchanged. There is no undo.
        """
        target = TestStructure(target)
        if target == TestStructure.UNDECIDED:
            raise ValueError("Cannot switch back to UNDECIDED")
        if target == self.structure:
            return test
        if self.needs_choice:
            self.choose(target)
            return test

        if target == TestStructure.STANDALONE:
            discarded = len(test.sections)
            message = "Switch to standalone questions? All {} section(s) and their questions will be deleted.".format(discarded)
        else:
            discarded = len(test.questions)
            message = "Switch to sections? All {} standalone question(s) will be deleted.".format(discarded)

        if not confirm(message):
            log_with_context(logger, "INFO", "Structure change declined",
                             context={"test_id": test.id},
                             extra_data={"from": self.structure.value, "to": target.value})
            return test

        pruned = prune_for(test, target)
        log_with_context(logger, "INFO",
                         "Structure changed from {} to {}".format(self.structure.value, target.value),
                         context={"test_id": test.id},
                         extra_data={"discarded": discarded})
        self.structure = target
        return pruned
