"""
Tests for the sectioned / standalone layout rules.
"""

import pytest

from testcraft.editor.drafts import QuestionDraft, SectionDraft, TestDraft
from testcraft.editor.structure import StructureCoordinator, TestStructure, detect_structure
from testcraft.errors import StructuralConflict


def _sectioned():
    return TestDraft(
        id="t1",
        sections=(
            SectionDraft(id="s1", questions=(QuestionDraft(id="q1", section_id="s1"),)),
            SectionDraft(id="s2", order=1),
        ),
    )


def _standalone():
    return TestDraft(id="t1", questions=(QuestionDraft(id="q1"), QuestionDraft(id="q2", order=1)))


class TestDetectStructure:

    def test_empty_test_is_undecided(self):
        assert detect_structure(TestDraft(id="t1")) == TestStructure.UNDECIDED

    def test_sections_win(self):
        assert detect_structure(_sectioned()) == TestStructure.SECTIONED

    def test_flat_questions(self):
        assert detect_structure(_standalone()) == TestStructure.STANDALONE


class TestEnsureAllows:

    def test_undecided_blocks_every_add(self):
        coordinator = StructureCoordinator()
        with pytest.raises(StructuralConflict):
            coordinator.ensure_allows(sectioned=True)
        with pytest.raises(StructuralConflict):
            coordinator.ensure_allows(sectioned=False)

    def test_sectioned_blocks_standalone(self):
        coordinator = StructureCoordinator(TestStructure.SECTIONED)
        coordinator.ensure_allows(sectioned=True)
        with pytest.raises(StructuralConflict):
            coordinator.ensure_allows(sectioned=False)

    def test_standalone_blocks_sections(self):
        coordinator = StructureCoordinator(TestStructure.STANDALONE)
        coordinator.ensure_allows(sectioned=False)
        with pytest.raises(StructuralConflict):
            coordinator.ensure_allows(sectioned=True)


class TestChoose:

    def test_first_choice(self):
        coordinator = StructureCoordinator()
        coordinator.choose(TestStructure.STANDALONE)
        assert coordinator.allows_standalone
        assert not coordinator.needs_choice

    def test_cannot_choose_twice(self):
        coordinator = StructureCoordinator(TestStructure.SECTIONED)
        with pytest.raises(StructuralConflict):
            coordinator.choose(TestStructure.STANDALONE)

    def test_undecided_is_not_a_choice(self):
        with pytest.raises(ValueError):
            StructureCoordinator().choose(TestStructure.UNDECIDED)


class TestRequestStructureChange:

    def test_confirmed_switch_to_standalone_drops_sections(self):
        coordinator = StructureCoordinator(TestStructure.SECTIONED)
        prompts = []

        def confirm(message):
            prompts.append(message)
            return True

        test = coordinator.request_structure_change(_sectioned(), TestStructure.STANDALONE, confirm)

        assert test.sections == ()
        assert coordinator.structure == TestStructure.STANDALONE
        assert len(prompts) == 1
        assert "2 section(s)" in prompts[0]

    def test_confirmed_switch_to_sections_drops_questions(self):
        coordinator = StructureCoordinator(TestStructure.STANDALONE)
        test = coordinator.request_structure_change(_standalone(), TestStructure.SECTIONED, lambda m: True)

        assert test.questions == ()
        assert coordinator.allows_sections

    def test_declined_switch_changes_nothing(self):
        original = _sectioned()
        coordinator = StructureCoordinator(TestStructure.SECTIONED)

        test = coordinator.request_structure_change(original, TestStructure.STANDALONE, lambda m: False)

        assert test is original
        assert coordinator.structure == TestStructure.SECTIONED

    def test_same_target_does_not_prompt(self):
        def confirm(message):
            raise AssertionError("should not be asked")

        original = _standalone()
        coordinator = StructureCoordinator(TestStructure.STANDALONE)
        assert coordinator.request_structure_change(original, TestStructure.STANDALONE, confirm) is original

    def test_undecided_test_just_chooses(self):
        def confirm(message):
            raise AssertionError("should not be asked")

        original = TestDraft(id="t1")
        coordinator = StructureCoordinator()
        assert coordinator.request_structure_change(original, TestStructure.SECTIONED, confirm) is original
        assert coordinator.allows_sections

    def test_cannot_return_to_undecided(self):
        coordinator = StructureCoordinator(TestStructure.SECTIONED)
        with pytest.raises(ValueError):
            coordinator.request_structure_change(_sectioned(), TestStructure.UNDECIDED, lambda m: True)
