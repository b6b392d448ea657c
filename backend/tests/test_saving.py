"""
Tests for save payload building and the save coordinator.
"""

import asyncio
from datetime import datetime

from testcraft.editor.drafts import OptionDraft, QuestionDraft, SectionDraft, TestDraft
from testcraft.editor.saving import (
    SaveCoordinator, build_save_payload, collect_validation_errors,
)
from testcraft.editor.structure import TestStructure
from testcraft.enums import QuestionType
from testcraft.errors import NotFoundOrUnauthorized, PersistenceFailure


def _choice(question_id, section_id=None, order=0):
    return QuestionDraft(
        id=question_id,
        section_id=section_id,
        title="Question {}".format(question_id),
        order=order,
        options=(
            OptionDraft(id=question_id + "-a", text="A", is_correct=True, order=4),
            OptionDraft(id=question_id + "-b", text="B", order=7),
        ),
    )


def _test(**changes):
    test = TestDraft(
        id="t1",
        title="Physics",
        duration=90,
        pass_percentage=35,
        sections=(
            SectionDraft(id="s1", title="Mechanics", order=3, questions=(
                _choice("q1", "s1", order=2), _choice("q2", "s1", order=5),
            )),
        ),
    )
    return test.replace(**changes)


class FakeClient:
    """Records update_test calls and answers with a scripted outcome."""

    def __init__(self, outcome=None):
        self.calls = []
        self.outcome = outcome

    async def update_test(self, test_id, payload):
        self.calls.append((test_id, payload))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class TestBuildSavePayload:

    def test_sectioned_payload(self):
        payload = build_save_payload(_test(), TestStructure.SECTIONED)

        assert payload["questions"] == []
        assert len(payload["sections"]) == 1
        section = payload["sections"][0]
        assert section["order"] == 0
        assert "id" not in section
        assert [q["order"] for q in section["questions"]] == [0, 1]
        question = section["questions"][0]
        assert "id" not in question
        assert "section_id" not in question
        assert question["type"] == "MCQ_SINGLE"
        assert question["options"] == [
            {"text": "A", "image_url": None, "is_correct": True, "order": 0},
            {"text": "B", "image_url": None, "is_correct": False, "order": 1},
        ]

    def test_standalone_payload_drops_sections(self):
        test = _test(questions=(_choice("q9"),))
        payload = build_save_payload(test, TestStructure.STANDALONE)

        assert payload["sections"] == []
        assert len(payload["questions"]) == 1

    def test_settings_are_serialised(self):
        test = _test(start_time=datetime(2026, 1, 5, 9, 0), attempt_limit=2)
        payload = build_save_payload(test, TestStructure.SECTIONED)

        assert payload["title"] == "Physics"
        assert payload["duration"] == 90
        assert payload["status"] == "DRAFT"
        assert payload["result_visibility"] == "AFTER_TEST"
        assert payload["start_time"] == "2026-01-05T09:00:00"
        assert payload["attempt_limit"] == 2
        assert "created_at" not in payload
        assert "id" not in payload

    def test_true_false_pair_is_materialised(self):
        question = QuestionDraft(id="tf", type=QuestionType.TRUE_FALSE, correct_answer="true")
        payload = build_save_payload(_test(sections=(), questions=(question,)), TestStructure.STANDALONE)

        options = payload["questions"][0]["options"]
        assert [(o["text"], o["is_correct"]) for o in options] == [("True", True), ("False", False)]
        assert payload["questions"][0]["correct_answer"] == "true"

    def test_draft_is_not_modified(self):
        test = _test()
        build_save_payload(test, TestStructure.SECTIONED)
        assert test.sections[0].order == 3


class TestCollectValidationErrors:

    def test_valid_test(self):
        assert collect_validation_errors(_test(), TestStructure.SECTIONED) == {}

    def test_reports_settings_and_questions(self):
        bad = _choice("q1", "s1").replace(options=())
        test = _test(duration=0, sections=(SectionDraft(id="s1", questions=(bad,)),))

        errors = collect_validation_errors(test, TestStructure.SECTIONED)

        assert errors["duration"] == "duration must be 1-480 minutes"
        assert errors["q1"] == "Mark at least one option as correct"

    def test_inactive_layout_is_ignored(self):
        bad = QuestionDraft(id="loose", type=QuestionType.SHORT_ANSWER)
        test = _test(questions=(bad,))
        assert collect_validation_errors(test, TestStructure.SECTIONED) == {}


class TestSaveCoordinator:

    def test_validation_failure_sends_nothing(self):
        client = FakeClient()
        result = asyncio.run(SaveCoordinator(client).save(_test(title=""), TestStructure.SECTIONED))

        assert not result.ok
        assert result.error == "Fix the highlighted fields before saving"
        assert result.field_errors == {"title": "title is required"}
        assert client.calls == []

    def test_success_returns_server_copy(self):
        server_copy = _test(title="Physics (saved)")
        client = FakeClient(outcome=server_copy)

        result = asyncio.run(SaveCoordinator(client).save(_test(), TestStructure.SECTIONED))

        assert result.ok
        assert result.test is server_copy
        test_id, payload = client.calls[0]
        assert test_id == "t1"
        assert len(payload["sections"]) == 1

    def test_not_found(self):
        client = FakeClient(outcome=NotFoundOrUnauthorized("Test not found", 404))
        result = asyncio.run(SaveCoordinator(client).save(_test(), TestStructure.SECTIONED))

        assert not result.ok
        assert result.error == "This test no longer exists or you do not have access to it"

    def test_server_error(self):
        client = FakeClient(outcome=PersistenceFailure("Failed to save test", 500))
        result = asyncio.run(SaveCoordinator(client).save(_test(), TestStructure.SECTIONED))

        assert not result.ok
        assert result.error == "Failed to save test: Failed to save test"
        assert result.field_errors == {}
