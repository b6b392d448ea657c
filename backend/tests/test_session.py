"""
Tests for the editor session: loading, the in-flight save guard and
failure recovery.
"""

import asyncio

from testcraft.editor.drafts import OptionDraft, QuestionDraft, TestDraft
from testcraft.editor.session import EditorSession
from testcraft.errors import NotFoundOrUnauthorized, PersistenceFailure


def _server_test(title="Chemistry"):
    return TestDraft(
        id="t1",
        title=title,
        duration=45,
        pass_percentage=50,
        questions=(
            QuestionDraft(id="q1", title="H2O is?", options=(
                OptionDraft(id="o1", text="Water", is_correct=True),
                OptionDraft(id="o2", text="Salt", order=1),
            )),
        ),
    )


class ScriptedClient:
    """Fake service client; `gate` holds update_test until released."""

    def __init__(self, fetch=None, save=None):
        self.fetch = fetch if fetch is not None else _server_test()
        self.save = save
        self.gate = None
        self.update_calls = 0

    async def get_test(self, test_id):
        if isinstance(self.fetch, Exception):
            raise self.fetch
        return self.fetch

    async def update_test(self, test_id, payload):
        self.update_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.save, Exception):
            raise self.save
        return self.save or TestDraft.model_validate({**self.fetch.model_dump(), "title": payload["title"]})


class TestLoad:

    def test_load_builds_editor(self):
        session = EditorSession(ScriptedClient(), "t1")
        editor = asyncio.run(session.load())

        assert editor is session.editor
        assert editor.test.title == "Chemistry"
        assert editor.structure.allows_standalone
        assert session.loading is False

    def test_load_not_found(self):
        session = EditorSession(ScriptedClient(fetch=NotFoundOrUnauthorized("Test not found", 404)), "t1")
        assert asyncio.run(session.load()) is None
        assert session.last_error == "Test not found"
        assert session.editor is None

    def test_load_failure(self):
        session = EditorSession(ScriptedClient(fetch=PersistenceFailure("boom", 500)), "t1")
        assert asyncio.run(session.load()) is None
        assert session.last_error == "Failed to load test data"


class TestSave:

    def test_save_without_editor(self):
        session = EditorSession(ScriptedClient(), "t1")
        assert asyncio.run(session.save()) is None

    def test_save_resets_to_server_copy(self):
        client = ScriptedClient()
        session = EditorSession(client, "t1")

        async def scenario():
            await session.load()
            session.editor.update_test_field("title", "Organic Chemistry")
            return await session.save()

        result = asyncio.run(scenario())

        assert result.ok
        assert session.editor.test is result.test
        assert session.editor.test.title == "Organic Chemistry"
        assert session.saving is False
        assert session.last_error is None

    def test_second_save_while_in_flight_is_ignored(self):
        client = ScriptedClient()
        session = EditorSession(client, "t1")

        async def scenario():
            await session.load()
            client.gate = asyncio.Event()
            first = asyncio.ensure_future(session.save())
            await asyncio.sleep(0)
            assert session.saving is True
            second = await session.save()
            client.gate.set()
            return await first, second

        first, second = asyncio.run(scenario())

        assert second is None
        assert first.ok
        assert client.update_calls == 1
        assert session.saving is False

    def test_failed_save_keeps_draft(self):
        client = ScriptedClient(save=PersistenceFailure("database is locked", 500))
        session = EditorSession(client, "t1")

        async def scenario():
            await session.load()
            session.editor.update_test_field("title", "Unsaved title")
            draft = session.editor.test
            result = await session.save()
            return draft, result

        draft, result = asyncio.run(scenario())

        assert not result.ok
        assert session.editor.test is draft
        assert session.last_error == "Failed to save test: database is locked"
        assert session.saving is False

    def test_validation_errors_are_exposed(self):
        client = ScriptedClient()
        session = EditorSession(client, "t1")

        async def scenario():
            await session.load()
            session.editor.update_test_field("duration", 600)
            return await session.save()

        result = asyncio.run(scenario())

        assert not result.ok
        assert session.field_errors == {"duration": "duration must be 1-480 minutes"}
        assert client.update_calls == 0
