"""
Editor session - wires fetch, editing and save for one test.

The session is driven from a single UI event loop. Its two suspension
points are `load()` and `save()`; a `save()` issued while another is in
flight returns None without touching the network.
"""

from typing import Optional

from testcraft.editor.saving import SaveCoordinator, SaveResult
from testcraft.editor.structure import Confirm
from testcraft.editor.tree import TestEditor
from testcraft.errors import NotFoundOrUnauthorized, PersistenceFailure
from testcraft.logging_config import get_logger, log_with_context

logger = get_logger("editor")


class EditorSession:
    """
    Args:
        client: A `TestServiceClient` (or anything with the same coroutines)
        test_id: Test being edited
        confirm: Callback for destructive edits, passed to the editor
    """

    def __init__(self, client, test_id: str, confirm: Optional[Confirm] = None):
        self.client = client
        self.test_id = test_id
        self.confirm = confirm
        self.coordinator = SaveCoordinator(client)
        self.editor: Optional[TestEditor] = None
        self.loading = False
        self.saving = False
        self.last_error: Optional[str] = None
        self.field_errors = {}

    async def load(self) -> Optional[TestEditor]:
        """Fetch the test and start a fresh editor; None if it failed."""
        self.loading = True
        self.last_error = None
        try:
            test = await self.client.get_test(self.test_id)
        except NotFoundOrUnauthorized as e:
            log_with_context(logger, "WARNING", "Test not available: {}".format(e.message),
                             context={"test_id": self.test_id})
            self.last_error = "Test not found"
            return None
        except PersistenceFailure as e:
            log_with_context(logger, "ERROR", "Failed to load test: {}".format(e.message),
                             context={"test_id": self.test_id})
            self.last_error = "Failed to load test data"
            return None
        finally:
            self.loading = False

        self.editor = TestEditor(test, confirm=self.confirm)
        return self.editor

    async def save(self) -> Optional[SaveResult]:
        """
        Save the current draft.

        On success the editor is reset to the server's copy. On failure the
        draft is left exactly as it was and `last_error` / `field_errors`
        describe the problem.
        """
        if self.saving or self.editor is None:
            return None

        self.saving = True
        self.last_error = None
        self.field_errors = {}
        try:
            result = await self.coordinator.save(self.editor.test, self.editor.structure.structure)
        finally:
            self.saving = False

        if result.ok:
            self.editor.reset(result.test)
        else:
            self.last_error = result.error
            self.field_errors = dict(result.field_errors)
        return result
