from testcraft.editor.drafts import OptionDraft, QuestionDraft, SectionDraft, TestDraft
from testcraft.editor.structure import StructureCoordinator, TestStructure
from testcraft.editor.tree import ExpansionState, TestEditor
from testcraft.editor.saving import SaveCoordinator, SaveResult
from testcraft.editor.session import EditorSession

__all__ = [
    "OptionDraft", "QuestionDraft", "SectionDraft", "TestDraft",
    "StructureCoordinator", "TestStructure",
    "ExpansionState", "TestEditor",
    "SaveCoordinator", "SaveResult",
    "EditorSession",
]
