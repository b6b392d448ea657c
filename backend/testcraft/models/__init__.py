from testcraft.models.user import User
from testcraft.models.test import Test
from testcraft.models.section import Section
from testcraft.models.question import Question
from testcraft.models.option import Option

__all__ = ["User", "Test", "Section", "Question", "Option"]
