"""
Answer-Consistency Engine - keeps a question's answer data valid for its type.

Each question type has a fixed answer shape:

    type           options          correct option(s)   correct_answer
    MCQ_SINGLE     >= 2             exactly one         unused
    MCQ_MULTIPLE   >= 2             at least one        unused
    TRUE_FALSE     fixed True/False exactly one         "true" | "false"
    SHORT_ANSWER   none             -                   non-blank text
    NUMERIC        none             -                   a number

`validate_question` reports the first violation; the mutation helpers
return new question drafts that never pass through an invalid state.
"""

from typing import Callable, NamedTuple, Optional

from testcraft.editor.drafts import OptionDraft, QuestionDraft, new_id
from testcraft.enums import QuestionType
from testcraft.errors import (
    DraftNotFound, MissingAnswer, MultipleCorrectAnswers, NoCorrectAnswer,
    QuestionValidationError,
)

IdFactory = Callable[[str], str]

TRUE_FALSE_LABELS = ("True", "False")
TRUE_FALSE_VALUES = ("true", "false")


class AnswerShape(NamedTuple):
    uses_options: bool
    single_correct: bool
    min_options: int
    uses_correct_answer: bool


ANSWER_SHAPES = {
    QuestionType.MCQ_SINGLE: AnswerShape(True, True, 2, False),
    QuestionType.MCQ_MULTIPLE: AnswerShape(True, False, 2, False),
    QuestionType.TRUE_FALSE: AnswerShape(True, True, 2, True),
    QuestionType.SHORT_ANSWER: AnswerShape(False, False, 0, True),
    QuestionType.NUMERIC: AnswerShape(False, False, 0, True),
}


def shape_of(question_type: QuestionType) -> AnswerShape:
    return ANSWER_SHAPES[QuestionType(question_type)]


def _is_number(value: str) -> bool:
    try:
        float(value.replace(",", "."))
    except ValueError:
        return False
    return True


def validate_question(question: QuestionDraft) -> Optional[QuestionValidationError]:
    """
    Check a question's answer data against its type.

    Returns the violation as an error instance (not raised) or None.
    """
    qtype = question.type
    answer = (question.correct_answer or "").strip()

    if qtype in (QuestionType.MCQ_SINGLE, QuestionType.MCQ_MULTIPLE):
        correct = sum(1 for o in question.options if o.is_correct)
        if correct == 0:
            return NoCorrectAnswer(question.id)
        if correct > 1 and qtype == QuestionType.MCQ_SINGLE:
            return MultipleCorrectAnswers(question.id)
        return None

    if qtype == QuestionType.TRUE_FALSE:
        if question.correct_answer not in TRUE_FALSE_VALUES:
            return MissingAnswer(question.id, "Choose whether the statement is true or false")
        return None

    if not answer:
        return MissingAnswer(question.id)
    if qtype == QuestionType.NUMERIC and not _is_number(answer):
        return MissingAnswer(question.id, "The correct answer must be a number")
    return None


def _true_false_answer(option: OptionDraft) -> Optional[str]:
    value = (option.text or "").strip().lower()
    return value if value in TRUE_FALSE_VALUES else None


def set_option_correctness(question: QuestionDraft, option_id: str, value: bool) -> QuestionDraft:
    """
    Mark one option correct or incorrect.

    For single-answer types, marking an option correct clears every sibling
    in the same copy, so no intermediate version ever has two correct options.
    TRUE_FALSE questions keep `correct_answer` in step with the options.
    """
    if question.option(option_id) is None:
        raise DraftNotFound("Option {} not found in question {}".format(option_id, question.id))

    single = shape_of(question.type).single_correct
    options = []
    for option in question.options:
        if option.id == option_id:
            if option.is_correct != value:
                option = option.replace(is_correct=value)
        elif value and single and option.is_correct:
            option = option.replace(is_correct=False)
        options.append(option)

    changes = {"options": tuple(options)}
    if question.type == QuestionType.TRUE_FALSE:
        selected = [o for o in options if o.is_correct]
        changes["correct_answer"] = _true_false_answer(selected[0]) if selected else None
    return question.replace(**changes)


def blank_options(count: int = 2, id_factory: IdFactory = new_id):
    return tuple(OptionDraft(id=id_factory("option"), order=i) for i in range(count))


def true_false_options(correct_answer: Optional[str], id_factory: IdFactory = new_id):
    return tuple(
        OptionDraft(
            id=id_factory("option"),
            text=label,
            is_correct=correct_answer == label.lower(),
            order=i,
        )
        for i, label in enumerate(TRUE_FALSE_LABELS)
    )


def ensure_true_false_options(question: QuestionDraft, id_factory: IdFactory = new_id) -> QuestionDraft:
    """
    Give a TRUE_FALSE question its True/False option pair when absent and
    align the pair's correctness with `correct_answer`.
    Other question types are returned unchanged.
    """
    if question.type != QuestionType.TRUE_FALSE:
        return question

    answer = question.correct_answer if question.correct_answer in TRUE_FALSE_VALUES else None
    labels = tuple(_true_false_answer(o) for o in question.options)
    if labels != TRUE_FALSE_VALUES:
        return question.replace(options=true_false_options(answer, id_factory))

    options = tuple(
        o if o.is_correct == (answer == label) else o.replace(is_correct=answer == label)
        for o, label in zip(question.options, labels)
    )
    if options == question.options:
        return question
    return question.replace(options=options)


def set_true_false_answer(question: QuestionDraft, value: str, id_factory: IdFactory = new_id) -> QuestionDraft:
    if question.type != QuestionType.TRUE_FALSE:
        raise ValueError("Question {} is not a TRUE_FALSE question".format(question.id))
    value = str(value).strip().lower()
    if value not in TRUE_FALSE_VALUES:
        raise ValueError("TRUE_FALSE answers must be 'true' or 'false'")
    return ensure_true_false_options(question.replace(correct_answer=value), id_factory)


def migrate_question_type(question: QuestionDraft, new_type: QuestionType,
                          id_factory: IdFactory = new_id) -> QuestionDraft:
    """
    Reset a question's answer data to a valid shape for `new_type`.

    Choice types get fresh empty options with no correct answer; TRUE_FALSE,
    SHORT_ANSWER and NUMERIC drop all options and the stored answer (the
    True/False pair is created again on demand).
    """
    new_type = QuestionType(new_type)
    if new_type == question.type:
        return question

    shape = shape_of(new_type)
    if shape.uses_options and not shape.uses_correct_answer:
        options = blank_options(shape.min_options, id_factory)
    else:
        options = ()
    return question.replace(type=new_type, options=options, correct_answer=None)
