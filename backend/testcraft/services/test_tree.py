"""
Test Tree Service - reads and bulk-replaces a test's section/question subtree.

`replace_subtree` is the server half of a save:
1. Delete every option, question and section of the test
2. Recreate sections (with nested questions and options) or standalone
   questions from the payload, renumbering order 0..n-1 per sibling group
3. Flush so the new rows get ids

The caller owns the transaction: it commits on success and rolls back on
any exception, so a failed save leaves the previous subtree untouched.
"""

import time
import uuid
from typing import Any, Dict, List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from testcraft.models.option import Option
from testcraft.models.question import Question
from testcraft.models.section import Section
from testcraft.models.test import Test
from testcraft.logging_config import get_logger, log_with_context

logger = get_logger("db")


def _iso(value):
    return value.isoformat() if value else None


def serialize_option(option: Option) -> dict:
    return {
        "id": str(option.id),
        "question_id": str(option.question_id),
        "text": option.text,
        "image_url": option.image_url,
        "is_correct": bool(option.is_correct),
        "order": option.order,
    }


def serialize_question(question: Question) -> dict:
    return {
        "id": str(question.id),
        "test_id": str(question.test_id),
        "section_id": str(question.section_id) if question.section_id else None,
        "type": question.type,
        "title": question.title,
        "description": question.description,
        "explanation": question.explanation,
        "image_url": question.image_url,
        "points": question.points,
        "negative_points": question.negative_points,
        "order": question.order,
        "correct_answer": question.correct_answer,
        "options": [serialize_option(o) for o in question.options],
    }


def serialize_section(section: Section) -> dict:
    return {
        "id": str(section.id),
        "test_id": str(section.test_id),
        "title": section.title,
        "description": section.description,
        "duration": section.duration,
        "order": section.order,
        "points": section.points,
        "negative_points": section.negative_points,
        "questions": [serialize_question(q) for q in section.questions],
    }


def serialize_test_summary(test: Test) -> dict:
    """Configuration fields only, as used in listings and create responses."""
    return {
        "id": str(test.id),
        "title": test.title,
        "description": test.description,
        "duration": test.duration,
        "status": test.status,
        "start_time": _iso(test.start_time),
        "end_time": _iso(test.end_time),
        "question_order": test.question_order,
        "attempt_limit": test.attempt_limit,
        "retake_cooldown": test.retake_cooldown,
        "allow_back": bool(test.allow_back),
        "result_visibility": test.result_visibility,
        "pass_percentage": test.pass_percentage,
        "created_at": _iso(test.created_at),
        "updated_at": _iso(test.updated_at),
    }


def serialize_test(test: Test) -> dict:
    """Full aggregate: settings, sections with their questions, standalone questions."""
    result = serialize_test_summary(test)
    result["sections"] = [serialize_section(s) for s in test.sections]
    result["questions"] = [serialize_question(q) for q in test.standalone_questions]
    return result


def load_owned_test(db: Session, test_id: str, owner_id: str):
    """Fetch a test with its whole subtree, or None if missing or not owned."""
    stmt = (
        select(Test)
        .options(
            selectinload(Test.sections).selectinload(Section.questions).selectinload(Question.options),
            selectinload(Test.questions).selectinload(Question.options),
        )
        .where(Test.id == test_id, Test.creator_id == owner_id)
    )
    return db.scalars(stmt).first()


def _build_question(test_id: str, data: Dict[str, Any], order: int, section_id: str = None) -> Question:
    question = Question(
        test_id=test_id,
        section_id=section_id,
        type=data["type"],
        title=data.get("title") or "",
        description=data.get("description"),
        explanation=data.get("explanation"),
        image_url=data.get("image_url"),
        points=data.get("points", 1),
        negative_points=data.get("negative_points", 0),
        order=order,
        correct_answer=data.get("correct_answer"),
    )
    question.options = [
        Option(
            text=o.get("text") or "",
            image_url=o.get("image_url"),
            is_correct=bool(o.get("is_correct")),
            order=i,
        )
        for i, o in enumerate(data.get("options") or [])
    ]
    return question


def replace_subtree(db: Session, test: Test, sections: List[Dict[str, Any]],
                    questions: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Delete and recreate the test's sections, questions and options.

    At most one of `sections` / `questions` may be non-empty; the route
    rejects payloads that populate both before calling this.
    Returns counts of the created rows.
    """
    start_time = time.time()

    question_ids = select(Question.id).where(Question.test_id == test.id)
    db.execute(delete(Option).where(Option.question_id.in_(question_ids)))
    db.execute(delete(Question).where(Question.test_id == test.id))
    db.execute(delete(Section).where(Section.test_id == test.id))
    db.expire(test, ["sections", "questions"])

    counts = {"sections": 0, "questions": 0, "options": 0}

    for s_order, s_data in enumerate(sections):
        section = Section(
            id=str(uuid.uuid4()),
            test_id=test.id,
            title=s_data.get("title") or "",
            description=s_data.get("description"),
            duration=s_data.get("duration"),
            order=s_order,
            points=s_data.get("points", 1),
            negative_points=s_data.get("negative_points", 0),
        )
        db.add(section)
        counts["sections"] += 1
        for q_order, q_data in enumerate(s_data.get("questions") or []):
            question = _build_question(test.id, q_data, q_order, section_id=section.id)
            db.add(question)
            counts["questions"] += 1
            counts["options"] += len(question.options)

    for q_order, q_data in enumerate(questions):
        question = _build_question(test.id, q_data, q_order)
        db.add(question)
        counts["questions"] += 1
        counts["options"] += len(question.options)

    db.flush()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Replaced subtree of test {}".format(test.id),
                     context={"test_id": str(test.id)},
                     extra_data={**counts, "duration_ms": round(duration_ms, 2)})
    return counts
