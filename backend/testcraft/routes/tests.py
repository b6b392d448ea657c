"""
Tests API routes - create, list, fetch and bulk-save tests.

Every route requires a bearer token and only ever touches tests created
by the calling user; a test owned by someone else answers 404 exactly
like a missing one.

- POST /api/tests          create a DRAFT test with no content
- GET  /api/tests          paginated listing of the caller's tests
- GET  /api/tests/{id}     full aggregate (sections, questions, options)
- PUT  /api/tests/{id}     replace settings and the whole subtree atomically
"""

import time
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from testcraft.database import get_db
from testcraft.enums import QuestionOrder, QuestionType, TestStatus
from testcraft.errors import SettingsValidationError
from testcraft.logging_config import get_logger, log_with_context
from testcraft.models.test import Test
from testcraft.models.user import User
from testcraft.security import get_current_user
from testcraft.services.settings import normalize_result_visibility, validate_test_settings
from testcraft.services.test_tree import (
    load_owned_test, replace_subtree, serialize_test, serialize_test_summary,
)

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────
# Settings are only type-checked here; their ranges are checked by
# validate_test_settings so violations answer 400.

class OptionIn(BaseModel):
    text: str = ""
    image_url: Optional[str] = None
    is_correct: bool = False
    order: Optional[int] = None


class QuestionIn(BaseModel):
    type: QuestionType = QuestionType.MCQ_SINGLE
    title: str = ""
    description: Optional[str] = None
    explanation: Optional[str] = None
    image_url: Optional[str] = None
    points: float = Field(1, ge=0)
    negative_points: float = Field(0, ge=0)
    order: Optional[int] = None
    correct_answer: Optional[str] = None
    options: List[OptionIn] = Field(default_factory=list)


class SectionIn(BaseModel):
    title: str = ""
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    order: Optional[int] = None
    points: float = Field(1, ge=0)
    negative_points: float = Field(0, ge=0)
    questions: List[QuestionIn] = Field(default_factory=list)


class TestSettingsIn(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    question_order: QuestionOrder = QuestionOrder.SEQUENTIAL
    attempt_limit: Optional[int] = None
    retake_cooldown: Optional[int] = None
    allow_back: bool = True
    result_visibility: Optional[str] = None
    pass_percentage: Optional[float] = None


class TestCreateRequest(TestSettingsIn):
    """Body of POST /api/tests."""


class TestUpdateRequest(TestSettingsIn):
    """Body of PUT /api/tests/{id}: settings plus the complete subtree."""
    status: Optional[TestStatus] = None
    sections: List[SectionIn] = Field(default_factory=list)
    questions: List[QuestionIn] = Field(default_factory=list)


def _validated_settings(request: TestSettingsIn, creating: bool) -> dict:
    try:
        values = validate_test_settings(request.model_dump(), creating=creating)
    except SettingsValidationError as e:
        log_with_context(logger, "INFO", "Rejected test settings: {}".format(e.message),
                         extra_data={"field": e.field})
        raise HTTPException(status_code=400, detail=e.message)
    values["description"] = (request.description or "").strip() or None
    values["question_order"] = request.question_order.value
    values["allow_back"] = request.allow_back
    values["result_visibility"] = normalize_result_visibility(request.result_visibility).value
    return values


@router.post("/api/tests", status_code=201)
def create_test(
    request: TestCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a new test in DRAFT status with no sections or questions."""
    values = _validated_settings(request, creating=True)

    test = Test(id=str(uuid.uuid4()), creator_id=user.id, status=TestStatus.DRAFT.value, **values)
    db.add(test)
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to create test: {}".format(str(e)),
                         context={"user_id": str(user.id)})
        raise HTTPException(status_code=500, detail="Internal server error")
    db.refresh(test)

    log_with_context(logger, "INFO", "Test created: {}".format(test.title),
                     context={"test_id": str(test.id), "user_id": str(user.id)})
    return {"message": "Test created successfully", "test": serialize_test_summary(test)}


@router.get("/api/tests")
def list_tests(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Results per page"),
    status: Optional[TestStatus] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List the caller's tests, newest first."""
    start_time = time.time()

    conditions = [Test.creator_id == user.id]
    if status:
        conditions.append(Test.status == status.value)

    total = db.scalar(select(func.count()).select_from(Test).where(*conditions))
    tests = db.scalars(
        select(Test)
        .where(*conditions)
        .order_by(Test.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Listed {} tests (page {}, total {})".format(len(tests), page, total),
        context={"user_id": str(user.id)},
        extra_data={"duration_ms": round(duration_ms, 2)})

    return {
        "tests": [serialize_test_summary(t) for t in tests],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit,
        },
    }


@router.get("/api/tests/{test_id}")
def get_test(
    test_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Get a test with its sections, questions and options."""
    test = load_owned_test(db, test_id, user.id)
    if not test:
        raise HTTPException(status_code=404, detail="Test not found")
    return {"test": serialize_test(test)}


@router.put("/api/tests/{test_id}")
def update_test(
    test_id: str,
    request: TestUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Replace a test's settings and its entire section/question subtree.

    Runs in one transaction: either everything in the payload is stored,
    or nothing changes.
    """
    start_time = time.time()

    test = load_owned_test(db, test_id, user.id)
    if not test:
        raise HTTPException(status_code=404, detail="Test not found")

    if request.sections and request.questions:
        raise HTTPException(
            status_code=400,
            detail="A test cannot have both sections and standalone questions",
        )

    values = _validated_settings(request, creating=False)
    if request.status is not None:
        values["status"] = request.status.value

    try:
        for field, value in values.items():
            setattr(test, field, value)
        counts = replace_subtree(
            db, test,
            sections=[s.model_dump(mode="json") for s in request.sections],
            questions=[q.model_dump(mode="json") for q in request.questions],
        )
        db.commit()
    except Exception as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to save test {}: {}".format(test_id, str(e)),
                         context={"test_id": test_id})
        raise HTTPException(status_code=500, detail="Failed to save test")

    test = load_owned_test(db, test_id, user.id)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Test saved: {}".format(test.title),
                     context={"test_id": test_id, "user_id": str(user.id)},
                     extra_data={**counts, "duration_ms": round(duration_ms, 2)})

    return {"message": "Test updated successfully", "test": serialize_test(test)}
