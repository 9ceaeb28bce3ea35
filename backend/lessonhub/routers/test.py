from __future__ import annotations
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import commit, get_db
from ..errors import NotFound, ValidationError
from ..models import Lesson, Test, TestDetail, User
from ..responses import success
from ..schemas import TestDetailOut, TestOut, dump, dump_all
from .auth import require_admin
from .category import get_category_or_404


router = APIRouter(prefix="/api/test", tags=["test"])


class TestCreate(BaseModel):
	title: str = ""
	category_id: str = ""
	lesson_id: str = ""
	type: Literal["speech", "listening"] = "speech"
	difficulty: Literal["easy", "medium", "hard"] = "medium"


class TestUpdate(BaseModel):
	title: Optional[str] = None
	category_id: Optional[str] = None
	type: Optional[Literal["speech", "listening"]] = None
	difficulty: Optional[Literal["easy", "medium", "hard"]] = None
	is_active: Optional[bool] = None


def get_test_or_404(db: Session, test_id: str) -> Test:
	test = db.get(Test, test_id)
	if test is None:
		raise NotFound("Test not found")
	return test


@router.get("/all")
def list_tests(db: Session = Depends(get_db)):
	return success(dump_all(TestOut, db.query(Test).order_by(Test.created_at.asc()).all()))


@router.get("/{test_id}")
def get_test(test_id: str, db: Session = Depends(get_db)):
	test = get_test_or_404(db, test_id)
	details = (
		db.query(TestDetail)
		.filter(TestDetail.parent_kind == "test", TestDetail.parent_id == test.id)
		.order_by(TestDetail.created_at.asc())
		.all()
	)
	return success({**dump(TestOut, test), "test_items": dump_all(TestDetailOut, details)})


@router.post("/create", status_code=201)
def create_test(req: TestCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	if not req.title.strip() or not req.category_id or not req.lesson_id:
		raise ValidationError("title, category_id and lesson_id are required")
	category = get_category_or_404(db, req.category_id)
	lesson = db.get(Lesson, req.lesson_id)
	if lesson is None:
		raise NotFound("Lesson not found")
	test = Test(
		title=req.title.strip(),
		category_id=category.id,
		category_title=category.title,
		grade_id=lesson.grade_id,
		lesson_id=lesson.id,
		type=req.type,
		difficulty=req.difficulty,
	)
	db.add(test)
	commit(db)
	return success(dump(TestOut, test))


@router.put("/{test_id}")
def update_test(test_id: str, req: TestUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	test = get_test_or_404(db, test_id)
	if req.title is not None:
		if not req.title.strip():
			raise ValidationError("title must not be empty")
		test.title = req.title.strip()
	if req.category_id is not None:
		category = get_category_or_404(db, req.category_id)
		test.category_id = category.id
		test.category_title = category.title
	if req.type is not None:
		test.type = req.type
	if req.difficulty is not None:
		test.difficulty = req.difficulty
	if req.is_active is not None:
		test.is_active = req.is_active
	commit(db)
	return success(dump(TestOut, test))


@router.delete("/{test_id}")
def delete_test(test_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	test = get_test_or_404(db, test_id)
	db.query(TestDetail).filter(TestDetail.parent_kind == "test", TestDetail.parent_id == test.id).delete()
	db.delete(test)
	commit(db)
	return success(message="Test deleted successfully")
