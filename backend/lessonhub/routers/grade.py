from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import commit, get_db
from ..errors import NotFound, ValidationError
from ..models import Grade, Lesson, User
from ..responses import success
from ..schemas import GradeOut, LessonOut, dump, dump_all
from .auth import get_current_user, require_admin


router = APIRouter(prefix="/api/grade", tags=["grade"])


class GradeCreate(BaseModel):
	name: str = ""
	description: str = ""


class GradeUpdate(BaseModel):
	name: Optional[str] = None
	description: Optional[str] = None
	is_active: Optional[bool] = None


def get_grade_or_404(db: Session, grade_id: str) -> Grade:
	grade = db.get(Grade, grade_id)
	if grade is None:
		raise NotFound("Grade not found")
	return grade


@router.get("")
def list_grades(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	grades = db.query(Grade).filter(Grade.is_active.is_(True)).order_by(Grade.name.asc()).all()
	return success(dump_all(GradeOut, grades))


@router.get("/{grade_id}")
def get_grade(grade_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	grade = get_grade_or_404(db, grade_id)
	lessons = (
		db.query(Lesson)
		.filter(Lesson.grade_id == grade_id, Lesson.is_active.is_(True))
		.order_by(Lesson.order_number.asc())
		.all()
	)
	return success({"grade": dump(GradeOut, grade), "lessons": dump_all(LessonOut, lessons)})


@router.post("", status_code=201)
def create_grade(req: GradeCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	name = req.name.strip()
	if not name:
		raise ValidationError("Grade name is required")
	if db.query(Grade).filter(Grade.name == name).first():
		raise ValidationError("Grade with this name already exists")
	grade = Grade(name=name, description=req.description)
	db.add(grade)
	commit(db)
	return success(dump(GradeOut, grade))


@router.put("/{grade_id}")
def update_grade(grade_id: str, req: GradeUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	grade = get_grade_or_404(db, grade_id)
	if req.name and req.name != grade.name:
		clash = db.query(Grade).filter(Grade.name == req.name, Grade.id != grade_id).first()
		if clash:
			raise ValidationError("Grade with this name already exists")
		grade.name = req.name
	if req.description is not None:
		grade.description = req.description
	if req.is_active is not None:
		grade.is_active = req.is_active
	commit(db)
	return success(dump(GradeOut, grade))


@router.delete("/{grade_id}")
def delete_grade(grade_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	grade = get_grade_or_404(db, grade_id)
	if db.query(Lesson).filter(Lesson.grade_id == grade_id).count() > 0:
		raise ValidationError("Cannot delete grade with existing lessons")
	db.delete(grade)
	commit(db)
	return success(message="Grade deleted successfully")
