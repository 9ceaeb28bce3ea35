from __future__ import annotations
import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy import func, or_
from sqlalchemy.orm import Query as OrmQuery, Session

from ..db import get_db
from ..errors import NotFound
from ..models import Grade, Lesson, MockTestResult, TestResult, User
from ..responses import pagination, success
from ..schemas import TestResultOut, UserOut, dump
from .auth import require_admin
from .test_result import grade_breakdown, result_stats


router = APIRouter(prefix="/api/admin", tags=["admin"])

EXPORT_COLUMNS = [
	"student_name",
	"email",
	"grade",
	"lesson",
	"score",
	"total_questions",
	"correct_answers",
	"time_taken",
	"date",
]


def _filtered_results(
	db: Session,
	*,
	grade_id: Optional[str] = None,
	lesson_id: Optional[str] = None,
	user_id: Optional[str] = None,
	min_score: Optional[int] = None,
	max_score: Optional[int] = None,
	start_date: Optional[datetime] = None,
	end_date: Optional[datetime] = None,
) -> OrmQuery:
	query = db.query(TestResult)
	if grade_id:
		query = query.filter(TestResult.grade_id == grade_id)
	if lesson_id:
		query = query.filter(TestResult.lesson_id == lesson_id)
	if user_id:
		query = query.filter(TestResult.user_id == user_id)
	if min_score is not None:
		query = query.filter(TestResult.score >= min_score)
	if max_score is not None:
		query = query.filter(TestResult.score <= max_score)
	if start_date:
		query = query.filter(TestResult.created_at >= start_date)
	if end_date:
		query = query.filter(TestResult.created_at <= end_date)
	return query


def _with_names(db: Session, results: List[TestResult]) -> List[Dict[str, Any]]:
	"""Attach student, grade and lesson names to each result."""
	user_ids = {r.user_id for r in results}
	grade_ids = {r.grade_id for r in results}
	lesson_ids = {r.lesson_id for r in results}
	users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids))} if user_ids else {}
	grades = {g.id: g.name for g in db.query(Grade).filter(Grade.id.in_(grade_ids))} if grade_ids else {}
	lessons = {l.id: l.title for l in db.query(Lesson).filter(Lesson.id.in_(lesson_ids))} if lesson_ids else {}
	rows = []
	for r in results:
		student = users.get(r.user_id)
		rows.append(dump(
			TestResultOut,
			r,
			student={"firstname": student.firstname, "lastname": student.lastname, "email": student.email} if student else None,
			grade_name=grades.get(r.grade_id),
			lesson_title=lessons.get(r.lesson_id),
		))
	return rows


@router.get("/dashboard")
def dashboard(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	recent = db.query(TestResult).order_by(TestResult.created_at.desc()).limit(10).all()
	top = (
		db.query(TestResult.user_id, func.avg(TestResult.score).label("avg_score"), func.count(TestResult.id))
		.group_by(TestResult.user_id)
		.order_by(func.avg(TestResult.score).desc())
		.limit(5)
		.all()
	)
	mock_stats = db.query(func.count(MockTestResult.id), func.avg(MockTestResult.overall_score)).one()
	return success({
		"stats": {
			"total_users": db.query(User).filter(User.role == "user").count(),
			"total_grades": db.query(Grade).count(),
			"total_lessons": db.query(Lesson).count(),
			"total_tests": db.query(TestResult).count(),
			"total_mock_tests": mock_stats[0] or 0,
			"average_mock_score": round(float(mock_stats[1]), 2) if mock_stats[1] is not None else 0,
		},
		"recent_results": _with_names(db, recent),
		"top_scores": [
			{"user_id": user_id, "avg_score": round(float(avg), 2), "total_tests": count}
			for user_id, avg, count in top
		],
		"grade_stats": grade_breakdown(db),
	})


@router.get("/users")
def users(
	page: int = Query(1, ge=1),
	limit: int = Query(10, ge=1, le=100),
	search: str = "",
	admin: User = Depends(require_admin),
	db: Session = Depends(get_db),
):
	query = db.query(User).filter(User.role == "user")
	if search:
		pattern = f"%{search}%"
		query = query.filter(or_(User.firstname.ilike(pattern), User.lastname.ilike(pattern), User.email.ilike(pattern)))
	total = query.count()
	rows = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
	data = [dump(UserOut, u, stats=result_stats(db, TestResult.user_id == u.id)) for u in rows]
	return success({"users": data, "pagination": pagination(total, page, limit)})


@router.get("/users/{user_id}")
def user_detail(user_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	user = db.get(User, user_id)
	if user is None:
		raise NotFound("User not found")
	results = db.query(TestResult).filter(TestResult.user_id == user_id).order_by(TestResult.created_at.desc()).all()
	mock_results = (
		db.query(MockTestResult)
		.filter(MockTestResult.user_id == user_id)
		.order_by(MockTestResult.completed_at.desc())
		.all()
	)
	return success({
		"user": dump(UserOut, user),
		"test_results": _with_names(db, results),
		"mock_test_count": len(mock_results),
		"mock_tests_passed": sum(1 for m in mock_results if m.is_passed),
		"stats": result_stats(db, TestResult.user_id == user_id),
	})


@router.get("/results")
def results(
	page: int = Query(1, ge=1),
	limit: int = Query(10, ge=1, le=100),
	grade_id: Optional[str] = None,
	lesson_id: Optional[str] = None,
	user_id: Optional[str] = None,
	min_score: Optional[int] = None,
	max_score: Optional[int] = None,
	start_date: Optional[datetime] = None,
	end_date: Optional[datetime] = None,
	admin: User = Depends(require_admin),
	db: Session = Depends(get_db),
):
	query = _filtered_results(
		db,
		grade_id=grade_id,
		lesson_id=lesson_id,
		user_id=user_id,
		min_score=min_score,
		max_score=max_score,
		start_date=start_date,
		end_date=end_date,
	)
	total = query.count()
	rows = query.order_by(TestResult.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
	return success({"results": _with_names(db, rows), "pagination": pagination(total, page, limit)})


@router.get("/export/results")
def export_results(
	grade_id: Optional[str] = None,
	lesson_id: Optional[str] = None,
	start_date: Optional[datetime] = None,
	end_date: Optional[datetime] = None,
	format: str = Query("json", pattern="^(json|csv)$"),
	admin: User = Depends(require_admin),
	db: Session = Depends(get_db),
):
	query = _filtered_results(db, grade_id=grade_id, lesson_id=lesson_id, start_date=start_date, end_date=end_date)
	rows = []
	for r in _with_names(db, query.order_by(TestResult.created_at.desc()).all()):
		student = r["student"] or {}
		rows.append({
			"student_name": f"{student.get('firstname', '')} {student.get('lastname', '')}".strip(),
			"email": student.get("email"),
			"grade": r["grade_name"],
			"lesson": r["lesson_title"],
			"score": r["score"],
			"total_questions": r["total_questions"],
			"correct_answers": r["correct_answers"],
			"time_taken": r["time_taken"],
			"date": r["created_at"].date().isoformat(),
		})
	if format == "csv":
		buffer = io.StringIO()
		writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
		writer.writeheader()
		writer.writerows(rows)
		return Response(
			content=buffer.getvalue(),
			media_type="text/csv",
			headers={"Content-Disposition": 'attachment; filename="results.csv"'},
		)
	return success(rows)
