"""Admin reporting endpoints and service routes."""

from __future__ import annotations

import csv
import io
from datetime import timedelta

import pytest

from lessonhub.mock_tests import build_result
from lessonhub.models import Lesson, Test, TestResult, utcnow


@pytest.fixture
def results(db, student, other_student, grade):
	lesson = db.query(Lesson).filter(Lesson.grade_id == grade.id, Lesson.order_number == 1).one()
	test = db.query(Test).filter(Test.lesson_id == lesson.id).first()
	now = utcnow()
	rows = [
		TestResult(user_id=student.id, test_id=test.id, lesson_id=lesson.id, grade_id=grade.id,
				score=90, total_questions=10, correct_answers=9, time_taken=100, created_at=now - timedelta(days=2)),
		TestResult(user_id=student.id, test_id=test.id, lesson_id=lesson.id, grade_id=grade.id,
				score=70, total_questions=10, correct_answers=7, time_taken=80, attempt_number=2, created_at=now - timedelta(days=1)),
		TestResult(user_id=other_student.id, test_id=test.id, lesson_id=lesson.id, grade_id=grade.id,
				score=40, total_questions=10, correct_answers=4, time_taken=60, created_at=now),
	]
	db.add_all(rows)
	db.add(build_result(student.id, grade.id, [{"score": 85}], 85))
	db.commit()
	return rows


def test_admin_routes_need_admin(client, student_headers):
	assert client.get("/api/admin/dashboard", headers=student_headers).status_code == 403
	assert client.get("/api/admin/dashboard").status_code == 401


def test_dashboard(client, admin_headers, results, grade):
	data = client.get("/api/admin/dashboard", headers=admin_headers).json()["data"]

	assert data["stats"]["total_users"] == 2
	assert data["stats"]["total_grades"] == 1
	assert data["stats"]["total_lessons"] == 20
	assert data["stats"]["total_tests"] == 3
	assert data["stats"]["total_mock_tests"] == 1
	assert data["recent_results"][0]["score"] == 40
	assert data["recent_results"][0]["student"]["email"] == "other@example.com"
	assert data["top_scores"][0]["avg_score"] == 80
	assert data["grade_stats"][0]["tests_count"] == 3


def test_users_search_and_stats(client, admin_headers, results):
	body = client.get("/api/admin/users", params={"search": "STUDENT"}, headers=admin_headers).json()["data"]

	assert [u["email"] for u in body["users"]] == ["student@example.com"]
	assert body["users"][0]["stats"]["total_tests"] == 2
	assert body["pagination"]["total"] == 1


def test_user_detail(client, admin_headers, student, results):
	data = client.get(f"/api/admin/users/{student.id}", headers=admin_headers).json()["data"]
	assert len(data["test_results"]) == 2
	assert data["mock_test_count"] == 1
	assert data["mock_tests_passed"] == 1
	assert client.get("/api/admin/users/missing", headers=admin_headers).status_code == 404


def test_results_filters(client, admin_headers, student, results):
	body = client.get(
		"/api/admin/results", params={"min_score": 50, "user_id": student.id}, headers=admin_headers
	).json()["data"]
	assert sorted(r["score"] for r in body["results"]) == [70, 90]

	low = client.get("/api/admin/results", params={"max_score": 50}, headers=admin_headers).json()["data"]
	assert [r["score"] for r in low["results"]] == [40]


def test_export_csv(client, admin_headers, grade, results):
	resp = client.get("/api/admin/export/results", params={"format": "csv"}, headers=admin_headers)

	assert resp.status_code == 200
	assert resp.headers["content-type"].startswith("text/csv")
	rows = list(csv.DictReader(io.StringIO(resp.text)))
	assert len(rows) == 3
	assert rows[0]["student_name"] == "Other Tester"
	assert rows[0]["grade"] == grade.name
	assert rows[0]["lesson"] == "Lesson 1"


def test_export_json(client, admin_headers, results):
	rows = client.get("/api/admin/export/results", headers=admin_headers).json()["data"]
	assert {r["score"] for r in rows} == {90, 70, 40}


def test_health(client):
	body = client.get("/api/health").json()
	assert body["status"] == "success"
	assert body["data"]["features"]["ai_evaluation"] is False


def test_overview_lists_endpoints(client):
	body = client.get("/api").json()
	assert body["endpoints"]["mock_tests"]["generate"] == "POST /api/mock-test/generate"
