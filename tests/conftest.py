import os
import random
import tempfile

# Settings are read at import time, so the environment goes first
_WORKDIR = tempfile.mkdtemp(prefix="lessonhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_WORKDIR, 'unused.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_WORKDIR, "audio")
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lessonhub.db import Base, get_db
from lessonhub.main import app
from lessonhub.models import Category, Grade, Lesson, Test, TestDetail, User
from lessonhub.routers.auth import create_access_token, hash_password
from lessonhub.routers.mock_test import get_rng


@pytest.fixture
def engine():
	engine = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
	)
	Base.metadata.create_all(engine)
	yield engine
	Base.metadata.drop_all(engine)
	engine.dispose()


@pytest.fixture
def session_factory(engine):
	return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
	session = session_factory()
	try:
		yield session
	finally:
		session.close()


@pytest.fixture
def client(session_factory):
	def _get_db():
		session = session_factory()
		try:
			yield session
		finally:
			session.close()

	app.dependency_overrides[get_db] = _get_db
	app.dependency_overrides[get_rng] = lambda: random.Random(1234)
	try:
		yield TestClient(app)
	finally:
		app.dependency_overrides.clear()


def _make_user(db, email, role="user", password="secret123"):
	user = User(
		firstname=email.split("@")[0].title(),
		lastname="Tester",
		email=email,
		password_hash=hash_password(password),
		role=role,
	)
	db.add(user)
	db.commit()
	return user


@pytest.fixture
def student(db):
	return _make_user(db, "student@example.com")


@pytest.fixture
def other_student(db):
	return _make_user(db, "other@example.com")


@pytest.fixture
def admin(db):
	return _make_user(db, "admin@example.com", role="admin")


def auth_header(user):
	return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def student_headers(student):
	return auth_header(student)


@pytest.fixture
def admin_headers(admin):
	return auth_header(admin)


def seed_grade(db, name="Beginner", lessons=20, question_type="listening", with_details=True):
	"""A grade whose lessons each carry one active test with one detail."""
	grade = Grade(name=name, description=f"{name} course")
	category = Category(title=f"{name} drills")
	db.add_all([grade, category])
	db.flush()
	for number in range(1, lessons + 1):
		lesson = Lesson(grade_id=grade.id, title=f"Lesson {number}", order_number=number, word_pairs=[])
		db.add(lesson)
		db.flush()
		test = Test(
			title=f"Test {number}",
			category_id=category.id,
			category_title=category.title,
			grade_id=grade.id,
			lesson_id=lesson.id,
			type=question_type,
		)
		db.add(test)
		db.flush()
		if with_details:
			db.add(TestDetail(condition=f"Listen to track {number}", text=f"Sentence {number}", parent_kind="test", parent_id=test.id))
	db.commit()
	return grade


@pytest.fixture
def grade(db):
	return seed_grade(db)
