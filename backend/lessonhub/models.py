from __future__ import annotations
import re
from datetime import datetime, timezone
from sqlalchemy import (
	JSON,
	Boolean,
	Column,
	DateTime,
	Float,
	ForeignKey,
	Index,
	Integer,
	String,
	Text,
	UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates
from .db import Base, new_id


def utcnow() -> datetime:
	# Naive UTC, matching what SQLite hands back on read
	return datetime.now(timezone.utc).replace(tzinfo=None)


ROLES = ("user", "admin")
TEST_TYPES = ("speech", "listening")
DIFFICULTIES = ("easy", "medium", "hard")
PARTS_OF_SPEECH = (
	"noun",
	"verb",
	"adjective",
	"adverb",
	"pronoun",
	"preposition",
	"conjunction",
	"interjection",
)
NOTIFICATION_TYPES = ("ai_feedback", "test_complete", "achievement", "system")
# The only collection a TestDetail may hang off today
DETAIL_PARENT_KINDS = ("test",)


class User(Base):
	__tablename__ = "users"
	id = Column(String(32), primary_key=True, default=new_id)
	firstname = Column(String(128), nullable=False)
	lastname = Column(String(128), nullable=False)
	email = Column(String(256), nullable=False, unique=True, index=True)
	password_hash = Column(String(256), nullable=False)
	role = Column(String(16), nullable=False, default="user")
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

	completed_tests = relationship(
		"CompletedTest",
		back_populates="user",
		cascade="all, delete-orphan",
		order_by="CompletedTest.completed_at",
	)


class CompletedTest(Base):
	"""Best score a user reached on a simple (non-mock) test."""
	__tablename__ = "completed_tests"
	__table_args__ = (UniqueConstraint("user_id", "test_id", name="uq_completed_user_test"),)
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	test_id = Column(String(32), nullable=False)
	score = Column(Integer, nullable=False)
	completed_at = Column(DateTime, default=utcnow, nullable=False)

	user = relationship("User", back_populates="completed_tests")


class Grade(Base):
	__tablename__ = "grades"
	id = Column(String(32), primary_key=True, default=new_id)
	name = Column(String(128), nullable=False, unique=True)
	description = Column(Text, default="", nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Lesson(Base):
	__tablename__ = "lessons"
	# No two lessons of a grade share an order number
	__table_args__ = (UniqueConstraint("grade_id", "order_number", name="uq_lesson_grade_order"),)
	id = Column(String(32), primary_key=True, default=new_id)
	grade_id = Column(String(32), ForeignKey("grades.id"), nullable=False, index=True)
	title = Column(String(256), nullable=False)
	description = Column(Text, default="", nullable=False)
	order_number = Column(Integer, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)
	# [{"en": ..., "uz": ...}]
	word_pairs = Column(JSON, default=list, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

	audio_files = relationship(
		"LessonAudioFile",
		back_populates="lesson",
		cascade="all, delete-orphan",
		order_by="LessonAudioFile.uploaded_at",
	)


class LessonAudioFile(Base):
	__tablename__ = "lesson_audio_files"
	id = Column(String(32), primary_key=True, default=new_id)
	lesson_id = Column(String(32), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
	filename = Column(String(256), nullable=False)
	original_name = Column(String(256), nullable=True)
	path = Column(String(512), nullable=False)
	size = Column(Integer, default=0, nullable=False)
	uploaded_at = Column(DateTime, default=utcnow, nullable=False)

	lesson = relationship("Lesson", back_populates="audio_files")


class Category(Base):
	__tablename__ = "test_categories"
	id = Column(String(32), primary_key=True, default=new_id)
	title = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)


class Test(Base):
	__tablename__ = "tests"
	# Keep pytest from collecting the model as a test class
	__test__ = False
	id = Column(String(32), primary_key=True, default=new_id)
	title = Column(String(256), nullable=False)
	# Category is embedded as an id + title snapshot
	category_id = Column(String(32), nullable=True)
	category_title = Column(String(256), nullable=True)
	grade_id = Column(String(32), nullable=True, index=True)
	lesson_id = Column(String(32), nullable=True, index=True)
	type = Column(String(16), nullable=False, default="speech")
	difficulty = Column(String(16), nullable=False, default="medium")
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class TestDetail(Base):
	__tablename__ = "test_details"
	__test__ = False
	__table_args__ = (Index("ix_test_details_parent", "parent_kind", "parent_id"),)
	id = Column(String(32), primary_key=True, default=new_id)
	condition = Column(Text, nullable=False)
	text = Column(Text, nullable=False)
	# Tagged reference: the kind names the collection parent_id points into
	parent_kind = Column(String(16), nullable=False, default="test")
	parent_id = Column(String(32), nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

	@validates("parent_kind")
	def _check_parent_kind(self, key, value):
		if value not in DETAIL_PARENT_KINDS:
			raise ValueError(f"unsupported parent kind: {value!r}")
		return value


class Vocabulary(Base):
	__tablename__ = "vocabulary"
	__table_args__ = (
		Index("ix_vocabulary_word_lesson", "word", "lesson_id"),
		Index("ix_vocabulary_grade_lesson", "grade_id", "lesson_id"),
	)
	id = Column(String(32), primary_key=True, default=new_id)
	lesson_id = Column(String(32), nullable=False)
	grade_id = Column(String(32), nullable=False)
	word = Column(String(256), nullable=False)
	definition = Column(Text, nullable=False)
	part_of_speech = Column(String(32), nullable=False)
	example = Column(Text, nullable=False)
	pronunciation = Column(String(256), nullable=True)
	audio_url = Column(String(512), nullable=True)
	synonyms = Column(JSON, default=list, nullable=False)
	antonyms = Column(JSON, default=list, nullable=False)
	difficulty = Column(String(16), default="medium", nullable=False)
	image_url = Column(String(512), nullable=True)
	order = Column(Integer, default=0, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class TestResult(Base):
	__tablename__ = "test_results"
	__test__ = False
	__table_args__ = (
		Index("ix_test_results_user_test", "user_id", "test_id", "created_at"),
		Index("ix_test_results_grade_lesson", "grade_id", "lesson_id", "created_at"),
	)
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(32), nullable=False)
	test_id = Column(String(32), nullable=False)
	lesson_id = Column(String(32), nullable=False)
	grade_id = Column(String(32), nullable=False)
	score = Column(Integer, nullable=False)
	total_questions = Column(Integer, nullable=False)
	correct_answers = Column(Integer, nullable=False)
	time_taken = Column(Integer, default=0, nullable=False)
	answers = Column(JSON, default=list, nullable=False)
	feedback = Column(Text, default="", nullable=False)
	attempt_number = Column(Integer, default=1, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)


class TopicTest(Base):
	__tablename__ = "topic_tests"
	__test__ = False
	__table_args__ = (UniqueConstraint("grade_id", "after_lesson", name="uq_topic_test_grade_lesson"),)
	id = Column(String(32), primary_key=True, default=new_id)
	grade_id = Column(String(32), nullable=False, index=True)
	after_lesson = Column(Integer, nullable=False)
	topic = Column(String(256), nullable=False)
	prompt = Column(Text, nullable=False)
	# seconds
	duration = Column(Integer, default=120, nullable=False)
	# {"relevance": int, "grammar": int, "fluency": int, "vocabulary": int}, sums to 100
	criteria = Column(JSON, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class TopicTestResult(Base):
	__tablename__ = "topic_test_results"
	__test__ = False
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(32), nullable=False, index=True)
	topic_test_id = Column(String(32), nullable=False)
	grade_id = Column(String(32), nullable=False)
	lesson_number = Column(Integer, nullable=False)
	spoken_text = Column(Text, nullable=False)
	ai_evaluation = Column(JSON, nullable=False)
	duration = Column(Integer, nullable=True)
	word_count = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)

	@validates("spoken_text")
	def _count_words(self, key, value):
		self.word_count = len(re.findall(r"\S+", value or ""))
		return value


class MockTestResult(Base):
	"""A graded mock-test attempt. Written once, never updated."""
	__tablename__ = "mock_test_results"
	__test__ = False
	__table_args__ = (Index("ix_mock_results_user_grade", "user_id", "grade_id", "completed_at"),)
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(32), nullable=False)
	grade_id = Column(String(32), nullable=False)
	# Ordered answer records as submitted
	answers = Column(JSON, nullable=False)
	total_questions = Column(Integer, nullable=False)
	passed_questions = Column(Integer, nullable=False)
	wrong_answers = Column(Integer, nullable=False)
	# Caller-reported aggregates, stored verbatim
	overall_score = Column(Float, nullable=False)
	total_time_taken = Column(Integer, nullable=True)
	# Server-derived from the answers list
	answers_score = Column(Integer, nullable=False)
	answers_time = Column(Integer, nullable=False)
	is_passed = Column(Boolean, nullable=False)
	completed_at = Column(DateTime, default=utcnow, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)


class Notification(Base):
	__tablename__ = "notifications"
	__table_args__ = (Index("ix_notifications_user_read", "user_id", "read", "created_at"),)
	id = Column(String(32), primary_key=True, default=new_id)
	user_id = Column(String(32), nullable=False)
	type = Column(String(32), nullable=False)
	title = Column(String(256), nullable=False)
	message = Column(Text, nullable=False)
	data = Column(JSON, nullable=True)
	read = Column(Boolean, default=False, nullable=False)
	read_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=utcnow, nullable=False)
