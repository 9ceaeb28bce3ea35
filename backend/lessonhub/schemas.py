"""Response shapes shared across routers.

Request bodies live next to the routes that accept them; these models only
describe what leaves the API and are built straight from ORM rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict


class OrmModel(BaseModel):
	model_config = ConfigDict(from_attributes=True)


_M = TypeVar("_M", bound=OrmModel)


def dump(schema: Type[_M], row: Any, **extra: Any) -> Dict[str, Any]:
	data = schema.model_validate(row).model_dump()
	data.update(extra)
	return data


def dump_all(schema: Type[_M], rows: List[Any]) -> List[Dict[str, Any]]:
	return [dump(schema, row) for row in rows]


class CompletedTestOut(OrmModel):
	test_id: str
	score: int
	completed_at: datetime


class UserOut(OrmModel):
	id: str
	firstname: str
	lastname: str
	email: str
	role: str
	completed_tests: List[CompletedTestOut] = []
	created_at: datetime
	updated_at: datetime


class GradeOut(OrmModel):
	id: str
	name: str
	description: str
	is_active: bool
	created_at: datetime
	updated_at: datetime


class AudioFileOut(OrmModel):
	id: str
	filename: str
	original_name: Optional[str] = None
	size: int
	uploaded_at: datetime


class LessonOut(OrmModel):
	id: str
	grade_id: str
	title: str
	description: str
	order_number: int
	is_active: bool
	word_pairs: List[Dict[str, Any]] = []
	audio_files: List[AudioFileOut] = []
	created_at: datetime
	updated_at: datetime


class CategoryOut(OrmModel):
	id: str
	title: str


class TestOut(OrmModel):
	id: str
	title: str
	category_id: Optional[str] = None
	category_title: Optional[str] = None
	grade_id: Optional[str] = None
	lesson_id: Optional[str] = None
	type: str
	difficulty: str
	is_active: bool


class TestDetailOut(OrmModel):
	id: str
	condition: str
	text: str
	parent_kind: str
	parent_id: str


class VocabularyOut(OrmModel):
	id: str
	lesson_id: str
	grade_id: str
	word: str
	definition: str
	part_of_speech: str
	example: str
	pronunciation: Optional[str] = None
	audio_url: Optional[str] = None
	synonyms: List[str] = []
	antonyms: List[str] = []
	difficulty: str
	image_url: Optional[str] = None
	order: int
	is_active: bool


class TestResultOut(OrmModel):
	id: str
	user_id: str
	test_id: str
	lesson_id: str
	grade_id: str
	score: int
	total_questions: int
	correct_answers: int
	time_taken: int
	answers: List[Dict[str, Any]] = []
	feedback: str
	attempt_number: int
	created_at: datetime


class TopicTestOut(OrmModel):
	id: str
	grade_id: str
	after_lesson: int
	topic: str
	prompt: str
	duration: int
	criteria: Dict[str, int]
	is_active: bool


class TopicTestResultOut(OrmModel):
	id: str
	user_id: str
	topic_test_id: str
	grade_id: str
	lesson_number: int
	spoken_text: str
	ai_evaluation: Dict[str, Any]
	duration: Optional[int] = None
	word_count: int
	created_at: datetime


class MockTestResultOut(OrmModel):
	id: str
	user_id: str
	grade_id: str
	answers: List[Dict[str, Any]]
	total_questions: int
	passed_questions: int
	wrong_answers: int
	overall_score: float
	total_time_taken: Optional[int] = None
	answers_score: int
	answers_time: int
	is_passed: bool
	completed_at: datetime


class NotificationOut(OrmModel):
	id: str
	user_id: str
	type: str
	title: str
	message: str
	data: Optional[Dict[str, Any]] = None
	read: bool
	read_at: Optional[datetime] = None
	created_at: datetime
