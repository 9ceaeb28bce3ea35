from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import commit, get_db
from ..errors import NotFound, ValidationError
from ..models import Lesson, LessonAudioFile, User
from ..responses import success
from ..schemas import LessonOut, dump
from ..storage import MAX_FILES_PER_REQUEST, PendingFile, StoredFile, read_audio, remove_file, write_audio
from .auth import get_current_user, require_admin
from .grade import get_grade_or_404


router = APIRouter(prefix="/api/lesson", tags=["lesson"])


class WordPair(BaseModel):
	en: str
	uz: str


def _get_lesson_or_404(db: Session, lesson_id: str) -> Lesson:
	lesson = db.get(Lesson, lesson_id)
	if lesson is None:
		raise NotFound("Lesson not found")
	return lesson


def _with_audio_urls(request: Request, lesson: Lesson) -> Dict[str, Any]:
	data = dump(LessonOut, lesson)
	base = str(request.base_url).rstrip("/")
	for audio in data["audio_files"]:
		audio["url"] = f"{base}/uploads/audio/{audio['filename']}"
		audio["download_url"] = f"{base}/api/lesson/{lesson.id}/audio/{audio['filename']}"
	return data


def _order_taken(db: Session, grade_id: str, order_number: int, exclude_id: Optional[str] = None) -> bool:
	query = db.query(Lesson).filter(Lesson.grade_id == grade_id, Lesson.order_number == order_number)
	if exclude_id:
		query = query.filter(Lesson.id != exclude_id)
	return query.first() is not None


async def _read_uploads(files: Optional[List[UploadFile]]) -> List[PendingFile]:
	"""Validate every upload before any of them touches the disk."""
	files = [f for f in files or [] if f.filename]
	if len(files) > MAX_FILES_PER_REQUEST:
		raise ValidationError(f"At most {MAX_FILES_PER_REQUEST} audio files per request")
	return [await read_audio(upload) for upload in files]


def _commit_with_files(db: Session, lesson: Lesson, pending: List[PendingFile]) -> None:
	"""Write the files, attach them to the lesson and commit; stored files are removed on failure."""
	stored: List[StoredFile] = []
	try:
		for item in pending:
			stored.append(write_audio(item))
		lesson.audio_files.extend(
			LessonAudioFile(filename=s.filename, original_name=s.original_name, path=s.path, size=s.size)
			for s in stored
		)
		commit(db)
	except Exception:
		for s in stored:
			remove_file(s.path)
		raise


@router.get("/grade/{grade_id}")
def lessons_by_grade(grade_id: str, request: Request, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	lessons = (
		db.query(Lesson)
		.filter(Lesson.grade_id == grade_id, Lesson.is_active.is_(True))
		.order_by(Lesson.order_number.asc())
		.all()
	)
	return success([_with_audio_urls(request, lesson) for lesson in lessons])


@router.get("/{lesson_id}")
def get_lesson(lesson_id: str, request: Request, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	lesson = _get_lesson_or_404(db, lesson_id)
	return success(_with_audio_urls(request, lesson))


@router.post("", status_code=201)
async def create_lesson(
	request: Request,
	title: str = Form(""),
	grade_id: str = Form(""),
	description: str = Form(""),
	order_number: Optional[int] = Form(None, ge=1),
	audio_files: Optional[List[UploadFile]] = File(None),
	admin: User = Depends(require_admin),
	db: Session = Depends(get_db),
):
	if not title.strip() or not grade_id:
		raise ValidationError("Title and grade are required")
	get_grade_or_404(db, grade_id)
	pending = await _read_uploads(audio_files)
	if order_number is None:
		last = db.query(Lesson).filter(Lesson.grade_id == grade_id).order_by(Lesson.order_number.desc()).first()
		order_number = last.order_number + 1 if last else 1
	if _order_taken(db, grade_id, order_number):
		raise ValidationError("Lesson with this order number already exists")
	lesson = Lesson(
		title=title.strip(),
		description=description,
		grade_id=grade_id,
		order_number=order_number,
		word_pairs=[],
	)
	db.add(lesson)
	_commit_with_files(db, lesson, pending)
	return success(_with_audio_urls(request, lesson))


@router.put("/{lesson_id}")
async def update_lesson(
	lesson_id: str,
	request: Request,
	title: Optional[str] = Form(None),
	description: Optional[str] = Form(None),
	order_number: Optional[int] = Form(None, ge=1),
	is_active: Optional[bool] = Form(None),
	audio_files: Optional[List[UploadFile]] = File(None),
	admin: User = Depends(require_admin),
	db: Session = Depends(get_db),
):
	lesson = _get_lesson_or_404(db, lesson_id)
	pending = await _read_uploads(audio_files)
	if order_number is not None and order_number != lesson.order_number:
		if _order_taken(db, lesson.grade_id, order_number, exclude_id=lesson.id):
			raise ValidationError("Lesson with this order number already exists")
		lesson.order_number = order_number
	if title:
		lesson.title = title.strip()
	if description:
		lesson.description = description
	if is_active is not None:
		lesson.is_active = is_active
	_commit_with_files(db, lesson, pending)
	return success(_with_audio_urls(request, lesson))


@router.delete("/{lesson_id}/audio/{audio_id}")
def delete_audio(lesson_id: str, audio_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	lesson = _get_lesson_or_404(db, lesson_id)
	audio = next((a for a in lesson.audio_files if a.id == audio_id), None)
	if audio is None:
		raise NotFound("Audio file not found")
	path = audio.path
	lesson.audio_files.remove(audio)
	commit(db)
	remove_file(path)
	return success(message="Audio file deleted successfully")


@router.delete("/{lesson_id}")
def delete_lesson(lesson_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	lesson = _get_lesson_or_404(db, lesson_id)
	paths = [a.path for a in lesson.audio_files]
	db.delete(lesson)
	commit(db)
	for path in paths:
		remove_file(path)
	return success(message="Lesson deleted successfully")


@router.get("/{lesson_id}/audio/{filename}")
def serve_audio(lesson_id: str, filename: str, db: Session = Depends(get_db)):
	lesson = _get_lesson_or_404(db, lesson_id)
	audio = next((a for a in lesson.audio_files if a.filename == filename), None)
	if audio is None:
		raise NotFound("Audio file not found in lesson")
	path = Path(audio.path)
	if not path.exists():
		raise NotFound("Audio file not found on disk")
	return FileResponse(
		path,
		media_type="audio/mpeg",
		filename=audio.original_name or audio.filename,
		content_disposition_type="inline",
	)


@router.post("/{lesson_id}/word-pairs")
def add_word_pair(lesson_id: str, pair: WordPair, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	lesson = _get_lesson_or_404(db, lesson_id)
	# Reassign so the JSON column registers the change
	lesson.word_pairs = [*(lesson.word_pairs or []), pair.model_dump()]
	commit(db)
	return success(dump(LessonOut, lesson))
