from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..db import commit, get_db
from ..errors import NotFound
from ..models import Lesson, Vocabulary, User, utcnow
from ..responses import success
from ..schemas import VocabularyOut, dump, dump_all
from .auth import require_admin


router = APIRouter(prefix="/api/vocabulary", tags=["vocabulary"])

SEARCH_LIMIT = 50

PartOfSpeech = Literal[
    "noun",
    "verb",
    "adjective",
    "adverb",
    "pronoun",
    "preposition",
    "conjunction",
    "interjection",
]
Difficulty = Literal["easy", "medium", "hard"]


class VocabularyCreate(BaseModel):
    lesson_id: str
    word: str
    definition: str
    part_of_speech: PartOfSpeech
    example: str
    pronunciation: Optional[str] = None
    audio_url: Optional[str] = None
    synonyms: List[str] = []
    antonyms: List[str] = []
    difficulty: Difficulty = "medium"
    image_url: Optional[str] = None
    order: int = 0


class VocabularyUpdate(BaseModel):
    word: Optional[str] = None
    definition: Optional[str] = None
    part_of_speech: Optional[PartOfSpeech] = None
    example: Optional[str] = None
    pronunciation: Optional[str] = None
    audio_url: Optional[str] = None
    synonyms: Optional[List[str]] = None
    antonyms: Optional[List[str]] = None
    difficulty: Optional[Difficulty] = None
    image_url: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


def _get_entry_or_404(db: Session, entry_id: str) -> Vocabulary:
    entry = db.get(Vocabulary, entry_id)
    if entry is None:
        raise NotFound("Vocabulary not found")
    return entry


@router.post("/create", status_code=201)
def create_entry(req: VocabularyCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    lesson = db.get(Lesson, req.lesson_id)
    if lesson is None:
        raise NotFound("Lesson not found")
    data = req.model_dump()
    data["word"] = data["word"].strip()
    data["synonyms"] = [s.strip() for s in data["synonyms"] if s.strip()]
    data["antonyms"] = [s.strip() for s in data["antonyms"] if s.strip()]
    entry = Vocabulary(grade_id=lesson.grade_id, **data)
    db.add(entry)
    commit(db)
    return success(dump(VocabularyOut, entry))


@router.get("/lesson/{lesson_id}")
def by_lesson(lesson_id: str, db: Session = Depends(get_db)):
    entries = (
        db.query(Vocabulary)
        .filter(Vocabulary.lesson_id == lesson_id, Vocabulary.is_active.is_(True))
        .order_by(Vocabulary.order.asc())
        .all()
    )
    return success(dump_all(VocabularyOut, entries))


@router.get("/grade/{grade_id}")
def by_grade(grade_id: str, db: Session = Depends(get_db)):
    rows = (
        db.query(Vocabulary, Lesson)
        .join(Lesson, Lesson.id == Vocabulary.lesson_id)
        .filter(Vocabulary.grade_id == grade_id, Vocabulary.is_active.is_(True))
        .order_by(Lesson.order_number.asc(), Vocabulary.order.asc())
        .all()
    )
    data = [
        dump(VocabularyOut, entry, lesson={"id": lesson.id, "title": lesson.title, "order_number": lesson.order_number})
        for entry, lesson in rows
    ]
    return success(data)


@router.get("/search")
def search(
    q: Optional[str] = None,
    grade_id: Optional[str] = None,
    lesson_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Vocabulary).filter(Vocabulary.is_active.is_(True))
    if q:
        pattern = f"%{q}%"
        query = query.filter(or_(Vocabulary.word.ilike(pattern), Vocabulary.definition.ilike(pattern)))
    if grade_id:
        query = query.filter(Vocabulary.grade_id == grade_id)
    if lesson_id:
        query = query.filter(Vocabulary.lesson_id == lesson_id)
    entries = query.order_by(Vocabulary.word.asc()).limit(SEARCH_LIMIT).all()
    return success(dump_all(VocabularyOut, entries))


@router.get("/{entry_id}")
def get_entry(entry_id: str, db: Session = Depends(get_db)):
    return success(dump(VocabularyOut, _get_entry_or_404(db, entry_id)))


@router.put("/{entry_id}")
def update_entry(entry_id: str, req: VocabularyUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    entry = _get_entry_or_404(db, entry_id)
    for key, value in req.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(entry, key, value)
    entry.updated_at = utcnow()
    commit(db)
    return success(dump(VocabularyOut, entry))


@router.delete("/{entry_id}")
def delete_entry(entry_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    db.delete(_get_entry_or_404(db, entry_id))
    commit(db)
    return success(message="Vocabulary deleted successfully")
