from __future__ import annotations
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import commit, get_db
from ..errors import NotFound, ValidationError
from ..models import TestDetail, User
from ..responses import success
from ..schemas import TestDetailOut, dump
from .auth import require_admin
from .test import get_test_or_404


router = APIRouter(prefix="/api/test-detail", tags=["test-detail"])


class ParentRef(BaseModel):
	kind: Literal["test"] = "test"
	id: str


class DetailCreate(BaseModel):
	condition: str = ""
	text: str = ""
	parent: Optional[ParentRef] = None


class DetailUpdate(BaseModel):
	condition: Optional[str] = None
	text: Optional[str] = None


def _get_detail_or_404(db: Session, detail_id: str) -> TestDetail:
	detail = db.get(TestDetail, detail_id)
	if detail is None:
		raise NotFound("Test detail not found")
	return detail


@router.post("/create", status_code=201)
def create_detail(req: DetailCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	if not req.condition or not req.text or req.parent is None:
		raise ValidationError("condition, text and parent are required")
	# Only "test" parents exist; the kind is checked by the request model
	test = get_test_or_404(db, req.parent.id)
	detail = TestDetail(condition=req.condition, text=req.text, parent_kind=req.parent.kind, parent_id=test.id)
	db.add(detail)
	commit(db)
	return success(dump(TestDetailOut, detail))


@router.put("/{detail_id}")
def update_detail(detail_id: str, req: DetailUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	detail = _get_detail_or_404(db, detail_id)
	if req.condition:
		detail.condition = req.condition
	if req.text:
		detail.text = req.text
	commit(db)
	return success(dump(TestDetailOut, detail))


@router.delete("/{detail_id}")
def delete_detail(detail_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	db.delete(_get_detail_or_404(db, detail_id))
	commit(db)
	return success(message="Test detail deleted successfully")
