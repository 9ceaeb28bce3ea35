from __future__ import annotations
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import commit, get_db
from ..errors import NotFound, ValidationError
from ..models import Category, User
from ..responses import success
from ..schemas import CategoryOut, dump, dump_all
from .auth import get_current_user, require_admin


router = APIRouter(prefix="/api/category", tags=["category"])


class CategoryRequest(BaseModel):
	title: str = ""


def get_category_or_404(db: Session, category_id: str) -> Category:
	category = db.get(Category, category_id)
	if category is None:
		raise NotFound("Category not found")
	return category


@router.get("/list")
def list_categories(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return success(dump_all(CategoryOut, db.query(Category).order_by(Category.created_at.asc()).all()))


@router.get("/{category_id}")
def get_category(category_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return success(dump(CategoryOut, get_category_or_404(db, category_id)))


@router.post("/create", status_code=201)
def create_category(req: CategoryRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	if not req.title.strip():
		raise ValidationError("Category title is required")
	category = Category(title=req.title.strip())
	db.add(category)
	commit(db)
	return success(dump(CategoryOut, category))


@router.put("/{category_id}")
def update_category(category_id: str, req: CategoryRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	if not req.title.strip():
		raise ValidationError("Category title is required")
	category = get_category_or_404(db, category_id)
	category.title = req.title.strip()
	commit(db)
	return success(dump(CategoryOut, category))


@router.delete("/{category_id}")
def delete_category(category_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
	db.delete(get_category_or_404(db, category_id))
	commit(db)
	return success(message="Category deleted successfully")
