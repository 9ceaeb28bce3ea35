from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import commit, get_db
from ..errors import NotFound
from ..models import Notification, TopicTestResult, User, utcnow
from ..responses import pagination, success
from ..schemas import NotificationOut, TopicTestResultOut, dump, dump_all
from .auth import get_current_user


router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _own_notification_or_404(db: Session, user: User, notification_id: str) -> Notification:
	row = (
		db.query(Notification)
		.filter(Notification.id == notification_id, Notification.user_id == user.id)
		.first()
	)
	if row is None:
		raise NotFound("Notification not found")
	return row


def _mark_read(row: Notification) -> None:
	if not row.read:
		row.read = True
		row.read_at = utcnow()


@router.get("")
def list_notifications(
	page: int = Query(1, ge=1),
	limit: int = Query(10, ge=1, le=100),
	unread_only: bool = False,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	query = db.query(Notification).filter(Notification.user_id == user.id)
	if unread_only:
		query = query.filter(Notification.read.is_(False))
	total = query.count()
	rows = query.order_by(Notification.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
	unread_count = (
		db.query(Notification)
		.filter(Notification.user_id == user.id, Notification.read.is_(False))
		.count()
	)
	return success({
		"notifications": dump_all(NotificationOut, rows),
		"unread_count": unread_count,
		"pagination": pagination(total, page, limit),
	})


# Registered before "/{notification_id}/read" so "read-all" is not taken for an id
@router.put("/read-all")
def read_all(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	db.query(Notification).filter(
		Notification.user_id == user.id, Notification.read.is_(False)
	).update({Notification.read: True, Notification.read_at: utcnow()}, synchronize_session=False)
	commit(db)
	return success(message="All notifications marked as read")


@router.put("/{notification_id}/read")
def read_one(notification_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	row = _own_notification_or_404(db, user, notification_id)
	_mark_read(row)
	commit(db)
	return success(dump(NotificationOut, row))


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	db.delete(_own_notification_or_404(db, user, notification_id))
	commit(db)
	return success(message="Notification deleted successfully")


@router.get("/{notification_id}/details")
def details(notification_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	row = _own_notification_or_404(db, user, notification_id)
	_mark_read(row)
	commit(db)
	data = row.data or {}
	if row.type == "ai_feedback" and data.get("result_id"):
		result = db.get(TopicTestResult, data["result_id"])
		return success({
			"notification": dump(NotificationOut, row),
			"result": dump(TopicTestResultOut, result) if result else None,
			"redirect_url": f"/topic-test/result/{data['result_id']}",
		})
	if row.type == "test_complete" and data.get("mock_test_result_id"):
		return success({
			"notification": dump(NotificationOut, row),
			"redirect_url": f"/mock-test/{data['mock_test_result_id']}",
		})
	return success({"notification": dump(NotificationOut, row), "redirect_url": None})
