from __future__ import annotations
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from .models import NOTIFICATION_TYPES, Notification


def score_message(score: float, subject: str) -> str:
	if score >= 90:
		return f"Excellent! You scored {score:g}% on your {subject}. Your understanding and expression are outstanding!"
	if score >= 80:
		return f"Great job! You scored {score:g}% on your {subject}. You're making excellent progress!"
	if score >= 70:
		return f"Good work! You scored {score:g}% on your {subject}. Keep practicing to improve further."
	if score >= 60:
		return f"Nice effort! You scored {score:g}% on your {subject}. Review the feedback for improvement areas."
	return f"You scored {score:g}% on your {subject}. Check the detailed feedback to see how you can improve."


def notify(
	db: Session,
	user_id: str,
	type: str,
	title: str,
	message: str,
	data: Optional[Dict[str, Any]] = None,
) -> Notification:
	"""Queue a notification on the session; the caller commits it with its own write."""
	if type not in NOTIFICATION_TYPES:
		raise ValueError(f"unknown notification type: {type!r}")
	row = Notification(user_id=user_id, type=type, title=title, message=message, data=data, read=False)
	db.add(row)
	return row
