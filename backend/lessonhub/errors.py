"""Domain errors raised by routes and services.

Each error knows the HTTP status it maps to; ``main`` installs the handlers
that render them into the ``{"status": "error", "message": ...}`` envelope.
"""

from __future__ import annotations

from typing import Any, List, Optional


class LessonHubError(Exception):
	status_code: int = 500
	default_message: str = "Internal server error"

	def __init__(self, message: Optional[str] = None, *, errors: Optional[List[Any]] = None) -> None:
		self.message = message or self.default_message
		self.errors = errors
		super().__init__(self.message)


class ValidationError(LessonHubError):
	status_code = 400
	default_message = "Please fill in all required fields"


class InsufficientContent(LessonHubError):
	"""The curriculum does not yet support the requested operation."""
	status_code = 400
	default_message = "Not enough content available"


class AuthError(LessonHubError):
	status_code = 401
	default_message = "Could not validate credentials"


class Forbidden(LessonHubError):
	status_code = 403
	default_message = "Access denied. Admin privileges required."


class NotFound(LessonHubError):
	status_code = 404
	default_message = "Resource not found"


class DataIntegrityError(LessonHubError):
	status_code = 500
	default_message = "Stored data violates an integrity constraint"


class StorageError(LessonHubError):
	status_code = 500
	default_message = "Storage failure"


class EvaluatorError(LessonHubError):
	"""External speech evaluation failed; callers recover with a fallback result."""
	status_code = 502
	default_message = "Speech evaluation failed"
