"""Logging configuration helpers for the LessonHub API."""

from __future__ import annotations

import logging
from logging import Logger

from .settings import settings


def configure_logging() -> Logger:
	"""Configure basic logging for the application and return the package logger."""
	logging.basicConfig(
		level=getattr(logging, settings.log_level.upper(), logging.INFO),
		format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
	)
	# passlib warns about bcrypt's version metadata on every import
	logging.getLogger("passlib").setLevel(logging.ERROR)
	return logging.getLogger("lessonhub")
