"""Audio file storage for lesson uploads.

Files live under ``settings.upload_dir`` with generated names; the original
name is only kept as metadata.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from .errors import ValidationError
from .settings import settings


logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".mp3", ".wav", ".ogg", ".m4a", ".aac"}
ALLOWED_MIME_TYPES = {
	"audio/mpeg",
	"audio/wav",
	"audio/x-wav",
	"audio/ogg",
	"audio/mp4",
	"audio/x-m4a",
	"audio/aac",
	"audio/x-hx-aac-adts",
}
MAX_FILES_PER_REQUEST = 5


@dataclass
class PendingFile:
	"""An upload that passed validation and is held in memory until written."""
	original_name: Optional[str]
	ext: str
	content: bytes


@dataclass
class StoredFile:
	filename: str
	original_name: Optional[str]
	path: str
	size: int


def upload_root() -> Path:
	root = Path(settings.upload_dir)
	root.mkdir(parents=True, exist_ok=True)
	return root


def check_audio(upload: UploadFile) -> str:
	ext = Path(upload.filename or "").suffix.lower()
	if ext not in ALLOWED_EXTENSIONS or (upload.content_type or "") not in ALLOWED_MIME_TYPES:
		raise ValidationError("Only valid audio files are allowed")
	return ext


async def read_audio(upload: UploadFile) -> PendingFile:
	ext = check_audio(upload)
	content = await upload.read()
	if len(content) > settings.max_upload_bytes:
		raise ValidationError(
			f"File size too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB."
		)
	return PendingFile(original_name=upload.filename, ext=ext, content=content)


def write_audio(pending: PendingFile) -> StoredFile:
	filename = f"{uuid.uuid4().hex}{pending.ext}"
	target = upload_root() / filename
	target.write_bytes(pending.content)
	return StoredFile(filename=filename, original_name=pending.original_name, path=str(target), size=len(pending.content))


def remove_file(path: str) -> None:
	target = Path(path)
	if target.exists():
		target.unlink()
	else:
		logger.info("Audio file already gone: %s", path)
