from __future__ import annotations
import math
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
	body: Dict[str, Any] = {"status": "success"}
	if message is not None:
		body["message"] = message
	if data is not None:
		body["data"] = jsonable_encoder(data)
	return body


def error(message: str, **extra: Any) -> Dict[str, Any]:
	body: Dict[str, Any] = {"status": "error", "message": message}
	body.update({k: v for k, v in extra.items() if v is not None})
	return body


def pagination(total: int, page: int, limit: int) -> Dict[str, int]:
	return {
		"total": total,
		"page": page,
		"limit": limit,
		"pages": math.ceil(total / limit) if limit else 0,
	}
