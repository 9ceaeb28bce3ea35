from datetime import datetime, timezone

from fastapi import APIRouter

from ..responses import success
from ..settings import settings

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health():
	return success(
		{
			"timestamp": datetime.now(timezone.utc).isoformat(),
			"features": {
				"vocabulary": True,
				"topic_tests": True,
				"mock_tests": True,
				"ai_evaluation": bool(settings.gemini_api_key),
			},
		},
		message="Server is running",
	)
