from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	# Tokens are long-lived (30 days) unless overridden
	access_token_expire_minutes: int = Field(default=30 * 24 * 60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Speech evaluator (Gemini, with optional OpenRouter fallback)
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="LessonHub", validation_alias="OPENROUTER_TITLE")
	# Per-call timeouts; gemini + openrouter must fit inside evaluator_timeout_seconds
	gemini_timeout_seconds: float = Field(default=12.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
	openrouter_timeout_seconds: float = Field(default=15.0, validation_alias="OPENROUTER_TIMEOUT_SECONDS")
	evaluator_timeout_seconds: float = Field(default=30.0, validation_alias="EVALUATOR_TIMEOUT_SECONDS")

	# HTTP surface
	cors_origins: list[str] = Field(
		default=["http://localhost:3000", "http://localhost:5173", "http://localhost:5174"],
		validation_alias="CORS_ORIGINS",
	)
	upload_dir: str = Field(default="uploads/audio", validation_alias="UPLOAD_DIR")
	max_upload_bytes: int = Field(default=50 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")

	# Mock test policy
	mock_test_questions: int = Field(default=20, validation_alias="MOCK_TEST_QUESTIONS")
	mock_test_cooldown_hours: int = Field(default=24, validation_alias="MOCK_TEST_COOLDOWN_HOURS")
	# Fixed seed makes question selection reproducible; unset means fresh entropy per process
	mock_test_seed: int | None = Field(default=None, validation_alias="MOCK_TEST_SEED")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
