from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Optional: model override for grading and syntax checks
	gemini_model_grading: str | None = Field(default=None, validation_alias="GEMINI_MODEL_GRADING")
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="30 Days of Python", validation_alias="OPENROUTER_TITLE")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Curriculum content (lesson markdown files)
	content_dir: str = Field(default="content/30DaysPython", validation_alias="PYDAYS_CONTENT_DIR")
	seed_on_startup: bool = Field(default=False, validation_alias="PYDAYS_SEED_ON_STARTUP")

	log_level: str = Field(default="INFO", validation_alias="PYDAYS_LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def grading_model(self) -> str:
		return self.gemini_model_grading or self.gemini_model

settings = Settings()
