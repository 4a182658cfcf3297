"""Configuration for the LangGraph PR Reviewer."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # App
    environment: str = Field(default="development", env="ENVIRONMENT")
    debug: bool = Field(default=True, env="DEBUG")
    host: str = Field(default="0.0.0.0", env="HOST")
    port: int = Field(default=8080, env="PORT")
    log_level: Optional[str] = Field(default=None, env="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")

    # LLM provider selection (validated at run start, see src.core.llm)
    ai_provider: Optional[str] = Field(default=None, env="AI_PROVIDER")
    ai_provider_model: Optional[str] = Field(default=None, env="AI_PROVIDER_MODEL")
    codebase_high_overview_description: str = Field(
        default="", env="CODEBASE_HIGH_OVERVIEW_DESCRIPTION"
    )
    llm_temperature: float = Field(default=0.0, env="LLM_TEMPERATURE")
    llm_max_retries: int = Field(default=2, env="LLM_MAX_RETRIES")

    # LLM credentials, one per provider
    groq_api_key: Optional[str] = Field(default=None, env="GROQ_API_KEY")
    google_gemini_api_key: Optional[str] = Field(default=None, env="GOOGLE_GEMINI_API_KEY")
    openrouter_api_key: Optional[str] = Field(default=None, env="OPENROUTER_API_KEY")

    # GitHub: either a token (Actions / PAT) or App authentication
    github_token: Optional[str] = Field(default=None, env="GITHUB_TOKEN")
    github_app_id: Optional[str] = Field(default=None, env="GITHUB_APP_ID")
    github_private_key: Optional[str] = Field(default=None, env="GITHUB_PRIVATE_KEY")
    github_installation_id: Optional[str] = Field(default=None, env="GITHUB_INSTALLATION_ID")
    github_webhook_secret: Optional[str] = Field(default=None, env="GITHUB_WEBHOOK_SECRET")
    github_bot_login: Optional[str] = Field(default=None, env="GITHUB_BOT_LOGIN")

    # Default Repository (for #123 shorthand on the CLI)
    default_repo_owner: Optional[str] = Field(default=None, env="DEFAULT_REPO_OWNER")
    default_repo_name: Optional[str] = Field(default=None, env="DEFAULT_REPO_NAME")

    # Review Configuration
    file_content_limit: int = Field(default=10000, env="FILE_CONTENT_LIMIT")
    patch_limit: int = Field(default=10000, env="PATCH_LIMIT")
    file_review_delay_seconds: float = Field(default=1.0, env="FILE_REVIEW_DELAY_SECONDS")
    reply_delay_seconds: float = Field(default=2.0, env="REPLY_DELAY_SECONDS")
    review_thread_id: Optional[str] = Field(default=None, env="REVIEW_THREAD_ID")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
