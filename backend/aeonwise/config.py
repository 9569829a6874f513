import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    openai_api_key: Optional[str] = Field(None, alias="OPENAI_API_KEY")
    llm_base_url: Optional[str] = Field(None, alias="AEONWISE_LLM_BASE_URL")
    llm_model: str = Field("gpt-4o-mini", alias="AEONWISE_LLM_MODEL")
    llm_timeout_seconds: float = Field(30.0, alias="AEONWISE_LLM_TIMEOUT")
    llm_max_attempts: int = Field(3, ge=1, alias="AEONWISE_LLM_MAX_ATTEMPTS")
    llm_backoff_base_seconds: float = Field(1.0, ge=0.0, alias="AEONWISE_LLM_BACKOFF_BASE")
    database_url: Optional[str] = Field(None, alias="AEONWISE_DATABASE_URL")
    database_pool_size: int = Field(10, alias="AEONWISE_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="AEONWISE_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="AEONWISE_DATABASE_ECHO")
    match_limit: int = Field(10, ge=1, alias="AEONWISE_MATCH_LIMIT")
    recommendation_limit: int = Field(3, ge=1, alias="AEONWISE_RECOMMENDATION_LIMIT")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="AEONWISE_CORS_ORIGINS")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()  # type: ignore[arg-type]
        if settings.openai_api_key and not os.getenv("OPENAI_API_KEY"):
            os.environ["OPENAI_API_KEY"] = settings.openai_api_key
        return settings
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
