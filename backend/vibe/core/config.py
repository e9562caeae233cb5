import secrets
from enum import Enum
from typing import Any

from pydantic import PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModeEnum(str, Enum):
    development = "development"
    production = "production"
    testing = "testing"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file="../.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── App ───────────────────────────────────────────────────
    MODE: ModeEnum = ModeEnum.production
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "VIBE"
    LOG_LEVEL: str = "INFO"

    # ── JWT / Auth ────────────────────────────────────────────
    # Tokens are issued by the identity provider; we only verify them.
    SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ── Database ──────────────────────────────────────────────
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_NAME: str = "vibe"

    ASYNC_DATABASE_URI: PostgresDsn | str = ""

    @field_validator("ASYNC_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: str | None, info) -> Any:
        if isinstance(v, str) and v == "":
            data = info.data
            # Skip SSL for local dev
            mode = data.get("MODE", ModeEnum.development)
            query = "ssl=require" if mode != ModeEnum.development else None
            return PostgresDsn.build(
                scheme="postgresql+asyncpg",
                username=data.get("DATABASE_USER"),
                password=data.get("DATABASE_PASSWORD"),
                host=data.get("DATABASE_HOST"),
                port=data.get("DATABASE_PORT"),
                path=data.get("DATABASE_NAME"),
                query=query,
            )
        return v

    # ── OpenAI ────────────────────────────────────────────────
    OPENAI_API_KEY: str = ""
    CODE_AGENT_MODEL: str = "openai:gpt-4.1"
    SUMMARY_AGENT_MODEL: str = "openai:gpt-4o-mini"

    # ── Sandbox (E2B) ─────────────────────────────────────────
    E2B_API_KEY: str = ""
    SANDBOX_TEMPLATE: str = "vibe-nextjs"
    SANDBOX_TIMEOUT_SECONDS: int = 60 * 30
    SANDBOX_PREVIEW_PORT: int = 3000

    # ── Agent loop ────────────────────────────────────────────
    AGENT_MAX_ITERATIONS: int = 15
    AGENT_REQUEST_LIMIT: int = 40
    AGENT_HISTORY_LIMIT: int | None = None  # None loads the whole conversation

    # ── Credits ───────────────────────────────────────────────
    FREE_POINTS: int = 5
    PRO_POINTS: int = 100
    CREDITS_DURATION_SECONDS: int = 30 * 24 * 60 * 60
    GENERATION_COST: int = 1

    # ── Background jobs ───────────────────────────────────────
    JOB_RETRIES: int = 3
    JOB_RETRY_BACKOFF_SECONDS: float = 2.0
    JOB_RESUME_ON_STARTUP: bool = True


settings = Settings()
