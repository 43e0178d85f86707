from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "CleanIt Ops API"
    ENV: str = "development"

    # -------------------------------------------------
    # CORS (admin web console + mobile dev servers)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8081",
        "http://localhost:19006",
    ]

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # Tables
    # -------------------------------------------------
    JOBS_TABLE: str = "jobs"
    REQUESTS_TABLE: str = "requests"

    # -------------------------------------------------
    # Workflow policy
    # -------------------------------------------------
    # When enabled, a job needs at least one "after" photo before completion.
    REQUIRE_PHOTO_PROOF: bool = False

    DEFAULT_LIST_LIMIT: int = Field(200, description="Max rows returned by list endpoints")

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True
        extra = "ignore"


# Instantiate settings
settings = Settings()

# Normalize CORS origins (strip trailing slashes, dedupe)
settings.BACKEND_CORS_ORIGINS = sorted({o.rstrip("/") for o in settings.BACKEND_CORS_ORIGINS})
