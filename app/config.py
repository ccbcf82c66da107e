import os
from typing import Optional, List, Union
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings"""

    # App settings
    APP_NAME: str = "Influencer Search API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    PORT: int = 7001
    LOG_LEVEL: str = "INFO"

    # Database settings
    DB_PATH: Optional[str] = None
    INFLUENCERS_TABLE: str = "influencers"
    KEYWORDS_TABLE: str = "keywords"

    # CORS settings
    ALLOWED_ORIGINS: Union[str, List[str]] = ["*"]

    @field_validator('ALLOWED_ORIGINS', mode='before')
    @classmethod
    def parse_origins(cls, v):
        """Parse ALLOWED_ORIGINS from string or list"""
        if isinstance(v, str):
            if v == "*":
                return ["*"]
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return str(v or "INFO").strip().upper()

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()


def _candidate_db_roots() -> List[str]:
    """Return possible data locations (env override, then the repo checkout)."""
    current_dir = os.path.dirname(os.path.abspath(__file__))
    repo_root = os.path.dirname(current_dir)

    candidates: List[str] = []
    env_root = os.getenv("INFLUENCER_DB_ROOT")
    if env_root:
        candidates.append(env_root)
    candidates.append(repo_root)

    # Deduplicate while preserving order
    seen = set()
    unique_candidates: List[str] = []
    for path in candidates:
        norm = os.path.abspath(path)
        if norm not in seen:
            seen.add(norm)
            unique_candidates.append(norm)
    return unique_candidates


def _resolve_default_db_path() -> str:
    """Pick the first existing LanceDB directory, else the expected layout."""
    for root in _candidate_db_roots():
        candidate = os.path.join(root, "data", "lancedb")
        if os.path.exists(candidate):
            return candidate

    first_root = _candidate_db_roots()[0]
    return os.path.join(first_root, "data", "lancedb")


# Set default DB path if not provided
if not settings.DB_PATH:
    settings.DB_PATH = _resolve_default_db_path()
