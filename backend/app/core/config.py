from pydantic_settings import BaseSettings
from typing import List, Union, Optional
from pydantic import field_validator


class Settings(BaseSettings):
    # Database
    POSTGRES_USER: str = "storygen"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "storygen"
    DATABASE_URL: Optional[str] = None  # Full URL override (e.g. sqlite:///./storygen.db)

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        """Database URL, composed from the POSTGRES_* parts unless overridden."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # LLM
    OPENAI_API_KEY: str = ""
    LLM_BASE_URL: Optional[str] = None  # Any OpenAI-compatible endpoint
    LLM_MODEL: str = "gpt-4o-mini"
    VALIDATE_STORY_OUTPUT: bool = True  # Reject model output without title/paragraphs

    # API quota
    DEFAULT_API_CALLS: int = 20
    ENFORCE_API_QUOTA: bool = True  # Refuse generation once the counter hits 0

    # Application
    SECRET_KEY: str
    DEBUG: bool = False
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]
    RATE_LIMIT_ENABLED: bool = True

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            # Split by comma or keep as single item
            return [origin.strip() for origin in v.split(",")]
        return v

    # Session tokens
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Cookie Security
    COOKIE_NAME: str = "authToken"
    COOKIE_SECURE: bool = True  # Set to False for local development without HTTPS
    COOKIE_SAMESITE: str = "none"  # Client is served from a different origin
    COOKIE_DOMAIN: Optional[str] = None
    ENABLE_HSTS: bool = True
    HSTS_MAX_AGE: int = 31536000  # 1 year in seconds
    HSTS_INCLUDE_SUBDOMAINS: bool = True
    HSTS_PRELOAD: bool = False

    @property
    def is_production(self) -> bool:
        """Detect if running in production environment."""
        return self.COOKIE_SECURE and not self.DEBUG

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
