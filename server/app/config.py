import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv


DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
)


@dataclass
class Settings:
    # Database
    database_url: str

    # Server
    port: int

    # Auth
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 30

    # Frontend origins allowed by CORS
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))


# Global settings instance
_settings: Optional[Settings] = None


def _parse_origins(raw: str) -> list[str]:
    origins = [origin.strip() for origin in raw.split(",")]
    return [origin for origin in origins if origin]


def load_cors_origins() -> list[str]:
    """CORS origins from CORS_ORIGINS (comma-separated), read before settings load."""
    load_dotenv()
    raw = os.getenv("CORS_ORIGINS", "")
    return _parse_origins(raw) if raw else list(DEFAULT_CORS_ORIGINS)


def load_settings() -> Settings:
    global _settings
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is required")

    # JWT settings
    jwt_secret_key = os.getenv("JWT_SECRET_KEY", "")
    if not jwt_secret_key:
        # Generate a default for development, but warn
        import secrets
        jwt_secret_key = secrets.token_urlsafe(32)
        print("[WARNING] JWT_SECRET_KEY not set. Using random key (tokens won't survive a restart)")

    _settings = Settings(
        database_url=database_url.strip().strip('"'),
        port=int(os.getenv("PORT", "8000")),
        jwt_secret_key=jwt_secret_key,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_access_token_expire_minutes=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "30")),
        cors_origins=load_cors_origins(),
    )
    return _settings


def get_settings() -> Settings:
    """Get the loaded settings. Must call load_settings() first."""
    global _settings
    if _settings is None:
        raise RuntimeError("Settings not initialized. Call load_settings() first.")
    return _settings
