from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "pixelpost-contests-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "PixelPost Contests")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/pixelpost_dev")

    # Contest events (redis|memory)
    event_broker: str = os.getenv("EVENT_BROKER", "redis")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    event_channel_prefix: str = os.getenv("EVENT_CHANNEL_PREFIX", "pixelpost")

    # End-user tokens come from Auth0 (RS256, JWKS)
    auth0_domain: str = os.getenv("AUTH0_DOMAIN", "pixelpost.us.auth0.com")
    auth0_audience: str = os.getenv("AUTH0_AUDIENCE", "https://api.pixelpost.dev")

    # Admin tokens are issued here (HS256)
    admin_jwt_secret: str = os.getenv("ADMIN_JWT_SECRET", "dev-admin-secret-change-me")
    admin_token_ttl_hours: int = int(os.getenv("ADMIN_TOKEN_TTL_HOURS", "8"))

    @property
    def auth0_issuer(self) -> str:
        return f"https://{self.auth0_domain}/"

    @property
    def auth0_jwks_url(self) -> str:
        return f"https://{self.auth0_domain}/.well-known/jwks.json"

settings = Settings()
