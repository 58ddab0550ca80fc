from typing import Literal

from pydantic import BaseModel

from app.shared.config import config


def _cors_origins() -> list[str]:
    raw = (config.get("API_CORS_ORIGINS") or "*").strip()
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG")

    # HTTP server
    API_HOST: str = (config.get("API_HOST") or "0.0.0.0").strip()
    API_PORT: int = config.get_int("API_PORT", 8000, minimum=1)
    API_WORKERS: int = config.get_int("API_WORKERS", 1, minimum=1)
    API_CORS_ORIGINS: list[str] = _cors_origins()

    # Persistence
    STORE_BACKEND: Literal["mongo", "memory"] = (
        "memory" if (config.get("STORE_BACKEND") or "").strip().lower() == "memory" else "mongo"
    )
    MONGO_URL: str = config.get_mongo_url().strip()
    MONGO_DATABASE: str = (config.get("MONGO_DATABASE") or "idea_sessions").strip()
    MONGO_MAX_POOL_SIZE: int = config.get_int("MONGO_MAX_POOL_SIZE", 5, minimum=1)
    # Kept short so an unreachable store surfaces as STORE_UNAVAILABLE instead of hanging
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = config.get_int(
        "MONGO_SERVER_SELECTION_TIMEOUT_MS", 3000, minimum=1
    )
    MONGO_CONNECT_TIMEOUT_MS: int = config.get_int("MONGO_CONNECT_TIMEOUT_MS", 3000, minimum=1)
    MONGO_SOCKET_TIMEOUT_MS: int = config.get_int("MONGO_SOCKET_TIMEOUT_MS", 10000, minimum=1)
    SESSION_UPDATE_MAX_RETRIES: int = config.get_int("SESSION_UPDATE_MAX_RETRIES", 3, minimum=0)

    # Real-time event fan-out
    EVENTS_BACKEND: Literal["redis", "memory", "none"] = (
        (config.get("EVENTS_BACKEND") or "none").strip().lower()  # type: ignore[assignment]
    )
    REDIS_URL: str = config.get_redis_url().strip()
    EVENTS_CHANNEL_PREFIX: str = (config.get("EVENTS_CHANNEL_PREFIX") or "sessions").strip()

    # Identity
    AUTH_JWT_SECRET: str = (config.get("AUTH_JWT_SECRET") or "dev-secret").strip()
    AUTH_JWT_ALGORITHM: str = (config.get("AUTH_JWT_ALGORITHM") or "HS256").strip()

    # Session defaults
    DEFAULT_MAX_PARTICIPANTS: int = config.get_int("DEFAULT_MAX_PARTICIPANTS", 20, minimum=1)
    DEFAULT_DURATION_MINUTES: int = config.get_int("DEFAULT_DURATION_MINUTES", 30, minimum=15)
    CHAT_MESSAGE_MAX_LENGTH: int = config.get_int("CHAT_MESSAGE_MAX_LENGTH", 2000, minimum=1)

    # Observability
    LOGFIRE_ENABLE: bool = config.get_bool("LOGFIRE_ENABLE")
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
