from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "VOD Catalog"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:////db/vodcatalog.db"

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"
    TIMEZONE: str = "Europe/Paris"
    STATUS_CHANNEL: str = "vod:status"

    # Xtream client
    XC_TIMEOUT_SECONDS: float = 60.0
    XC_RETRY_ATTEMPTS: int = 3
    XC_USER_AGENT: str = "VOD-Catalog-Client"

    # Catalog defaults
    DEFAULT_MOVIE_CATEGORY: str = "VOD"
    DEFAULT_SERIES_CATEGORY: str = "Series"
    DEFAULT_CONTAINER_EXTENSION: str = "mp4"

    # Scheduling
    VOD_REFRESH_INTERVAL_SECONDS: float = 6 * 60 * 60
    REFRESH_LOCK_TIMEOUT_SECONDS: int = 60 * 60

    class Config:
        env_file = ".env"

settings = Settings()
