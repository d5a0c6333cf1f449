from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite://./facetagger.db"

    # Storage
    STORAGE_DIR: str = "./storage"
    IMAGES_SUBDIR: str = "images"
    FACES_SUBDIR: str = "faces"
    FACE_IMAGE_QUALITY: int = 90
    MAX_UPLOAD_SIZE_MB: int = 10

    # Public origin of the image-serving endpoint, used to build provider/chat links
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Detection provider
    DETECTION_API_URL: str = "https://api.edenai.run/v2/image/face_detection"
    DETECTION_API_TOKEN: str = ""
    DETECTION_PROVIDER: str = "amazon"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Jobs: inline | rq
    JOBS_BACKEND: str = "inline"
    REDIS_URL: str = "redis://127.0.0.1:6379/0"
    CROP_QUEUE_NAME: str = "face-crops"

    # Chat front end
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_MAX_MESSAGE_LEN: int = 4096

    # Observability
    METRICS_ENABLED: bool = False
    SENTRY_DSN: str = ""

    @field_validator("JOBS_BACKEND", mode="before")
    @classmethod
    def normalize_backend(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in ("inline", "rq"):
                raise ValueError(f"Unsupported JOBS_BACKEND {v!r}; use 'inline' or 'rq'")
        return v

    @field_validator("PUBLIC_BASE_URL", "TELEGRAM_API_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @property
    def is_production(self) -> bool:
        return (self.APP_ENV or "").strip().lower() == "production"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
