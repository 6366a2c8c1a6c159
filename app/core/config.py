from functools import lru_cache
from pathlib import Path
from typing import List
from urllib.parse import urlparse
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), case_sensitive=False, extra="ignore")

    APP_NAME: str = "Parking QR Backend"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_PREFIX: str = "/api"
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000

    DATABASE_URL: str = "sqlite:///./parking_qr.db"

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Base of the URL encoded into generated QR codes. Empty means "use the request's base URL".
    PUBLIC_BASE_URL: str = ""

    BCRYPT_ROUNDS: int = 10
    SHORT_ID_MAX_ATTEMPTS: int = 10
    MAX_BATCH_SIZE: int = 1000
    QR_IMAGE_BOX_SIZE: int = 10
    QR_IMAGE_BORDER: int = 1

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""
    SEED_DEMO_DATA: bool = False

    @property
    def cors_origins(self) -> List[str]:
        origins: list[str] = []
        for raw in self.CORS_ORIGINS.split(","):
            value = raw.strip()
            if not value:
                continue
            parsed = urlparse(value)
            if parsed.scheme and parsed.netloc:
                value = f"{parsed.scheme}://{parsed.netloc}"
            origins.append(value.rstrip("/"))
        return origins

    @property
    def should_seed(self) -> bool:
        return self.SEED_DEMO_DATA or self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
