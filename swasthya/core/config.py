from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "SwasthyaID"
    API_V1_STR: str = "/api/v1"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_DB: str = "swasthya"
    DATABASE_URL: Optional[str] = None
    REDIS_URL: str = "redis://localhost:6379/0"

    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8

    OTP_EXPIRE_MINUTES: int = 10
    # Echo the OTP back in the response until an SMS gateway is wired in
    OTP_DEV_ECHO: bool = True
    WORKER_ID_ATTEMPTS: int = 5

    STORAGE_ROOT: str = "storage"
    STORAGE_BUCKET: str = "medical-documents"
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    MISTRAL_API_KEY: Optional[str] = None
    MISTRAL_MODEL: str = "pixtral-12b-2409"
    MISTRAL_URL: str = "https://api.mistral.ai/v1/chat/completions"
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: Optional[str] = None
    AI_GATEWAY_MODEL: str = "google/gemini-2.5-flash"
    AI_TIMEOUT_SECONDS: float = 60.0
    DEFAULT_HEALTH_TRACKING: int = 95

    class Config:
        case_sensitive = True
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.DATABASE_URL:
            self.DATABASE_URL = f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"

settings = Settings()
