from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "development"  # development | production
    APP_NAME: str = "bootcamp-directory"

    JWT_SECRET: str = "change_me_jwt"
    JWT_EXPIRE_DAYS: int = 30
    JWT_COOKIE_EXPIRE_DAYS: int = 30
    JWT_COOKIE_NAME: str = "token"

    CORS_ORIGINS: str = "http://localhost:3000"

    DATABASE_URL: str
    REDIS_URL: str = "redis://localhost:6379/0"

    GEOCODER_PROVIDER: str = "mapquest"
    GEOCODER_API_KEY: str = ""
    GEOCODER_URL: str = "https://www.mapquestapi.com/geocoding/v1/address"
    GEOCODER_TIMEOUT_SECONDS: float = 5.0

    S3_ENDPOINT: str
    S3_ACCESS_KEY: str
    S3_SECRET_KEY: str
    S3_BUCKET: str
    S3_REGION: str = "us-east-1"
    S3_USE_SSL: bool = False
    MAX_FILE_UPLOAD: int = 1000000

    LOGIN_RATE_LIMIT: int = 10
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 300
    # Only enable behind a reverse proxy that overwrites X-Forwarded-For.
    TRUST_PROXY_HEADERS: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() == "production"

settings = Settings()
