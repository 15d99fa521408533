from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "ServIt 360 API"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase (identity provider)
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Database
    DATABASE_URL: str = "sqlite:///./servit.db"
    AUTO_CREATE_TABLES: bool = True

    # JWT
    JWT_SECRET_KEY: str = "dev-only-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Operations
    DEFAULT_CURRENCY: str = "CAD"
    SERVICE_TIMEZONE: str = "America/Toronto"
    TARGET_FOOD_COST_PCT: float = 50.0
    DEFAULT_TIP_PERCENT: float = 15.0
    RECENT_ITEMS_LIMIT: int = 5

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
