# agriconnect/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_DB: str = "agriconnect_db"
    POSTGRES_HOST: Optional[str] = None # Set to 'db' or 'localhost' to use Postgres instead of SQLite
    POSTGRES_PORT: str = "5432"

    DATABASE_URL: Optional[str] = None
    SQLITE_URL: str = "sqlite:///./agriconnect.db"
    CREATE_TABLES_ON_START: bool = True

    PRICE_HISTORY_DAYS: int = 7
    PRICE_VARIANCE: float = 0.15
    DEFAULT_UNIT: str = "per kg"

    CSV_CHUNK_SIZE: int = 50_000
    UPLOAD_DIR: str = "./shared_data"

    LOG_LEVEL: str = "INFO"

    ADMIN_NAME: str = "Admin"
    ADMIN_EMAIL: str = "admin@agriconnect.local"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def get_database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.POSTGRES_HOST:
            return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        return self.SQLITE_URL

settings = Settings()
