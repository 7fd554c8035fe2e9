from typing import List, Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(Path(ROOT_DIR) / '.env')

class Settings(BaseSettings):
    STORAGE_BACKEND: str = "firestore"  # "firestore" or "local"
    FIREBASE_CREDS_PATH: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None
    LOCAL_STORAGE_PATH: str = "movieshelf_local.json"
    LOCAL_USER_ID: str = "local"

    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_BASE_URL: str = "https://image.tmdb.org/t/p"
    TMDB_TOKEN: Optional[str] = None
    TMDB_LANGUAGE: str = "en-US"

    API_BASE_URL: str = "http://localhost:8000/api"
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "app.log"

    @property
    def FIREBASE_CREDS_PATH_ABSOLUTE(self) -> Optional[Path]:
        """Returns absolute path to Firebase credentials file"""
        if not self.FIREBASE_CREDS_PATH:
            return None
        return ROOT_DIR / self.FIREBASE_CREDS_PATH

    @property
    def LOCAL_STORAGE_PATH_ABSOLUTE(self) -> Path:
        return ROOT_DIR / self.LOCAL_STORAGE_PATH

    @property
    def use_local_storage(self) -> bool:
        return self.STORAGE_BACKEND.lower() == "local"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
