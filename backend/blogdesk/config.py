"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path

DEFAULT_SECRET_KEY = "change-me-to-a-random-secret-key"


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./blogdesk.db"
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60

    # Image upload
    MAX_UPLOAD_SIZE: int = 15 * 1024 * 1024  # 15 MB per file
    MAX_UPLOAD_FILES: int = 20
    IMAGE_UPLOAD_CONCURRENCY: int = 4
    IMAGE_MAX_WIDTH: int = 1600
    IMAGE_MAX_HEIGHT: int = 1200
    IMAGE_QUALITY: int = 80

    # Asset store (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_FOLDER: str = "blog-images"
    CLOUDINARY_UPLOAD_URL: str = "https://api.cloudinary.com/v1_1"
    CLOUDINARY_TIMEOUT_SECONDS: float = 30.0

    # scripts/create_user.py, scripts/reset_admin_password.py 기본 관리자 계정
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    def missing_required(self) -> List[str]:
        required = {
            "SECRET_KEY": "" if self.SECRET_KEY == DEFAULT_SECRET_KEY else self.SECRET_KEY,
            "CLOUDINARY_CLOUD_NAME": self.CLOUDINARY_CLOUD_NAME,
            "CLOUDINARY_API_KEY": self.CLOUDINARY_API_KEY,
            "CLOUDINARY_API_SECRET": self.CLOUDINARY_API_SECRET,
        }
        return [name for name, value in required.items() if not str(value or "").strip()]

    @property
    def image_max_size(self) -> tuple[int, int]:
        return (self.IMAGE_MAX_WIDTH, self.IMAGE_MAX_HEIGHT)

    class Config:
        # 실행 cwd와 무관하게 backend/.env를 로드한다.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
