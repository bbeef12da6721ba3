from pydantic import BaseModel
import os
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()  # carga el archivo .env de la raíz

class Settings(BaseModel):
    app_name: str = os.getenv("APP_NAME", "PetManager")
    env: str = os.getenv("APP_ENV", "dev")
    mongodb_uri: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    db_name: str = os.getenv("DB_NAME", "petmanager")
    jwt_secret: str = os.getenv("JWT_SECRET", "change-me")
    jwt_expires_hours: int = int(os.getenv("JWT_EXPIRES_HOURS", "8"))
    media_dir: str = os.getenv("MEDIA_DIR", str(Path(__file__).resolve().parents[1] / "media"))
    frontend_base_url: str = os.getenv("FRONTEND_BASE_URL", "http://localhost:5173")

    # Lado cliente
    backend_url: str = os.getenv("BACKEND_URL", "http://localhost:8000")
    storage_bucket: str = os.getenv("STORAGE_BUCKET", "pet-images")
    max_image_bytes: int = int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))
    recent_logs_limit: int = int(os.getenv("RECENT_LOGS_LIMIT", "10"))

    @property
    def bucket_dir(self) -> Path:
        return Path(self.media_dir) / self.storage_bucket


_settings: Settings | None = None
def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.bucket_dir.mkdir(parents=True, exist_ok=True)
    return _settings
