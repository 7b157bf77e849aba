# kickstart/core/settings.py
# Configuration applicative (pydantic-settings) : MongoDB, JWT, stockage des artefacts, uploads, sessions.

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from kickstart.shared.constants import AUDIO_BUCKET, CONTENT_BUCKET


class Settings(BaseSettings):
    # === App settings ===
    app_name: str = "KickStartX"
    environment: str = "development"  # or "production"
    api_version: str = "0.1.0"

    # === MongoDB ===
    mongodb_user: str = ""
    mongodb_password: str = ""
    mongodb_uri_tpl: str = "mongodb://localhost:27017"
    mongodb_db: str = "kickstart"

    # === JWT ===
    jwt_secret_key: str = "change-me-in-dotenv"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60 * 24  # 1 day

    # === BLOB STORAGE ===
    blob_backend: str = "local"  # or "http"
    uploads_dir: str = "uploads"
    public_base_url: str = "http://localhost:8000/uploads"
    storage_endpoint: str = ""
    storage_api_key: str = ""
    storage_timeout_s: float = 10.0
    audio_bucket: str = AUDIO_BUCKET
    content_bucket: str = CONTENT_BUCKET

    # UPLOAD
    one_mb: int = 1024 * 1024
    max_upload_mb: int = 20
    allowed_content_extensions: list[str] = [".pdf"]

    # === TASKS / SESSIONS ===
    default_total_topics: int = 10
    capture_max_duration_s: float = 120.0
    study_interval_days: int = 1

    # === LOGS ===
    logs_dir: str = "logs"
    logs_retention_days: int = 30

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def mongodb_uri(self) -> str:
        """Build the full MongoDB URI from template."""
        return self.mongodb_uri_tpl.replace("[[MONGODB_USER]]", self.mongodb_user)\
                                   .replace("[[MONGODB_PASSWORD]]", self.mongodb_password)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * self.one_mb


@lru_cache
def get_settings() -> Settings:
    """Instance unique des settings (lue une seule fois depuis l'environnement / `.env`)."""
    return Settings()
