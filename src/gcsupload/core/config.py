"""Configuration management for the upload service."""

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

from gcsupload.upload.policy import DEFAULT_ALLOWED_MIME_TYPES, UploadPolicyConfig


@dataclass(frozen=True)
class BasicCredentials:
    """Username and password accepted by HTTP Basic auth."""

    username: str
    password: str

    @property
    def configured(self) -> bool:
        return bool(self.username and self.password)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "gcs-file-upload"
    SERVICE_VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # GCP Configuration
    GCP_PROJECT_ID: str = ""

    # Storage Configuration
    STORAGE_BACKEND: str = "local"  # "gcs" or "local"
    GCS_BUCKET_NAME: str = ""
    LOCAL_STORAGE_PATH: str = "data/uploads"

    # Upload Constraints
    MAX_UPLOAD_MB: int = 10
    ALLOWED_UPLOAD_MIME_TYPES: str = ""  # Comma-separated, empty = default spreadsheet/JSON set
    UPLOAD_TIMEOUT_SECONDS: float = 60.0

    # Basic auth
    BASIC_AUTH_USERNAME: str = ""
    BASIC_AUTH_PASSWORD: str = ""

    LOG_LEVEL: str = "INFO"

    @property
    def bucket_name(self) -> str:
        """Bucket used for uploads; the local backend falls back to a fixed directory name."""
        if self.GCS_BUCKET_NAME:
            return self.GCS_BUCKET_NAME
        return "uploads" if self.STORAGE_BACKEND == "local" else ""

    @property
    def allowed_mime_types(self) -> frozenset[str]:
        """Parse ALLOWED_UPLOAD_MIME_TYPES into a set."""
        if not self.ALLOWED_UPLOAD_MIME_TYPES:
            return DEFAULT_ALLOWED_MIME_TYPES
        return frozenset(
            mt.strip().lower() for mt in self.ALLOWED_UPLOAD_MIME_TYPES.split(",") if mt.strip()
        )

    @property
    def max_upload_bytes(self) -> int:
        """Convert MAX_UPLOAD_MB to bytes."""
        return self.MAX_UPLOAD_MB * 1024 * 1024

    def upload_policy(self) -> UploadPolicyConfig:
        """Build the immutable upload policy from the current settings."""
        return UploadPolicyConfig(
            max_bytes=self.max_upload_bytes,
            allowed_mime_types=self.allowed_mime_types,
        )

    def credentials(self) -> BasicCredentials:
        """Build the immutable Basic auth credentials from the current settings."""
        return BasicCredentials(
            username=self.BASIC_AUTH_USERNAME,
            password=self.BASIC_AUTH_PASSWORD,
        )


# Singleton settings instance
settings = Settings()
