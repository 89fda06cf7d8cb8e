"""Configuration for the rotator backend service."""


class Settings:
    """Service constants. Environment-driven values live in pfp_rotator.config."""

    # Generation defaults
    DEFAULT_NUM_IMAGES = 10

    # Uploads
    MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB base photo
    MAX_BASE64_CHARS = MAX_UPLOAD_BYTES * 4 // 3 + 1024  # data URL of a 10MB photo

    # Extension pages call from chrome-extension:// origins
    CORS_ORIGINS = ["*"]

    # Seconds to wait for the page automator to acknowledge an apply
    APPLY_TIMEOUT = 120.0


# Global settings instance
settings = Settings()
