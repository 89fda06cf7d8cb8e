"""Centralized configuration for the profile picture rotator.

This module provides:
- PROJECT_ROOT and SRC_DIR paths
- Environment variable access with get_env()
- Automatic .env loading
- BackendConfig, the environment-driven settings shared by the backend,
  the scheduler and the CLI

Usage:
    from pfp_rotator.config import load_backend_config

    config = load_backend_config()
    print(config.storage_path)
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from pfp_rotator.exceptions import ConfigurationError

# Calculate paths once at import time
SRC_DIR = Path(__file__).parent.parent.resolve()
PROJECT_ROOT = SRC_DIR.parent.resolve()

# Load .env from project root
_env_path = PROJECT_ROOT / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

DEFAULT_TARGET_URL = "https://www.linkedin.com/in/me/"


def get_env(key: str, default: Optional[str] = None) -> str:
    """Get environment variable value.

    Args:
        key: Environment variable name
        default: Default value if not set. If None and key not found, raises KeyError.

    Returns:
        Environment variable value or default

    Raises:
        KeyError: If key not found and no default provided
    """
    value = os.environ.get(key)
    if value is not None:
        return value
    if default is not None:
        return default
    raise KeyError(f"Environment variable '{key}' not set and no default provided")


def get_flag(key: str, default: bool = False) -> bool:
    """Read a boolean toggle such as LOCAL_VARIATIONS=1 or USE_REMBG=true."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def resolve_path(value: str, base: Path = PROJECT_ROOT) -> Path:
    """Resolve a configured path; relative paths are taken from the project root."""
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


class RotationPolicy(str, Enum):
    """When the rotation index moves forward after an apply attempt."""
    ADVANCE_ON_ATTEMPT = "advance-on-attempt"
    ADVANCE_ON_CONFIRM = "advance-on-confirm"


def parse_policy(value: str) -> RotationPolicy:
    """Map a ROTATION_POLICY value to RotationPolicy.

    Raises:
        ConfigurationError: Value is not a known policy
    """
    try:
        return RotationPolicy(value.strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in RotationPolicy)
        raise ConfigurationError(f"Unknown ROTATION_POLICY '{value}' (expected one of: {choices})") from None


class BackendConfig(BaseModel):
    """Environment-driven configuration for the local backend."""

    api_key: Optional[str] = None
    storage_path: Path = PROJECT_ROOT / "generated-images"
    base_photo_dir: Path = PROJECT_ROOT / "base-pfp"
    temp_dir: Path = PROJECT_ROOT / "temp"
    local_mode: bool = False
    background_replacement: bool = False
    use_rembg: bool = False
    host: str = "127.0.0.1"
    port: int = 3000
    backend_url: str = "http://localhost:3000"
    rotation_policy: RotationPolicy = RotationPolicy.ADVANCE_ON_ATTEMPT
    target_url: str = DEFAULT_TARGET_URL
    browser_profile_dir: Path = PROJECT_ROOT / ".browser-profile"
    browser_headless: bool = False
    scheduler_autostart: bool = True
    image_model: str = "gemini-2.5-flash-image"

    @property
    def settings_path(self) -> Path:
        """Where persisted rotation settings live."""
        return self.storage_path.parent / "settings.json"


def load_backend_config() -> BackendConfig:
    """Build BackendConfig from the environment (.env already loaded)."""
    port = int(get_env("PORT", default="3000"))
    return BackendConfig(
        api_key=os.environ.get("AI_API_KEY") or None,
        storage_path=resolve_path(get_env("STORAGE_PATH", default="generated-images")),
        base_photo_dir=resolve_path(get_env("BASE_PHOTO_DIR", default="base-pfp")),
        temp_dir=resolve_path(get_env("TEMP_DIR", default="temp")),
        local_mode=get_flag("LOCAL_VARIATIONS"),
        background_replacement=get_flag("BACKGROUND_REPLACEMENT"),
        use_rembg=get_flag("USE_REMBG"),
        host=get_env("HOST", default="127.0.0.1"),
        port=port,
        backend_url=get_env("BACKEND_URL", default=f"http://localhost:{port}"),
        rotation_policy=parse_policy(get_env("ROTATION_POLICY", default="advance-on-attempt")),
        target_url=get_env("TARGET_URL", default=DEFAULT_TARGET_URL),
        browser_profile_dir=resolve_path(get_env("BROWSER_PROFILE_DIR", default=".browser-profile")),
        browser_headless=get_flag("BROWSER_HEADLESS"),
        scheduler_autostart=get_flag("SCHEDULER_AUTOSTART", default=True),
        image_model=get_env("IMAGE_MODEL", default="gemini-2.5-flash-image"),
    )
