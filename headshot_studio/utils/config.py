"""Configuration management for the headshot service."""

import os
from pathlib import Path
from typing import Dict, List, Optional
import yaml
from pydantic import BaseModel, ConfigDict, Field
from dotenv import load_dotenv

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class PolicyConfig(BaseModel):
    """Upload, image, retry and cleanup policy read by the core components."""
    allowed_media_types: List[str] = ["image/jpeg", "image/png"]
    media_type_aliases: Dict[str, str] = {
        "image/jpg": "image/jpeg",
        "image/pjpeg": "image/jpeg",
        "image/x-png": "image/png",
    }
    max_file_size_bytes: int = 10 * 1024 * 1024
    min_dimension: int = 512
    max_width: int = 2048
    max_height: int = 2048
    output_quality: int = Field(default=90, ge=1, le=95)

    max_attempts: int = Field(default=3, ge=1)
    base_delay_seconds: float = Field(default=1.0, ge=0)
    request_timeout_seconds: float = Field(default=180.0, gt=0)

    sweep_interval_seconds: float = Field(default=3600.0, gt=0)
    max_artifact_age_seconds: float = Field(default=3600.0, ge=0)


class Config(BaseModel):
    """Main application configuration."""

    model_config = ConfigDict(populate_by_name=True)

    # API Keys
    google_api_key: str = Field(..., alias="GOOGLE_API_KEY")

    # Application Settings
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    port: int = Field(default=3001, alias="PORT")
    upload_dir: Path = Field(default=Path("./uploads"), alias="UPLOAD_DIR")

    # Upstream model
    gemini_model: str = Field(default="gemini-2.5-flash-image", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )
    timeout_gemini_seconds: float = Field(default=120.0, alias="TIMEOUT_GEMINI_SECONDS")

    policy: PolicyConfig = Field(default_factory=PolicyConfig)


# Global config instance
_config: Optional[Config] = None


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from environment and a YAML policy file.

    Environment variables supply credentials and deployment settings; the
    YAML file supplies the ``policy`` section. A missing YAML file means
    the policy defaults apply.

    Args:
        path: Location of the YAML settings file

    Returns:
        Config instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config

    try:
        file_config = {}
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        else:
            logger.warning(
                f"Settings file not found at {path}, using policy defaults",
                extra={"path": str(path)},
            )

        config_data = {
            **os.environ,
            **file_config,
        }

        _config = Config(**config_data)

        logger.info(
            "Configuration loaded successfully",
            extra={
                "environment": _config.app_env,
                "model": _config.gemini_model,
                "upload_dir": str(_config.upload_dir),
            }
        )

        return _config

    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}")


def get_config() -> Config:
    """
    Get the current configuration instance.

    Raises:
        ConfigurationError: If config not loaded
    """
    if _config is None:
        raise ConfigurationError("Configuration not loaded. Call load_config() first.")
    return _config
