"""
Configuration models and loader.

Expected JSON layout::

    {
        "minutesToSleep": "5",
        "smtpAddress": "mail.example.com",
        "smtpPort": "25",
        "smtpSender": "logalert@example.com",
        "logLocations": [
            {
                "fileLocation": "/var/log/app/app-{{{yyyyMMdd}}}.log",
                "smtpRecipients": ["ops@example.com"],
                "searchTerms": ["error", "fatal"],
                "ignoreTerms": ["error: transient"]
            }
        ]
    }
"""
import json
import os
import platform
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from logalert.errors import ConfigError

load_dotenv()

WINDOWS_STORAGE_ROOT = "."
POSIX_STORAGE_ROOT = "/usr/local/bin/inhouse/logalert"


class LogLocation(BaseModel):
    fileLocation: str = Field(min_length=1)
    smtpRecipients: List[str] = Field(min_length=1)
    searchTerms: List[str] = Field(default_factory=list)
    ignoreTerms: List[str] = Field(default_factory=list)


class AppConfig(BaseModel):
    minutesToSleep: int = Field(gt=0)
    smtpAddress: str
    smtpPort: int = Field(gt=0, lt=65536)
    smtpSender: str
    logLocations: List[LogLocation] = Field(default_factory=list)

    storageRoot: Optional[str] = None
    smtpTimeout: float = Field(default=60.0, gt=0)
    smtpUseTls: bool = False
    smtpUsername: Optional[str] = None
    smtpPassword: Optional[str] = None
    logFile: Optional[str] = None

    @property
    def sleep_seconds(self) -> float:
        return self.minutesToSleep * 60.0

    def smtp_password(self) -> Optional[str]:
        return os.getenv("LOGALERT_SMTP_PASSWORD") or self.smtpPassword


def load_config(path) -> AppConfig:
    """
    Read and validate the JSON config file at ``path``.

    Raises:
        ConfigError: the file is missing, is not valid JSON or fails validation.
    """
    config_path = Path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {config_path}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {e}")
    except OSError as e:
        raise ConfigError(f"Could not read config file {config_path}: {e}")

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}")


def resolve_storage_root(config: Optional[AppConfig] = None) -> Path:
    """Pick the storage root: environment, then config, then the OS default."""
    env_root = os.getenv("LOGALERT_STORAGE_ROOT")
    if env_root:
        return Path(env_root)
    if config is not None and config.storageRoot:
        return Path(config.storageRoot)
    if platform.system() == "Windows":
        return Path(WINDOWS_STORAGE_ROOT)
    return Path(POSIX_STORAGE_ROOT)
