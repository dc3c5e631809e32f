import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# $NAME references inside app.yaml strings
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

DEFAULT_CACHE_CONTROL = "public, max-age=31536000"
DEFAULT_PUBLIC_HOST = "storage.cloud.google.com"


def ensure_leading_slash(path: str) -> str:
    return path if path.startswith("/") else "/" + path


def _env_value(match: re.Match) -> str:
    name = match.group(1)
    if name not in os.environ:
        raise ValueError(f"Environment variable ${name} not set")
    return os.environ[name]


def interpolate_env_vars(value: Any) -> Any:
    """Resolve ``$NAME`` references in every string nested inside *value*."""
    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(_env_value, value)
    if isinstance(value, dict):
        return {key: interpolate_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def load_app_config(config_path: Path | None = None) -> dict:
    """Read app.yaml, by default from the working directory, with ``$NAME`` resolved."""
    config_path = config_path or Path.cwd() / "app.yaml"
    if not config_path.is_file():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    return interpolate_env_vars(yaml.safe_load(config_path.read_text()) or {})


class GCloudConfig(BaseSettings):
    """Google Cloud Storage adapter options.

    Values not passed explicitly fall back to ``GCLOUD_*`` environment
    variables (``GCLOUD_PROJECT_ID``, ``GCLOUD_BUCKET``, ...).
    """

    model_config = SettingsConfigDict(
        env_prefix="GCLOUD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    project_id: str | None = None
    bucket: str | None = None
    path: str = "/"
    generate_filename: Any = "random"
    credentials_file: str | None = None

    max_attempts: int = Field(default=3, ge=1)
    overwrite: bool = False

    public_host: str = DEFAULT_PUBLIC_HOST
    cache_control: str = DEFAULT_CACHE_CONTROL
    gzip: bool = True
    public: bool = True

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        return ensure_leading_slash(value)

    @field_validator("public_host")
    @classmethod
    def _strip_host(cls, value: str) -> str:
        return value.removeprefix("https://").removeprefix("http://").rstrip("/")


@lru_cache
def get_config_defaults() -> dict:
    """Return the ``gcloud`` section of app.yaml, or an empty dict.

    The ``.env`` file in the working directory is loaded first so that
    ``$VAR`` references in the YAML can resolve against it.
    """
    load_dotenv(Path.cwd() / ".env")

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return {}

    return dict(app_config.get("gcloud") or {})
