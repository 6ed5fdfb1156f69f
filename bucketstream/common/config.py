from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_REGION = "eu-central-1"


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _env(name: str) -> str | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _as_bool(value: str | None, default: bool) -> bool:
    # Unparseable values, "yes" and "on" included, count as false.
    if value is None:
        return default
    return value in {"1", "t", "T", "true", "TRUE", "True"}


@dataclass(frozen=True)
class Settings:
    S3_REGION: str = DEFAULT_REGION
    S3_ENDPOINT_URL: str | None = None
    S3_NO_SSL: bool = False
    S3_FORCE_PATH_STYLE: bool = False
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    TRANSFER_ATTEMPTS: int = 3
    TRANSFER_BACKOFF_SECONDS: float = 1.0
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    def __post_init__(self) -> None:
        if self.TRANSFER_ATTEMPTS < 1:
            raise ValueError("TRANSFER_ATTEMPTS must be at least 1.")
        if self.TRANSFER_BACKOFF_SECONDS < 0:
            raise ValueError("TRANSFER_BACKOFF_SECONDS must not be negative.")
        if self.LOG_FORMAT not in {"json", "plain"}:
            raise ValueError("LOG_FORMAT must be either 'json' or 'plain'.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_REGION=_env("AWS_REGION") or cls.S3_REGION,
            S3_ENDPOINT_URL=_env("AWS_S3_ENDPOINT"),
            S3_NO_SSL=_as_bool(_env("AWS_S3_NO_SSL"), cls.S3_NO_SSL),
            S3_FORCE_PATH_STYLE=_as_bool(
                _env("AWS_S3_FORCE_PATH_STYLE"), cls.S3_FORCE_PATH_STYLE
            ),
            S3_ACCESS_KEY_ID=_env("AWS_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=_env("AWS_SECRET_ACCESS_KEY"),
            TRANSFER_ATTEMPTS=int(
                _env("BUCKETSTREAM_ATTEMPTS") or cls.TRANSFER_ATTEMPTS
            ),
            TRANSFER_BACKOFF_SECONDS=float(
                _env("BUCKETSTREAM_BACKOFF_SECONDS") or cls.TRANSFER_BACKOFF_SECONDS
            ),
            LOG_LEVEL=(_env("BUCKETSTREAM_LOG_LEVEL") or cls.LOG_LEVEL).upper(),
            LOG_FORMAT=(_env("BUCKETSTREAM_LOG_FORMAT") or cls.LOG_FORMAT).lower(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
