from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name, default)
    if value is not None and not value.strip():
        return default
    return value


@dataclass(frozen=True)
class Settings:
    db_path: str
    debug: bool
    log_file: Optional[str]
    min_password_length: int
    admin_email: Optional[str]
    admin_password: Optional[str]
    admin_name: str


def get_settings() -> Settings:
    return Settings(
        db_path=_env("MARKETPLACE_DB_PATH", "data/marketplace.sqlite"),
        debug=bool(_env("DEBUG")),
        log_file=_env("LOG_FILE"),
        min_password_length=int(_env("MIN_PASSWORD_LENGTH", "6")),
        admin_email=_env("ADMIN_EMAIL"),
        admin_password=_env("ADMIN_PASSWORD"),
        admin_name=_env("ADMIN_NAME", "Administrator"),
    )
