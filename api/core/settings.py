"""
Process configuration read from environment variables.

`Settings.from_env()` is called once when the app is created; the resulting
object is stored on `app.state` and handed to code through FastAPI
dependencies. Nothing else in the API reads `os.environ`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import Request

DEFAULT_OWNER_BLACKLIST = Path(__file__).resolve().parent / "data" / "owners_blacklist.json"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    # Key used to verify bearer JWTs. For RS256 this is the PEM public key.
    jwt_secret: str = "dev-change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = None
    jwt_issuer: str | None = None
    default_page_size: int = 20
    max_page_size: int = 100
    max_upload_bytes: int = 1024 * 1024 * 1024  # 1 GiB per file
    max_form_files: int = 5000
    owner_blacklist_path: Path = DEFAULT_OWNER_BLACKLIST
    services_factory: str = ""
    cors_origins: tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"
    access_token_rounds: int = 12

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_env_str("DATABASE_URL"),
            jwt_secret=_env_str("JWT_SECRET", "dev-change-this-secret"),
            jwt_algorithm=_env_str("JWT_ALG", "HS256"),
            jwt_audience=_env_str("JWT_AUDIENCE") or None,
            jwt_issuer=_env_str("JWT_ISSUER") or None,
            default_page_size=max(1, _env_int("PAGE_SIZE_DEFAULT", 20)),
            max_page_size=max(1, _env_int("PAGE_SIZE_MAX", 100)),
            max_upload_bytes=max(1, _env_int("MAX_UPLOAD_BYTES", 1024 * 1024 * 1024)),
            max_form_files=max(1, _env_int("MAX_FORM_FILES", 5000)),
            owner_blacklist_path=Path(_env_str("OWNER_BLACKLIST_PATH", str(DEFAULT_OWNER_BLACKLIST))),
            services_factory=_env_str("API_SERVICES_FACTORY"),
            cors_origins=_env_list("CORS_ORIGINS", ("http://localhost:5173", "http://127.0.0.1:5173")),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            access_token_rounds=min(31, max(4, _env_int("ACCESS_TOKEN_BCRYPT_ROUNDS", 12))),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
