from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal, Tuple

from dotenv import load_dotenv

# --- CONFIGURATION ---

MAX_IMAGES = 10

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OLLAMA_MODEL = "llava:13b"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "null")  # "null" allows opening the html file directly

Provider = Literal["gemini", "ollama"]


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    provider: Provider = "gemini"
    gemini_model: str = DEFAULT_GEMINI_MODEL
    ollama_model: str = DEFAULT_OLLAMA_MODEL
    temperature: float = 0.2
    # True: a missing key fails the request; False: warn and call anyway
    require_api_key: bool = True
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS

    @property
    def needs_api_key(self) -> bool:
        return self.provider == "gemini"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (after loading .env)."""
        load_dotenv()

        provider = os.environ.get("ESTIMATOR_PROVIDER", "gemini").strip().lower()
        if provider not in ("gemini", "ollama"):
            raise ValueError(f"ESTIMATOR_PROVIDER must be 'gemini' or 'ollama', got {provider!r}")

        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY") or None

        origins = os.environ.get("CORS_ORIGINS")
        cors_origins = (
            tuple(o.strip() for o in origins.split(",") if o.strip())
            if origins
            else DEFAULT_CORS_ORIGINS
        )

        return cls(
            api_key=api_key,
            provider=provider,  # type: ignore[arg-type]
            gemini_model=os.environ.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            ollama_model=os.environ.get("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL),
            temperature=float(os.environ.get("ESTIMATOR_TEMPERATURE", "0.2")),
            require_api_key=_env_flag("REQUIRE_API_KEY", True),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            cors_origins=cors_origins,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
