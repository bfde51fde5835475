"""Runtime configuration read from the environment (and a local .env)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

log = logging.getLogger("phraselink.config")

BACKEND_DIR = Path(__file__).resolve().parent
DEFAULT_VAULT_DIR = BACKEND_DIR / "storage" / "vault"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r", name, raw)
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r", name, raw)
        return default


@dataclass(frozen=True)
class Settings:
    vault_dir: Path = DEFAULT_VAULT_DIR
    debounce_seconds: float = 0.3
    fuzzy_min_length: int = 1
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from PHRASELINK_* variables, loading .env files first."""
    load_dotenv()
    load_dotenv(dotenv_path=env_file or BACKEND_DIR / ".env", override=False)

    vault_dir = os.getenv("PHRASELINK_VAULT_DIR", "").strip()
    log_level = os.getenv("PHRASELINK_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        log_level = "INFO"

    return Settings(
        vault_dir=Path(vault_dir).expanduser() if vault_dir else DEFAULT_VAULT_DIR,
        debounce_seconds=max(0.0, _float_env("PHRASELINK_DEBOUNCE_SECONDS", 0.3)),
        fuzzy_min_length=max(1, _int_env("PHRASELINK_FUZZY_MIN_LENGTH", 1)),
        log_level=log_level,
        host=os.getenv("PHRASELINK_HOST", "127.0.0.1"),
        port=_int_env("PHRASELINK_PORT", 8000),
    )
