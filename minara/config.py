"""
Application Configuration.

Pydantic Settings model for the Minara Learn desktop client.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import SecretStr, model_validator


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Local store (orphaned-account ledger) ---
    LOCAL_DB_PATH: str = "minara_local.db"

    # --- Logging ---
    LOG_FILE: str = "minara.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    # --- Signup throttling (identity provider cooldowns) ---
    THROTTLE_SHORT_SECONDS: int = 48
    THROTTLE_GENERIC_SECONDS: int = 60

    # --- Profile reconciliation ---
    PROFILE_VERIFY_ATTEMPTS: int = 3
    PROFILE_VERIFY_BACKOFF_S: float = 0.25
    PROFILE_SETTLE_DELAY_S: float = 0.5

    # --- Form rules ---
    PASSWORD_MIN_LENGTH: int = 8
    NAME_MIN_LENGTH: int = 2
    BIO_MIN_LENGTH: int = 100
    MOTIVATION_MIN_LENGTH: int = 50

    # --- Remediation targets shown to the user ---
    DATABASE_REPAIR_URL: str = "/admin/emergency-fix"
    RLS_REPAIR_URL: str = "/admin/fix-rls"
    SUPPORT_EMAIL: str = "support@minaralearn.com"

    # --- Navigation ---
    SIGN_IN_PATH: str = "/auth/signin"

    # --- Orphaned-account sweep ---
    SWEEP_INTERVAL_S: float = 120.0
    SWEEP_MAX_INTERVAL_S: float = 1800.0
    SWEEP_MAX_ATTEMPTS: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators would otherwise only notice at the first signup.
        """
        _log = logging.getLogger("minara.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL:
            _log.warning(
                "SUPABASE_URL is empty. Signup requires a Supabase project; "
                "every submission will fail with a network error."
            )

        return self

    @property
    def supabase_configured(self) -> bool:
        """``True`` when both the project URL and anon key are present."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY.get_secret_value())


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern so the fast path takes no lock while
    first initialisation stays thread-safe (the signup worker thread and
    the UI thread may both ask for configuration during startup).
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
