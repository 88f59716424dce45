from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "Scanner d'accessibilité WCAG"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True
    APP_BASE_URL: str = "http://localhost:8000"

    # ── Logging ─────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 10_000_000
    LOG_BACKUP_COUNT: int = 5

    # ── Database ────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./wcag_audit.db"
    AUTO_CREATE_TABLES: bool = True

    # ── Scan orchestration ──────────────────────
    AUDIT_BACKEND: Literal["remote", "headless"] = "remote"
    SCAN_MODE: Literal["sync", "background"] = "sync"
    SCAN_DISPATCHER: Literal["inline", "celery"] = "inline"
    # Resolved from AUDIT_BACKEND when left empty
    SCORE_STRATEGY: Optional[Literal["direct", "weighted"]] = None
    REMOTE_AUDIT_TIMEOUT_SECONDS: float = 60.0
    HEADLESS_AUDIT_TIMEOUT_SECONDS: Optional[float] = None
    MAX_VIOLATIONS: int = 20
    MONTHLY_SCAN_QUOTA: int = 5
    ENFORCE_MONTHLY_QUOTA: bool = True
    DASHBOARD_SCAN_LIMIT: int = 20

    # ── PageSpeed Insights ──────────────────────
    PAGESPEED_API_URL: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    PAGESPEED_API_KEY: Optional[str] = None

    # ── Headless browser ────────────────────────
    # bundled-minimal on hosted deployments, system-installed on dev machines
    BROWSER_MODE: Optional[Literal["bundled-minimal", "system-installed"]] = None
    BUNDLED_CHROME_PATH: str = "/opt/chrome-headless-shell/chrome-headless-shell"
    CHROME_BINARY_PATH: Optional[str] = None
    CHROMEDRIVER_PATH: Optional[str] = None
    NAVIGATION_TIMEOUT_SECONDS: int = 30
    AXE_SCRIPT_PATH: str = "assets/axe.min.js"
    AXE_SCRIPT_URL: str = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.9.1/axe.min.js"

    # ── Celery ──────────────────────────────────
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"
    CELERY_TASK_SERIALIZER: str = "json"
    CELERY_RESULT_SERIALIZER: str = "json"
    CELERY_ACCEPT_CONTENT: str = "json"
    CELERY_TASK_TIME_LIMIT: int = 300

    # ── Rate limiting ───────────────────────────
    REDIS_URL: str = "redis://localhost:6379/2"
    FORCE_IN_MEMORY_RATE_LIMITER: bool = False
    WHITELIST_IPS: List[str] = []
    RATE_LIMITS: Dict[str, int] = {
        "/scan": 10,
        "/auth/magic-link": 5,
    }

    # ── Email Configuration ─────────────────────
    MAIL_HOST: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = "your-email-id"
    MAIL_PASSWORD: str = "your-password"
    MAIL_ENCRYPTION: str = "tls"
    MAIL_FROM_ADDRESS: str = "example@localhost"
    MAIL_FROM_NAME: str = "Scanner WCAG"

    EMAIL_RELAY_URL: str = ""
    EMAIL_RELAY_API_KEY: str = ""
    EMAIL_RELAY_TIMEOUT: int = 30

    # ── JWT / Auth ──────────────────────────────
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    ALGORITHM: str = "HS256"
    MAGIC_LINK_EXPIRE_MINUTES: int = 15
    AUTH_COOKIE_NAME: str = "access_token"

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @model_validator(mode="after")
    def resolve_scan_defaults(self) -> "Settings":
        if self.SCORE_STRATEGY is None:
            self.SCORE_STRATEGY = "direct" if self.AUDIT_BACKEND == "remote" else "weighted"
        if self.SCORE_STRATEGY == "direct" and self.AUDIT_BACKEND == "headless":
            raise ValueError(
                "SCORE_STRATEGY=direct needs a category score, which only the remote backend reports"
            )
        if self.BROWSER_MODE is None:
            self.BROWSER_MODE = "bundled-minimal" if self.ENVIRONMENT == "production" else "system-installed"
        return self

    @property
    def audit_timeout_seconds(self) -> Optional[float]:
        if self.AUDIT_BACKEND == "remote":
            return self.REMOTE_AUDIT_TIMEOUT_SECONDS
        return self.HEADLESS_AUDIT_TIMEOUT_SECONDS


settings = Settings()
