from pathlib import Path
from urllib.parse import urlparse

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis settings (preferences, call history, activity log)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 10

    # Vendor PBX endpoints
    VENDOR_BASE_URL: str = "https://xtone.buf.vaspian.net"
    VENDOR_LOGIN_PATH: str = "/webadmin/en/user/jsp/ProcessLogin.jsp"
    VENDOR_CALL_PATH: str = "/webadmin/en/user/jsp/ProcessClickToCall.jsp"
    VENDOR_REQUEST_TIMEOUT: float = 10.0

    # =================================================================
    # RETENTION LIMITS
    # =================================================================
    CALL_HISTORY_MAX_ENTRIES: int = 500
    ACTIVITY_LOG_MAX_ENTRIES: int = 500
    ACTIVITY_LOG_RETENTION_HOURS: int = 24
    ACTIVITY_LOG_FLUSH_INTERVAL_SECONDS: int = 3600  # 1 hour

    # First-install preference default
    DEFAULT_DIAL_PREFIX: str = "8"

    NOTIFICATION_DISMISS_SECONDS: float = 3.0

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def vendor_host(self) -> str:
        """
        Hostname the vendor session cookies are scoped to, e.g.
        https://xtone.buf.vaspian.net -> xtone.buf.vaspian.net
        """
        return urlparse(self.VENDOR_BASE_URL).hostname or ""

    def vendor_login_url(self) -> str:
        return self.VENDOR_BASE_URL.rstrip("/") + self.VENDOR_LOGIN_PATH

    def vendor_call_url(self) -> str:
        return self.VENDOR_BASE_URL.rstrip("/") + self.VENDOR_CALL_PATH


settings = Settings()
