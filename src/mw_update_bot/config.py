from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Cookie names that carry the login/session state on Wikia-hosted MediaWiki 1.19.
DEFAULT_SESSION_COOKIE_NAMES = [
    "wikia_session_id",
    "wikicities_session",  # login.sessionid
    "wikicitiesUserID",
    "wikicitiesUserName",
    "wikicitiesToken",  # login.lgtoken
    "access_token",
]


class Settings(BaseSettings):
    mw_host: str = ""
    mw_api_endpoint: str = "api.php"
    mw_bot_username: str = ""
    mw_bot_password: SecretStr = SecretStr("")
    mw_registered_bot: bool = False

    user_agent: str = "Latest Chapter Bot"
    edit_summary: str = "Update latest chapter"
    request_timeout_ms: int = 1000  # per request, never retried

    session_cookie_names: List[str] = list(DEFAULT_SESSION_COOKIE_NAMES)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @field_validator("request_timeout_ms")
    @classmethod
    def _positive_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"request_timeout_ms must be positive; got {v}")
        return v

    @property
    def request_timeout(self) -> float:
        """Timeout in seconds, as httpx expects it."""
        return self.request_timeout_ms / 1000.0

settings = Settings()
