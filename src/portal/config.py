"""Portal configuration loaded from environment variables."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from src.portal.errors import ConfigurationError


class PortalConfig(BaseSettings):
    """Portal configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Login (read only when a fresh browser login is needed)
    portal_username: str = Field(
        default="",
        description="Church account username for the browser login",
    )
    portal_password: str = Field(
        default="",
        description="Church account password for the browser login",
    )

    # Endpoints
    appointment_url: str = Field(
        default="https://www.churchofjesuschrist.org/temples/schedule/appointment?lang=eng",
        description="Entry page that redirects to the sign-in form",
    )
    portal_url: str = Field(
        default="https://tos.churchofjesuschrist.org/?lang=eng",
        description="Temple ordinance scheduling portal home",
    )
    api_base_url: str = Field(
        default="https://tos.churchofjesuschrist.org/api",
        description="Base URL of the portal's internal JSON API",
    )
    temple_list_url: str = Field(
        default="https://www.churchofjesuschrist.org/temples/list",
        description="Public temple directory page",
    )

    # Paths
    state_dir: str = Field(
        default="data/state",
        description="Directory holding the cached credential",
    )

    # Browser
    headless: bool = Field(default=True, description="Run Chromium headless")
    element_timeout_ms: int = Field(
        default=30000,
        description="Maximum wait for each login element to become visible",
    )
    credential_settle_ms: int = Field(
        default=1000,
        description="Pause after typing the password, before the final submit",
    )
    login_settle_ms: int = Field(
        default=15000,
        description="Pause after the final submit while the portal redirects",
    )

    # HTTP
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Per-request timeout for API calls",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Optional CSS selectors (override if the sign-in page layout changes)
    username_selector: str = Field(default="input#okta-signin-username")
    username_submit_selector: str = Field(default="input#okta-signin-submit")
    password_selector: str = Field(default="input[type=password]")
    password_submit_selector: str = Field(default="input[type=submit]")
    select_temple_selector: str = Field(default="button#select-this-temple-button")
    schedule_item_selector: str = Field(default="span.schedule-item-text")

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cache_file(self) -> Path:
        return Path(self.state_dir) / "credential.json"

    @property
    def appointments_endpoint(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/appointments"

    @property
    def session_info_endpoint(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/templeSchedule/getSessionInfo"

    def require_login(self) -> tuple[str, str]:
        """Return (username, password) or fail if either is unset.

        Raises:
            ConfigurationError: If PORTAL_USERNAME or PORTAL_PASSWORD is empty.
        """
        missing = [
            name
            for name, value in (
                ("PORTAL_USERNAME", self.portal_username),
                ("PORTAL_PASSWORD", self.portal_password),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing login settings: {', '.join(missing)} (set them in the environment or .env)"
            )
        return self.portal_username, self.portal_password


# Singleton pattern
_config: PortalConfig | None = None


def get_config() -> PortalConfig:
    """Get the portal configuration singleton.

    Returns:
        PortalConfig: Portal configuration instance
    """
    global _config
    if _config is None:
        _config = PortalConfig()
    return _config
