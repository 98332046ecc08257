import logging

import pytest
import structlog

from src.portal.config import PortalConfig
from src.portal.models import Credential


@pytest.fixture(autouse=True, scope="session")
def quiet_logs():
    # Unconfigured structlog prints to stdout, which the CLI tests read
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))
    yield
    structlog.reset_defaults()


@pytest.fixture
def config(tmp_path) -> PortalConfig:
    return PortalConfig(
        portal_username="operator@example.com",
        portal_password="hunter2",
        state_dir=str(tmp_path / "state"),
        element_timeout_ms=50,
        credential_settle_ms=1,
        login_settle_ms=2,
        request_timeout_seconds=5,
    )


@pytest.fixture
def credential() -> Credential:
    return Credential(
        headers={
            "cookie": "ChurchSSO=abc123; TOS_SESSION=xyz",
            "x-xsrf-token": "f00d",
            "content-type": "application/json",
        }
    )
