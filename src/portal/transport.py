"""HTTP transport for the portal's internal JSON API.

PortalClient wraps a requests.Session, attaches the captured credential to
authenticated calls, and classifies failures into the error hierarchy.
Transient failures are retried here and nowhere else.
"""

from typing import Any

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.portal.config import PortalConfig
from src.portal.errors import (
    AuthenticationError,
    RateLimitError,
    TransientError,
    TransportError,
)
from src.portal.logging import get_logger
from src.portal.models import Credential

logger = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def _raise_for_status(method: str, response: requests.Response) -> None:
    """Map a non-2xx response onto the error hierarchy."""
    status = response.status_code
    if 200 <= status < 300:
        return

    message = f"{method} {response.url} returned HTTP {status}"
    if status == 429:
        raise RateLimitError(message)
    if status >= 500:
        raise TransientError(message)
    if status in (401, 403):
        raise AuthenticationError(message)
    raise TransportError(message)


class PortalClient:
    """Sequential HTTP client for the scheduling portal.

    One request is in flight at a time; callers never share a client across
    threads.
    """

    def __init__(
        self, config: PortalConfig, session: requests.Session | None = None
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> requests.Response:
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=json,
                timeout=self.config.request_timeout_seconds,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("request_transient_failure", method=method, url=url, error=str(e))
            raise TransientError(f"{method} {url} failed: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        _raise_for_status(method, response)
        logger.debug("request_completed", method=method, url=url, status=response.status_code)
        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{response.url} returned a body that is not JSON: {e}"
            ) from e

    def get_json(self, url: str, credential: Credential) -> Any:
        """Authenticated GET returning the decoded JSON body.

        Raises:
            TransportError: On a non-2xx status (after retries for transient
                failures) or an undecodable body.
        """
        response = self._send("GET", url, headers=credential.auth_headers())
        return self._decode(response)

    def post_json(self, url: str, credential: Credential, payload: Any) -> Any:
        """Authenticated POST of a JSON payload returning the decoded JSON body."""
        response = self._send(
            "POST", url, headers=credential.auth_headers(), json=payload
        )
        return self._decode(response)

    def get_text(self, url: str) -> str:
        """Unauthenticated GET returning the response text."""
        return self._send("GET", url).text

    def probe(self, url: str, credential: Credential) -> bool:
        """Check whether the portal still accepts a credential.

        A single request with no retries; any failure counts as rejected.
        """
        try:
            response = self.session.get(
                url,
                headers=credential.auth_headers(),
                timeout=self.config.request_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.info("credential_probe", result="error", error=str(e))
            return False

        accepted = response.status_code == 200
        logger.info(
            "credential_probe",
            result="accepted" if accepted else "rejected",
            status=response.status_code,
        )
        return accepted
