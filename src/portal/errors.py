"""Error hierarchy for the scheduling portal client.

Every failure raised by this package derives from PortalError so the CLI can
report it uniformly. TransientError is the only branch the transport retries.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def _send(self, method: str, url: str):
        ...
"""


class PortalError(Exception):
    """Base exception for all portal errors."""

    pass


class ConfigurationError(PortalError):
    """Required settings are missing or unusable.

    Examples: no username/password in the environment, unknown temple query.
    """

    pass


class AutomationError(PortalError):
    """The login UI did not behave as expected.

    Examples: an element never became visible within its timeout, the portal
    showed a different number of schedule items than expected.
    """

    pass


class IntegrityError(PortalError):
    """Data from the portal is missing or malformed.

    Examples: temple list markers not found, embedded JSON not parseable,
    unknown ordinance type.
    """

    pass


class EmptyCredentialError(IntegrityError):
    """The intercepted request carried no usable session headers."""

    pass


class TransportError(PortalError):
    """An HTTP call failed or returned a body that could not be decoded."""

    pass


class TransientError(TransportError):
    """Temporary failure that may succeed on retry.

    Examples: connection reset, read timeout, 502/503 from the portal.
    """

    pass


class RateLimitError(TransientError):
    """Rate limit exceeded (HTTP 429).

    Inherits from TransientError so tenacity will retry it.
    """

    pass


class AuthenticationError(TransportError):
    """The portal rejected the credential (HTTP 401/403).

    Cannot be fixed by retry; a fresh login is required.
    """

    pass
