"""TempleDirectory - the public temple list.

The list page embeds its data as a JSON array inside a script blob. The array
is cut out by plain substring search between the literal markers
'templeList":' and the first following '}]', then parsed as JSON.
"""

import json

from pydantic import TypeAdapter, ValidationError

from src.portal.errors import ConfigurationError, IntegrityError
from src.portal.logging import get_logger
from src.portal.models import Temple, TempleStatus
from src.portal.transport import PortalClient

log = get_logger(__name__)

START_MARKER = 'templeList":'
END_MARKER = "}]"

_temples_adapter = TypeAdapter(list[Temple])


def extract_temple_json(html: str) -> str:
    """Return the embedded temple array text.

    The start marker is dropped; the end marker is kept since it closes the array.

    Raises:
        IntegrityError: If either marker is missing.
    """
    start = html.find(START_MARKER)
    if start == -1:
        raise IntegrityError("Couldn't find start of temple data")
    start += len(START_MARKER)

    end = html.find(END_MARKER, start)
    if end == -1:
        raise IntegrityError("Couldn't find end of temple data")
    end += len(END_MARKER)

    return html[start:end]


def parse_temples(html: str) -> list[Temple]:
    """Extract and validate the temple list from the directory page."""
    raw = extract_temple_json(html)
    try:
        records = json.loads(raw)
    except json.JSONDecodeError as e:
        raise IntegrityError(f"Temple data is not valid JSON: {e}") from e

    try:
        return _temples_adapter.validate_python(records)
    except ValidationError as e:
        raise IntegrityError(f"Temple data has unexpected records: {e}") from e


def find_temple(temples: list[Temple], query: str) -> Temple:
    """Resolve a temple by org id or by case-insensitive name fragment.

    Raises:
        ConfigurationError: If nothing or more than one temple matches.
    """
    query = query.strip()
    if query.isdigit():
        org_id = int(query)
        for temple in temples:
            if temple.temple_org_id == org_id:
                return temple
        raise ConfigurationError(f"No temple with org id {org_id}")

    needle = query.lower()
    matches = [t for t in temples if needle in t.name.lower()]
    exact = [t for t in matches if t.name.lower() == needle]
    if len(exact) == 1:
        return exact[0]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise ConfigurationError(f"No temple matches {query!r}")
    names = ", ".join(sorted(t.name for t in matches)[:5])
    raise ConfigurationError(f"{query!r} matches {len(matches)} temples: {names}")


class TempleDirectory:
    """Reads the public temple directory; refetched on every run."""

    def __init__(self, client: PortalClient, url: str) -> None:
        self.client = client
        self.url = url

    def fetch(self, status: TempleStatus | None = None) -> list[Temple]:
        """Fetch all temples, optionally only those with the given status."""
        html = self.client.get_text(self.url)
        temples = parse_temples(html)
        if status is not None:
            temples = [t for t in temples if t.status == status]
        log.info("temples_fetched", count=len(temples), status=status.value if status else None)
        return temples
