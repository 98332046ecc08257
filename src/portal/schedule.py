"""ScheduleFetcher - day-by-day endowment session retrieval.

One POST to /api/templeSchedule/getSessionInfo per calendar date, issued
sequentially from today. Days come back in request order. A failure on any
day aborts the whole fetch; retries of transient HTTP errors happen in the
transport, never here.
"""

from datetime import date, datetime, time, timedelta

from pydantic import ValidationError

from src.portal.config import PortalConfig
from src.portal.errors import TransportError
from src.portal.logging import get_logger
from src.portal.models import Credential, Day, FetchRange, SessionList
from src.portal.transport import PortalClient

log = get_logger(__name__)

APPOINTMENT_TYPE = "PROXY_ENDOWMENT"


def session_request_body(day: date, temple_org_id: int) -> dict:
    """Build the getSessionInfo payload (sessionMonth is 0-based)."""
    return {
        "sessionYear": day.year,
        "sessionMonth": day.month - 1,
        "sessionDay": day.day,
        "appointmentType": APPOINTMENT_TYPE,
        "templeOrgId": temple_org_id,
    }


def next_day(day: date) -> date | None:
    """Return the following date, or None past the end of the calendar."""
    if day == date.max:
        return None
    return day + timedelta(days=1)


def local_midnight(day: date) -> datetime:
    """Midnight at the start of day in the machine's local timezone."""
    return datetime.combine(day, time.min).astimezone()


class ScheduleFetcher:
    """Fetches endowment sessions for one temple over a FetchRange."""

    def __init__(self, client: PortalClient, config: PortalConfig) -> None:
        self.client = client
        self.config = config

    def fetch_day(self, credential: Credential, day: date, temple_org_id: int) -> Day:
        """Fetch and parse the sessions for a single date.

        Raises:
            TransportError: If the request fails or the body does not match
                the expected sessionList shape.
        """
        body = self.client.post_json(
            self.config.session_info_endpoint,
            credential,
            session_request_body(day, temple_org_id),
        )
        try:
            sessions = SessionList.model_validate(body)
        except ValidationError as e:
            raise TransportError(
                f"Unexpected getSessionInfo response for {day.isoformat()}: {e}"
            ) from e

        return Day(date=local_midnight(day), sessions=tuple(sessions.session_list))

    def fetch(
        self,
        credential: Credential,
        fetch_range: FetchRange,
        temple_org_id: int,
        *,
        today: date | None = None,
    ) -> list[Day]:
        """Fetch consecutive days starting today until fetch_range says stop.

        Args:
            credential: Working portal credential.
            fetch_range: Fixed day count, or through the end of today's month.
            temple_org_id: Portal identifier of the temple.
            today: Start date (defaults to the local current date).

        Returns:
            Days in chronological order, one per request.
        """
        start = today or date.today()
        log.info(
            "schedule_fetch_started",
            temple_org_id=temple_org_id,
            start=start.isoformat(),
            range=str(fetch_range),
        )

        days: list[Day] = []
        current = start
        count = 0
        while True:
            days.append(self.fetch_day(credential, current, temple_org_id))
            count += 1

            successor = next_day(current)
            if successor is None:
                log.warning("schedule_calendar_exhausted", last=current.isoformat())
                break
            if fetch_range.to_month_end:
                if successor.month != start.month:
                    break
            elif count >= fetch_range.days:
                break
            current = successor

        log.info(
            "schedule_fetched",
            temple_org_id=temple_org_id,
            days=len(days),
            sessions=sum(len(day.sessions) for day in days),
        )
        return days
