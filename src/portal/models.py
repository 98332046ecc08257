"""Pydantic models for portal data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Field aliases match the camelCase keys the portal sends.
"""

from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from src.portal.errors import IntegrityError


def format_clock(value: time | datetime) -> str:
    """Format a time of day as '9:30 AM' / '12:00 PM'."""
    hour12 = (value.hour - 1) % 12 + 1
    period = "AM" if value.hour < 12 else "PM"
    return f"{hour12}:{value.minute:02d} {period}"


class Credential(BaseModel):
    """Session headers captured from the portal's own getSessionInfo XHR.

    Header names and values are kept exactly as the browser reported them so
    the cached copy round-trips unchanged. Only the cookie and the optional
    anti-forgery token are replayed on API calls.
    """

    model_config = ConfigDict(frozen=True)

    headers: dict[str, str]

    def _lookup(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def cookie(self) -> str | None:
        return self._lookup("cookie")

    @property
    def xsrf_token(self) -> str | None:
        return self._lookup("x-xsrf-token")

    @property
    def is_empty(self) -> bool:
        """True if there is no session cookie to replay."""
        return not self.cookie

    def auth_headers(self) -> dict[str, str]:
        """Headers to attach to an authenticated API request."""
        headers = {"Cookie": self.cookie or ""}
        if self.xsrf_token:
            headers["X-XSRF-TOKEN"] = self.xsrf_token
        return headers


class FetchRange(BaseModel):
    """How many days of sessions to fetch, starting today.

    Either a fixed number of days (days >= 1) or, when days is None,
    every remaining day of the current calendar month.
    """

    model_config = ConfigDict(frozen=True)

    days: int | None = Field(default=None, ge=1)

    @classmethod
    def number_of_days(cls, days: int) -> "FetchRange":
        return cls(days=days)

    @classmethod
    def this_month(cls) -> "FetchRange":
        return cls(days=None)

    @property
    def to_month_end(self) -> bool:
        return self.days is None

    def __str__(self) -> str:
        return "rest of month" if self.to_month_end else f"{self.days} days"


class SessionDetails(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    remaining_online_seats_available: int = Field(alias="remainingOnlineSeatsAvailable")


class Session(BaseModel):
    """One bookable endowment session.

    time is local to the temple and carries no UTC offset (the portal sends
    "2024-05-01T09:30:00").
    """

    model_config = ConfigDict(frozen=True)

    time: datetime
    details: SessionDetails

    @property
    def remaining_seats(self) -> int:
        # The portal reports negative counts for some overbooked sessions
        return max(self.details.remaining_online_seats_available, 0)

    def __str__(self) -> str:
        return f"{format_clock(self.time)} - remaining seats: {self.remaining_seats}"


class SessionList(BaseModel):
    """Response body of getSessionInfo."""

    model_config = ConfigDict(populate_by_name=True)

    session_list: list[Session] = Field(alias="sessionList")


class Day(BaseModel):
    """Sessions for one calendar date, as returned by a single request."""

    model_config = ConfigDict(frozen=True)

    date: datetime  # local midnight
    sessions: tuple[Session, ...] = ()

    def __str__(self) -> str:
        lines = [self.date.strftime("%b %d, %Y (%a)")]
        lines.extend(str(session) for session in self.sessions)
        return "\n".join(lines)


class OrdinanceType(str, Enum):
    BAPTISM = "Baptism"
    INITIATORY = "Initiatory"
    ENDOWMENT = "Endowment"
    SEALING = "Sealing"

    @classmethod
    def parse(cls, value: str) -> "OrdinanceType":
        """Map a portal appointment type (e.g. "PROXY_SEALING") to an ordinance.

        Raises:
            IntegrityError: If the type is not a known ordinance.
        """
        key = value.strip().upper().removeprefix("PROXY_")
        try:
            return cls[key]
        except KeyError:
            raise IntegrityError(f"Unknown ordinance type {value!r}") from None


class Appointment(BaseModel):
    """An existing booking from /api/appointments.

    appointment_date_time has the right date but an unreliable time of day;
    appointment_time ("HH:MM", temple local) is the one to trust.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    appointment_type: str = Field(alias="appointmentType")
    appointment_date_time: datetime = Field(alias="appointmentDateTime")
    appointment_time: time = Field(alias="appointmentTime")

    @field_validator("appointment_time", mode="before")
    @classmethod
    def _parse_clock(cls, value: object) -> object:
        if isinstance(value, str):
            return time.fromisoformat(value.strip())
        return value

    @property
    def ordinance_type(self) -> OrdinanceType:
        return OrdinanceType.parse(self.appointment_type)

    @property
    def local_start(self) -> datetime:
        """Appointment start in temple local time, without offset."""
        return datetime.combine(self.appointment_date_time.date(), self.appointment_time)

    def __str__(self) -> str:
        day = self.appointment_date_time
        return (
            f"{day:%b} {day.day}, {day.year} at {format_clock(self.appointment_time)}"
            f" - {self.ordinance_type.value}"
        )


class TempleStatus(str, Enum):
    OPERATING = "OPERATING"
    CONSTRUCTION = "CONSTRUCTION"
    ANNOUNCED = "ANNOUNCED"
    RENOVATION = "RENOVATION"


class Temple(BaseModel):
    """A directory entry from the public temple list page."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    status: TempleStatus
    dedicated: date | None = Field(default=None, alias="date")  # "21 May 1884"
    temple_org_id: int = Field(alias="templeOrgId")
    country: str | None = None
    city: str | None = None
    state_region: str | None = Field(default=None, alias="stateRegion")
    location: str | None = None
    temple_name_id: str | None = Field(default=None, alias="templeNameId")
    sort_date: str | None = Field(default=None, alias="sortDate")

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("dedicated", mode="before")
    @classmethod
    def _parse_dedication(cls, value: object) -> object:
        # Announced temples have "" or free text here; treat as undated
        if isinstance(value, str):
            try:
                return datetime.strptime(value.strip(), "%d %B %Y").date()
            except ValueError:
                return None
        return value

    @field_serializer("dedicated", when_used="json-unless-none")
    def _format_dedication(self, value: date) -> str:
        # Same "17 May 1884" shape the list page uses, so dumps parse back
        return f"{value.day} {value:%B %Y}"
