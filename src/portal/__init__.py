"""Temple ordinance scheduling portal client.

Browser-driven sign-in with a cached, probe-validated credential, plus direct
calls to the portal's internal JSON API for sessions and appointments.
"""

from src.portal.appointments import AppointmentReader
from src.portal.credential_store import CredentialStore
from src.portal.directory import TempleDirectory
from src.portal.models import Appointment, Credential, Day, FetchRange, Session, Temple
from src.portal.pages.login import LoginFlow, SessionAcquirer
from src.portal.schedule import ScheduleFetcher
from src.portal.transport import PortalClient

__all__ = [
    "AppointmentReader",
    "CredentialStore",
    "TempleDirectory",
    "ScheduleFetcher",
    "SessionAcquirer",
    "LoginFlow",
    "PortalClient",
    "Appointment",
    "Credential",
    "Day",
    "FetchRange",
    "Session",
    "Temple",
]
