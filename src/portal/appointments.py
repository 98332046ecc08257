"""AppointmentReader - the operator's existing bookings."""

from pydantic import TypeAdapter, ValidationError

from src.portal.config import PortalConfig
from src.portal.errors import TransportError
from src.portal.logging import get_logger
from src.portal.models import Appointment, Credential
from src.portal.transport import PortalClient

log = get_logger(__name__)

_appointments_adapter = TypeAdapter(list[Appointment])


class AppointmentReader:
    def __init__(self, client: PortalClient, config: PortalConfig) -> None:
        self.client = client
        self.config = config

    def fetch(self, credential: Credential) -> list[Appointment]:
        """Return existing appointments in the order the portal lists them."""
        body = self.client.get_json(self.config.appointments_endpoint, credential)
        try:
            appointments = _appointments_adapter.validate_python(body)
        except ValidationError as e:
            raise TransportError(f"Unexpected appointments response: {e}") from e

        log.info("appointments_fetched", count=len(appointments))
        return appointments
