"""
Appointment notifications.

External calendars and email are one-way sinks: the scheduler tells them
what happened and never reads anything back. The default sink only logs;
deployments plug in their own by implementing ``NotificationSink``.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


def build_calendar_event(
    client_name: str,
    session_type: str,
    starts_at,
    ends_at,
    client_email: str | None = None,
    notes: str | None = None,
) -> dict:
    event = {
        'summary': f'{session_type} - {client_name}',
        'description': notes or f'Session with {client_name}',
        'start': starts_at.isoformat(),
        'end': ends_at.isoformat(),
    }
    if client_email:
        event['attendees'] = [{'email': client_email}]
    return event


class NotificationSink(Protocol):
    def appointment_booked(self, appointment: Any, event: dict) -> None: ...

    def appointment_changed(self, appointment: Any, event: dict) -> None: ...


class LoggingNotificationSink:
    def appointment_booked(self, appointment: Any, event: dict) -> None:
        logger.info('Appointment %s booked: %s', appointment.id, event['summary'])

    def appointment_changed(self, appointment: Any, event: dict) -> None:
        logger.info(
            'Appointment %s is now %s (%s to %s)',
            appointment.id,
            appointment.status,
            event['start'],
            event['end'],
        )
