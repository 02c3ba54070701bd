"""Google Calendar event creation for mentor sessions."""

import logging
from typing import Any, Dict, List
from urllib.parse import quote
import uuid

from pivot_mentor.functions.function_errors import FunctionError
from pivot_mentor.functions.models import CalendarEventRequest
from pivot_mentor.functions.service_client import ServiceClient


class GoogleCalendarClient(ServiceClient):
    """Creates events with the Google Calendar v3 API using a user's OAuth token."""

    DEFAULT_URL = "https://www.googleapis.com/calendar/v3"

    def __init__(self, base_url: str | None = None) -> None:
        super().__init__()
        self._base_url = (base_url or self.DEFAULT_URL).rstrip("/")

    async def insert_event(self, access_token: str, calendar_id: str, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert an event, asking for a conference to be created with it.

        Args:
            access_token: OAuth access token of the organizer
            calendar_id: Calendar to add the event to
            event: Event resource

        Returns:
            The created event resource

        Raises:
            FunctionError: If the API rejects the request
        """
        url = f"{self._base_url}/calendars/{quote(calendar_id, safe='@')}/events"

        async with self._create_session() as session:
            async with session.post(
                url,
                params={"conferenceDataVersion": "1"},
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json"
                },
                json=event
            ) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    self._logger.error("Google Calendar API error: %s", error_text)
                    raise FunctionError(f"Google Calendar API error: {error_text}")

                return await response.json(content_type=None)


def build_calendar_event(
    summary: str,
    description: str,
    start_time: str,
    end_time: str,
    attendees: List[str]
) -> Dict[str, Any]:
    """
    Build a calendar event resource with a Meet link and reminders.

    Args:
        summary: Event title
        description: Event description
        start_time: RFC 3339 start time
        end_time: RFC 3339 end time
        attendees: Attendee email addresses

    Returns:
        Event resource for the Calendar API
    """
    return {
        "summary": summary,
        "description": description,
        "start": {"dateTime": start_time, "timeZone": "UTC"},
        "end": {"dateTime": end_time, "timeZone": "UTC"},
        "attendees": [{"email": email} for email in attendees],
        "conferenceData": {
            "createRequest": {
                "requestId": str(uuid.uuid4()),
                "conferenceSolutionKey": {"type": "hangoutsMeet"}
            }
        },
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 30}
            ]
        }
    }


class CalendarEventFunction:
    """Schedules a mentor session in the organizer's calendar."""

    MISSING_TOKEN_MESSAGE = (
        "Missing OAuth access token. Google Calendar requires OAuth, API keys are not supported "
        "for creating events."
    )

    def __init__(self, client: GoogleCalendarClient) -> None:
        self._client = client
        self._logger = logging.getLogger("CalendarEventFunction")

    async def create(self, request: CalendarEventRequest) -> Dict[str, Any]:
        """
        Create the event.

        Args:
            request: Event details and the organizer's access token

        Returns:
            `{success, eventId, htmlLink, meetLink}`

        Raises:
            FunctionError: With status 400 if no access token was given, 500 if creation fails
        """
        if not request.access_token:
            raise FunctionError(self.MISSING_TOKEN_MESSAGE, 400)

        self._logger.info(
            "Creating calendar event: %s (%s - %s) for %d attendees",
            request.summary,
            request.start_time,
            request.end_time,
            len(request.attendees)
        )

        event = build_calendar_event(
            request.summary,
            request.description,
            request.start_time,
            request.end_time,
            request.attendees
        )
        created = await self._client.insert_event(request.access_token, request.calendar_id, event)
        self._logger.info("Calendar event created successfully: %s", created.get("id"))

        entry_points = (created.get("conferenceData") or {}).get("entryPoints") or []
        meet_link = entry_points[0].get("uri") if entry_points else None

        return {
            "success": True,
            "eventId": created.get("id"),
            "htmlLink": created.get("htmlLink"),
            "meetLink": meet_link
        }
