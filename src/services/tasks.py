"""
Change summaries written back to Zoho CRM as tasks.

Creating a local event files a "Create New Event" task; editing a Zoho event
files an "Update Event" task linked to the deal, since this system never
writes deals directly.
"""

import logging
from datetime import date, timedelta

from core.config import TASK_DUE_DAYS, TASK_PRIORITY, TASK_STATUS
from core.errors import TaskCreationFailed, UpstreamUnavailable
from core.sessions import CredentialRecord
from core.zoho_client import ZohoClient
from models.events import UnifiedEvent

logger = logging.getLogger(__name__)


def _time_part(value: str | None) -> str:
    """Clock time of an ISO datetime string, to the second."""
    if not value:
        return ""
    if "T" not in value:
        return value
    return value.split("T", 1)[1][:8]


def _amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def format_event_description(event: UnifiedEvent) -> str:
    """Multi-line, human-readable dump of every event field."""
    lines = [
        ": : : : Event details : : : : ",
        f"Event Name: {event.event_name}",
        "",
        f"Start Date: {event.start_date or ''}",
        f"Start Time: {_time_part(event.start_time)}",
        "",
        f"End Date: {event.end_date or ''}",
        f"End Time: {_time_part(event.end_time)}",
        "",
        f"Artist Name: {event.artist_name}",
        f"Artist Type: {event.artist_type}",
        f"Artist Amount: {_amount(event.artist_amount)}",
        "",
        f"Venue: {event.venue}",
        f"City: {event.city}",
        "",
        f"Promoter Name: {event.promoter_name}",
        f"Promoter Phone: {event.promoter_phone}",
        f"Promoter Email: {event.promoter_email}",
    ]
    if event.status is not None:
        lines.extend(["", f"Status: {event.status.name}"])
    return "\n".join(lines)


def build_task_payload(event: UnifiedEvent, is_new: bool, today: date | None = None) -> dict:
    """Zoho Tasks record for a created or updated event."""
    due = (today or date.today()) + timedelta(days=TASK_DUE_DAYS)
    task = {
        "Subject": (
            f"Create New Event: {event.event_name}"
            if is_new
            else f"Update Event: {event.event_name}"
        ),
        "Due_Date": due.isoformat(),
        "Description": format_event_description(event),
        "Priority": TASK_PRIORITY,
        "Status": TASK_STATUS,
    }
    if not is_new:
        task["What_Id"] = {"id": event.id, "name": event.event_name}
        task["$se_module"] = "Deals"
    return task


async def create_zoho_task(
    credentials: CredentialRecord, event: UnifiedEvent, is_new: bool
) -> dict:
    """
    File a task describing the event in Zoho CRM.

    Returns:
        The per-record result from Zoho (code, details, message, status)

    Raises:
        TaskCreationFailed: the request failed or Zoho did not report SUCCESS
    """
    client = ZohoClient(credentials.access_token, credentials.api_domain)
    payload = {"data": [build_task_payload(event, is_new)]}
    try:
        body = await client.post("Tasks", json=payload)
    except UpstreamUnavailable as exc:
        raise TaskCreationFailed(f"Failed to create task in Zoho CRM: {exc}") from exc

    results = body.get("data") or []
    result = results[0] if results else {}
    if result.get("code") != "SUCCESS":
        message = result.get("message") or "Zoho did not accept the task"
        logger.error("Zoho task for event %s rejected: %s", event.id, result or body)
        raise TaskCreationFailed(message)

    logger.info("Task created in Zoho CRM for event %s", event.id)
    return result
