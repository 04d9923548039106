"""
Merge of Zoho and local events into the calendar's single list.
"""

from models.events import UnifiedEvent


def merge_events(
    external: list[UnifiedEvent], local: list[UnifiedEvent]
) -> list[UnifiedEvent]:
    """
    External events first in fetch order, then local events in store order.

    No de-duplication: a local event created from a deal shows up twice.
    """
    return [*external, *local]
