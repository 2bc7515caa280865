"""Row builders for chatbot tracking events.

Turns sessions and tracking events into flat records matching the columns
declared in ``chatsink.analytics.topology``.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from chatsink.analytics.topology import CONVERSATION_FLAGS

CONVERSATION_EVENT = "conversation"

Row = Dict[str, Any]


def format_date(timestamp_ms: float, time_zone: str = "UTC") -> str:
    """Format a millisecond timestamp as ``YYYY-MM-DD`` in ``time_zone``.

    Example:
        >>> format_date(0, "America/New_York")
        '1969-12-31'
    """
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=ZoneInfo(time_zone)).strftime("%Y-%m-%d")


def format_datetime(timestamp_ms: float, time_zone: str = "UTC") -> str:
    """Format a millisecond timestamp as ``YYYY-MM-DD HH:MM:SS`` in ``time_zone``."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=ZoneInfo(time_zone)).strftime(
        "%Y-%m-%d %H:%M:%S"
    )


def nullable(value: Any) -> Any:
    """Map empty values (None, "", 0, False) to None."""
    return value or None


def session_row(
    page_id: str,
    sender_id: str,
    session_id: str,
    metadata: Optional[Mapping[str, Any]],
    ts: int,
    non_interactive: bool = False,
    time_zone: str = "UTC",
) -> Row:
    md = metadata or {}
    return {
        "pageId": page_id,
        "senderId": sender_id,
        "sessionId": session_id,
        "sessionStart": format_datetime(ts),
        "sessionStartDate": format_datetime(ts, time_zone),
        "date": format_date(ts, time_zone),
        "action": md.get("action"),
        "sessionCount": md.get("sessionCount"),
        "nonInteractive": non_interactive,
        "lang": md.get("lang"),
        "botId": md.get("botId"),
        "snapshot": md.get("snapshot"),
    }


def is_conversation_event(event: Mapping[str, Any]) -> bool:
    return event.get("type") == CONVERSATION_EVENT and "allActions" in event


def conversation_row(
    base: Row,
    event: Mapping[str, Any],
    user: Optional[Mapping[str, Any]],
    time_zone: str,
) -> Row:
    session_start = event.get("sessionStart") or 0
    row = dict(base)
    row.update(
        {
            "category": event.get("category"),
            "action": nullable(event.get("action")),
            "lastAction": nullable(event.get("lastAction")),
            "label": nullable(event.get("label")),
            "value": nullable(event.get("value")),
            "lang": nullable(event.get("lang")),
            "skill": nullable(event.get("skill")),
            "text": nullable(event.get("text")),
            "expected": nullable(event.get("expected")),
        }
    )
    row.update({flag: bool(event.get(flag)) for flag in CONVERSATION_FLAGS})
    row.update(
        {
            "withUser": bool(event.get("withUser")),
            "userId": nullable(user.get("id") if user else None),
            "feedback": event.get("feedback") or 0,
            "sessionStart": format_datetime(session_start),
            "sessionStartDate": format_datetime(session_start, time_zone),
            "sessionDuration": event.get("sessionDuration") or 0,
            "winnerAction": nullable(event.get("winnerAction")),
            "winnerIntent": nullable(event.get("winnerIntent")),
            "winnerEntities": list(event.get("winnerEntities") or []),
            "winnerScore": event.get("winnerScore"),
            "winnerTaken": event.get("winnerTaken"),
            "intent": nullable(event.get("intent")),
            "intentScore": nullable(event.get("intentScore")),
            "entities": list(event.get("entities") or []),
            "allActions": list(event.get("allActions") or []),
            "snapshot": nullable(event.get("snapshot")),
            "botId": nullable(event.get("botId")),
        }
    )
    return row


def event_row(base: Row, event: Mapping[str, Any]) -> Row:
    row = dict(base)
    row.update(
        {
            "type": event.get("type"),
            "category": event.get("category"),
            "action": nullable(event.get("action")),
            "label": nullable(event.get("label")),
            "value": nullable(event.get("value")),
            "lang": nullable(event.get("lang")),
        }
    )
    return row


def tracking_rows(
    page_id: str,
    sender_id: str,
    session_id: str,
    tracking_events: Sequence[Mapping[str, Any]],
    user: Optional[Mapping[str, Any]],
    ts: int,
    non_interactive: bool = False,
    time_zone: str = "UTC",
) -> Tuple[List[Row], List[Row]]:
    """Split tracking events into conversation rows and plain event rows.

    Conversation events that carry ``allActions`` go to the conversations
    table; every other event goes to the events table.

    Returns:
        Tuple of (conversation rows, event rows), each in input order
    """
    base: Row = {
        "pageId": page_id,
        "senderId": sender_id,
        "sessionId": session_id,
        "timestamp": format_datetime(ts),
        "datetime": format_datetime(ts, time_zone),
        "date": format_date(ts, time_zone),
        "nonInteractive": non_interactive,
    }

    conversations: List[Row] = []
    events: List[Row] = []
    for event in tracking_events:
        if is_conversation_event(event):
            conversations.append(conversation_row(base, event, user, time_zone))
        else:
            events.append(event_row(base, event))

    return conversations, events
