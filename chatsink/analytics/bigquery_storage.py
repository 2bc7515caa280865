"""Chatbot analytics storage backed by BigQuery."""

import time
from typing import Any, Mapping, Optional, Sequence

from chatsink.analytics.row_mapper import session_row, tracking_rows
from chatsink.analytics.topology import CONVERSATIONS, EVENTS, SESSIONS, chatbot_topology
from chatsink.bucket.table_store import TableStore
from chatsink.objects.storage_options import StorageOptions
from chatsink.storage import BaseAnalyticsStorage


def _now_ms() -> int:
    return int(time.time() * 1000)


class BigQueryStorage(BaseAnalyticsStorage):
    """Stores chatbot sessions, tracking events and conversation turns.

    Example:
        >>> storage = BigQueryStorage(credentials, "my-project", "bot_analytics")
        >>> storage.create_user_session("page", "sender", "session", {"lang": "en"})
    """

    SESSIONS = SESSIONS
    EVENTS = EVENTS
    CONVERSATIONS = CONVERSATIONS

    def __init__(
        self,
        credentials: Optional[Mapping[str, Any]],
        project_id: str,
        dataset: str,
        options: Optional[StorageOptions] = None,
        store: Optional[TableStore] = None,
    ) -> None:
        super().__init__(credentials, project_id, dataset, chatbot_topology(), options, store)

    def create_user_session(
        self,
        page_id: str,
        sender_id: str,
        session_id: str,
        metadata: Optional[Mapping[str, Any]] = None,
        ts: Optional[int] = None,
        non_interactive: bool = False,
        time_zone: str = "UTC",
    ) -> None:
        """Record the start of a user session.

        Args:
            page_id: Page (channel) ID
            sender_id: User ID within the page
            session_id: Session ID
            metadata: Session metadata (sessionCount, botId, snapshot, lang, action)
            ts: Session start in milliseconds (defaults to now)
            non_interactive: Session was not started by the user
            time_zone: IANA time zone for local date columns
        """
        ts = _now_ms() if ts is None else ts
        row = session_row(page_id, sender_id, session_id, metadata, ts, non_interactive, time_zone)
        self.insert(self.SESSIONS, [row])

    def store_events(
        self,
        page_id: str,
        sender_id: str,
        session_id: str,
        tracking_events: Sequence[Mapping[str, Any]],
        user: Optional[Mapping[str, Any]] = None,
        ts: Optional[int] = None,
        non_interactive: bool = False,
        session_started: bool = False,
        time_zone: str = "UTC",
    ) -> None:
        """Record the tracking events of one interaction.

        Conversation turns and other events are written to their tables
        concurrently; a failure on one table does not affect the other.
        ``session_started`` is accepted for interface compatibility.
        """
        ts = _now_ms() if ts is None else ts
        conversations, events = tracking_rows(
            page_id,
            sender_id,
            session_id,
            tracking_events,
            user,
            ts,
            non_interactive,
            time_zone,
        )
        self.insert_many({self.CONVERSATIONS: conversations, self.EVENTS: events})
