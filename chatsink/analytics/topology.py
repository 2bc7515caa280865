"""Built-in chatbot analytics topology: sessions, events and conversations."""

from typing import List

from chatsink.objects.table_definition import ColumnSpec, Partitioning, TableDefinition, Topology

SESSIONS = "sessions"
EVENTS = "events"
CONVERSATIONS = "conversations"

# uuid length
ID_LENGTH = 36
SESSION_ID_LENGTH = 32


def _identity_columns() -> List[ColumnSpec]:
    return [
        ColumnSpec(name="pageId", type="STRING", max_length=ID_LENGTH, mode="REQUIRED"),
        ColumnSpec(name="senderId", type="STRING", max_length=ID_LENGTH, mode="REQUIRED"),
        ColumnSpec(name="sessionId", type="STRING", max_length=SESSION_ID_LENGTH, mode="REQUIRED"),
    ]


EVENTS_COLUMNS: List[ColumnSpec] = _identity_columns() + [
    ColumnSpec(name="timestamp", type="TIMESTAMP", mode="REQUIRED"),
    ColumnSpec(name="datetime", type="DATETIME", mode="REQUIRED"),
    ColumnSpec(name="date", type="DATE", mode="REQUIRED"),
    ColumnSpec(name="category", type="STRING", max_length=3, mode="REQUIRED"),
    ColumnSpec(name="type", type="STRING", max_length=12, mode="REQUIRED"),
    ColumnSpec(name="action", type="STRING"),
    ColumnSpec(name="label", type="STRING"),
    ColumnSpec(name="value", type="INTEGER"),
    ColumnSpec(name="lang", type="STRING", max_length=2),
    ColumnSpec(name="nonInteractive", type="BOOLEAN", mode="REQUIRED"),
]

SESSIONS_COLUMNS: List[ColumnSpec] = _identity_columns() + [
    ColumnSpec(name="sessionStart", type="TIMESTAMP", mode="REQUIRED"),
    ColumnSpec(name="sessionStartDate", type="DATETIME", mode="REQUIRED"),
    ColumnSpec(name="date", type="DATE", mode="REQUIRED"),
    ColumnSpec(name="action", type="STRING"),
    ColumnSpec(name="sessionCount", type="INTEGER"),
    ColumnSpec(name="lang", type="STRING", max_length=2),
    ColumnSpec(name="nonInteractive", type="BOOLEAN", mode="REQUIRED"),
    ColumnSpec(name="botId", type="STRING", max_length=ID_LENGTH),
    ColumnSpec(name="snapshot", type="STRING", max_length=14),
]

CONVERSATION_FLAGS = [
    "expectedTaken",
    "isContextUpdate",
    "isAttachment",
    "isNotification",
    "isQuickReply",
    "isPassThread",
    "isText",
    "isPostback",
    "didHandover",
]

CONVERSATIONS_COLUMNS: List[ColumnSpec] = (
    _identity_columns()
    + [
        ColumnSpec(name="timestamp", type="TIMESTAMP", mode="REQUIRED"),
        ColumnSpec(name="datetime", type="DATETIME", mode="REQUIRED"),
        ColumnSpec(name="date", type="DATE", mode="REQUIRED"),
        ColumnSpec(name="category", type="STRING", max_length=3, mode="REQUIRED"),
        ColumnSpec(name="action", type="STRING"),
        ColumnSpec(name="lastAction", type="STRING"),
        ColumnSpec(name="label", type="STRING"),
        ColumnSpec(name="value", type="INTEGER"),
        ColumnSpec(name="lang", type="STRING", max_length=2),
        ColumnSpec(name="skill", type="STRING"),
        ColumnSpec(name="text", type="STRING"),
        ColumnSpec(name="expected", type="STRING"),
    ]
    + [ColumnSpec(name=flag, type="BOOLEAN", mode="REQUIRED") for flag in CONVERSATION_FLAGS]
    + [
        ColumnSpec(name="withUser", type="BOOLEAN", mode="REQUIRED"),
        ColumnSpec(name="userId", type="STRING"),
        ColumnSpec(name="feedback", type="INTEGER", mode="REQUIRED"),
        ColumnSpec(name="sessionStart", type="TIMESTAMP", mode="REQUIRED"),
        ColumnSpec(name="sessionStartDate", type="DATETIME", mode="REQUIRED"),
        ColumnSpec(name="sessionDuration", type="INTEGER", mode="REQUIRED"),
        ColumnSpec(name="winnerAction", type="STRING"),
        ColumnSpec(name="winnerIntent", type="STRING"),
        ColumnSpec(name="winnerEntities", type="STRING", mode="REPEATED"),
        ColumnSpec(name="winnerScore", type="FLOAT"),
        ColumnSpec(name="winnerTaken", type="BOOLEAN"),
        ColumnSpec(name="intent", type="STRING"),
        ColumnSpec(name="intentScore", type="FLOAT"),
        ColumnSpec(name="entities", type="STRING", mode="REPEATED"),
        ColumnSpec(name="allActions", type="STRING", mode="REPEATED"),
        ColumnSpec(name="nonInteractive", type="BOOLEAN", mode="REQUIRED"),
        ColumnSpec(name="botId", type="STRING", max_length=ID_LENGTH),
        ColumnSpec(name="snapshot", type="STRING", max_length=14),
    ]
)


def _daily_table(name: str, columns: List[ColumnSpec]) -> TableDefinition:
    return TableDefinition(
        name=name,
        columns=columns,
        partitioning=Partitioning(unit="DAY", field="date"),
        clustering=["pageId", "sessionId"],
    )


def chatbot_topology() -> Topology:
    """Topology used by BigQueryStorage and by the CLI when no file is given."""
    return Topology(
        tables=[
            _daily_table(EVENTS, EVENTS_COLUMNS),
            _daily_table(CONVERSATIONS, CONVERSATIONS_COLUMNS),
            _daily_table(SESSIONS, SESSIONS_COLUMNS),
        ]
    )
