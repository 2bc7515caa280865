"""Remote table state as reported by the store listing."""

from typing import Optional

from pydantic import BaseModel


class RemoteTableState(BaseModel):
    """One entry of the remote dataset listing.

    Structural metadata is not part of the listing; it is fetched lazily with
    ``TableStore.get_metadata`` only when a comparison is needed.

    Attributes:
        table_id: Table name within the dataset
        table_type: TABLE, VIEW, MATERIALIZED_VIEW, ... when reported
    """

    table_id: str
    table_type: Optional[str] = None
