"""Declarative table and materialized view definitions.

This module defines the Pydantic models that describe the desired topology of
an analytics dataset: base tables with typed columns, partitioning and
clustering, and materialized views derived from one of those tables. Each
definition renders itself into the BigQuery REST metadata shape so it can be
compared against, and merged into, what the remote store reports.
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import toml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from chatsink.exceptions import ConfigurationError

ColumnType = Literal[
    "STRING",
    "BYTES",
    "INTEGER",
    "INT64",
    "FLOAT",
    "FLOAT64",
    "NUMERIC",
    "BIGNUMERIC",
    "BOOLEAN",
    "BOOL",
    "TIMESTAMP",
    "DATE",
    "TIME",
    "DATETIME",
    "GEOGRAPHY",
    "JSON",
]

# Standard SQL names mapped to the names tables.get reports
TYPE_ALIASES = {
    "INT64": "INTEGER",
    "FLOAT64": "FLOAT",
    "BOOL": "BOOLEAN",
}

# About 99 years
DEFAULT_PARTITION_EXPIRATION_MS = 3118560000000


class ColumnSpec(BaseModel):
    """One typed column of a base table.

    Attributes:
        name: Column name
        type: BigQuery scalar type
        mode: REQUIRED, NULLABLE or REPEATED (array of ``type``)
        max_length: Optional maximum length for STRING/BYTES columns

    Example:
        >>> ColumnSpec(name="pageId", type="STRING", max_length=36, mode="REQUIRED")
    """

    name: str
    type: ColumnType
    mode: Optional[Literal["NULLABLE", "REQUIRED", "REPEATED"]] = None
    max_length: Optional[int] = Field(default=None, gt=0)

    @field_validator("type", "mode", mode="before")
    @classmethod
    def uppercase(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("type")
    @classmethod
    def remote_type_name(cls, v: str) -> str:
        return TYPE_ALIASES.get(v, v)

    def to_metadata(self) -> Dict[str, Any]:
        md: Dict[str, Any] = {"name": self.name, "type": self.type}
        # BigQuery reports maxLength as a string
        if self.max_length is not None:
            md["maxLength"] = str(self.max_length)
        if self.mode is not None:
            md["mode"] = self.mode
        return md


class Partitioning(BaseModel):
    """Time partitioning of a base table.

    Attributes:
        unit: Partition granularity (DAY or MONTH)
        expiration_ms: Partition retention in milliseconds
        field: Column used for partitioning (ingestion time if None)
    """

    unit: Literal["DAY", "MONTH"] = "DAY"
    expiration_ms: Optional[int] = Field(default=DEFAULT_PARTITION_EXPIRATION_MS, gt=0)
    field: Optional[str] = None

    @field_validator("unit", mode="before")
    @classmethod
    def uppercase_unit(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    def to_metadata(self) -> Dict[str, Any]:
        md: Dict[str, Any] = {"type": self.unit}
        if self.expiration_ms is not None:
            md["expirationMs"] = str(self.expiration_ms)
        if self.field is not None:
            md["field"] = self.field
        return md


class MaterializedViewQuery(BaseModel):
    """Query backing a materialized view.

    Attributes:
        query: SQL text of the view
        source_table: Name of the topology entry the view reads from
        enable_refresh: Whether automatic refresh is enabled
    """

    query: str
    source_table: str
    enable_refresh: bool = True

    def to_metadata(self) -> Dict[str, Any]:
        return {"query": self.query, "enableRefresh": self.enable_refresh}


class TableDefinition(BaseModel):
    """Desired state of one table or materialized view.

    A definition with ``materialized_view`` set is a view: it declares no
    columns and can only be created once its source table exists.

    Example:
        >>> TableDefinition(
        ...     name="events",
        ...     columns=[ColumnSpec(name="date", type="DATE", mode="REQUIRED")],
        ...     partitioning=Partitioning(unit="DAY", field="date"),
        ...     clustering=["date"],
        ... )
    """

    name: str = Field(min_length=1, max_length=1024)
    columns: Optional[List[ColumnSpec]] = None
    partitioning: Optional[Partitioning] = None
    clustering: Optional[List[str]] = None
    materialized_view: Optional[MaterializedViewQuery] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def validate_shape(self) -> "TableDefinition":
        if self.materialized_view is not None:
            if self.columns:
                raise ValueError(f"Materialized view '{self.name}' cannot declare columns")
            if self.materialized_view.source_table == self.name:
                raise ValueError(f"Materialized view '{self.name}' cannot read from itself")
            return self

        if not self.columns:
            raise ValueError(f"Table '{self.name}' must declare at least one column")

        column_names = [c.name for c in self.columns]
        if len(set(column_names)) != len(column_names):
            raise ValueError(f"Table '{self.name}' declares duplicate columns")

        if self.partitioning and self.partitioning.field:
            if self.partitioning.field not in column_names:
                raise ValueError(
                    f"Partition column '{self.partitioning.field}' "
                    f"is not a column of '{self.name}'"
                )

        for column in self.clustering or []:
            if column not in column_names:
                raise ValueError(f"Clustering column '{column}' is not a column of '{self.name}'")

        return self

    @property
    def is_view(self) -> bool:
        return self.materialized_view is not None

    @property
    def source_table(self) -> Optional[str]:
        return self.materialized_view.source_table if self.materialized_view else None

    def to_metadata(self) -> Dict[str, Any]:
        """Render the BigQuery REST metadata for this definition.

        Only the parts the definition declares are emitted, so the result can be
        used both to create the table and as the "desired" side of a subset
        comparison against remote metadata.

        Returns:
            Metadata dict, e.g. ``{"schema": {"fields": [...]}, "timePartitioning": {...}}``
        """
        md: Dict[str, Any] = {}
        if self.columns:
            md["schema"] = {"fields": [c.to_metadata() for c in self.columns]}
        if self.partitioning is not None:
            md["timePartitioning"] = self.partitioning.to_metadata()
        if self.clustering:
            md["clustering"] = {"fields": list(self.clustering)}
        if self.materialized_view is not None:
            md["materializedView"] = self.materialized_view.to_metadata()
        if self.description is not None:
            md["description"] = self.description
        return md


class Topology(BaseModel):
    """Ordered, validated set of table and view definitions for one dataset.

    Attributes:
        tables: Definitions in reconciliation order
    """

    tables: List[TableDefinition] = Field(alias="table")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def validate_references(self) -> "Topology":
        names = [t.name for t in self.tables]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate table names in topology: {', '.join(duplicates)}")

        for definition in self.tables:
            source = definition.source_table
            if source is not None and source not in names:
                raise ValueError(
                    f"Materialized view '{definition.name}' reads from "
                    f"'{source}', which is not part of the topology"
                )
        return self

    @property
    def names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get(self, name: str) -> Optional[TableDefinition]:
        return next((t for t in self.tables if t.name == name), None)

    @classmethod
    def coerce(
        cls, topology: Union["Topology", List[TableDefinition], List[Dict[str, Any]]]
    ) -> "Topology":
        """Build a Topology from a Topology, definitions or plain dicts.

        Raises:
            ConfigurationError: If the definitions are invalid
        """
        if isinstance(topology, Topology):
            return topology
        try:
            return cls(tables=list(topology))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid topology\n{e}") from e

    @classmethod
    def from_toml(cls, path: Union[str, Path]) -> "Topology":
        """Load a topology from a TOML file with a ``[[table]]`` array.

        Example file::

            [[table]]
            name = "events"
            columns = [{ name = "pageId", type = "STRING", mode = "REQUIRED" }]
            clustering = ["pageId"]

        Raises:
            ConfigurationError: If the file is unreadable or fails validation
        """
        try:
            raw = toml.load(path)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigurationError(f"Unable to read topology config {path}: {e}") from e

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigurationError(f"Validation Failed for {path}\n{e}") from e
