"""CLI runtime configuration model.

This module defines the runtime configuration for the chatsink CLI: where the
dataset lives, which credentials to use and which topology to reconcile.
"""
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class AppConfig(BaseModel):
    """CLI runtime configuration, validated using Pydantic.

    Attributes:
        bq_project_id: Google Cloud project ID
        bq_dataset: BigQuery dataset holding the analytics tables
        credentials_file: Service account JSON (application default credentials if None)
        topology_config: TOML topology file (built-in chatbot topology if None)
        throw_exceptions: Raise schema update failures instead of logging them

    Example:
        >>> config = AppConfig(
        ...     bq_project_id="my-project",
        ...     bq_dataset="bot_analytics",
        ... )
    """

    bq_project_id: str
    bq_dataset: str
    credentials_file: Optional[Path] = None
    topology_config: Optional[Path] = None
    throw_exceptions: bool = False
