"""Storage options and failure policy."""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FailurePolicy(str, Enum):
    """How recoverable failures are handled.

    LENIENT logs schema update and insert failures and carries on; STRICT
    raises them. Failing to create a missing table is raised under both.
    """

    LENIENT = "lenient"
    STRICT = "strict"

    @classmethod
    def from_flag(cls, throw_exceptions: bool) -> "FailurePolicy":
        return cls.STRICT if throw_exceptions else cls.LENIENT

    def should_raise(self, always_fatal: bool = False) -> bool:
        return always_fatal or self is FailurePolicy.STRICT


class StorageOptions(BaseModel):
    """Options accepted by the analytics storage constructor.

    Attributes:
        logger: Logger for storage messages (defaults to ``chatsink.storage``)
        throw_exceptions: Raise schema update and insert failures instead of logging them
        passive_schema: Skip reconciliation and trust the remote schema as-is
        max_workers: Thread pool size for concurrent reconciliation and inserts
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    logger: Optional[logging.Logger] = None
    throw_exceptions: bool = False
    passive_schema: bool = False
    max_workers: int = 8

    @property
    def failure_policy(self) -> FailurePolicy:
        return FailurePolicy.from_flag(self.throw_exceptions)
