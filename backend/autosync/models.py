"""
AutoSync Data Models.

Defines the change, action and result types that flow through the
batching engine, plus the per-root watcher configuration.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChangeKind(str, Enum):
    """Kinds of raw filesystem change events."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class ActionKind(str, Enum):
    """Remote synchronization actions."""

    UPLOAD = "upload"
    DELETE = "delete"

    @classmethod
    def for_change(cls, change: ChangeKind) -> "ActionKind":
        """Map a change event to the action it queues."""
        if change is ChangeKind.DELETED:
            return cls.DELETE
        return cls.UPLOAD


class Outcome(str, Enum):
    """Result of a single dispatched item."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(slots=True, frozen=True)
class DispatchResult:
    """Outcome of one item in one flush. Never persisted."""

    path: Path
    action: ActionKind
    outcome: Outcome
    reason: str | None = None

    @property
    def ok(self) -> bool:
        """Check if the item was synchronized."""
        return self.outcome is Outcome.SUCCESS


class WatcherConfig(BaseModel):
    """
    Watch configuration for a single root.

    ``files`` is a glob pattern relative to the root, or ``False`` to
    disable watching entirely. Accepts the camelCase keys used by
    editor settings files.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    files: str | Literal[False] = Field(default=False)
    auto_upload: bool = Field(default=False, alias="autoUpload")
    auto_delete: bool = Field(default=False, alias="autoDelete")

    @property
    def is_disabled(self) -> bool:
        """True when this config installs no watcher."""
        return self.files is False or not (self.auto_upload or self.auto_delete)
