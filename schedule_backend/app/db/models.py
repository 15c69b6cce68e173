import logging
import math
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


class WorkItemKind(str, Enum):
    ISSUE = "issue"
    ACTION_ITEM = "action-item"


def item_key(kind, item_id) -> str:
    """Node identifier used throughout the engine, e.g. 'issue:12'."""
    kind_value = kind.value if isinstance(kind, WorkItemKind) else str(kind)
    return f"{kind_value}:{item_id}"


class WorkItemRef(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: WorkItemKind = Field(alias="type")
    id: int

    @property
    def key(self) -> str:
        return item_key(self.kind, self.id)

    @classmethod
    def from_key(cls, key: str) -> "WorkItemRef":
        kind, _, raw_id = key.rpartition(":")
        return cls(kind=WorkItemKind(kind), id=int(raw_id))

    def as_dict(self) -> dict:
        return {"type": self.kind.value, "id": self.id}


class Assignee(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    # None means the assignee carries the full estimate
    effort_percentage: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("effortPercentage", "effort_percentage"),
    )


class SchedulableItem(BaseModel):
    """A work item as fed to the scheduler. Built fresh for every request."""

    model_config = ConfigDict(populate_by_name=True)

    kind: WorkItemKind = Field(validation_alias=AliasChoices("type", "kind"))
    id: int
    title: Optional[str] = None
    estimate: float = Field(
        default=0.0,
        validation_alias=AliasChoices("estimate", "estimatedHours", "estimated_hours"),
    )
    due_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("dueDate", "due_date"))
    assignee: Optional[str] = None
    assignees: List[Assignee] = []
    estimate_source: str = Field(
        default="unknown",
        validation_alias=AliasChoices("estimateSource", "estimate_source"),
    )
    # Derived from the dependency graph; never read from input
    dependencies: List[str] = []

    @field_validator("estimate", mode="before")
    @classmethod
    def _coerce_estimate(cls, v):
        # PostgreSQL numeric columns arrive as strings or Decimals
        if v is None or v == "":
            return 0.0
        try:
            value = float(v)
        except (TypeError, ValueError):
            logger.warning("Invalid estimate %r, using 0", v)
            return 0.0
        if math.isnan(value) or value < 0:
            logger.warning("Invalid estimate %r, using 0", v)
            return 0.0
        return value

    @field_validator("due_date", mode="before")
    @classmethod
    def _coerce_due_date(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        return v

    @property
    def key(self) -> str:
        return item_key(self.kind, self.id)

    @property
    def ref(self) -> WorkItemRef:
        return WorkItemRef(kind=self.kind, id=self.id)


class RawDependencyEdge(BaseModel):
    """One stored relationship row, before direction normalization."""

    model_config = ConfigDict(populate_by_name=True)

    source_type: str = Field(validation_alias=AliasChoices("sourceType", "source_type"))
    source_id: int = Field(validation_alias=AliasChoices("sourceId", "source_id"))
    target_type: str = Field(validation_alias=AliasChoices("targetType", "target_type"))
    target_id: int = Field(validation_alias=AliasChoices("targetId", "target_id"))
    relationship_type: str = Field(validation_alias=AliasChoices("relationshipType", "relationship_type"))

    @property
    def source_key(self) -> str:
        return item_key(self.source_type, self.source_id)

    @property
    def target_key(self) -> str:
        return item_key(self.target_type, self.target_id)
