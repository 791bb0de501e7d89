from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    ERROR = "error"


NOT_FOUND_MESSAGE = "Not found"


class SourceConfig(BaseModel):
    """Display metadata for a source."""

    name: str
    color: str
    icon: str | None = None


class Identifier(BaseModel):
    type: str
    value: str
    label: str
    url: str | None = None

    model_config = {"frozen": True}


class PrimaryEntity(BaseModel):
    id: str
    label: str
    description: str | None = None
    identifiers: dict[str, Identifier] = Field(default_factory=dict)


class SourceResult(BaseModel):
    title: str
    url: str
    description: str | None = None
    thumbnail: str | None = None
    source_config: SourceConfig | None = None


class SourceFailure(BaseModel):
    kind: FailureKind
    message: str

    @classmethod
    def not_found(cls) -> SourceFailure:
        return cls(kind=FailureKind.NOT_FOUND, message=NOT_FOUND_MESSAGE)

    @classmethod
    def error(cls, message: str) -> SourceFailure:
        return cls(kind=FailureKind.ERROR, message=message)


class AggregateResult(BaseModel):
    """Outcome of one fan-out.

    ``successful``, ``failed`` and ``skipped`` partition the sources that were
    considered: each appears in exactly one of them.
    """

    successful: dict[str, SourceResult | list[SourceResult]] = Field(default_factory=dict)
    failed: dict[str, SourceFailure] = Field(default_factory=dict)
    skipped: list[str] = Field(default_factory=list)

    def considered(self) -> set[str]:
        return set(self.successful) | set(self.failed) | set(self.skipped)


class SessionState(BaseModel):
    title: str
    url: str
    primary_id: str | None = None
    timestamp: float
    tier2_satisfied_sources: list[str] = Field(default_factory=list)
    version: int = 0
