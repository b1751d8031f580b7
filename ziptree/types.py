"""Shared Pydantic models and entry metadata."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class PackSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    prefix: str = ""


class ArchiveTask(BaseModel):
    """Ordered (source, prefix) pairs plus the archive to write them into."""

    model_config = ConfigDict(frozen=True)

    sources: tuple[PackSource, ...] = Field(default_factory=tuple)
    destination: str


@dataclass(frozen=True)
class EntryInfo:
    index: int
    name: str
    size: int
    valid: bool

    @property
    def is_dir(self) -> bool:
        return self.name.endswith("/")
