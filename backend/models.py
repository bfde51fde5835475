"""Shared backend models for PhraseLink."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class NoteKind(str, Enum):
    NOTE = "note"
    ATTACHMENT = "attachment"


class EntryKind(str, Enum):
    TITLE = "title"
    HEADING = "heading"
    BLOCK = "block"
    TAG = "tag"


def _timestamp() -> float:
    return time.time()


@dataclass
class NoteRecord:
    """Represents a stored vault document."""

    id: str
    title: str
    kind: NoteKind
    content: str = ""
    created_at: float = field(default_factory=_timestamp)
    updated_at: float = field(default_factory=_timestamp)


@dataclass(frozen=True, eq=False)
class IndexEntry:
    """One linkable target extracted from a document.

    Equality and hashing only look at (kind, source_path, target);
    display_text and source_title are presentation details.
    """

    kind: EntryKind
    source_path: str
    source_title: str
    target: str
    display_text: str

    @property
    def identity(self) -> Tuple[EntryKind, str, str]:
        return (self.kind, self.source_path, self.target)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IndexEntry):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)


@dataclass(frozen=True)
class ScoredEntry:
    entry: IndexEntry
    score: float


@dataclass(frozen=True)
class PhraseSpan:
    """Line-relative span to replace with a link."""

    start: int
    end: int
    query: str


@dataclass
class DocumentMetadata:
    tags: List[str] = field(default_factory=list)
    headings: List[str] = field(default_factory=list)
    block_ids: List[str] = field(default_factory=list)


# API payloads

class NoteNodePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    kind: NoteKind = Field(alias="type")


class NoteContentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    note_id: str = Field(alias="note_id")
    title: Optional[str] = None
    content: str


class NotesResponsePayload(BaseModel):
    notes: List[NoteNodePayload] = Field(default_factory=list)


class EntryPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: EntryKind
    source_path: str = Field(alias="source_path")
    source_title: str = Field(alias="source_title")
    target: str
    display_text: str = Field(alias="display_text")
    score: float = 0.0

    @classmethod
    def from_scored(cls, scored: ScoredEntry) -> "EntryPayload":
        entry = scored.entry
        return cls(
            kind=entry.kind,
            source_path=entry.source_path,
            source_title=entry.source_title,
            target=entry.target,
            display_text=entry.display_text,
            score=scored.score,
        )


class SpanPayload(BaseModel):
    start: int
    end: int
    query: str


class ResolveResponsePayload(BaseModel):
    span: Optional[SpanPayload] = None


class SuggestResponsePayload(BaseModel):
    results: List[EntryPayload] = Field(default_factory=list)


class CompleteResponsePayload(BaseModel):
    span: Optional[SpanPayload] = None
    results: List[EntryPayload] = Field(default_factory=list)


class LinkResponsePayload(BaseModel):
    link: str


class RebuildResponsePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    documents_indexed: int = Field(default=0, alias="documents_indexed")
    skipped: bool = False


# Request payloads

class ResolveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    line: str
    cursor_offset: int = Field(alias="cursor_offset", ge=0)


class SuggestRequest(BaseModel):
    text: str
    limit: int = Field(default=100, ge=1, le=100)


class CompleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    line: str
    cursor_offset: int = Field(alias="cursor_offset", ge=0)
    limit: int = Field(default=100, ge=1, le=100)


class LinkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: EntryKind
    source_title: str = Field(alias="source_title")
    target: str
    query: str = ""


class UpdateNoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    note_id: str = Field(alias="note_id")
    content: str


class CreateNoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    note_id: str = Field(alias="note_id")
    content: str = ""


class RenameNoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_note_id: str = Field(alias="old_note_id")
    new_note_id: str = Field(alias="new_note_id")


class DeleteNoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    note_id: str = Field(alias="note_id")


class OpenVaultRequest(BaseModel):
    path: str
