"""Pydantic models for the dotfile reconciliation engine.

Defines the core data contracts used across all sync modules:

- ``Tag`` / ``Note``: the two item kinds held by the remote store.
- ``TagWithNotes``: a tag paired with the notes it references.
- ``Classification``: how a local path relates to its remote note.
- ``ItemDiff``: one classified path, produced per diff/sync call.
- ``AddResult``, ``RemoveResult``, ``SyncResult``: operation outcomes.

All models are frozen (immutable).  Changing an item means building a
new one with ``model_copy(update=...)``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from pydantic import BaseModel, Field


def new_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Classification(str, Enum):
    """Relationship between a local path and its remote note."""

    IDENTICAL = "identical"
    LOCAL_MISSING = "local missing"
    LOCAL_NEWER = "local newer"
    REMOTE_NEWER = "remote newer"
    UNTRACKED = "untracked"


class Note(BaseModel):
    """Remote representation of one tracked file.

    Attributes:
        uuid: Opaque item identifier.
        title: Bare filename (may itself contain dots).
        text: File content.
        updated_at: Last update time in UTC.
        deleted: Tombstone flag.
    """

    uuid: str = Field(default_factory=new_uuid)
    title: str
    text: str = ""
    updated_at: datetime = Field(default_factory=utc_now)
    deleted: bool = False

    model_config = {"frozen": True}

    def with_text(self, text: str) -> Note:
        return self.model_copy(update={"text": text})

    def tombstone(self) -> Note:
        return self.model_copy(update={"deleted": True})


class Tag(BaseModel):
    """A named container whose dotted title encodes a directory.

    Attributes:
        uuid: Opaque item identifier.
        title: Dotted path rooted at the namespace root.
        references: Ids of the notes this tag directly owns.
        deleted: Tombstone flag.
    """

    uuid: str = Field(default_factory=new_uuid)
    title: str
    references: tuple[str, ...] = ()
    deleted: bool = False

    model_config = {"frozen": True}

    def tombstone(self) -> Tag:
        return self.model_copy(update={"deleted": True})


Item = Union[Tag, Note]


class TagWithNotes(BaseModel):
    """A tag and the notes it directly references."""

    tag: Tag
    notes: tuple[Note, ...] = ()

    model_config = {"frozen": True}


Snapshot = list[TagWithNotes]


class ItemDiff(BaseModel):
    """Comparison result for a single path.

    Attributes:
        tag_title: Title of the owning tag (empty for untracked paths).
        note_title: Title of the remote note (empty for untracked paths).
        path: Absolute local path.
        home_rel_path: Path relative to the home directory.
        classification: How local and remote relate.
        remote: The remote note, if any.
        local: Local content, when the local file was read.
    """

    tag_title: str = ""
    note_title: str = ""
    path: str
    home_rel_path: str
    classification: Classification
    remote: Note | None = None
    local: str | None = None

    model_config = {"frozen": True}


class PathOutcome(BaseModel):
    """What an operation did with one input path."""

    path: str
    home_rel_path: str
    outcome: str
    instances: int = 1

    model_config = {"frozen": True}


class AddResult(BaseModel):
    """Outcome of an ``add`` call.

    Attributes:
        tags_pushed: Number of tags in the persisted batch.
        notes_pushed: Number of notes in the persisted batch.
        added: Paths that are now tracked.
        existing: Paths that were already tracked.
        invalid: Paths rejected (symlinks, paths outside the namespace).
    """

    tags_pushed: int = 0
    notes_pushed: int = 0
    added: list[str] = []
    existing: list[str] = []
    invalid: list[str] = []

    model_config = {"frozen": True}


class RemoveResult(BaseModel):
    """Outcome of a ``remove`` call."""

    notes_removed: int = 0
    tags_removed: int = 0
    not_tracked: int = 0
    outcomes: list[PathOutcome] = []

    model_config = {"frozen": True}


class SyncResult(BaseModel):
    """Outcome of a ``sync`` call.

    Attributes:
        pushed: Paths whose local content replaced the remote note.
        pulled: Paths written from the remote note.
        msg: Summary message.
    """

    pushed: list[str] = []
    pulled: list[str] = []
    msg: str = ""

    model_config = {"frozen": True}

    @property
    def num_pushed(self) -> int:
        return len(self.pushed)

    @property
    def num_pulled(self) -> int:
        return len(self.pulled)

    @property
    def nothing_to_do(self) -> bool:
        return not self.pushed and not self.pulled
