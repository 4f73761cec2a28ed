"""Note store contract and a JSON-file implementation.

The engine needs exactly two calls from a store:

* ``fetch_snapshot(root)`` -- every live tag under the namespace root,
  paired with the live notes it references.
* ``persist_batch(items)`` -- save created, modified and tombstoned tags
  and notes in one call.

``JsonFileStore`` keeps all items in a single JSON document.  Key design
choices:

* **Atomic writes** -- ``persist_batch()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Tombstones** -- deleted items stay in the document with
  ``deleted: true``; they are simply left out of snapshots.
* **Server-side timestamps** -- every persisted note gets ``updated_at``
  set to the time of the write, as a remote sync server would.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Protocol

from .mapper import TAG_SEP
from .models import Item, Note, Snapshot, Tag, TagWithNotes, utc_now

logger = logging.getLogger(__name__)

_FORMAT_VERSION = 1


class NoteStore(Protocol):
    def fetch_snapshot(self, root: str) -> Snapshot: ...

    def persist_batch(self, items: list[Item]) -> None: ...


def in_namespace(title: str, root: str) -> bool:
    return title == root or title.startswith(root + TAG_SEP)


def build_snapshot(
    tags: Iterable[Tag], notes: Iterable[Note], root: str
) -> Snapshot:
    """Pair live namespace tags with the live notes they reference."""
    live_notes = {n.uuid: n for n in notes if not n.deleted}
    snapshot: Snapshot = []
    for tag in tags:
        if tag.deleted or not in_namespace(tag.title, root):
            continue
        owned = tuple(
            live_notes[ref] for ref in tag.references if ref in live_notes
        )
        snapshot.append(TagWithNotes(tag=tag, notes=owned))
    return snapshot


class JsonFileStore:
    """Note store persisted as one JSON document.

    Args:
        path: Location of the JSON document.  Missing files read as an
            empty store; parent directories are created on first write.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def fetch_snapshot(self, root: str) -> Snapshot:
        data = self._load()
        tags = [Tag.model_validate(t) for t in data["tags"].values()]
        notes = [Note.model_validate(n) for n in data["notes"].values()]
        snapshot = build_snapshot(tags, notes, root)
        logger.debug(
            "store | fetched %d tags under '%s' from %s",
            len(snapshot),
            root,
            self._path,
        )
        return snapshot

    def persist_batch(self, items: list[Item]) -> None:
        data = self._load()
        now = utc_now()
        for item in items:
            if isinstance(item, Note):
                item = item.model_copy(update={"updated_at": now})
                data["notes"][item.uuid] = item.model_dump(mode="json")
            else:
                data["tags"][item.uuid] = item.model_dump(mode="json")
        self._save(data)
        logger.debug(
            "store | persisted %d items to %s", len(items), self._path
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> dict:
        if not self._path.exists():
            return {"version": _FORMAT_VERSION, "tags": {}, "notes": {}}
        with open(self._path, encoding="utf-8") as fh:
            data = json.load(fh)
        data.setdefault("tags", {})
        data.setdefault("notes", {})
        return data

    def _save(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
