"""Dotfile reconciliation engine.

Public API for tracking local dotfiles as notes in a hierarchical note
store, one tag per directory.

Architecture
------------
Directories map to dotted tag titles rooted at a namespace tag
(``~/.config/nvim/`` <-> ``dotfiles.config.nvim``); files map to notes
attached to their directory's tag.  Every operation reads one snapshot
from the store and writes back at most one batch.

Modules:

- ``engine``    -- ``DotfilesEngine``: add, remove, sync, status, diff, wipe.
- ``mapper``    -- path <-> tag title translation.
- ``compare``   -- diff classifier (identical / local newer / ...).
- ``preflight`` -- tag/note namespace conflict check.
- ``tree``      -- ancestor tag creation and empty tag pruning.
- ``store``     -- ``NoteStore`` contract and ``JsonFileStore``.
- ``models``    -- ``Tag``, ``Note``, ``ItemDiff`` and result models.
- ``reporter``  -- plain-text and JSON report formatting.

Usage example
-------------
::

    from dotnotes.sync import DotfilesEngine, JsonFileStore, format_sync_report

    engine = DotfilesEngine(
        store=JsonFileStore("~/.local/share/dotnotes/store.json"),
        home="/home/me",
    )
    engine.add(["/home/me/.vimrc", "/home/me/.config/nvim"])
    print(format_sync_report(engine.sync()))
"""

from .engine import DotfilesEngine
from .models import (
    AddResult,
    Classification,
    ItemDiff,
    Note,
    RemoveResult,
    SyncResult,
    Tag,
    TagWithNotes,
)
from .reporter import (
    format_add_report,
    format_diff,
    format_remove_report,
    format_status,
    format_sync_report,
    result_to_json,
)
from .store import JsonFileStore, NoteStore

__all__ = [
    "AddResult",
    "Classification",
    "DotfilesEngine",
    "ItemDiff",
    "JsonFileStore",
    "Note",
    "NoteStore",
    "RemoveResult",
    "SyncResult",
    "Tag",
    "TagWithNotes",
    "format_add_report",
    "format_diff",
    "format_remove_report",
    "format_status",
    "format_sync_report",
    "result_to_json",
]
