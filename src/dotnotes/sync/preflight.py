"""Preflight namespace-conflict check.

Tag titles and note paths share one dotted namespace: the note ``apple``
under ``dotfiles.fruit`` is addressed as ``dotfiles.fruit.apple``, which is
also what a tag for the directory ``~/.fruit/apple/`` would be called.
When both exist, add/remove cannot tell them apart, so every operation
that reads a snapshot checks for overlaps first.
"""

from __future__ import annotations

import logging

from ..errors import NamespaceConflict
from .mapper import TAG_SEP
from .models import Snapshot

logger = logging.getLogger(__name__)


def note_path(tag_title: str, note_title: str, root: str) -> str:
    """Full dotted path of a note.

    Notes under the root tag carry their own leading dot (``.bashrc``), so
    they are joined without a separator.
    """
    if tag_title == root:
        return tag_title + note_title
    return tag_title + TAG_SEP + note_title


def check_conflicts(snapshot: Snapshot, root: str) -> None:
    """Raise ``NamespaceConflict`` if any tag title equals a note path."""
    tag_paths: set[str] = set()
    note_paths: set[str] = set()
    for twn in snapshot:
        tag_paths.add(twn.tag.title)
        for note in twn.notes:
            note_paths.add(note_path(twn.tag.title, note.title, root))

    overlaps = tag_paths & note_paths
    if overlaps:
        logger.debug("preflight | %d overlapping names", len(overlaps))
        raise NamespaceConflict(sorted(overlaps))
