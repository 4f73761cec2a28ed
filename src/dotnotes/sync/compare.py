"""Diff classifier: compare a remote snapshot with the local filesystem.

For every note in the snapshot the local candidate path is derived from
its tag; the pair is then classified:

* ``local missing`` -- no local file.
* ``identical`` -- local text equals remote text.
* ``local newer`` -- texts differ and the local mtime is at or after the
  remote update time (a tie favours local).
* ``remote newer`` -- texts differ and the remote note is more recent.

A symlink at a note's path is logged and left out of the result.

When explicit paths are given, comparison is restricted to them and any
file beneath them with no remote counterpart is reported ``untracked``.
"""

from __future__ import annotations

import difflib
import logging
import os
from datetime import datetime, timezone
from typing import Sequence

from ..errors import NotFound, PreconditionFailed
from .mapper import is_nested, strip_home, tag_to_path
from .models import Classification, ItemDiff, Note, Snapshot

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def check_paths_exist(paths: Sequence[str], fs) -> None:
    """Raise ``NotFound`` for the first path that does not exist locally."""
    for path in paths:
        if not fs.exists(path):
            raise NotFound(path)


def compare_note_with_file(
    tag_title: str, path: str, home: str, remote: Note, fs
) -> ItemDiff:
    """Classify an existing local file against its remote note."""
    local = fs.read_text(path)
    home_rel_path = strip_home(path, home)

    if local == remote.text:
        classification = Classification.IDENTICAL
    else:
        local_updated = _as_utc(fs.mod_time(path))
        remote_updated = _as_utc(remote.updated_at)
        logger.debug(
            "compare | %s local updated: %s remote updated: %s",
            home_rel_path,
            local_updated.isoformat(),
            remote_updated.isoformat(),
        )
        if local_updated >= remote_updated:
            classification = Classification.LOCAL_NEWER
        else:
            classification = Classification.REMOTE_NEWER

    return ItemDiff(
        tag_title=tag_title,
        note_title=remote.title,
        path=path,
        home_rel_path=home_rel_path,
        classification=classification,
        remote=remote,
        local=local,
    )


def _tag_in_scope(directory: str, paths: Sequence[str]) -> bool:
    return any(
        is_nested(p, directory) or is_nested(directory, p) for p in paths
    )


def compare_remote_with_local(
    snapshot: Snapshot,
    home: str,
    root: str,
    paths: Sequence[str],
    fs,
) -> tuple[list[ItemDiff], set[str]]:
    """Classify every in-scope note; also return the local paths found."""
    diffs: list[ItemDiff] = []
    tracked: set[str] = set()

    for twn in snapshot:
        tag_title = twn.tag.title
        directory, _ = tag_to_path(tag_title, home, root)
        logger.debug(
            "compare | tag title: %s is path: <home>/%s",
            tag_title,
            strip_home(directory, home),
        )
        if paths and not _tag_in_scope(directory, paths):
            continue

        for note in twn.notes:
            full_path = directory + note.title
            if paths and not any(is_nested(full_path, p) for p in paths):
                continue

            if fs.is_symlink(full_path):
                logger.warning("symlinks not currently supported: %s", full_path)
                tracked.add(full_path)
                continue

            if not fs.exists(full_path):
                logger.debug(
                    "compare | local not found: <home>/%s",
                    strip_home(full_path, home),
                )
                diffs.append(
                    ItemDiff(
                        tag_title=tag_title,
                        note_title=note.title,
                        path=full_path,
                        home_rel_path=strip_home(full_path, home),
                        classification=Classification.LOCAL_MISSING,
                        remote=note,
                    )
                )
                continue

            tracked.add(full_path)
            diffs.append(
                compare_note_with_file(tag_title, full_path, home, note, fs)
            )

    return diffs, tracked


def find_untracked(
    paths: Sequence[str], tracked: set[str], home: str, fs
) -> list[ItemDiff]:
    """Report files under *paths* that have no remote counterpart."""
    diffs: list[ItemDiff] = []

    def _untracked(path: str) -> ItemDiff:
        logger.debug("compare | file is untracked: %s", path)
        return ItemDiff(
            path=path,
            home_rel_path=strip_home(path, home),
            classification=Classification.UNTRACKED,
        )

    for path in paths:
        if path in tracked:
            continue
        if fs.is_symlink(path):
            logger.warning("symlinks not currently supported: %s", path)
            continue
        if fs.is_dir(path):
            logger.debug("compare | walking path: %s", path)
            for found in fs.walk(path):
                if found not in tracked:
                    diffs.append(_untracked(found))
        else:
            diffs.append(_untracked(path))

    return diffs


def classify(
    snapshot: Snapshot,
    home: str,
    root: str,
    fs,
    paths: Sequence[str] = (),
) -> list[ItemDiff]:
    """Compare *snapshot* with the filesystem under *home*.

    Args:
        snapshot: Remote tags with their notes.
        home: Home directory the namespace is rooted at.
        root: Namespace root tag title.
        fs: Filesystem collaborator.
        paths: Optional absolute paths to restrict the comparison to.

    Raises:
        PreconditionFailed: If *snapshot* is empty while *paths* are given.
        NotFound: If any of *paths* does not exist.
    """
    paths = [os.path.abspath(p) for p in paths]
    logger.debug("compare | home: %s, %d paths supplied", home, len(paths))

    if not snapshot:
        if paths:
            raise PreconditionFailed("tags with notes not supplied")
        return []

    check_paths_exist(paths, fs)

    diffs, tracked = compare_remote_with_local(snapshot, home, root, paths, fs)
    if paths:
        diffs.extend(find_untracked(paths, tracked, home, fs))
    return diffs


def unified_diff(
    old_content: str,
    new_content: str,
    label_old: str = "local",
    label_new: str = "remote",
) -> str:
    """Generate a unified diff between two strings.

    Returns:
        A unified diff string.  Empty string if the contents are identical.
    """
    diff_lines = difflib.unified_diff(
        old_content.splitlines(True),
        new_content.splitlines(True),
        fromfile=label_old,
        tofile=label_new,
    )
    return "".join(diff_lines)
