"""Reconciler that implements the user-facing dotfile operations.

The ``DotfilesEngine`` ties together the namespace mapper, preflight
check, diff classifier and tag tree manager.  Every operation:

1. Fetches one snapshot of the namespace from the note store.
2. Runs the preflight namespace-conflict check.
3. Works out the items to change against the local filesystem.
4. Hands the changed items to the store in a single batch.

There is no per-item round trip to the store and no partial batch
recovery: an operation either submits its batch or raises before doing so.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable

from ..config_schema import DEFAULT_ROOT_TAG
from ..errors import (
    DuplicateItem,
    InvalidArgument,
    NoItemsToRemove,
    PreconditionFailed,
)
from ..file_handler import LocalFileSystem
from .compare import check_paths_exist, classify, unified_diff
from .mapper import (
    SEP,
    dir_to_tag,
    is_nested,
    is_trackable,
    is_trackable_dir,
    split_file_path,
    strip_home,
)
from .models import (
    AddResult,
    Classification,
    Item,
    ItemDiff,
    Note,
    PathOutcome,
    RemoveResult,
    Snapshot,
    SyncResult,
    Tag,
    TagWithNotes,
)
from .preflight import check_conflicts
from .store import JsonFileStore, NoteStore
from .tree import (
    TagTree,
    attach,
    create_missing_ancestors,
    dedupe_items,
    find_empty_tags,
    find_tag,
    matching_notes,
)

logger = logging.getLogger(__name__)


class DotfilesEngine:
    """Track, untrack and sync dotfiles under *home* against a note store.

    Args:
        store: Note store collaborator (``fetch_snapshot`` / ``persist_batch``).
        home: Home directory the namespace is rooted at.
        root: Namespace root tag title.
        fs: Filesystem collaborator; defaults to ``LocalFileSystem``.
        exclude: Paths ``sync`` skips when called without its own list.
    """

    def __init__(
        self,
        store: NoteStore,
        home: str,
        root: str = DEFAULT_ROOT_TAG,
        fs: LocalFileSystem | None = None,
        exclude: Iterable[str] = (),
    ) -> None:
        if not home:
            raise InvalidArgument("home directory required")
        self.store = store
        self.home = home.rstrip(SEP) or SEP
        self.root = root
        self.fs = fs or LocalFileSystem()
        self.exclude = list(exclude)

    @classmethod
    def from_config(cls, config) -> DotfilesEngine:
        """Build an engine over a ``JsonFileStore`` from a ``Config``."""
        return cls(
            store=JsonFileStore(config.store_path),
            home=config.home,
            root=config.root_tag,
            exclude=config.exclude,
        )

    # ------------------------------------------------------------------
    # Add
    # ------------------------------------------------------------------

    def add(self, paths: Iterable[str]) -> AddResult:
        """Start tracking *paths* (files, or directories of files).

        Raises:
            NotFound: If any path does not exist.
            NamespaceConflict: If the remote snapshot fails preflight.
            DuplicateItem: If more than one note already exists for a path.
        """
        paths = self._normalise(paths)
        check_paths_exist(paths, self.fs)
        snapshot = self._fetch()

        invalid: list[str] = []
        files = self._expand(paths, invalid)
        if not files:
            return AddResult(invalid=invalid)

        added: list[str] = []
        existing: list[str] = []
        pending: dict[str, list[Note]] = {}

        for path in files:
            if not is_trackable(path, self.home):
                logger.warning("add | path cannot be tracked: %s", path)
                invalid.append(path)
                continue

            tag_title, note_title = split_file_path(path, self.home, self.root)
            count = len(matching_notes(tag_title, note_title, snapshot))
            if count == 1:
                logger.debug("add | already tracked: %s", path)
                existing.append(path)
                continue
            if count > 1:
                raise DuplicateItem(tag_title, note_title, count)

            note = Note(title=note_title, text=self.fs.read_text(path))
            pending.setdefault(tag_title, []).append(note)
            added.append(path)

        if not pending:
            return AddResult(existing=existing, invalid=invalid)

        items = self._tag_notes(pending, snapshot)
        self.store.persist_batch(items)

        return AddResult(
            tags_pushed=sum(isinstance(i, Tag) for i in items),
            notes_pushed=sum(isinstance(i, Note) for i in items),
            added=added,
            existing=existing,
            invalid=invalid,
        )

    def _expand(self, paths: list[str], invalid: list[str]) -> list[str]:
        """Expand directories to the regular files beneath them."""
        files: list[str] = []
        for path in paths:
            if self.fs.is_symlink(path):
                logger.warning("symlinks not currently supported: %s", path)
                invalid.append(path)
            elif self.fs.is_dir(path):
                files.extend(self.fs.walk(path, on_skip=invalid.append))
            else:
                files.append(path)
        return list(dict.fromkeys(files))

    def _tag_notes(
        self, pending: dict[str, list[Note]], snapshot: Snapshot
    ) -> list[Item]:
        """Attach pending notes to their tags, creating missing tags.

        Newly created tags are folded into the working snapshot so a later
        tag in the same batch reuses them instead of creating duplicates.
        """
        staged: dict[str, Item] = {}
        working = snapshot

        for tag_title, notes in pending.items():
            for note in notes:
                staged[note.uuid] = note

            tag = find_tag(tag_title, working)
            if tag is None:
                created, working = create_missing_ancestors(tag_title, working)
                for ancestor in created:
                    staged[ancestor.uuid] = ancestor
                tag = created[-1]

            tagged = attach(tag, notes)
            working = _replace_tag(working, tag, tagged, notes)
            staged[tagged.uuid] = tagged

        if find_tag(self.root, working) is None:
            root_tag = Tag(title=self.root)
            logger.debug("add | creating root tag: %s", self.root)
            staged[root_tag.uuid] = root_tag

        return list(staged.values())

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------

    def remove(self, paths: Iterable[str]) -> RemoveResult:
        """Stop tracking *paths*, pruning tags that end up empty.

        A path matching several notes (duplicates under one tag) removes
        all of them and reports the instance count.

        Raises:
            InvalidArgument: If no paths are given.
            NotFound: If any path does not exist.
            NamespaceConflict: If the remote snapshot fails preflight.
            NoItemsToRemove: If nothing matched.
        """
        paths = self._normalise(paths)
        if not paths:
            raise InvalidArgument("paths required")
        check_paths_exist(paths, self.fs)
        snapshot = self._fetch()
        tree = TagTree.from_snapshot(snapshot)

        outcomes: list[PathOutcome] = []
        matched: list[Note] = []
        not_tracked = 0

        for path in paths:
            notes = self._notes_for_path(path, snapshot, tree)
            home_rel_path = strip_home(path, self.home)
            logger.debug(
                "remove | items matching path '%s': %d", path, len(notes)
            )
            if not notes:
                not_tracked += 1
                outcomes.append(
                    PathOutcome(
                        path=path,
                        home_rel_path=home_rel_path,
                        outcome="not tracked",
                        instances=0,
                    )
                )
                continue
            matched.extend(notes)
            outcomes.append(
                PathOutcome(
                    path=path,
                    home_rel_path=home_rel_path,
                    outcome="removed",
                    instances=len(notes),
                )
            )

        notes_to_remove = dedupe_items(matched)
        empty_tags = find_empty_tags(snapshot, notes_to_remove, self.root)

        items: list[Item] = [n.tombstone() for n in notes_to_remove]
        items.extend(t.tombstone() for t in empty_tags)
        if not items:
            raise NoItemsToRemove()

        logger.debug("remove | items to remove: %d", len(items))
        self.store.persist_batch(items)

        return RemoveResult(
            notes_removed=len(notes_to_remove),
            tags_removed=len(empty_tags),
            not_tracked=not_tracked,
            outcomes=outcomes,
        )

    def _notes_for_path(
        self, path: str, snapshot: Snapshot, tree: TagTree
    ) -> list[Note]:
        if self.fs.is_dir(path):
            if not is_trackable_dir(path, self.home):
                return []
            tag_title = dir_to_tag(path, self.home, self.root)
            notes = [n for node in tree.subtree(tag_title) for n in node.notes]
            return dedupe_items(notes)
        if not is_trackable(path, self.home):
            return []
        tag_title, note_title = split_file_path(path, self.home, self.root)
        return dedupe_items(matching_notes(tag_title, note_title, snapshot))

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync(self, exclude: Iterable[str] | None = None) -> SyncResult:
        """Push locally newer files and pull missing or remotely newer ones.

        Args:
            exclude: Paths (absolute or home-relative) to leave alone;
                anything beneath an excluded directory is skipped too.
                ``None`` uses the engine's configured exclude list.

        Raises:
            NamespaceConflict: If the remote snapshot fails preflight.
            PreconditionFailed: If nothing is tracked remotely.
            NotFound: If an exclude path does not exist.
        """
        snapshot = self._fetch()
        if not snapshot:
            raise PreconditionFailed("no remote dotfiles found")

        excludes = self._normalise(self.exclude if exclude is None else exclude)
        check_paths_exist(excludes, self.fs)

        to_push: list[ItemDiff] = []
        to_pull: list[ItemDiff] = []
        for item in classify(snapshot, self.home, self.root, self.fs):
            if self._excluded(item.home_rel_path, excludes):
                logger.debug("sync | excluding: %s", item.home_rel_path)
                continue

            match item.classification:
                case Classification.LOCAL_NEWER:
                    logger.debug("sync | local %s is newer", item.home_rel_path)
                    to_push.append(item)
                case Classification.LOCAL_MISSING:
                    logger.debug("sync | %s is missing", item.home_rel_path)
                    to_pull.append(item)
                case Classification.REMOTE_NEWER:
                    logger.debug("sync | remote %s is newer", item.home_rel_path)
                    to_pull.append(item)

        if not to_push and not to_pull:
            return SyncResult(msg="nothing to do")

        if to_push:
            self.store.persist_batch(
                [item.remote.with_text(item.local) for item in to_push]
            )

        for item in to_pull:
            self.fs.write_text(item.path, item.remote.text)

        return SyncResult(
            pushed=[item.home_rel_path for item in to_push],
            pulled=[item.home_rel_path for item in to_pull],
            msg=f"{len(to_push)} pushed, {len(to_pull)} pulled",
        )

    def _excluded(self, home_rel_path: str, excludes: list[str]) -> bool:
        return any(
            is_nested(home_rel_path, strip_home(e, self.home)) for e in excludes
        )

    # ------------------------------------------------------------------
    # Status / diff / wipe
    # ------------------------------------------------------------------

    def status(self, paths: Iterable[str] = ()) -> list[ItemDiff]:
        """Classify every tracked item, or only those under *paths*.

        Untracked files are reported only beneath explicit *paths*.
        """
        snapshot = self._fetch()
        if not snapshot:
            raise PreconditionFailed("no dotfiles being tracked")
        diffs = classify(
            snapshot, self.home, self.root, self.fs, self._normalise(paths)
        )
        logger.debug("status | %d diffs generated", len(diffs))
        return diffs

    def diff(self, paths: Iterable[str] = ()) -> list[tuple[ItemDiff, str]]:
        """Return a unified local-vs-remote diff for every differing item."""
        results: list[tuple[ItemDiff, str]] = []
        for item in self.status(paths):
            if item.remote is None or item.local is None:
                continue
            if item.local == item.remote.text:
                continue
            text = unified_diff(
                item.local,
                item.remote.text,
                label_old=f"local/{item.home_rel_path}",
                label_new=f"remote/{item.home_rel_path}",
            )
            results.append((item, text))
        return results

    def wipe(self) -> int:
        """Tombstone every tag and note in the namespace.

        Returns:
            Number of items removed.
        """
        snapshot = self.store.fetch_snapshot(self.root)
        items: list[Item] = []
        for twn in snapshot:
            items.append(twn.tag)
            items.extend(twn.notes)
        items = [i.tombstone() for i in dedupe_items(items)]
        if not items:
            return 0
        self.store.persist_batch(items)
        return len(items)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetch(self) -> Snapshot:
        snapshot = self.store.fetch_snapshot(self.root)
        logger.debug("%d remote tags fetched", len(snapshot))
        check_conflicts(snapshot, self.root)
        return snapshot

    def _normalise(self, paths: Iterable[str]) -> list[str]:
        """Make *paths* absolute (relative ones are taken from home) and dedupe."""
        result = [
            os.path.normpath(os.path.join(self.home, os.path.expanduser(p)))
            for p in paths
        ]
        return list(dict.fromkeys(result))


def _replace_tag(
    snapshot: Snapshot, old: Tag, new: Tag, notes: list[Note]
) -> Snapshot:
    """Return *snapshot* with *old* swapped for *new* and owning *notes*."""
    replaced: Snapshot = []
    for twn in snapshot:
        if twn.tag.uuid == old.uuid:
            twn = TagWithNotes(tag=new, notes=twn.notes + tuple(notes))
        replaced.append(twn)
    return replaced
