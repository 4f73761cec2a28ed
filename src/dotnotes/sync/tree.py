"""Tag tree lifecycle: ancestor creation on add, pruning on remove.

Tag hierarchy is stored only as dotted titles.  ``TagTree`` parses a
snapshot into an arena of nodes (indexed by position, with parent
indices) so that structural questions such as "which tags are children
of this one" never rely on string prefix tricks.  Ancestors that have no
stored tag appear as virtual nodes.

Tag creation is functional: ``create_missing_ancestors`` returns the new
tags together with an extended snapshot instead of mutating the one it
was given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .mapper import TAG_SEP
from .models import Note, Snapshot, Tag, TagWithNotes

logger = logging.getLogger(__name__)


@dataclass
class TagNode:
    title: str
    parent: int | None
    children: list[int] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)

    @property
    def is_virtual(self) -> bool:
        return not self.tags


class TagTree:
    """Arena of tag nodes built from a snapshot."""

    def __init__(self) -> None:
        self.nodes: list[TagNode] = []
        self._index: dict[str, int] = {}

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> TagTree:
        tree = cls()
        for twn in snapshot:
            node = tree.nodes[tree.ensure(twn.tag.title)]
            node.tags.append(twn.tag)
            node.notes.extend(twn.notes)
        return tree

    def ensure(self, title: str) -> int:
        """Return the node index for *title*, creating it and its ancestors."""
        if title in self._index:
            return self._index[title]
        parent = None
        if TAG_SEP in title:
            parent = self.ensure(title.rsplit(TAG_SEP, 1)[0])
        self.nodes.append(TagNode(title=title, parent=parent))
        idx = len(self.nodes) - 1
        self._index[title] = idx
        if parent is not None:
            self.nodes[parent].children.append(idx)
        return idx

    def get(self, title: str) -> TagNode | None:
        idx = self._index.get(title)
        return None if idx is None else self.nodes[idx]

    def subtree(self, title: str) -> list[TagNode]:
        """Return the node for *title* and all of its descendants."""
        idx = self._index.get(title)
        if idx is None:
            return []
        found: list[TagNode] = []
        stack = [idx]
        while stack:
            node = self.nodes[stack.pop()]
            found.append(node)
            stack.extend(node.children)
        return found


# ---------------------------------------------------------------------------
# Snapshot lookups
# ---------------------------------------------------------------------------


def find_tag(title: str, snapshot: Snapshot) -> Tag | None:
    """Return the first tag titled *title*, if any."""
    for twn in snapshot:
        if twn.tag.title == title:
            return twn.tag
    return None


def matching_notes(
    tag_title: str, note_title: str, snapshot: Snapshot
) -> list[Note]:
    """Return every note titled *note_title* under tags titled *tag_title*."""
    return [
        note
        for twn in snapshot
        if twn.tag.title == tag_title
        for note in twn.notes
        if note.title == note_title
    ]


def dedupe_items(items: list) -> list:
    """Drop repeated items (by uuid), keeping first occurrences in order."""
    seen: set[str] = set()
    result = []
    for item in items:
        if item.uuid not in seen:
            seen.add(item.uuid)
            result.append(item)
    return result


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def create_missing_ancestors(
    title: str, snapshot: Snapshot
) -> tuple[list[Tag], Snapshot]:
    """Create every tag on the path to *title* that does not exist yet.

    Returns:
        The new tags ordered ancestor -> descendant, and *snapshot*
        extended with them.
    """
    segments = title.split(TAG_SEP)
    existing = {twn.tag.title for twn in snapshot}
    created: list[Tag] = []
    extended = list(snapshot)
    for i in range(1, len(segments) + 1):
        prefix = TAG_SEP.join(segments[:i])
        if prefix in existing:
            continue
        tag = Tag(title=prefix)
        logger.debug("createMissingTags | creating tag: %s", prefix)
        created.append(tag)
        extended.append(TagWithNotes(tag=tag))
        existing.add(prefix)
    return created, extended


def attach(tag: Tag, notes: list[Note]) -> Tag:
    """Return *tag* with references to *notes*; existing references kept."""
    refs = list(tag.references)
    for note in notes:
        if note.uuid not in refs:
            refs.append(note.uuid)
    return tag.model_copy(update={"references": tuple(refs)})


# ---------------------------------------------------------------------------
# Pruning
# ---------------------------------------------------------------------------


def find_empty_tags(
    snapshot: Snapshot, deleted_notes: list[Note], root: str
) -> list[Tag]:
    """Return the tags left without notes once *deleted_notes* are gone.

    A tag is pruned when it retains no notes and every child tag has
    already been pruned.  Passes repeat bottom-up until nothing changes,
    so emptied chains collapse from the leaves towards *root*.  The root
    tag follows the same rule: it goes only when all of its direct
    children are pruned and it holds no notes itself.  Root-level notes
    such as ``.bashrc`` therefore keep the root tag alive even after
    every child tag has been removed.

    Returns:
        De-duplicated tags in snapshot order.
    """
    deleted_ids = {n.uuid for n in deleted_notes}
    tree = TagTree.from_snapshot(snapshot)

    retained = [
        sum(1 for n in node.notes if n.uuid not in deleted_ids)
        for node in tree.nodes
    ]

    pruned: set[int] = set()
    while True:
        changed = False
        for idx, node in enumerate(tree.nodes):
            if idx in pruned or retained[idx]:
                continue
            if all(child in pruned for child in node.children):
                pruned.add(idx)
                changed = True
        if not changed:
            break

    pruned_titles = {tree.nodes[idx].title for idx in pruned}
    if root in pruned_titles:
        logger.debug(
            "findEmptyTags | removing '%s' tag as all children being removed",
            root,
        )

    to_remove = dedupe_items(
        [twn.tag for twn in snapshot if twn.tag.title in pruned_titles]
    )
    logger.debug("findEmptyTags | total to remove: %d", len(to_remove))
    return to_remove
