"""Exception taxonomy for dotnotes operations.

Every failure the reconciliation engine can report is a subclass of
``DotnotesError`` so callers can catch the whole family in one place.
None of these are retried inside the engine.
"""

from __future__ import annotations


class DotnotesError(Exception):
    """Base class for all dotnotes errors."""


class NotFound(DotnotesError, FileNotFoundError):
    """A required local path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Path not found: {path}")
        self.path = path


class PreconditionFailed(DotnotesError):
    """Operation invoked against an empty or unusable snapshot."""


class NamespaceConflict(DotnotesError):
    """Tag titles and note paths collide in the shared namespace.

    Attributes:
        overlaps: Every colliding string, sorted.
    """

    def __init__(self, overlaps: list[str]) -> None:
        self.overlaps = sorted(overlaps)
        listing = "\n".join(f"- {o}" for o in self.overlaps)
        super().__init__(
            f"the following notes and tags are overlapping:\n{listing}"
        )


class DuplicateItem(DotnotesError):
    """More than one note with the same title exists under one tag."""

    def __init__(self, tag_title: str, note_title: str, count: int) -> None:
        super().__init__(
            f"duplicate items found with name '{note_title}' "
            f"and tag '{tag_title}' ({count} instances)"
        )
        self.tag_title = tag_title
        self.note_title = note_title
        self.count = count


class NoItemsToRemove(DotnotesError):
    """Nothing matched for deletion."""

    def __init__(self) -> None:
        super().__init__("no items to remove")


class InvalidArgument(DotnotesError, ValueError):
    """A required argument (home, tag title, paths) is missing or malformed."""
