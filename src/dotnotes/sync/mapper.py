"""Namespace translation between filesystem paths and dotted tag titles.

A directory under the home directory becomes a tag title by prefixing the
namespace root and turning path separators into dots:

    ``<home>/.fruit/banana/``  <->  ``dotfiles.fruit.banana``

The leading dot of the home-level directory doubles as the first title
separator, which is why only dotted top-level directories (and files
directly in home) can be tracked.  ``tag_to_path`` is the exact inverse of
``path_to_tag`` for every path that passes ``is_trackable``; tag pruning
relies on that.
"""

from __future__ import annotations

import os

from ..errors import InvalidArgument

SEP = os.sep
TAG_SEP = "."


def path_to_tag(home_rel_dir: str, root: str) -> str:
    """Map a home-relative directory (e.g. ``".fruit/banana/"``) to a tag title."""
    title = (root + home_rel_dir).replace(SEP, TAG_SEP)
    if title.endswith(TAG_SEP):
        return title[:-1]
    return title


def tag_to_path(title: str, home: str, root: str) -> tuple[str, bool]:
    """Map a tag title to its absolute directory, with a trailing separator.

    Returns:
        ``(directory, is_root)``.

    Raises:
        InvalidArgument: If *title* or *home* is empty, or *title* lies
            outside the *root* namespace.
    """
    if not title:
        raise InvalidArgument("tag title required")
    if not home:
        raise InvalidArgument("home directory required")
    home = home.rstrip(SEP) or SEP
    if title == root:
        return _join_home(home, ""), True
    if not title.startswith(root + TAG_SEP):
        raise InvalidArgument(
            f"tag '{title}' is outside the '{root}' namespace"
        )
    rel = title[len(root) + 1 :].replace(TAG_SEP, SEP)
    return _join_home(home, TAG_SEP + rel + SEP), False


def _join_home(home: str, rel: str) -> str:
    if home.endswith(SEP):
        return home + rel
    return home + SEP + rel


def strip_home(path: str, home: str) -> str:
    """Remove *home* and one separator from the front of *path*.

    Paths outside *home* are returned unchanged.
    """
    if not home:
        return path
    home = home.rstrip(SEP) or SEP
    if path == home:
        return ""
    if home == SEP and path.startswith(SEP):
        return path[1:]
    if path.startswith(home + SEP):
        return path[len(home) + 1 :]
    return path


def is_nested(path: str, parent: str) -> bool:
    """True when *path* equals *parent* or lies beneath it.

    The comparison respects separator boundaries, so ``/h/.vim`` is not
    nested under ``/h/.vi``.
    """
    if not parent:
        return False
    if path == parent:
        return True
    base = parent if parent.endswith(SEP) else parent + SEP
    return path.startswith(base)


def _dirs_trackable(dirs: list[str]) -> bool:
    if not dirs:
        return True
    first = dirs[0]
    if not first.startswith(TAG_SEP) or len(first) < 2:
        return False
    for segment in [first[1:]] + dirs[1:]:
        if not segment or TAG_SEP in segment:
            return False
    return True


def is_trackable(path: str, home: str) -> bool:
    """True when *path* maps to a tag title that maps back to it.

    The file must live under *home*, either directly or below a dotted
    top-level directory; directory names must not contain further dots
    because dots separate title segments.
    """
    rel = strip_home(path, home)
    if rel == path or not rel:
        return False
    parts = rel.split(SEP)
    dirs, filename = parts[:-1], parts[-1]
    if not filename:
        return False
    return _dirs_trackable(dirs)


def is_trackable_dir(path: str, home: str) -> bool:
    """True when directory *path* is *home* itself or maps to a tag title."""
    path = path.rstrip(SEP) or SEP
    rel = strip_home(path, home)
    if rel == path:
        return False
    if not rel:
        return True
    return _dirs_trackable(rel.split(SEP))


def split_file_path(path: str, home: str, root: str) -> tuple[str, str]:
    """Return ``(tag_title, note_title)`` for a local file path."""
    directory, filename = os.path.split(path)
    home_rel_dir = strip_home(directory + SEP, home)
    return path_to_tag(home_rel_dir, root), filename


def dir_to_tag(path: str, home: str, root: str) -> str:
    """Return the tag title for a local directory path."""
    rel = strip_home(path.rstrip(SEP) or SEP, home)
    if rel:
        rel += SEP
    return path_to_tag(rel, root)
