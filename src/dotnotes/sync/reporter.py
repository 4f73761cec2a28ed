"""Report formatting for dotfile operations.

Provides human-readable and machine-readable output, kept apart from the
engine so classifications stay plain enum values there:

- ``format_status`` -- one ``path | classification`` line per item.
- ``format_add_report`` / ``format_remove_report`` / ``format_sync_report``
  -- per-path outcome tables.
- ``format_diff`` -- unified diffs headed by the note title.
- ``result_to_json`` -- structured dict for scripting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from .mapper import SEP, strip_home

if TYPE_CHECKING:
    from .models import AddResult, ItemDiff, RemoveResult, SyncResult


def _columnize(rows: list[tuple[str, str]]) -> str:
    """Align ``(left, right)`` rows on a ``|`` separator."""
    if not rows:
        return ""
    width = max(len(left) for left, _ in rows)
    return "\n".join(f"{left.ljust(width)} | {right}" for left, right in rows)


def format_status(diffs: list[ItemDiff]) -> str:
    """Format classifier output as an aligned table."""
    return _columnize(
        [(d.home_rel_path, d.classification.value) for d in diffs]
    )


def format_add_report(result: AddResult, home: str) -> str:
    rows: list[tuple[str, str]] = []
    rows.extend((strip_home(p, home), "invalid") for p in result.invalid)
    rows.extend((strip_home(p, home), "already tracked") for p in result.existing)
    rows.extend((strip_home(p, home), "now tracked") for p in result.added)
    return _columnize(rows)


def format_remove_report(result: RemoveResult) -> str:
    rows: list[tuple[str, str]] = []
    for o in result.outcomes:
        label = o.home_rel_path.rstrip(SEP)
        if o.instances > 1:
            label = f"{label} ({o.instances} instances)"
        rows.append((label, o.outcome))
    return _columnize(rows)


def format_sync_report(result: SyncResult) -> str:
    """Format a sync result; ``nothing to do`` when no item moved."""
    if result.nothing_to_do:
        return result.msg or "nothing to do"
    rows = [(p, "pushed") for p in result.pushed]
    rows.extend((p, "pulled") for p in result.pulled)
    return _columnize(rows)


def format_diff(diffs: list[tuple[ItemDiff, str]]) -> str:
    """Join unified diffs, each under its note title."""
    sections = []
    for item, text in diffs:
        sections.append(f"{item.note_title}\n{text}")
    return "\n".join(sections)


def result_to_json(result: BaseModel) -> dict:
    """Convert an operation result into a JSON-ready dict.

    ``SyncResult`` gains its derived counts so consumers need not
    recompute them.
    """
    data = result.model_dump(mode="json")
    if hasattr(result, "nothing_to_do"):
        data["num_pushed"] = result.num_pushed
        data["num_pulled"] = result.num_pulled
        data["nothing_to_do"] = result.nothing_to_do
    return data
