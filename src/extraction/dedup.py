from __future__ import annotations

from typing import Iterable, Protocol


class _Dated(Protocol):
    title: str
    due_date: str


def _title_key(title: str) -> str:
    return title.strip().lower()


def is_duplicate(draft: _Dated, existing: Iterable[_Dated]) -> bool:
    key = _title_key(draft.title)
    return any(
        _title_key(task.title) == key and task.due_date == draft.due_date
        for task in existing
    )


def filter_duplicates(drafts: list, existing: list) -> list:
    """Drop drafts that match a stored task on trimmed, case-folded title and exact date.

    Order is preserved. Drafts are only compared with ``existing``, not with
    each other.
    """
    return [draft for draft in drafts if not is_duplicate(draft, existing)]
