"""Bulk selection scoped to the active view."""

from __future__ import annotations

from typing import Iterable

from pundit.inbox.models import ArticleView


class Selection:
    """Set of selected article ids for the current view.

    Membership is kept in insertion order. Switching view empties it.
    """

    def __init__(self, view: ArticleView = ArticleView.INBOX) -> None:
        self._view = view
        self._ids: dict[str, None] = {}

    @property
    def view(self) -> ArticleView:
        return self._view

    def set_view(self, view: ArticleView) -> None:
        if view != self._view:
            self._view = view
            self._ids.clear()

    def toggle(self, article_id: str) -> bool:
        """Flip membership; return True if the id is now selected."""
        if article_id in self._ids:
            del self._ids[article_id]
            return False
        self._ids[article_id] = None
        return True

    def add(self, article_id: str) -> None:
        self._ids[article_id] = None

    def discard(self, article_id: str) -> None:
        self._ids.pop(article_id, None)

    def select_all(self, visible_ids: Iterable[str]) -> None:
        """Select every visible id, or clear if they are all selected already."""
        visible = list(visible_ids)
        if visible and all(i in self._ids for i in visible) and len(self._ids) == len(visible):
            self._ids.clear()
        else:
            self._ids = dict.fromkeys(visible)

    def clear(self) -> None:
        self._ids.clear()

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def __contains__(self, article_id: object) -> bool:
        return article_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
