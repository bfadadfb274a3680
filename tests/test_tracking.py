"""Tests for tracked terms, sources and bulk selection."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pundit.inbox.models import ArticleView
from pundit.inbox.selection import Selection
from pundit.tracking.store import (
    DEFAULT_KEYWORDS,
    InvalidSourceURL,
    TermList,
    TrackingStore,
    normalize_source_url,
)


def test_term_list_preserves_order_and_rejects_duplicates() -> None:
    terms = TermList(["AdTech", "OOH", "AdTech"])

    assert terms.add("  B2B ") is True
    assert terms.add("OOH") is False
    assert terms.add("ooh") is True  # case-sensitive
    assert terms.add("   ") is False
    assert terms.to_list() == ["AdTech", "OOH", "B2B", "ooh"]


def test_tracked_terms_are_keywords_then_companies(tracking: TrackingStore) -> None:
    assert tracking.tracked_terms == ["AdTech", "Programmatic", "The Trade Desk"]


def test_term_mutations_notify_only_on_change(tracking: TrackingStore) -> None:
    listener = MagicMock()
    tracking.subscribe(listener)

    tracking.add_keyword("AdTech")
    tracking.remove_company("Nobody")
    listener.assert_not_called()

    tracking.add_keyword("CTV")
    tracking.add_company("Roku")
    tracking.remove_keyword("CTV")
    assert listener.call_count == 3


@pytest.mark.parametrize(
    ("raw", "url", "name"),
    [
        ("adage.com", "https://adage.com", "adage.com"),
        ("https://www.adweek.com/feed", "https://www.adweek.com/feed", "adweek.com"),
        ("http://example.org/rss?x=1", "http://example.org/rss?x=1", "example.org"),
    ],
)
def test_normalize_source_url(raw: str, url: str, name: str) -> None:
    got_url, got_name = normalize_source_url(raw)
    assert got_url.rstrip("/") == url
    assert got_name == name


@pytest.mark.parametrize("raw", ["", "not a url", "localhost", "https://", "https://a.com:port"])
def test_normalize_source_url_rejects(raw: str) -> None:
    with pytest.raises(InvalidSourceURL):
        normalize_source_url(raw)


def test_add_source_validates_before_mutating(tracking: TrackingStore) -> None:
    listener = MagicMock()
    tracking.subscribe(listener)

    with pytest.raises(InvalidSourceURL):
        tracking.add_source("bad url")

    assert tracking.sources == ()
    listener.assert_not_called()


def test_source_lifecycle(tracking: TrackingStore) -> None:
    source = tracking.add_source("www.thedrum.com")
    assert source.name == "thedrum.com"
    assert source.active

    toggled = tracking.toggle_source(source.id)
    assert not toggled.active
    assert tracking.active_sources == []

    assert tracking.remove_source(source.id) is True
    assert tracking.remove_source(source.id) is False

    with pytest.raises(KeyError):
        tracking.toggle_source(source.id)


def test_defaults() -> None:
    store = TrackingStore.with_defaults()
    assert store.keywords.to_list() == DEFAULT_KEYWORDS
    assert "The Trade Desk" in store.companies
    assert len(store.active_sources) == len(store.sources) > 0


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_selection_resets_on_view_change() -> None:
    selection = Selection()
    selection.add("a")
    selection.set_view(ArticleView.INBOX)
    assert selection.ids == ["a"]

    selection.set_view(ArticleView.ARCHIVE)
    assert selection.ids == []
    assert selection.view == ArticleView.ARCHIVE


def test_select_all_toggles() -> None:
    selection = Selection()
    selection.toggle("b")

    selection.select_all(["a", "b", "c"])
    assert selection.ids == ["a", "b", "c"]

    selection.select_all(["a", "b", "c"])
    assert selection.ids == []


def test_toggle_and_discard() -> None:
    selection = Selection()
    assert selection.toggle("a") is True
    assert selection.toggle("a") is False
    selection.add("b")
    selection.discard("b")
    selection.discard("missing")
    assert len(selection) == 0
