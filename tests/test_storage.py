"""Tests for the document store, autosave debounce and accounts."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from pundit.config import Settings
from pundit.identity.accounts import AccountService, AuthError
from pundit.inbox.models import Article, ProcessingStatus
from pundit.storage.autosave import AutosaveScheduler
from pundit.storage.database import get_session
from pundit.storage.documents import DocumentStore, Snapshot
from pundit.storage.models import UserDocument
from pundit.tracking.store import FeedSource
from tests.conftest import make_result


class FakeTimer:
    """Timer stand-in that only fires when the test says so."""

    created: list[FakeTimer] = []

    def __init__(self, delay: float, fn) -> None:
        self.delay = delay
        self.fn = fn
        self.cancelled = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self) -> None:
        pass

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.fn()


@pytest.fixture(autouse=True)
def _reset_fake_timers():
    FakeTimer.created = []


# ---------------------------------------------------------------------------
# DocumentStore
# ---------------------------------------------------------------------------


def _snapshot() -> Snapshot:
    archived = Article(
        title="Kept",
        link="https://a.com/1",
        source_name="Ad Age",
        processing_status=ProcessingStatus.COMPLETED,
        result=make_result(),
    )
    return Snapshot(
        sources=[FeedSource(name="Ad Age", url="https://adage.com")],
        keywords=["AdTech"],
        companies=["Meta"],
        archive=[archived],
        name="Pat",
        email="pat@example.com",
    )


def test_document_round_trip(settings: Settings) -> None:
    store = DocumentStore(settings.db_path)
    original = _snapshot()

    store.write("user-1", original)
    loaded = store.read("user-1")

    assert loaded is not None
    assert loaded.keywords == ["AdTech"]
    assert loaded.archive[0].result.meta.applied_tone == original.archive[0].result.meta.applied_tone
    assert loaded.archive[0].result.posts.linkedin.hook == "Live headline"
    assert loaded.updated_at is not None
    assert loaded.is_configured


def test_read_missing_user(settings: Settings) -> None:
    assert DocumentStore(settings.db_path).read("nobody") is None


def test_write_merges_unknown_keys(settings: Settings) -> None:
    store = DocumentStore(settings.db_path)
    with get_session(settings.db_path) as session:
        session.add(UserDocument(user_id="u", payload_json='{"legacy": 1, "keywords": ["old"]}'))
        session.commit()

    store.write("u", Snapshot(keywords=["new"]))

    with get_session(settings.db_path) as session:
        payload = session.get(UserDocument, "u").payload_json
    assert '"legacy": 1' in payload
    assert store.read("u").keywords == ["new"]


def test_corrupt_document_reads_as_none(settings: Settings) -> None:
    with get_session(settings.db_path) as session:
        session.add(UserDocument(user_id="u", payload_json='{"keywords": 5}'))
        session.commit()

    assert DocumentStore(settings.db_path).read("u") is None


# ---------------------------------------------------------------------------
# AutosaveScheduler
# ---------------------------------------------------------------------------


def test_burst_collapses_into_last_snapshot() -> None:
    write = MagicMock()
    scheduler = AutosaveScheduler(write, delay=3.0, timer_factory=FakeTimer)

    for n in range(3):
        scheduler.schedule(Snapshot(keywords=[f"k{n}"]))

    assert [t.cancelled for t in FakeTimer.created] == [True, True, False]
    FakeTimer.created[-1].fire()

    write.assert_called_once()
    assert write.call_args.args[0].keywords == ["k2"]
    assert not scheduler.pending


def test_superseded_timer_does_not_write() -> None:
    write = MagicMock()
    scheduler = AutosaveScheduler(write, delay=3.0, timer_factory=FakeTimer)

    scheduler.schedule(Snapshot(keywords=["a"]))
    first = FakeTimer.created[0]
    scheduler.schedule(Snapshot(keywords=["b"]))

    # Simulate the first timer having already started when it was cancelled
    first.fn()
    write.assert_not_called()

    FakeTimer.created[1].fire()
    assert write.call_args.args[0].keywords == ["b"]


def test_flush_writes_pending_now() -> None:
    write = MagicMock()
    scheduler = AutosaveScheduler(write, delay=3.0, timer_factory=FakeTimer)

    assert scheduler.flush() is False
    scheduler.schedule(Snapshot(keywords=["x"]))
    assert scheduler.flush() is True

    write.assert_called_once()
    assert FakeTimer.created[0].cancelled
    FakeTimer.created[0].fire()
    write.assert_called_once()


def test_cancel_drops_pending() -> None:
    write = MagicMock()
    scheduler = AutosaveScheduler(write, delay=3.0, timer_factory=FakeTimer)

    scheduler.schedule(Snapshot())
    scheduler.cancel()

    assert scheduler.flush() is False
    write.assert_not_called()


def test_write_failure_is_swallowed() -> None:
    write = MagicMock(side_effect=OSError("disk full"))
    scheduler = AutosaveScheduler(write, delay=3.0, timer_factory=FakeTimer)

    scheduler.schedule(Snapshot())
    assert scheduler.flush() is False


def test_real_timer_fires_after_quiet_period() -> None:
    written = threading.Event()
    scheduler = AutosaveScheduler(lambda snapshot: written.set(), delay=0.01)

    scheduler.schedule(Snapshot())

    assert written.wait(timeout=2.0)


def test_slow_timer_write_is_not_overtaken_by_flush() -> None:
    written: list[str] = []
    entered = threading.Event()
    release = threading.Event()
    timers: list[threading.Timer] = []

    def write(snapshot: Snapshot) -> None:
        if snapshot.keywords == ["A"]:
            entered.set()
            release.wait(timeout=5.0)
        written.append(snapshot.keywords[0])

    def timer_factory(delay: float, fn) -> threading.Timer:
        # Only the first timer fires on its own
        timer = threading.Timer(0 if not timers else 60, fn)
        timers.append(timer)
        return timer

    scheduler = AutosaveScheduler(write, delay=3.0, timer_factory=timer_factory)
    scheduler.schedule(Snapshot(keywords=["A"]))
    assert entered.wait(timeout=2.0)

    scheduler.schedule(Snapshot(keywords=["B"]))
    flusher = threading.Thread(target=scheduler.flush)
    flusher.start()
    release.set()
    flusher.join(timeout=5.0)
    timers[0].join(timeout=5.0)

    assert written == ["A", "B"]
    assert timers[1].finished.is_set()


def test_older_snapshot_is_dropped_after_newer_write() -> None:
    write = MagicMock()
    scheduler = AutosaveScheduler(write, delay=3.0, timer_factory=FakeTimer)

    assert scheduler._write_safely(2, Snapshot(keywords=["new"])) is True
    assert scheduler._write_safely(1, Snapshot(keywords=["old"])) is False

    write.assert_called_once()
    assert write.call_args.args[0].keywords == ["new"]


# ---------------------------------------------------------------------------
# AccountService
# ---------------------------------------------------------------------------


@pytest.fixture
def accounts(settings: Settings) -> AccountService:
    return AccountService(settings.db_path, settings.session_path)


def test_register_signs_in(accounts: AccountService, settings: Settings) -> None:
    user = accounts.register("Pat", "Pat@Example.com", "secret1")

    assert user.email == "pat@example.com"
    assert settings.session_path.exists()
    assert accounts.current_user() == user


def test_register_rejects_duplicates_and_bad_input(accounts: AccountService) -> None:
    accounts.register("Pat", "pat@example.com", "secret1")

    with pytest.raises(AuthError, match="already registered"):
        accounts.register("Pat 2", "pat@example.com", "secret2")
    with pytest.raises(AuthError, match="too weak"):
        accounts.register("Sam", "sam@example.com", "123")
    with pytest.raises(AuthError, match="Invalid email format"):
        accounts.register("Sam", "not-an-email", "secret1")


def test_login_and_logout(accounts: AccountService) -> None:
    registered = accounts.register("Pat", "pat@example.com", "secret1")
    accounts.logout()
    assert accounts.current_user() is None

    with pytest.raises(AuthError, match="Invalid email or password."):
        accounts.login("pat@example.com", "wrong-password")
    with pytest.raises(AuthError, match="Invalid email or password."):
        accounts.login("who@example.com", "secret1")

    user = accounts.login(" PAT@example.com ", "secret1")
    assert user == registered


def test_unreadable_session_file(accounts: AccountService, settings: Settings) -> None:
    settings.session_path.write_text("garbage")
    assert accounts.current_user() is None

    settings.session_path.write_text('{"uid": "deleted-user"}')
    assert accounts.current_user() is None


def test_session_path_parent_created(tmp_path: Path, settings: Settings) -> None:
    accounts = AccountService(settings.db_path, tmp_path / "nested" / "session.json")
    accounts.register("Pat", "pat@example.com", "secret1")
    assert (tmp_path / "nested" / "session.json").exists()


# ---------------------------------------------------------------------------
# Storage settings
# ---------------------------------------------------------------------------


def test_storage_paths_follow_data_dir(tmp_path: Path) -> None:
    settings = Settings(data_dir=tmp_path / "profile")

    assert settings.db_path == tmp_path / "profile" / "pundit.db"
    assert settings.session_path == tmp_path / "profile" / "session.json"


def test_explicit_storage_paths_win(tmp_path: Path) -> None:
    settings = Settings(data_dir=tmp_path, db_path=tmp_path / "elsewhere.db")

    assert settings.db_path == tmp_path / "elsewhere.db"
    assert settings.session_path == tmp_path / "session.json"
