"""Message Store — temporal semantics of insert, visibility, due detection, pruning, quotas.

Tests cover:
    - published derived at insertion, flipped once by mark_published
    - messages_since ordering and scheduled visibility
    - prune never removes scheduled rows
    - attachment quota and expiry candidates
    - duplicate ids and non-message events rejected
"""

import threading

import pytest
from pydantic import ValidationError

from msgcache.config import Settings
from msgcache.core.domain_types import EventType, SinceMarker
from msgcache.core.errors import (
    DuplicateMessageError,
    TagEncodingError,
    UnexpectedMessageTypeError,
)
from msgcache.schemas.message import Attachment, Topic, new_message
from msgcache.services.message_store import open_store, open_store_from_settings

from tests.fake_clock import NOW


def _all(store, topic="mytopic"):
    return store.messages_since(topic, SinceMarker.all(), True)


# ─── Insert & Publication State ──────────────────────────────────

def test_past_message_is_published_on_insert(store):
    store.add_message(new_message("mytopic", "hi", id="m1", time=NOW - 10))
    (message,) = _all(store)
    assert message.published is True


def test_future_message_is_scheduled_until_marked(store):
    store.add_message(new_message("mytopic", "later", id="m1", time=NOW + 1000))
    assert _all(store)[0].published is False

    store.mark_published("m1")
    assert _all(store)[0].published is True


def test_message_at_now_is_published(store):
    store.add_message(new_message("mytopic", id="m1", time=NOW))
    assert _all(store)[0].published is True


def test_mark_published_is_idempotent(store):
    store.add_message(new_message("mytopic", id="m1", time=NOW + 10))
    store.mark_published("m1")
    store.mark_published("m1")
    assert _all(store)[0].published is True


def test_mark_published_unknown_id_is_noop(store):
    store.mark_published("does-not-exist")
    assert store.topics() == {}


def test_published_does_not_follow_clock_without_mark(store, clock):
    store.add_message(new_message("mytopic", id="m1", time=NOW + 10))
    clock.now = NOW + 100
    assert _all(store)[0].published is False


def test_round_trip_keeps_all_fields(store):
    original = new_message(
        "mytopic", "aGVsbG8=", id="m1", time=NOW - 1,
        title="A title", priority=5, tags=["warning", "skull"],
        click="https://example.com", encoding="base64",
        attachment=Attachment(
            name="flower.jpg", mime_type="image/jpeg", size=5000,
            expires=NOW + 3600, url="https://files/flower.jpg", owner="1.2.3.4",
        ),
    )
    store.add_message(original)
    (loaded,) = _all(store)
    assert loaded.model_dump(exclude={"published"}) == original.model_dump()


def test_attachment_with_empty_name_survives_reload(store):
    store.add_message(new_message(
        "mytopic", id="m1", time=NOW - 1,
        attachment=Attachment(name="", url="https://files/x", size=10, owner="A"),
    ))
    (loaded,) = _all(store)
    assert loaded.attachment is not None
    assert loaded.attachment.url == "https://files/x"


def test_message_without_attachment_reloads_as_none(store):
    store.add_message(new_message("mytopic", "plain", id="m1", time=NOW - 1))
    assert _all(store)[0].attachment is None
    assert _all(store)[0].tags == []


@pytest.mark.parametrize("event", [EventType.KEEPALIVE, EventType.OPEN, EventType.POLL_REQUEST])
def test_non_message_events_are_rejected(store, event):
    with pytest.raises(UnexpectedMessageTypeError):
        store.add_message(new_message("mytopic", id="k1", time=NOW, event=event))
    assert store.message_count("mytopic") == 0


def test_duplicate_id_is_rejected_and_first_row_kept(store):
    store.add_message(new_message("mytopic", "first", id="dup", time=NOW - 1))
    with pytest.raises(DuplicateMessageError) as exc_info:
        store.add_message(new_message("mytopic", "second", id="dup", time=NOW - 1))

    assert exc_info.value.message_id == "dup"
    assert store.message_count("mytopic") == 1
    assert _all(store)[0].body == "first"


def test_tag_with_separator_is_rejected(store):
    with pytest.raises(TagEncodingError):
        store.add_message(new_message("mytopic", id="m1", time=NOW, tags=["a,b"]))
    assert store.message_count("mytopic") == 0


# ─── Visibility ──────────────────────────────────────────────────

def test_since_excludes_scheduled_unless_requested(store):
    store.add_message(new_message("t", "m1", id="m1", time=NOW - 10))
    store.add_message(new_message("t", "m2", id="m2", time=NOW + 1000))

    published_only = store.messages_since("t", SinceMarker.all(), False)
    with_scheduled = store.messages_since("t", SinceMarker.all(), True)

    assert [m.id for m in published_only] == ["m1"]
    assert [m.id for m in with_scheduled] == ["m1", "m2"]


def test_since_orders_ascending_by_time(store):
    for message_id, t in [("c", NOW - 1), ("a", NOW - 30), ("b", NOW - 20)]:
        store.add_message(new_message("t", id=message_id, time=t))
    assert [m.id for m in store.messages_since("t", SinceMarker.all(), False)] == ["a", "b", "c"]


def test_since_lower_bound_is_inclusive(store):
    store.add_message(new_message("t", id="old", time=NOW - 100))
    store.add_message(new_message("t", id="edge", time=NOW - 50))
    store.add_message(new_message("t", id="new", time=NOW - 10))
    result = store.messages_since("t", SinceMarker.at(NOW - 50), False)
    assert [m.id for m in result] == ["edge", "new"]


def test_since_none_returns_nothing(store):
    store.add_message(new_message("t", id="m1", time=NOW - 10))
    assert store.messages_since("t", SinceMarker.none(), True) == []


def test_since_filters_by_topic(store):
    store.add_message(new_message("t1", id="m1", time=NOW - 10))
    store.add_message(new_message("t2", id="m2", time=NOW - 10))
    assert [m.id for m in store.messages_since("t2", SinceMarker.all(), False)] == ["m2"]


# ─── Due Detection ───────────────────────────────────────────────

def test_messages_due_returns_only_unpublished_due_rows(store, clock):
    store.add_message(new_message("t", id="published", time=NOW - 10))
    store.add_message(new_message("t", id="due_soon", time=NOW + 5))
    store.add_message(new_message("t", id="far_future", time=NOW + 5000))

    assert store.messages_due(NOW) == []
    assert [m.id for m in store.messages_due(NOW + 5)] == ["due_soon"]

    clock.now = NOW + 10
    assert [m.id for m in store.messages_due()] == ["due_soon"]


def test_marked_message_is_no_longer_due(store):
    store.add_message(new_message("t", id="m1", time=NOW + 5))
    store.mark_published("m1")
    assert store.messages_due(NOW + 5) == []


# ─── Pruning ─────────────────────────────────────────────────────

def test_prune_never_removes_scheduled_rows(store_path, clock):
    with open_store(store_path, clock=clock, observer=None) as store:
        clock.now = NOW - 2000
        store.add_message(new_message("t", id="scheduled", time=NOW - 1000))
        clock.now = NOW
        store.add_message(new_message("t", id="published", time=NOW - 1000))

        removed = store.prune(NOW - 500)

        assert removed == 1
        assert [m.id for m in _all(store, "t")] == ["scheduled"]
        assert _all(store, "t")[0].published is False


def test_prune_keeps_rows_at_cutoff(store):
    store.add_message(new_message("t", id="old", time=NOW - 100))
    store.add_message(new_message("t", id="cutoff", time=NOW - 50))
    assert store.prune(NOW - 50) == 1
    assert [m.id for m in _all(store, "t")] == ["cutoff"]


# ─── Aggregates ──────────────────────────────────────────────────

def test_message_count_and_topics(store):
    store.add_message(new_message("t1", id="m1", time=NOW - 1))
    store.add_message(new_message("t1", id="m2", time=NOW + 100))
    store.add_message(new_message("t2", id="m3", time=NOW - 1))

    assert store.message_count("t1") == 2
    assert store.message_count("t2") == 1
    assert store.message_count("unknown") == 0
    assert store.topics() == {"t1": Topic(id="t1"), "t2": Topic(id="t2")}


# ─── Attachments ─────────────────────────────────────────────────

def _with_attachment(message_id, owner, size, expires):
    return new_message(
        "t", id=message_id, time=NOW - 1,
        attachment=Attachment(
            name=f"{message_id}.bin", url=f"https://files/{message_id}",
            size=size, expires=expires, owner=owner,
        ),
    )


def test_attachment_quota_counts_only_unexpired(store):
    store.add_message(_with_attachment("fresh", "A", 100, NOW + 1000))
    store.add_message(_with_attachment("stale", "A", 200, NOW - 1000))

    assert store.attachments_size("A", NOW) == 100
    assert store.attachments_expired(NOW) == ["stale"]


def test_attachment_without_expiry_counts_and_never_expires(store):
    store.add_message(_with_attachment("forever", "A", 300, 0))
    store.add_message(_with_attachment("other", "B", 50, NOW + 10))

    assert store.attachments_size("A", NOW) == 300
    assert store.attachments_size("B", NOW) == 50
    assert store.attachments_expired(NOW + 10_000) == ["other"]


def test_attachment_quota_is_zero_without_matches(store):
    store.add_message(new_message("t", id="plain", time=NOW - 1))
    assert store.attachments_size("nobody", NOW) == 0
    assert store.attachments_expired(NOW) == []


def test_attachment_quota_uses_clock_by_default(store, clock):
    store.add_message(_with_attachment("m1", "A", 100, NOW + 10))
    assert store.attachments_size("A") == 100
    clock.now = NOW + 11
    assert store.attachments_size("A") == 0
    assert store.attachments_expired() == ["m1"]


def test_attachment_with_empty_name_from_legacy_store_counts_toward_quota(legacy_store, clock):
    path = legacy_store(4, rows=[{
        "id": "m1", "time": NOW - 5, "topic": "t", "message": "",
        "attachment_size": 100, "attachment_expires": NOW + 1000,
        "attachment_url": "https://files/m1", "attachment_owner": "A",
    }])
    with open_store(path, clock=clock, observer=None) as store:
        assert store.attachments_size("A", NOW) == 100
        assert store.attachments_expired(NOW) == []
        assert store.attachments_size("A", NOW + 1001) == 0
        assert store.attachments_expired(NOW + 1001) == ["m1"]


# ─── Integer Range ───────────────────────────────────────────────

def test_time_beyond_sqlite_range_never_reaches_the_store(store):
    with pytest.raises(ValidationError):
        store.add_message(new_message("t", id="big", time=2**63))
    assert store.message_count("t") == 0


def test_largest_time_is_stored_as_scheduled(store):
    store.add_message(new_message("t", id="last", time=2**63 - 1))
    (message,) = _all(store, "t")
    assert message.time == 2**63 - 1
    assert message.published is False


# ─── Concurrency ─────────────────────────────────────────────────

def test_memory_store_serves_concurrent_callers(store):
    errors = []

    def worker(n):
        for i in range(50):
            try:
                store.add_message(new_message("t", id=f"w{n}-{i}", time=NOW - 1))
                store.message_count("t")
            except Exception as e:
                errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert store.message_count("t") == 200


def test_store_persists_across_reopen(store_path, clock):
    with open_store(store_path, clock=clock, observer=None) as store:
        store.add_message(new_message("t", "kept", id="m1", time=NOW - 1))
    with open_store(store_path, clock=clock, observer=None) as store:
        assert [m.body for m in _all(store, "t")] == ["kept"]


def test_open_store_from_settings(store_path, clock):
    settings = Settings(_env_file=None, cache_file=store_path, cache_busy_timeout_ms=100)
    with open_store_from_settings(settings, clock=clock, observer=None) as store:
        store.add_message(new_message("t", id="m1", time=NOW - 1))
        assert store.message_count("t") == 1
