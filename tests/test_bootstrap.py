import json

import requests

from conftest import FakeXClient, make_post
from x_commentary.utils.id_tracker import IdTracker
from x_commentary.workflow.bootstrap import run_bootstrap


def _read(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def test_failed_lookup_is_skipped_and_others_persisted(tracker, pacing, sleeps):
    client = FakeXClient(
        users={"h1": "11"},
        timelines={"11": [make_post("300"), make_post("200")]},
    )

    result = run_bootstrap(["h1", "h2"], client, tracker, pacing)

    assert result.resolved == ["h1"]
    assert result.skipped == ["h2"]
    assert _read(tracker.user_ids_path) == {"h1": "11"}
    assert _read(tracker.last_seen_path) == {"h1": "300"}
    assert client.lookups == ["h1", "h2"]
    assert sleeps == [300]


def test_handle_without_posts_has_id_but_no_watermark(tracker, pacing):
    client = FakeXClient(users={"quiet": "33"}, timelines={"33": []})

    result = run_bootstrap(["quiet"], client, tracker, pacing)

    assert result.without_posts == ["quiet"]
    assert tracker.user_ids == {"quiet": "33"}
    assert tracker.last_seen == {}


def test_timeline_failure_keeps_account_id_without_watermark(tracker, pacing):
    client = FakeXClient(
        users={"a": "1", "b": "2"},
        timelines={"1": requests.HTTPError("429 Too Many Requests"), "2": [make_post("20")]},
    )

    result = run_bootstrap(["a", "b"], client, tracker, pacing)

    assert result.resolved == ["a", "b"]
    assert result.timeline_failed == ["a"]
    assert result.skipped == []
    assert _read(tracker.user_ids_path) == {"a": "1", "b": "2"}
    assert _read(tracker.last_seen_path) == {"b": "20"}


def test_bootstrap_replaces_previous_state(tmp_path, pacing):
    last_seen_path = str(tmp_path / "lastSeen.json")
    user_ids_path = str(tmp_path / "userIds.json")
    old = IdTracker(last_seen_path, user_ids_path)
    old.replace(last_seen={"gone": "1"}, user_ids={"gone": "9"})
    old.save()

    tracker = IdTracker(last_seen_path, user_ids_path)
    client = FakeXClient(users={"new": "5"}, timelines={"5": [make_post("50")]})
    run_bootstrap(["new"], client, tracker, pacing)

    assert _read(user_ids_path) == {"new": "5"}
    assert _read(last_seen_path) == {"new": "50"}


def test_all_handles_failing_still_writes_files(tracker, pacing):
    result = run_bootstrap(["x", "y"], FakeXClient(), tracker, pacing)

    assert result.skipped == ["x", "y"]
    assert _read(tracker.user_ids_path) == {}
    assert _read(tracker.last_seen_path) == {}


def test_unwritable_cache_does_not_abort(tmp_path, pacing):
    blocked = tmp_path / "userIds.json"
    blocked.mkdir()
    tracker = IdTracker(str(tmp_path / "lastSeen.json"), str(blocked))
    client = FakeXClient(users={"a": "1"}, timelines={"1": [make_post("10")]})

    result = run_bootstrap(["a"], client, tracker, pacing)

    assert result.resolved == ["a"]
    assert tracker.user_ids == {"a": "1"}
    assert _read(tmp_path / "lastSeen.json") == {"a": "10"}
