import json
import os

from x_commentary.utils.id_tracker import IdTracker, is_newer_id, load_mapping, save_mapping


def test_save_then_load_round_trips_both_mappings(tmp_path):
    last_seen_path = str(tmp_path / "lastSeen.json")
    user_ids_path = str(tmp_path / "userIds.json")
    tracker = IdTracker(last_seen_path, user_ids_path)
    tracker.replace(
        last_seen={"alice": "1790000000000000001", "bob": "1790000000000000002"},
        user_ids={"alice": "11", "bob": "22"},
    )

    assert tracker.save() is True

    reloaded = IdTracker(last_seen_path, user_ids_path)
    reloaded.load()
    assert reloaded.last_seen == tracker.last_seen
    assert reloaded.user_ids == tracker.user_ids


def test_saved_file_is_indented_and_sorted(tmp_path):
    path = str(tmp_path / "ids.json")
    save_mapping(path, {"zed": "2", "amy": "1"})

    with open(path, encoding="utf-8") as f:
        content = f.read()
    assert content == '{\n  "amy": "1",\n  "zed": "2"\n}\n'
    assert not os.path.exists(path + ".tmp")


def test_missing_files_load_as_empty(tracker):
    tracker.load()

    assert tracker.last_seen == {}
    assert tracker.user_ids == {}


def test_corrupt_file_loads_as_empty(tmp_path):
    path = tmp_path / "lastSeen.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_mapping(str(path)) == {}


def test_non_object_json_loads_as_empty(tmp_path):
    path = tmp_path / "userIds.json"
    path.write_text(json.dumps(["alice", "bob"]), encoding="utf-8")

    assert load_mapping(str(path)) == {}


def test_numeric_values_are_coerced_to_strings(tmp_path):
    path = tmp_path / "userIds.json"
    path.write_text(json.dumps({"alice": 123, "bob": None}), encoding="utf-8")

    assert load_mapping(str(path)) == {"alice": "123"}


def test_corrupt_last_seen_does_not_affect_user_ids(tmp_path):
    (tmp_path / "lastSeen.json").write_text("garbage", encoding="utf-8")
    (tmp_path / "userIds.json").write_text('{"alice": "11"}', encoding="utf-8")
    tracker = IdTracker(str(tmp_path / "lastSeen.json"), str(tmp_path / "userIds.json"))

    tracker.load()

    assert tracker.last_seen == {}
    assert tracker.user_ids == {"alice": "11"}


def test_save_failure_is_reported_not_raised(tmp_path):
    # A directory in place of the file makes the final replace fail.
    blocked = tmp_path / "lastSeen.json"
    blocked.mkdir()
    tracker = IdTracker(str(blocked), str(tmp_path / "userIds.json"))
    tracker.update_last_seen_id("alice", "5")

    assert tracker.save_last_seen() is False
    assert tracker.get_last_seen_id("alice") == "5"


def test_watermark_only_moves_forward(tracker):
    assert tracker.update_last_seen_id("alice", "1000") is True
    assert tracker.update_last_seen_id("alice", "999") is False
    assert tracker.update_last_seen_id("alice", "1000") is False
    assert tracker.get_last_seen_id("alice") == "1000"

    assert tracker.update_last_seen_id("alice", "10000") is True
    assert tracker.get_last_seen_id("alice") == "10000"


def test_is_newer_id_compares_snowflakes_numerically():
    assert is_newer_id("10", "9") is True
    assert is_newer_id("9", "10") is False
    assert is_newer_id("1", None) is True
    assert is_newer_id("1", "") is True
    assert is_newer_id("abd", "abc") is True


def test_unknown_handle_lookups_return_empty(tracker):
    assert tracker.get_user_id("nobody") == ""
    assert tracker.get_last_seen_id("nobody") == ""
