"""Tests for lock file and manifest persistence."""

import json

import pytest

from addon_tracker.error_handling import ParseError
from addon_tracker.lockfile import LockStore
from addon_tracker.manifest import load_manifest, save_manifest
from addon_tracker.models import UNKNOWN_VERSION, Addon, AddonLock
from addon_tracker.providers import get_lock

from conftest import tukui_addon_page, tukui_search_page


class TestLockStore:
    """Test reading and writing addons.lock.json."""

    def test_missing_file_loads_empty(self, tmp_path):
        assert LockStore(tmp_path / "addons.lock.json").load() == {}

    def test_round_trips_resolved_lock(self, fetcher, tmp_path):
        fetcher.add_page("https://www.tukui.org/addons.php?search=Shadow+and+Light", tukui_search_page("38"))
        fetcher.add_page("https://www.tukui.org/addons.php?id=38", tukui_addon_page("1.2", "Mar 01, 2024", "13:45"))
        addon = Addon("tukui", "Shadow and Light")
        lock = get_lock(addon, fetcher)

        store = LockStore(tmp_path / "addons.lock.json")
        store.put(lock)
        store.save()

        reloaded = LockStore(tmp_path / "addons.lock.json").get(addon)
        assert reloaded == lock
        assert (reloaded.name, reloaded.resolved, reloaded.version, reloaded.timestamp) == \
            ("tukui/Shadow and Light", "38", UNKNOWN_VERSION, lock.timestamp)

    def test_put_replaces_lock_wholesale(self, tmp_path):
        store = LockStore(tmp_path / "addons.lock.json")
        store.put(AddonLock("curse/bigwigs", "bigwigs", "v7.2", 100))
        store.put(AddonLock("curse/bigwigs", "bigwigs", "v7.3", 150))

        assert store.get(Addon("curse", "bigwigs")) == AddonLock("curse/bigwigs", "bigwigs", "v7.3", 150)

    def test_saved_file_is_sorted_by_name(self, tmp_path):
        path = tmp_path / "addons.lock.json"
        store = LockStore(path)
        store.put(AddonLock("tukui/elvui", "elvui", "13.58", 3))
        store.put(AddonLock("curse/bigwigs", "bigwigs", "v7.2", 1))
        store.save()

        data = json.loads(path.read_text())
        assert [entry["name"] for entry in data["locks"]] == ["curse/bigwigs", "tukui/elvui"]
        assert set(data["locks"][0]) == {"name", "resolved", "version", "timestamp"}

    def test_put_rejects_negative_timestamp(self, tmp_path):
        store = LockStore(tmp_path / "addons.lock.json")

        with pytest.raises(ParseError):
            store.put(AddonLock("curse/bigwigs", "bigwigs", "v7.2", -5))

        assert store.get(Addon("curse", "bigwigs")) is None

    def test_save_skips_invalid_lock_and_file_reloads(self, tmp_path):
        path = tmp_path / "addons.lock.json"
        store = LockStore(path)
        store.put(AddonLock("curse/bigwigs", "bigwigs", "v7.2", 100))
        store.load()["curse/broken"] = AddonLock("curse/broken", "broken", "1", -1)
        store.save()

        reloaded = LockStore(path).load()
        assert list(reloaded) == ["curse/bigwigs"]

    def test_remove(self, tmp_path):
        store = LockStore(tmp_path / "addons.lock.json")
        store.put(AddonLock("curse/bigwigs", "bigwigs", "v7.2", 1))

        assert store.remove("curse/bigwigs") is True
        assert store.remove("curse/bigwigs") is False

    @pytest.mark.parametrize("content", [
        "not json",
        '{"locks": [{"name": "curse/bigwigs"}]}',
        '{"locks": [{"name": "a", "resolved": "a", "version": "1", "timestamp": "soon"}]}',
    ])
    def test_corrupt_file_raises_parse_error(self, tmp_path, content):
        path = tmp_path / "addons.lock.json"
        path.write_text(content)

        with pytest.raises(ParseError):
            LockStore(path).load()


class TestManifest:
    """Test reading and writing addons.json."""

    def test_missing_file_is_empty(self, tmp_path):
        assert load_manifest(tmp_path / "addons.json") == []

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "addons.json"
        addons = [Addon("curse", "bigwigs"), Addon("tukui", "elvui")]

        save_manifest(path, addons)

        assert load_manifest(path) == addons

    def test_duplicates_are_collapsed(self, tmp_path):
        path = tmp_path / "addons.json"
        path.write_text(json.dumps({"addons": [
            {"provider": "curse", "name": "bigwigs"},
            {"provider": "tukui", "name": "elvui"},
            {"provider": "curse", "name": "bigwigs"},
        ]}))

        assert load_manifest(path) == [Addon("curse", "bigwigs"), Addon("tukui", "elvui")]

    def test_unknown_provider_is_kept(self, tmp_path):
        path = tmp_path / "addons.json"
        path.write_text(json.dumps({"addons": [{"provider": "wowinterface", "name": "x"}]}))

        assert load_manifest(path) == [Addon("wowinterface", "x")]

    def test_invalid_manifest_raises_parse_error(self, tmp_path):
        path = tmp_path / "addons.json"
        path.write_text(json.dumps({"addons": [{"provider": "curse"}]}))

        with pytest.raises(ParseError):
            load_manifest(path)
