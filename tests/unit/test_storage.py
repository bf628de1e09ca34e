"""
Unit Tests for the persisted key-value store
"""
import json

from educonnect.storage import PersistedStore, PAYMENT_DATA, TOKEN, USER


class TestSetGet:
    """Values survive a new store instance on the same file"""

    def test_roundtrip_across_instances(self, tmp_path):
        path = tmp_path / "storage.json"
        PersistedStore(str(path)).set(USER, {"id": "u1", "subjects": ["a", "b"]})

        reloaded = PersistedStore(str(path))

        assert reloaded.get(USER) == {"id": "u1", "subjects": ["a", "b"]}

    def test_values_are_stored_as_text(self, tmp_path):
        path = tmp_path / "storage.json"
        PersistedStore(str(path)).set(TOKEN, "abc")

        raw = json.loads(path.read_text())

        assert raw[TOKEN] == '"abc"'

    def test_missing_key_returns_default(self, store):
        assert store.get("nope") is None
        assert store.get("nope", "fallback") == "fallback"


class TestCorruption:
    """Corrupt data reads as absent and never raises"""

    def test_corrupt_entry_is_absent(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text(json.dumps({TOKEN: "{not json", USER: '{"id": "u1"}'}))
        store = PersistedStore(str(path))

        assert store.get(TOKEN) is None
        assert store.get(USER) == {"id": "u1"}

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("this is not json at all")
        store = PersistedStore(str(path))

        assert store.get(TOKEN) is None
        assert store.keys() == []

    def test_write_recovers_corrupt_file(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("[1, 2, 3]")
        store = PersistedStore(str(path))

        store.set(TOKEN, "fresh")

        assert store.get(TOKEN) == "fresh"

    def test_non_text_values_ignored(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text(json.dumps({TOKEN: 42}))

        assert PersistedStore(str(path)).get(TOKEN) is None

    def test_get_dict_rejects_non_objects(self, store):
        store.set(PAYMENT_DATA, ["not", "a", "dict"])

        assert store.get_dict(PAYMENT_DATA) is None


class TestClear:
    """Clearing removes only the named keys"""

    def test_clear_named_keys(self, store):
        store.set(TOKEN, "t")
        store.set(USER, {"id": "u"})
        store.set(PAYMENT_DATA, {"signup": {}})

        store.clear([TOKEN, USER])

        assert store.get(TOKEN) is None
        assert store.get(USER) is None
        assert store.get(PAYMENT_DATA) == {"signup": {}}

    def test_clear_everything(self, store):
        store.set(TOKEN, "t")
        store.set(USER, {"id": "u"})

        store.clear()

        assert store.keys() == []

    def test_clear_missing_key_is_noop(self, store):
        store.remove("never-set")

        assert store.keys() == []
