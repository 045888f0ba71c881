import json

from toolbridge.core.prefs import PreferenceStore, default_data_dir


def test_in_memory_store():
    store = PreferenceStore()

    store.set("key", {"a": 1})
    assert store.path is None
    assert store.get("key") == {"a": 1}
    assert "key" in store
    assert store.get("missing", "fallback") == "fallback"

    store.delete("key")
    assert "key" not in store
    store.delete("key")


def test_values_persist_across_instances(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    PreferenceStore(path).set("ToolBridge_SelectedTool", "echo")

    assert PreferenceStore(path).get("ToolBridge_SelectedTool") == "echo"
    assert json.loads(path.read_text(encoding="utf-8")) == {"ToolBridge_SelectedTool": "echo"}
    # Writes go through a temp file that is renamed into place
    assert [p.name for p in path.parent.iterdir()] == ["prefs.json"]


def test_delete_key_holding_none(tmp_path):
    store = PreferenceStore(tmp_path / "prefs.json")
    store.set("empty", None)
    store.delete("empty")

    assert "empty" not in PreferenceStore(tmp_path / "prefs.json")


def test_bool_helpers():
    store = PreferenceStore()
    store.set_bool("flag", 1)
    store.set("not_bool", "yes")

    assert store.get("flag") is True
    assert store.get_bool("flag") is True
    assert store.get_bool("not_bool", default=False) is False
    assert store.get_bool("absent", default=True) is True


def test_unreadable_file_starts_empty(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")

    store = PreferenceStore(path)
    assert store.get("anything") is None

    store.set("fresh", 1)
    assert json.loads(path.read_text(encoding="utf-8")) == {"fresh": 1}


def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert "0" not in PreferenceStore(path)


def test_data_dir_locations(tmp_path):
    assert PreferenceStore.in_data_dir(str(tmp_path)).path == tmp_path / "prefs.json"
    assert default_data_dir().endswith("ToolBridge")
