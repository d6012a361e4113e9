"""
Tests for the flat key-value session store and its JSON persistence.
"""

import json

import pytest

from baasclient import SessionStore


@pytest.fixture
def temp_session_file(tmp_path):
    """Create temporary session file path."""
    return tmp_path / "session.json"


class TestValues:

    def test_get_set_delete(self):
        store = SessionStore()
        store.set("region", "eu")

        assert store.get("region") == "eu"
        assert store.get("missing", "fallback") == "fallback"
        assert store.delete("region") is True
        assert store.delete("region") is False

    def test_delete_key_holding_none(self):
        store = SessionStore()
        store.set("nothing", None)
        assert store.delete("nothing") is True

    def test_nested_values_are_rejected(self):
        store = SessionStore()
        with pytest.raises(TypeError):
            store.set("profile", {"name": "x"})
        with pytest.raises(TypeError):
            store.set("list", [1, 2])

    def test_token_and_user_id_accessors(self):
        store = SessionStore()
        assert store.token is None
        assert store.user_id is None

        store.token = "tok"
        store.user_id = "player-1"

        assert store.as_dict() == {"session_token": "tok", "user_id": "player-1"}

    def test_clear(self):
        store = SessionStore()
        store.set("a", 1)
        store.clear()
        assert store.as_dict() == {}


class TestPersistence:

    @pytest.mark.asyncio
    async def test_save_and_load_round_trip(self, temp_session_file):
        store = SessionStore(temp_session_file)
        store.token = "tok"
        store.set("coins", 12)
        store.set("music", False)
        await store.save()

        saved = json.loads(temp_session_file.read_text())
        assert saved["values"] == {"session_token": "tok", "coins": 12, "music": False}
        assert "saved_at" in saved

        restored = SessionStore(temp_session_file)
        assert await restored.load() is True
        assert restored.token == "tok"
        assert restored.get("coins") == 12
        assert restored.get("music") is False

    @pytest.mark.asyncio
    async def test_load_without_file(self, temp_session_file):
        store = SessionStore(temp_session_file)
        assert await store.load() is False

    @pytest.mark.asyncio
    async def test_load_corrupt_file(self, temp_session_file):
        temp_session_file.write_text("{not json")
        store = SessionStore(temp_session_file)
        store.set("kept", "yes")

        assert await store.load() is False
        assert store.get("kept") == "yes"

    @pytest.mark.asyncio
    async def test_load_skips_nested_values(self, temp_session_file):
        temp_session_file.write_text(json.dumps({"values": {"a": 1, "b": {"x": 1}}}))
        store = SessionStore(temp_session_file)

        assert await store.load() is True
        assert store.as_dict() == {"a": 1}

    @pytest.mark.asyncio
    async def test_memory_only_store_never_touches_disk(self, tmp_path):
        store = SessionStore()
        store.set("a", 1)
        await store.save()

        assert list(tmp_path.iterdir()) == []
        assert await store.load() is False

    @pytest.mark.asyncio
    async def test_clear_session_removes_file(self, temp_session_file):
        store = SessionStore(temp_session_file)
        store.set("a", 1)
        await store.save()

        await store.clear_session()

        assert not temp_session_file.exists()
        assert store.as_dict() == {}
