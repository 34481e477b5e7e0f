import json

import pytest

from chat_core.domain.exceptions import StorageError
from chat_core.domain.models import ChatMessage
from chat_core.infrastructure.storage.gateway import (
    KEY_API_KEY,
    KEY_MESSAGES,
    KEY_REASONING_EFFORT,
    PersistenceGateway,
    PreferenceStore,
)
from chat_core.infrastructure.storage.json_store import JsonKeyValueStore, MemoryKeyValueStore


class FailingStore:
    def get_item(self, key):
        raise StorageError(code="STORE_READ_ERROR", message="boom")

    def set_item(self, key, value):
        raise StorageError(code="STORE_WRITE_ERROR", message="quota exceeded")


@pytest.mark.parametrize(
    "messages",
    [
        [],
        [ChatMessage("system", "s")],
        [ChatMessage("user", "hi"), ChatMessage("assistant", "")],
        [ChatMessage("system", "s"), ChatMessage("user", "多语言 ✓"), ChatMessage("assistant", "a\nb")],
    ],
)
def test_conversation_round_trip(messages):
    gateway = PersistenceGateway(MemoryKeyValueStore())
    gateway.save_conversation(messages)
    assert gateway.load_conversation() == messages


def test_conversation_is_stored_as_json_array():
    backend = MemoryKeyValueStore()
    PersistenceGateway(backend).save_conversation([ChatMessage("user", "hi")])
    assert json.loads(backend.data[KEY_MESSAGES]) == [{"role": "user", "content": "hi"}]


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "{}",
        '{"role": "user", "content": "x"}',
        '[{"role": "tool", "content": "x"}]',
        '[{"role": "user"}]',
        '[{"role": "user", "content": 3}]',
        '[{"role": "user", "content": "u"}, {"role": "system", "content": "s"}]',
        '["legacy"]',
    ],
)
def test_malformed_conversation_falls_back_to_empty(raw):
    gateway = PersistenceGateway(MemoryKeyValueStore({KEY_MESSAGES: raw}))
    assert gateway.load_conversation() == []


def test_load_missing_key_returns_fallback():
    gateway = PersistenceGateway(MemoryKeyValueStore())
    assert gateway.load("nope", "fallback") == "fallback"
    assert gateway.load_json("nope", {"a": 1}) == {"a": 1}


def test_backend_failures_are_swallowed():
    gateway = PersistenceGateway(FailingStore())
    gateway.save("k", "v")
    gateway.save_conversation([ChatMessage("user", "hi")])
    assert gateway.load("k", "d") == "d"
    assert gateway.load_conversation() == []


def test_unserializable_value_is_swallowed():
    backend = MemoryKeyValueStore()
    PersistenceGateway(backend).save_json("k", {"bad": object()})
    assert "k" not in backend.data


def test_json_store_persists_across_instances(tmp_path):
    first = PersistenceGateway(JsonKeyValueStore(root=tmp_path))
    first.save("model", "gpt-4.1")
    first.save_conversation([ChatMessage("user", "hi")])

    second = PersistenceGateway(JsonKeyValueStore(root=tmp_path))
    assert second.load("model") == "gpt-4.1"
    assert second.load_conversation() == [ChatMessage("user", "hi")]


def test_json_store_recovers_from_corrupt_file(tmp_path):
    store = JsonKeyValueStore(root=tmp_path)
    store.path.write_text("{broken", encoding="utf-8")
    gateway = PersistenceGateway(store)
    assert gateway.load("model", "fallback") == "fallback"
    gateway.save("model", "o3")
    assert gateway.load("model") == "o3"
    assert list(tmp_path.glob("*.tmp")) == []


def make_prefs(initial=None, seed=None):
    backend = MemoryKeyValueStore(initial)
    prefs = PreferenceStore(
        PersistenceGateway(backend),
        default_model="gpt-5",
        default_reasoning_effort="low",
        seed_api_key=seed,
    )
    return prefs, backend


def test_preference_defaults():
    prefs, _ = make_prefs()
    assert prefs.api_key == ""
    assert prefs.system_prompt == ""
    assert prefs.model == "gpt-5"
    assert prefs.reasoning_effort == "low"


def test_api_key_is_trimmed_and_overrides_seed():
    prefs, backend = make_prefs(seed="env-key")
    assert prefs.api_key == "env-key"
    prefs.api_key = "  sk-test  "
    assert backend.data[KEY_API_KEY] == "sk-test"
    assert prefs.api_key == "sk-test"


def test_unknown_stored_effort_uses_default():
    prefs, _ = make_prefs({KEY_REASONING_EFFORT: "extreme"})
    assert prefs.reasoning_effort == "low"
    prefs.reasoning_effort = "high"
    assert prefs.reasoning_effort == "high"


def test_blank_model_uses_default():
    prefs, _ = make_prefs()
    prefs.model = "   "
    assert prefs.model == "gpt-5"
    prefs.model = "gpt-4o-search-preview"
    assert prefs.model == "gpt-4o-search-preview"


class BrokenBackend:
    def get_item(self, key):
        raise RuntimeError("backend offline")

    def set_item(self, key, value):
        raise PermissionError("read-only")


def test_arbitrary_backend_exceptions_are_swallowed():
    gateway = PersistenceGateway(BrokenBackend())
    gateway.save("k", "v")
    gateway.save_json("k", {"a": 1})
    gateway.save_conversation([ChatMessage("user", "hi")])
    assert gateway.load("k", "d") == "d"
    assert gateway.load_json("k", {"x": 1}) == {"x": 1}
    assert gateway.load_conversation() == []


def test_non_text_stored_value_falls_back():
    gateway = PersistenceGateway(MemoryKeyValueStore({"model": 42}))
    assert gateway.load("model", "gpt-5") == "gpt-5"
