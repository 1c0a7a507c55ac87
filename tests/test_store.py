import json
from pathlib import Path

from switchboard.state import SessionState
from switchboard.store import FileSessionStore, InMemorySessionStore, session_slug


def _state(*texts: str) -> SessionState:
    state = SessionState()
    for text in texts:
        state.append_message("user", text)
    return state


def test_memory_store_hands_out_copies() -> None:
    store = InMemorySessionStore()
    original = _state("hello")
    store.save("s1", original)

    original.append_message("assistant", "mutated after save")
    loaded = store.load("s1")
    assert loaded is not None
    loaded.append_message("assistant", "mutated after load")

    again = store.load("s1")
    assert again is not None
    assert [m.content for m in again.messages] == ["hello"]
    assert store.sessions() == ["s1"]
    assert store.load("unknown") is None


def test_file_store_persists_between_instances(tmp_path: Path) -> None:
    FileSessionStore(tmp_path).save("chat:42", _state("hello", "again"))

    loaded = FileSessionStore(tmp_path).load("chat:42")

    assert loaded is not None
    assert [m.content for m in loaded.messages] == ["hello", "again"]
    assert (tmp_path / f"{session_slug('chat:42')}.json").is_file()
    assert not list(tmp_path.glob("*.tmp"))


def test_file_store_missing_session(tmp_path: Path) -> None:
    assert FileSessionStore(tmp_path / "absent").load("s1") is None


def test_file_store_ignores_corrupt_documents(tmp_path: Path) -> None:
    store = FileSessionStore(tmp_path)
    store.path_for("s1").write_text("{broken", encoding="utf-8")
    store.path_for("s2").write_text(json.dumps({"session_id": "someone-else", "state": {}}), encoding="utf-8")
    store.path_for("s3").write_text(
        json.dumps({"session_id": "s3", "state": {"messages": [{"role": "robot", "content": "?"}]}}),
        encoding="utf-8",
    )

    assert store.load("s1") is None
    assert store.load("s2") is None
    assert store.load("s3") is None
