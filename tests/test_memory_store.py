from pathlib import Path

from chronicler.memory.store import NO_MEMORY, MemoryStore
from chronicler.utils.helpers import atomic_write_text, safe_filename, write_new_text


def test_read_without_memory_returns_placeholder(tmp_path: Path) -> None:
    store = MemoryStore(tmp_path, "guild")
    assert store.exists() is False
    assert store.read() == NO_MEMORY


def test_replace_archives_previous_text(tmp_path: Path) -> None:
    store = MemoryStore(tmp_path, "guild")
    first_archive = store.replace("v1")
    assert store.read() == "v1"
    assert first_archive.read_text(encoding="utf-8") == NO_MEMORY

    second_archive = store.replace("v2")
    assert store.read() == "v2"
    assert second_archive.read_text(encoding="utf-8") == "v1"
    assert second_archive != first_archive
    assert len(store.list_archives()) == 2


def test_archive_name_carries_scope_and_timestamp(tmp_path: Path) -> None:
    store = MemoryStore(tmp_path, "guild")
    path = store.archive("text")
    assert path.parent == tmp_path / "memory_history"
    scope, _, stamp = path.stem.partition(" - ")
    assert scope == "guild"
    assert stamp.split("-")[0].isdigit()


def test_archives_never_overwrite(tmp_path: Path) -> None:
    store = MemoryStore(tmp_path, "guild")
    paths = {store.archive(f"v{i}") for i in range(5)}
    assert len(paths) == 5
    assert sorted(p.read_text(encoding="utf-8") for p in paths) == [f"v{i}" for i in range(5)]


def test_scopes_do_not_share_memory(tmp_path: Path) -> None:
    MemoryStore(tmp_path, "a").replace("alpha")
    assert MemoryStore(tmp_path, "b").read() == NO_MEMORY
    assert MemoryStore(tmp_path, "b").list_archives() == []


def test_atomic_write_text_creates_and_overwrites_file(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "sample.txt"
    atomic_write_text(path, "v1\n", encoding="utf-8")
    assert path.read_text(encoding="utf-8") == "v1\n"

    atomic_write_text(path, "v2\n", encoding="utf-8")
    assert path.read_text(encoding="utf-8") == "v2\n"
    assert [p.name for p in path.parent.iterdir()] == ["sample.txt"]


def test_write_new_text_picks_a_fresh_name(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    assert write_new_text(path, "one") == path
    second = write_new_text(path, "two")
    assert second == tmp_path / "a-1.txt"
    assert path.read_text(encoding="utf-8") == "one"
    assert second.read_text(encoding="utf-8") == "two"


def test_safe_filename() -> None:
    assert safe_filename("a/b:c") == "a_b_c"
    assert safe_filename("123456789") == "123456789"
    assert safe_filename("") == "_"
