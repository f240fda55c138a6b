"""
Tests for the JSON storage.
"""

import json
import logging

import pytest


def test_onboarding_flag(storage):
    assert not storage.is_onboarding_complete()
    storage.set_onboarding_complete()
    assert storage.is_onboarding_complete()


def test_recent_words_keep_last_five(storage):
    assert storage.get_recent_words() == []
    storage.save_recent_words(["A", "B", "C", "D", "E", "F", "G"])
    assert storage.get_recent_words() == ["C", "D", "E", "F", "G"]


def test_keys_are_independent(storage):
    storage.save_recent_words(["CAR"])
    storage.set_onboarding_complete()
    assert storage.get_recent_words() == ["CAR"]
    assert storage.is_onboarding_complete()


def test_clear_all(storage):
    storage.save_recent_words(["CAR"])
    storage.set_onboarding_complete()
    storage.clear_all()
    assert storage.get_recent_words() == []
    assert not storage.is_onboarding_complete()
    storage.clear_all()


def test_creates_parent_directory(tmp_path):
    from airpictionary.storage import Storage
    storage = Storage(tmp_path / "nested" / "dir" / "state.json")
    storage.save_recent_words(["SUN"])
    assert json.loads(storage.path.read_text(encoding="utf-8")) == {"recent_words": ["SUN"]}


def test_corrupt_file_reads_as_defaults(storage):
    storage.path.write_text("{not json", encoding="utf-8")
    assert storage.get_recent_words() == []
    assert not storage.is_onboarding_complete()

    storage.save_recent_words(["TREE"])
    assert storage.get_recent_words() == ["TREE"]


def test_wrong_shape_is_ignored(storage):
    storage.path.write_text(json.dumps({"recent_words": "CAR"}), encoding="utf-8")
    assert storage.get_recent_words() == []


@pytest.fixture
def unwritable_storage(tmp_path):
    """Storage whose parent "directory" is a regular file, so writes fail."""
    from airpictionary.storage import Storage
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    return Storage(blocker / "state.json")


def test_failed_onboarding_write_is_logged(unwritable_storage, caplog):
    with caplog.at_level(logging.ERROR, logger="airpictionary.storage"):
        unwritable_storage.set_onboarding_complete()

    assert "Error saving onboarding status" in caplog.text
    assert not unwritable_storage.is_onboarding_complete()


def test_failed_recent_words_write_is_logged(unwritable_storage, caplog):
    with caplog.at_level(logging.ERROR, logger="airpictionary.storage"):
        unwritable_storage.save_recent_words(["CAR", "SUN"])

    assert "Error saving recent words" in caplog.text
    assert unwritable_storage.get_recent_words() == []


def test_failed_clear_is_logged(storage, monkeypatch, caplog):
    storage.save_recent_words(["CAR"])

    def refuse(self, missing_ok=False):
        raise PermissionError("read-only")

    monkeypatch.setattr(type(storage.path), "unlink", refuse)
    with caplog.at_level(logging.ERROR, logger="airpictionary.storage"):
        storage.clear_all()

    assert "Error clearing data" in caplog.text
    assert storage.get_recent_words() == ["CAR"]
