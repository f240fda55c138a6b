"""
Tests for the word catalog.
"""

import json
import random

import pytest

from airpictionary.exceptions import CatalogError, EmptyCatalogError
from airpictionary.words import DEFAULT_WORDS, Difficulty, Word, WordCatalog


def test_default_catalog_is_uppercase_and_unique():
    catalog = WordCatalog()
    texts = [w.text for w in catalog.words]
    assert len(catalog) == len(DEFAULT_WORDS) > 0
    assert all(t == t.upper() for t in texts)
    assert len(set(texts)) == len(texts)


def test_select_random_respects_exclusions():
    catalog = WordCatalog(rng=random.Random(42))
    excluded = {w.text for w in catalog.words[:-1]}
    last = catalog.words[-1]
    for _ in range(20):
        assert catalog.select_random(excluded) == last


def test_select_random_never_returns_excluded_word():
    catalog = WordCatalog(rng=random.Random(1))
    excluded = {"CAR", "HOUSE", "SMILE", "PHONE", "SUN"}
    for _ in range(200):
        assert catalog.select_random(excluded).text not in excluded


def test_select_random_falls_back_when_everything_is_excluded():
    catalog = WordCatalog(rng=random.Random(3))
    everything = {w.text for w in catalog.words}
    assert catalog.select_random(everything) in catalog.words


def test_empty_catalog_is_an_error():
    with pytest.raises(EmptyCatalogError):
        WordCatalog([]).select_random()


def test_by_difficulty():
    catalog = WordCatalog()
    easy = catalog.by_difficulty("easy")
    assert easy
    assert all(w.difficulty is Difficulty.EASY for w in easy)
    assert catalog.by_difficulty(Difficulty.HARD)


def test_from_json(tmp_path):
    path = tmp_path / "words.json"
    path.write_text(json.dumps([
        {"word": "kite", "emoji": "🪁", "difficulty": "medium"},
        {"word": "Moon", "emoji": "🌙"},
    ]), encoding="utf-8")

    catalog = WordCatalog.from_json(path)
    assert catalog.words == [
        Word("KITE", "🪁", Difficulty.MEDIUM),
        Word("MOON", "🌙", Difficulty.EASY),
    ]


def test_from_json_rejects_bad_difficulty(tmp_path):
    path = tmp_path / "words.json"
    path.write_text(json.dumps([{"word": "kite", "difficulty": "extreme"}]), encoding="utf-8")
    with pytest.raises(CatalogError):
        WordCatalog.from_json(path)


def test_from_json_missing_file(tmp_path):
    with pytest.raises(CatalogError):
        WordCatalog.from_json(tmp_path / "missing.json")
